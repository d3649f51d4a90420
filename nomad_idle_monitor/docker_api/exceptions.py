"""Исключения слоя доступа к Docker."""

from __future__ import annotations


class DockerAPIError(Exception):
    """Базовая ошибка обращения к Docker Engine."""


class ContainerDiscoveryError(DockerAPIError):
    """Не удалось получить список контейнеров: цикл опроса пропускается."""


class ContainerMetricsError(DockerAPIError):
    """Не удалось прочитать метрики одного контейнера (вероятно, он остановлен)."""

    def __init__(self, container_id: str, reason: str) -> None:
        self.container_id = container_id
        self.reason = reason
        super().__init__(f"Cannot read stats for container {container_id}: {reason}")
