"""Обёртка над docker-py с безопасной инициализацией."""

from __future__ import annotations

import logging
from typing import Any, Optional

import docker
from docker.errors import DockerException

from nomad_idle_monitor.docker_api.exceptions import DockerAPIError
from nomad_idle_monitor.utils.helpers import normalize_socket_path

LOGGER = logging.getLogger(__name__)


class DockerClientWrapper:
    """Управляет созданием и использованием docker API client."""

    def __init__(self, base_url: Optional[str] = None, raw_client: Any | None = None) -> None:
        self.base_url = normalize_socket_path(base_url) if base_url else None
        self._client = raw_client or self._create_client()

    def _create_client(self) -> Any:
        try:
            if self.base_url:
                return docker.DockerClient(base_url=self.base_url)
            # DOCKER_HOST, DOCKER_TLS_VERIFY и т.п. читаются самим SDK
            return docker.from_env()
        except DockerException as exc:
            LOGGER.error(
                "Docker client init error via %s: %s",
                self.base_url or "environment",
                exc,
            )
            raise DockerAPIError(str(exc)) from exc

    def get_raw_client(self) -> Any:
        """Возвращает внутренний docker client."""

        return self._client

    def close(self) -> None:
        """Закрывает HTTP-сессию клиента."""

        close = getattr(self._client, "close", None)
        if callable(close):
            close()
