"""Контракты внешних зависимостей цикла опроса."""

from __future__ import annotations

from typing import List, Protocol

from nomad_idle_monitor.docker_api.models import NetworkIO
from nomad_idle_monitor.nomad.models import StopResult


class ContainerRuntime(Protocol):
    """Источник сведений о запущенных контейнерах.

    Ошибки сообщаются исключениями ``ContainerDiscoveryError`` и
    ``ContainerMetricsError``.
    """

    def list_container_ids(self, container_filter: str) -> List[str]:
        """Возвращает идентификаторы запущенных контейнеров под фильтром."""

    def read_network_io(self, container_id: str) -> NetworkIO:
        """Возвращает накопленные счётчики rx/tx в человекочитаемом виде."""

    def get_container_name(self, container_id: str) -> str:
        """Возвращает отображаемое имя контейнера."""


class JobStopper(Protocol):
    """Исполнитель остановки задачи оркестратора."""

    def stop_job(self, job_name: str) -> StopResult:
        """Делает ровно одну попытку остановки и возвращает классифицированный итог."""
