"""Реализация ContainerRuntime поверх docker-py."""

from __future__ import annotations

import logging
from typing import List, Optional

from nomad_idle_monitor.docker_api import containers
from nomad_idle_monitor.docker_api.client import DockerClientWrapper
from nomad_idle_monitor.docker_api.exceptions import (
    ContainerDiscoveryError,
    ContainerMetricsError,
    DockerAPIError,
)
from nomad_idle_monitor.docker_api.models import NetworkIO

LOGGER = logging.getLogger(__name__)


class DockerRuntime:
    """Предоставляет циклу опроса сведения о контейнерах одного Docker Engine.

    Клиент создаётся лениво: если демон Docker недоступен при старте,
    цикл опроса просто пропускается и повторяется позже.
    """

    def __init__(
        self, base_url: Optional[str] = None, client: Optional[DockerClientWrapper] = None
    ) -> None:
        self._base_url = base_url
        self._client = client

    def _get_client(self) -> DockerClientWrapper:
        if self._client is None:
            self._client = DockerClientWrapper(self._base_url)
        return self._client

    def list_container_ids(self, container_filter: str) -> List[str]:
        try:
            client = self._get_client()
        except DockerAPIError as exc:
            raise ContainerDiscoveryError(f"Docker is not available: {exc}") from exc
        ids = containers.list_container_ids(client, container_filter)
        LOGGER.debug("Discovered %d container(s) for filter %r", len(ids), container_filter)
        return ids

    def read_network_io(self, container_id: str) -> NetworkIO:
        return containers.read_network_io(self._require_client(container_id), container_id)

    def get_container_name(self, container_id: str) -> str:
        return containers.get_container_name(self._require_client(container_id), container_id)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def _require_client(self, container_id: str) -> DockerClientWrapper:
        try:
            return self._get_client()
        except DockerAPIError as exc:
            raise ContainerMetricsError(container_id, str(exc)) from exc
