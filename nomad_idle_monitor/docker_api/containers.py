"""Функции для работы с контейнерами через Docker client."""

from __future__ import annotations

import json
from typing import Any, Dict, List

import requests
from docker.errors import DockerException

from nomad_idle_monitor.docker_api.client import DockerClientWrapper
from nomad_idle_monitor.docker_api.exceptions import (
    ContainerDiscoveryError,
    ContainerMetricsError,
)
from nomad_idle_monitor.docker_api.models import NetworkIO

# Ошибки соединения с демоном docker-py пробрасывает как исключения requests
_DOCKER_ERRORS = (DockerException, requests.RequestException)

_DECIMAL_UNITS = ["B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]


def parse_container_filter(text: str) -> Dict[str, List[str]]:
    """Преобразует строку ``docker ps --filter`` в словарь filters для SDK.

    ``"label=autostop=idle name=web"`` -> ``{"label": ["autostop=idle"], "name": ["web"]}``
    """

    filters: Dict[str, List[str]] = {}
    for term in text.split():
        key, sep, value = term.partition("=")
        if not sep or not key or not value:
            raise ContainerDiscoveryError(f"Invalid container filter term: {term!r}")
        filters.setdefault(key, []).append(value)
    return filters


def list_container_ids(client: DockerClientWrapper, container_filter: str = "") -> List[str]:
    """Возвращает полные идентификаторы запущенных контейнеров под фильтром."""

    filters = parse_container_filter(container_filter)
    raw = client.get_raw_client()
    try:
        containers = raw.containers.list(filters=filters or None, sparse=True)
    except _DOCKER_ERRORS as exc:
        raise ContainerDiscoveryError(f"Failed to list containers: {exc}") from exc
    return [container.id for container in containers]


def read_network_io(client: DockerClientWrapper, container_id: str) -> NetworkIO:
    """Считывает накопленный сетевой трафик так, как его показывает docker stats."""

    raw = client.get_raw_client()
    try:
        raw_stats = raw.containers.get(container_id).stats(stream=False)
        if isinstance(raw_stats, (bytes, str)):
            raw_stats = json.loads(raw_stats)
    except _DOCKER_ERRORS as exc:
        raise ContainerMetricsError(container_id, str(exc)) from exc
    except (ValueError, TypeError) as exc:
        raise ContainerMetricsError(container_id, f"malformed stats: {exc}") from exc

    networks = raw_stats.get("networks") or {}
    rx = sum(int(interface.get("rx_bytes", 0)) for interface in networks.values())
    tx = sum(int(interface.get("tx_bytes", 0)) for interface in networks.values())
    return NetworkIO(rx=format_size(rx), tx=format_size(tx))


def get_container_name(client: DockerClientWrapper, container_id: str) -> str:
    """Возвращает отображаемое имя контейнера без ведущего '/'."""

    raw = client.get_raw_client()
    try:
        container = raw.containers.get(container_id)
    except _DOCKER_ERRORS as exc:
        raise ContainerMetricsError(container_id, str(exc)) from exc
    return str(container.name or "").lstrip("/")


def format_size(value: Any) -> str:
    """Форматирует байты как docker stats: десятичные единицы, 3 значащие цифры."""

    size = float(value)
    index = 0
    while size >= 1000.0 and index < len(_DECIMAL_UNITS) - 1:
        size /= 1000.0
        index += 1
    return f"{size:.3g}{_DECIMAL_UNITS[index]}"
