"""Различные вспомогательные функции."""

from __future__ import annotations


_SOCKET_SCHEMES = ("unix://", "tcp://", "npipe://", "http://", "https://", "ssh://")
SHORT_ID_LENGTH = 12


def normalize_socket_path(raw_value: str) -> str:
    """Возвращает путь сокета с корректным префиксом unix://."""

    value = raw_value.strip()
    if not value:
        return value
    lowered = value.lower()
    if lowered.startswith(_SOCKET_SCHEMES):
        return value
    if value.startswith("/"):
        return f"unix://{value}"
    return value


def short_id(container_id: str) -> str:
    """Сокращает идентификатор контейнера так же, как docker ps."""

    return container_id[:SHORT_ID_LENGTH]


def mask_secret(value: str) -> str:
    """Скрывает токен в логах, оставляя лишь признак наличия."""

    return "****" if value else "<empty>"
