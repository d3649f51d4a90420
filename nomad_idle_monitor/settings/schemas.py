"""Дефолтная схема конфигурации и соответствие переменным окружения."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

# DEFAULT_CONFIG служит источником значений по умолчанию для групп настроек
DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "monitor": {
        "idle_timeout": 600,
        "check_interval": 60,
        "activity_threshold": 500,
        "container_filter": "",
    },
    "nomad": {
        "endpoint": None,
        "token": None,
        "request_timeout": None,
    },
    "docker": {
        "host": "",
    },
    "state": {
        "directory": "",
        "persist": True,
    },
    "logging": {
        "level": "INFO",
        "log_dir": "",
        "max_file_size_mb": 10,
        "max_archived_files": 5,
    },
}

# ENVIRONMENT_KEYS: переменная окружения -> (группа, ключ)
ENVIRONMENT_KEYS: Dict[str, Tuple[str, str]] = {
    "IDLE_TIMEOUT": ("monitor", "idle_timeout"),
    "CHECK_INTERVAL": ("monitor", "check_interval"),
    "ACTIVITY_THRESHOLD": ("monitor", "activity_threshold"),
    "CONTAINER_FILTER": ("monitor", "container_filter"),
    "NOMAD_ENDPOINT": ("nomad", "endpoint"),
    "NOMAD_TOKEN": ("nomad", "token"),
    "NOMAD_TIMEOUT": ("nomad", "request_timeout"),
    "DOCKER_HOST": ("docker", "host"),
    "STATE_DIRECTORY": ("state", "directory"),
    "STATE_PERSIST": ("state", "persist"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_DIR": ("logging", "log_dir"),
}


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    """Проверенная конфигурация, которую получает ядро мониторинга."""

    idle_timeout: int
    check_interval: int
    activity_threshold: int
    container_filter: str
    nomad_endpoint: str
    nomad_token: str
    nomad_timeout: Optional[float] = None
