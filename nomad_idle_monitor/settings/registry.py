"""Реестр настроек демона: загрузка из окружения и сборка MonitorConfig."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from nomad_idle_monitor.settings.exceptions import ConfigError, SettingsNotFoundError
from nomad_idle_monitor.settings.groups import (
    DockerSettings,
    LoggingSettings,
    MonitorSettings,
    NomadSettings,
    SettingsGroup,
    StateSettings,
)
from nomad_idle_monitor.settings.schemas import ENVIRONMENT_KEYS, MonitorConfig


class SettingsRegistry:
    """Управляет всеми группами настроек.

    Источник значений: переменные окружения (их задаёт systemd через
    ``EnvironmentFile=``). Пустая переменная считается незаданной, как
    ``${VAR:-default}`` в shell.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._settings: Dict[str, SettingsGroup] = {}
        self._register_groups()

    # --------------------------------------------------------------------- API
    def get_value(self, group: str, key: str, default: Any = None) -> Any:
        settings_group = self._settings.get(group)
        if not settings_group:
            if default is not None:
                return default
            raise SettingsNotFoundError(group, key)
        try:
            return settings_group.get(key)
        except SettingsNotFoundError:
            if default is not None:
                return default
            raise

    def get_group(self, group: str) -> SettingsGroup:
        return self._require_group(group)

    def load_from_env(self, environ: Mapping[str, str]) -> None:
        """Заполняет группы из переменных окружения."""

        for variable, (group, key) in ENVIRONMENT_KEYS.items():
            raw = environ.get(variable)
            if raw is None or not raw.strip():
                continue
            self._require_group(group).set_from_text(key, raw)

    def validate_required(self) -> None:
        """Проверяет обязательные значения, без которых демон бесполезен."""

        if not self.get_value("nomad", "endpoint"):
            raise ConfigError("NOMAD_ENDPOINT", "environment variable not set or empty")
        if not self.get_value("nomad", "token"):
            raise ConfigError("NOMAD_TOKEN", "environment variable not set or empty")

    def build_config(self) -> MonitorConfig:
        """Возвращает неизменяемую конфигурацию для ядра."""

        self.validate_required()
        return MonitorConfig(
            idle_timeout=self.get_value("monitor", "idle_timeout"),
            check_interval=self.get_value("monitor", "check_interval"),
            activity_threshold=self.get_value("monitor", "activity_threshold"),
            container_filter=self.get_value("monitor", "container_filter"),
            nomad_endpoint=self.get_value("nomad", "endpoint"),
            nomad_token=self.get_value("nomad", "token"),
            nomad_timeout=self.get_value("nomad", "request_timeout"),
        )

    def state_directory(self) -> Optional[Path]:
        directory = self.get_value("state", "directory")
        return Path(directory) if directory else None

    def log_directory(self) -> Optional[Path]:
        directory = self.get_value("logging", "log_dir")
        return Path(directory) if directory else None

    # ----------------------------------------------------------------- helpers
    def _register_groups(self) -> None:
        self._settings = {
            "monitor": MonitorSettings(),
            "nomad": NomadSettings(),
            "docker": DockerSettings(),
            "state": StateSettings(),
            "logging": LoggingSettings(),
        }

    def _require_group(self, group: str) -> SettingsGroup:
        try:
            return self._settings[group]
        except KeyError:
            raise SettingsNotFoundError(group, None) from None
