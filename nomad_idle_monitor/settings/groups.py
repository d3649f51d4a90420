"""Классы групп настроек с полной поддержкой валидации."""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, FrozenSet, Tuple

from nomad_idle_monitor.settings.exceptions import (
    SettingsNotFoundError,
    SettingsValidationError,
)
from nomad_idle_monitor.settings.schemas import DEFAULT_CONFIG
from nomad_idle_monitor.settings.validators import (
    CompositeValidator,
    EnumValidator,
    OptionalValidator,
    RangeValidator,
    RegexValidator,
    TypeValidator,
    Validator,
)

LOGGER = logging.getLogger(__name__)

URL_PATTERN = r"^https?://[^\s/]+(/\S*)?$"
# Фильтр в синтаксисе docker ps --filter: пары key=value через пробел
FILTER_PATTERN = r"^\s*([A-Za-z_.-]+=\S+(\s+[A-Za-z_.-]+=\S+)*)?\s*$"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(raw: str) -> bool:
    """Разбирает булево значение из строки окружения."""

    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def parse_int(raw: str) -> int:
    return int(raw.strip())


def parse_float(raw: str) -> float:
    return float(raw.strip())


def parse_str(raw: str) -> str:
    return raw.strip()


class SettingsGroup(ABC):
    """Абстрактная база для конкретных групп настроек."""

    group_name: str = ""

    def __init__(self) -> None:
        self._defaults: Dict[str, Any] = {}
        self._validators: Dict[str, Validator] = {}
        self._converters: Dict[str, Callable[[str], Any]] = {}
        # ключи, для которых некорректное значение заменяется дефолтом
        self._lenient_keys: FrozenSet[str] = frozenset()
        self._values: Dict[str, Any] = {}
        self._initialize_defaults()
        self._setup_validators()
        self.reset_to_defaults()

    def _initialize_defaults(self) -> None:
        """Задаёт значения по умолчанию для группы."""

        self._defaults = copy.deepcopy(DEFAULT_CONFIG[self.group_name])

    @abstractmethod
    def _setup_validators(self) -> None:
        """Привязывает валидаторы и конвертеры к ключам группы."""

    def get(self, key: str, default: Any = None) -> Any:
        """Возвращает значение настройки."""

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        return self._values.get(key, default)

    def validate(self, key: str, value: Any) -> Tuple[bool, str]:
        """Применяет соответствующий валидатор и возвращает результат."""

        validator = self._validators.get(key)
        if not validator:
            return True, ""
        return validator.validate(value)

    def set(self, key: str, value: Any) -> None:
        """Сохраняет значение, выбрасывая ошибку при невалидных данных."""

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        is_valid, error = self.validate(key, value)
        if not is_valid:
            raise SettingsValidationError(
                key=f"{self.group_name}.{key}",
                value=value,
                reason=error,
            )
        self._values[key] = value

    def set_from_text(self, key: str, raw: str) -> None:
        """Конвертирует строковое значение (из окружения) и сохраняет его.

        Для ключей из ``_lenient_keys`` ошибка конвертации или валидации
        не фатальна: пишется предупреждение и остаётся значение по умолчанию.
        """

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        converter = self._converters.get(key, parse_str)
        try:
            value = converter(raw)
        except ValueError as exc:
            if key in self._lenient_keys:
                self._fallback(key, raw)
                return
            raise SettingsValidationError(
                key=f"{self.group_name}.{key}", value=raw, reason=str(exc)
            ) from exc

        if key in self._lenient_keys and not self.validate(key, value)[0]:
            self._fallback(key, raw)
            return
        self.set(key, value)

    def _fallback(self, key: str, raw: str) -> None:
        default = self._defaults[key]
        LOGGER.warning(
            "Invalid %s.%s value %r, using default %r.", self.group_name, key, raw, default
        )
        self._values[key] = default

    def reset_to_defaults(self) -> None:
        """Сбрасывает значения группы к дефолтным."""

        self._values = dict(self._defaults)


class MonitorSettings(SettingsGroup):
    """Параметры цикла опроса и порогов простоя."""

    group_name = "monitor"

    def _setup_validators(self) -> None:
        positive_int = CompositeValidator([TypeValidator(int), RangeValidator(1, None)])
        self._validators = {
            "idle_timeout": positive_int,
            "check_interval": positive_int,
            "activity_threshold": CompositeValidator(
                [TypeValidator(int), RangeValidator(0, None)]
            ),
            "container_filter": CompositeValidator(
                [TypeValidator(str), RegexValidator(FILTER_PATTERN)]
            ),
        }
        self._converters = {
            "idle_timeout": parse_int,
            "check_interval": parse_int,
            "activity_threshold": parse_int,
        }
        self._lenient_keys = frozenset({"activity_threshold"})


class NomadSettings(SettingsGroup):
    """Адрес и токен Nomad HTTP API."""

    group_name = "nomad"

    def _setup_validators(self) -> None:
        self._validators = {
            "endpoint": OptionalValidator(
                CompositeValidator([TypeValidator(str), RegexValidator(URL_PATTERN)])
            ),
            "token": OptionalValidator(TypeValidator(str)),
            "request_timeout": OptionalValidator(
                CompositeValidator([TypeValidator((int, float)), RangeValidator(0.001, None)])
            ),
        }
        self._converters = {
            "endpoint": lambda raw: raw.strip().rstrip("/"),
            "request_timeout": parse_float,
        }


class DockerSettings(SettingsGroup):
    """Подключение к Docker Engine."""

    group_name = "docker"

    def _setup_validators(self) -> None:
        self._validators = {"host": TypeValidator(str)}


class StateSettings(SettingsGroup):
    """Где и как хранится состояние трекера."""

    group_name = "state"

    def _setup_validators(self) -> None:
        self._validators = {
            "directory": TypeValidator(str),
            "persist": TypeValidator(bool),
        }
        self._converters = {"persist": parse_bool}


class LoggingSettings(SettingsGroup):
    """Настройки логирования демона."""

    group_name = "logging"

    def _setup_validators(self) -> None:
        self._validators = {
            "level": EnumValidator(["DEBUG", "INFO", "WARNING", "ERROR"]),
            "log_dir": TypeValidator(str),
            "max_file_size_mb": RangeValidator(1, 1000),
            "max_archived_files": RangeValidator(1, 50),
        }
        self._converters = {
            "level": lambda raw: raw.strip().upper(),
            "max_file_size_mb": parse_int,
            "max_archived_files": parse_int,
        }
