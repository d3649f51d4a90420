"""Разбор человекочитаемых объёмов трафика ("1.2MB") в целое число байт."""

from __future__ import annotations

import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Final

from nomad_idle_monitor.docker_api.models import NetworkIO

LOGGER = logging.getLogger(__name__)

# docker stats печатает десятичные единицы; двоичные оставлены на случай смены формата
UNIT_MULTIPLIERS: Final[Dict[str, int]] = {
    "": 1,
    "B": 1,
    "kB": 1000,
    "KB": 1000,
    "K": 1000,
    "MB": 1000**2,
    "M": 1000**2,
    "GB": 1000**3,
    "G": 1000**3,
    "TB": 1000**4,
    "T": 1000**4,
    "KiB": 1024,
    "MiB": 1024**2,
    "GiB": 1024**3,
    "TiB": 1024**4,
}

_QUANTITY_RE = re.compile(
    r"^\s*(?P<number>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)\s*(?P<unit>.*?)\s*$"
)


class MetricParseError(ValueError):
    """Строку не удалось разобрать как количество байт."""


def parse_bytes(text: str) -> int:
    """Возвращает количество байт, округлённое до целого (половина вверх).

    Неизвестная единица не считается ошибкой: пишется предупреждение и
    значение трактуется как байты.
    """

    match = _QUANTITY_RE.match(text or "")
    # всё после числа считается единицей, как в исходном awk-разборе
    if match is None:
        raise MetricParseError(f"Cannot parse byte quantity {text!r}")
    try:
        number = Decimal(match.group("number"))
    except InvalidOperation as exc:  # pragma: no cover - регулярка это исключает
        raise MetricParseError(f"Cannot parse byte quantity {text!r}") from exc

    unit = match.group("unit")
    multiplier = UNIT_MULTIPLIERS.get(unit)
    if multiplier is None:
        LOGGER.warning("Unknown unit '%s' in '%s', assuming bytes.", unit, text.strip())
        multiplier = 1
    return int((number * multiplier).to_integral_value(rounding=ROUND_HALF_UP))


def parse_network_io(io: NetworkIO) -> int:
    """Суммарный трафик rx + tx в байтах."""

    return parse_bytes(io.rx) + parse_bytes(io.tx)
