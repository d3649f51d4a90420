"""Упрощённые структуры данных для описания объектов Docker."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class NetworkIO:
    """Накопленный сетевой трафик контейнера в формате docker stats."""

    rx: str  # принято, например "1.2kB"
    tx: str  # передано

    def __str__(self) -> str:
        return f"{self.rx} / {self.tx}"
