"""Модели результата обращения к Nomad."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StopOutcome(str, Enum):
    """Классификация исхода запроса на остановку задачи."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    TRANSPORT = "transport"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class StopResult:
    """Итог единственной попытки остановить задачу."""

    job_name: str
    url: str
    outcome: StopOutcome
    status_code: Optional[int] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is StopOutcome.SUCCESS
