"""Определение имени Nomad-задачи по имени контейнера.

Nomad с драйвером docker называет контейнеры ``<task>-<alloc-id>``, где
alloc-id имеет вид UUID. Здесь предполагается, что имя задачи совпадает с
именем task, поэтому достаточно отрезать суффикс из 37 символов.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Optional

ALLOC_SUFFIX_LENGTH: Final[int] = 37  # дефис + 36 символов UUID
_ALLOC_SUFFIX_RE = re.compile(r"-[0-9a-fA-F-]{36}")


@dataclass(frozen=True, slots=True)
class JobDerivation:
    """Результат разбора имени контейнера."""

    container_name: str
    job_name: Optional[str] = None
    reason: str = ""

    @property
    def matched(self) -> bool:
        return self.job_name is not None


def derive_job_name(container_name: Optional[str]) -> JobDerivation:
    """Отделяет суффикс аллокации и возвращает вероятное имя задачи."""

    name = container_name or ""
    if not name:
        return JobDerivation(name, reason="container name is empty")

    split_at = len(name) - ALLOC_SUFFIX_LENGTH
    if split_at <= 0:
        return JobDerivation(
            name,
            reason=f"name is too short for a {ALLOC_SUFFIX_LENGTH}-character allocation suffix",
        )

    job_name, suffix = name[:split_at], name[split_at:]
    if not suffix.startswith("-"):
        return JobDerivation(name, reason=f"suffix {suffix!r} does not start with '-'")
    if not _ALLOC_SUFFIX_RE.fullmatch(suffix):
        return JobDerivation(
            name, reason=f"suffix {suffix!r} is not made of hex digits and hyphens"
        )
    return JobDerivation(name, job_name=job_name)
