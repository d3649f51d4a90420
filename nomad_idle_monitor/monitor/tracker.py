"""Конечный автомат активности контейнеров.

У контейнера два состояния: «не отслеживается» (записи в хранилище нет) и
«отслеживается» (есть ``TrackedContainer``). Простой отсчитывается от
последней *значимой* активности, а не от последнего опроса: фоновый трафик
ниже порога (keep-alive, health-check) не сбрасывает таймер.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from nomad_idle_monitor.monitor.store import TrackedContainer, TrackerStore


class ActivityEvent(str, Enum):
    """Итог наблюдения за контейнером в одном цикле."""

    SEEDED = "seeded"
    ACTIVE = "active"
    IDLE = "idle"
    IDLE_TIMEOUT = "idle_timeout"


@dataclass(frozen=True, slots=True)
class Observation:
    """Что трекер решил по очередному замеру."""

    container_id: str
    event: ActivityEvent
    current_total: int
    delta: Optional[int] = None
    idle_duration: Optional[float] = None


class ActivityTracker:
    """Решает, активен ли контейнер или простаивает дольше таймаута."""

    def __init__(
        self, store: TrackerStore, *, idle_timeout: float, activity_threshold: int
    ) -> None:
        if idle_timeout <= 0:
            raise ValueError("idle_timeout must be positive")
        if activity_threshold < 0:
            raise ValueError("activity_threshold must not be negative")
        self.store = store
        self.idle_timeout = idle_timeout
        self.activity_threshold = activity_threshold

    def observe(self, container_id: str, current_total: int, now: float) -> Observation:
        """Применяет замер к состоянию контейнера.

        При ``IDLE_TIMEOUT`` запись удаляется сразу, ещё до попытки остановки,
        поэтому неудачная остановка не повторяется на следующем цикле.
        """

        record = self.store.get(container_id)
        if record is None:
            self.store.create(container_id, current_total, now)
            return Observation(container_id, ActivityEvent.SEEDED, current_total)

        # отрицательная дельта (сброс счётчиков после рестарта) значимой не считается
        delta = current_total - record.last_total_bytes
        if delta > self.activity_threshold:
            self.store.update(container_id, current_total, now)
            return Observation(container_id, ActivityEvent.ACTIVE, current_total, delta=delta)

        idle_duration = now - record.last_active_at
        if idle_duration >= self.idle_timeout:
            self.store.delete(container_id)
            return Observation(
                container_id,
                ActivityEvent.IDLE_TIMEOUT,
                current_total,
                delta=delta,
                idle_duration=idle_duration,
            )
        return Observation(
            container_id,
            ActivityEvent.IDLE,
            current_total,
            delta=delta,
            idle_duration=idle_duration,
        )

    def forget(self, container_id: str) -> bool:
        """Снимает контейнер с наблюдения без события простоя."""

        return self.store.delete(container_id)

    def reconcile(self, seen_ids: Iterable[str]) -> List[str]:
        """Удаляет записи контейнеров, которых нет в текущем списке."""

        seen = set(seen_ids)
        removed = [container_id for container_id in self.store.ids() if container_id not in seen]
        for container_id in removed:
            self.store.delete(container_id)
        return removed

    def get(self, container_id: str) -> Optional[TrackedContainer]:
        return self.store.get(container_id)

    def tracked_ids(self) -> List[str]:
        return self.store.ids()
