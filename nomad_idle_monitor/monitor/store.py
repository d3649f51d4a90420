"""Хранилище состояния трекера: контейнер -> последняя значимая активность."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class TrackedContainer:
    """Запись о контейнере, за которым идёт наблюдение."""

    container_id: str
    last_total_bytes: int
    last_active_at: float

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload.pop("container_id")
        return payload

    @classmethod
    def from_dict(cls, container_id: str, data: Dict[str, Any]) -> "TrackedContainer":
        return cls(
            container_id=container_id,
            last_total_bytes=int(data["last_total_bytes"]),
            last_active_at=float(data["last_active_at"]),
        )


class TrackerStore:
    """Словарь записей в памяти с явными операциями create/update/delete."""

    def __init__(self) -> None:
        self._records: Dict[str, TrackedContainer] = {}

    def get(self, container_id: str) -> Optional[TrackedContainer]:
        return self._records.get(container_id)

    def create(self, container_id: str, total_bytes: int, now: float) -> TrackedContainer:
        if container_id in self._records:
            raise KeyError(f"Container {container_id} is already tracked")
        record = TrackedContainer(container_id, total_bytes, now)
        self._records[container_id] = record
        self._commit()
        return record

    def update(self, container_id: str, total_bytes: int, now: float) -> TrackedContainer:
        record = self._records[container_id]
        record.last_total_bytes = total_bytes
        record.last_active_at = now
        self._commit()
        return record

    def delete(self, container_id: str) -> bool:
        """Удаляет запись; возвращает False, если её не было."""

        if self._records.pop(container_id, None) is None:
            return False
        self._commit()
        return True

    def ids(self) -> List[str]:
        return list(self._records)

    def __contains__(self, container_id: object) -> bool:
        return container_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def _commit(self) -> None:
        """Точка сохранения изменений; в памяти ничего делать не нужно."""


class JsonTrackerStore(TrackerStore):
    """Хранилище, переживающее перезапуск: состояние пишется в JSON-файл.

    Файл перезаписывается атомарно при каждом изменении. Повреждённый файл
    не мешает старту: контейнеры просто начнут отслеживаться заново.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            content = json.loads(self.path.read_text(encoding="utf-8"))
            records = {
                container_id: TrackedContainer.from_dict(container_id, data)
                for container_id, data in content.get("containers", {}).items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            LOGGER.warning("Ignoring unreadable tracker state %s: %s", self.path, exc)
            return
        self._records = records
        LOGGER.info("Restored %d tracked container(s) from %s", len(records), self.path)

    def _commit(self) -> None:
        """Сохраняет записи на диск.

        Ошибка записи не прерывает работу трекера: решение об остановке уже
        принято в памяти, файл догонит состояние при следующем изменении.
        """

        payload = {
            "containers": {
                container_id: record.to_dict() for container_id, record in self._records.items()
            }
        }
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            LOGGER.error("Could not save tracker state to %s: %s", self.path, exc)
