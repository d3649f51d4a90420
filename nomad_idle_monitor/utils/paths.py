"""Централизованное описание путей демона и рабочего каталога состояния."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from nomad_idle_monitor.settings.exceptions import SettingsIOError

LOGGER = logging.getLogger(__name__)

# SCRATCH_PARENT: /var/tmp переживает перезагрузки дольше, чем /tmp
SCRATCH_PARENT = Path("/var/tmp")
SCRATCH_PREFIX = "nomad_idle_monitor_state_"
STATE_FILE_NAME = "tracker.json"


class StateDirectory:
    """Каталог состояния трекера с управляемым временем жизни.

    Если каталог передан извне (например, ``RuntimeDirectory=`` в systemd),
    он используется как есть и не удаляется. Иначе создаётся временный
    каталог, который удаляется в ``cleanup()``.
    """

    def __init__(self, external: Optional[Path] = None, *, parent: Optional[Path] = None) -> None:
        if external is not None:
            try:
                external.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise SettingsIOError(external, str(exc)) from exc
            self.path = external
            self.owned = False
        else:
            base = parent or (SCRATCH_PARENT if SCRATCH_PARENT.is_dir() else None)
            try:
                self.path = Path(
                    tempfile.mkdtemp(prefix=f"{SCRATCH_PREFIX}{os.getpid()}_", dir=base)
                )
            except OSError as exc:
                raise SettingsIOError(base or Path(tempfile.gettempdir()), str(exc)) from exc
            self.owned = True

    @property
    def state_file(self) -> Path:
        return self.path / STATE_FILE_NAME

    def cleanup(self) -> None:
        """Удаляет каталог, если он был создан этим процессом."""

        if not self.owned:
            LOGGER.info("Not cleaning up state directory %s (managed externally).", self.path)
            return
        LOGGER.info("Cleaning up state directory %s...", self.path)
        shutil.rmtree(self.path, ignore_errors=True)

    def __enter__(self) -> "StateDirectory":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()
