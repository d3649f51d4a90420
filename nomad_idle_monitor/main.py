"""Точка входа демона nomad-idle-monitor."""

from __future__ import annotations

import logging
import os
import signal
import sys
import threading
from pathlib import Path
from types import FrameType
from typing import Mapping, Optional

from nomad_idle_monitor import __version__
from nomad_idle_monitor.docker_api.runtime import DockerRuntime
from nomad_idle_monitor.monitor.poller import PollOrchestrator
from nomad_idle_monitor.monitor.store import JsonTrackerStore, TrackerStore
from nomad_idle_monitor.monitor.tracker import ActivityTracker
from nomad_idle_monitor.nomad.client import NomadClient
from nomad_idle_monitor.settings.exceptions import SettingsError, SettingsIOError
from nomad_idle_monitor.settings.registry import SettingsRegistry
from nomad_idle_monitor.settings.schemas import MonitorConfig
from nomad_idle_monitor.utils.helpers import mask_secret
from nomad_idle_monitor.utils.logger import configure_logging
from nomad_idle_monitor.utils.paths import StateDirectory

LOGGER = logging.getLogger(__name__)


def initialize_settings(environ: Mapping[str, str]) -> SettingsRegistry:
    """Создаёт реестр настроек и заполняет его из окружения."""

    registry = SettingsRegistry()
    registry.load_from_env(environ)
    return registry


def setup_logging_from_settings(settings: SettingsRegistry) -> None:
    """Настраивает логирование в соответствии с группой logging."""

    logging_settings = settings.get_group("logging")
    log_dir = settings.log_directory()
    try:
        configure_logging(
            log_dir=log_dir,
            level_name=logging_settings.get("level", "INFO"),
            max_bytes=logging_settings.get("max_file_size_mb", 10) * 1024 * 1024,
            backup_count=logging_settings.get("max_archived_files", 5),
        )
    except OSError as exc:
        raise SettingsIOError(log_dir or Path("."), str(exc)) from exc


def log_startup_banner(config: MonitorConfig, state_dir: StateDirectory) -> None:
    LOGGER.info("--- Nomad Idle Job Stopper %s Started ---", __version__)
    LOGGER.info("State Directory: %s", state_dir.path)
    LOGGER.info("Nomad Endpoint: %s", config.nomad_endpoint)
    LOGGER.info("Nomad Token: %s (Hidden)", mask_secret(config.nomad_token))
    LOGGER.info("Idle Timeout: %ss", config.idle_timeout)
    LOGGER.info("Check Interval: %ss", config.check_interval)
    LOGGER.info("Container Filter: '%s'", config.container_filter or "<all>")
    LOGGER.info("Activity Threshold: %s bytes", config.activity_threshold)


def build_store(settings: SettingsRegistry, state_dir: StateDirectory) -> TrackerStore:
    """Возвращает хранилище трекера: JSON в каталоге состояния или память."""

    if settings.get_value("state", "persist"):
        return JsonTrackerStore(state_dir.state_file)
    return TrackerStore()


def install_signal_handlers(stop_event: threading.Event) -> None:
    """SIGTERM/SIGINT завершают цикл в ближайшей безопасной точке."""

    def _handle(signum: int, frame: Optional[FrameType]) -> None:
        LOGGER.info("Received signal %s, shutting down...", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


def main(environ: Optional[Mapping[str, str]] = None) -> int:
    """Основная точка входа: проверяет конфигурацию и запускает цикл опроса."""

    configure_logging()
    try:
        settings = initialize_settings(os.environ if environ is None else environ)
        setup_logging_from_settings(settings)
        config = settings.build_config()
        state_dir = StateDirectory(settings.state_directory())
    except SettingsError as exc:
        message = exc.message if exc.message.startswith("FATAL") else f"FATAL: {exc.message}"
        LOGGER.critical("Cannot start: %s. Exiting.", message)
        return 1

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    runtime = DockerRuntime(settings.get_value("docker", "host") or None)
    stopper = NomadClient(
        config.nomad_endpoint, config.nomad_token, timeout=config.nomad_timeout
    )
    with state_dir:
        log_startup_banner(config, state_dir)
        tracker = ActivityTracker(
            build_store(settings, state_dir),
            idle_timeout=config.idle_timeout,
            activity_threshold=config.activity_threshold,
        )
        orchestrator = PollOrchestrator(
            runtime,
            stopper,
            tracker,
            container_filter=config.container_filter,
            check_interval=config.check_interval,
        )
        try:
            orchestrator.run_forever(stop_event)
        finally:
            stopper.close()
            runtime.close()
    LOGGER.info("--- Nomad Idle Job Stopper Exiting ---")
    return 0


if __name__ == "__main__":
    sys.exit(main())
