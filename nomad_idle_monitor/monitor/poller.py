"""Цикл опроса: обнаружение контейнеров, замеры, решение об остановке.

Контейнеры обрабатываются строго по очереди; зависший вызов Docker или
Nomad задерживает весь цикл.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from nomad_idle_monitor.docker_api.exceptions import (
    ContainerDiscoveryError,
    ContainerMetricsError,
)
from nomad_idle_monitor.monitor.interfaces import ContainerRuntime, JobStopper
from nomad_idle_monitor.monitor.job_identity import derive_job_name
from nomad_idle_monitor.monitor.metrics import MetricParseError, parse_network_io
from nomad_idle_monitor.monitor.tracker import ActivityEvent, ActivityTracker, Observation
from nomad_idle_monitor.nomad.models import StopResult
from nomad_idle_monitor.utils.helpers import short_id

LOGGER = logging.getLogger(__name__)

UNKNOWN_NAME = "<unknown>"


@dataclass(slots=True)
class CycleReport:
    """Сводка одного цикла опроса."""

    discovered: List[str] = field(default_factory=list)
    observations: List[Observation] = field(default_factory=list)
    stop_results: List[StopResult] = field(default_factory=list)
    dropped_after_error: List[str] = field(default_factory=list)
    disappeared: List[str] = field(default_factory=list)
    skipped: bool = False


class PollOrchestrator:
    """Связывает источник контейнеров, трекер и клиент остановки."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        stopper: JobStopper,
        tracker: ActivityTracker,
        *,
        container_filter: str = "",
        check_interval: float = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.runtime = runtime
        self.stopper = stopper
        self.tracker = tracker
        self.container_filter = container_filter
        self.check_interval = check_interval
        self._clock = clock

    # ------------------------------------------------------------------ cycle
    def run_cycle(self) -> CycleReport:
        """Выполняет один проход по контейнерам."""

        report = CycleReport()
        LOGGER.info("Checking containers...")
        try:
            container_ids = self.runtime.list_container_ids(self.container_filter)
        except ContainerDiscoveryError as exc:
            LOGGER.error("Failed to list containers. Is Docker running? %s", exc)
            report.skipped = True
            return report

        report.discovered = list(container_ids)
        if not container_ids:
            LOGGER.info("No running containers matching filter found.")

        for container_id in container_ids:
            observation = self._poll_container(container_id, report)
            if observation is not None:
                report.observations.append(observation)

        for container_id in self.tracker.reconcile(report.discovered):
            LOGGER.info(
                "Container (%s) is no longer running or matching filter. Removing from tracking.",
                short_id(container_id),
            )
            report.disappeared.append(container_id)
        return report

    def _poll_container(self, container_id: str, report: CycleReport) -> Optional[Observation]:
        try:
            network_io = self.runtime.read_network_io(container_id)
            current_total = parse_network_io(network_io)
        except (ContainerMetricsError, MetricParseError) as exc:
            LOGGER.warning(
                "Could not get stats for container %s. It might have stopped. %s",
                short_id(container_id),
                exc,
            )
            self.tracker.forget(container_id)
            report.dropped_after_error.append(container_id)
            return None

        observation = self.tracker.observe(container_id, current_total, self._clock())
        label = short_id(container_id)
        if observation.event is ActivityEvent.SEEDED:
            LOGGER.info(
                "Tracking new container %s (%s). Initial NetIO: %s (%d bytes total)",
                self._lookup_name(container_id) or UNKNOWN_NAME,
                label,
                network_io,
                current_total,
            )
        elif observation.event is ActivityEvent.ACTIVE:
            LOGGER.info(
                "Significant network activity detected for %s. NetIO: %s "
                "(%d bytes total. Change: +%d bytes > %d)",
                label,
                network_io,
                current_total,
                observation.delta,
                self.tracker.activity_threshold,
            )
        elif observation.event is ActivityEvent.IDLE:
            LOGGER.info(
                "Container %s idle for %ds. (NetIO: %s, %d bytes total. Change: %d bytes <= %d)",
                label,
                observation.idle_duration,
                network_io,
                current_total,
                observation.delta,
                self.tracker.activity_threshold,
            )
        else:
            result = self._handle_idle_timeout(observation)
            if result is not None:
                report.stop_results.append(result)
        return observation

    # ------------------------------------------------------------------- stop
    def _handle_idle_timeout(self, observation: Observation) -> Optional[StopResult]:
        """Пытается остановить задачу; запись трекера к этому моменту уже удалена."""

        container_id = observation.container_id
        name = self._lookup_name(container_id)
        LOGGER.info(
            "ACTION: Container %s (%s) idle for %ds (>= %ss). "
            "Attempting to stop associated Nomad job...",
            name or UNKNOWN_NAME,
            short_id(container_id),
            observation.idle_duration,
            self.tracker.idle_timeout,
        )

        result: Optional[StopResult] = None
        if not name:
            LOGGER.error(
                "Could not retrieve name for container %s to determine Nomad job. "
                "Cannot stop job.",
                short_id(container_id),
            )
        else:
            derivation = derive_job_name(name)
            if derivation.job_name is None:
                LOGGER.warning(
                    "Could not derive valid Nomad job name from container name '%s' (%s). "
                    "Skipping API call.",
                    name,
                    derivation.reason,
                )
            else:
                LOGGER.debug("Container name '%s' -> job name '%s'", name, derivation.job_name)
                result = self.stopper.stop_job(derivation.job_name)

        LOGGER.info(
            "Removing container %s from active monitoring (stop attempted).",
            name or short_id(container_id),
        )
        return result

    def _lookup_name(self, container_id: str) -> Optional[str]:
        try:
            return self.runtime.get_container_name(container_id) or None
        except ContainerMetricsError as exc:
            LOGGER.debug("Cannot resolve name of %s: %s", short_id(container_id), exc)
            return None

    # ------------------------------------------------------------------- loop
    def run_forever(self, stop_event: threading.Event) -> None:
        """Повторяет циклы до установки stop_event (SIGTERM/SIGINT)."""

        while not stop_event.is_set():
            try:
                self.run_cycle()
            except Exception:  # цикл не должен падать из-за одного сбоя
                LOGGER.exception("Unexpected error during poll cycle")
            stop_event.wait(self.check_interval)
        LOGGER.info("Stop requested, leaving poll loop.")
