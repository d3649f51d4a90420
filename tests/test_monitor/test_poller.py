"""Тесты цикла опроса с поддельными Docker и Nomad."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from nomad_idle_monitor.docker_api.exceptions import (
    ContainerDiscoveryError,
    ContainerMetricsError,
)
from nomad_idle_monitor.docker_api.models import NetworkIO
from nomad_idle_monitor.monitor.poller import PollOrchestrator
from nomad_idle_monitor.monitor.store import JsonTrackerStore, TrackerStore
from nomad_idle_monitor.monitor.tracker import ActivityEvent, ActivityTracker
from nomad_idle_monitor.nomad.models import StopOutcome, StopResult

ALLOC_ID = "1a2b3c4d-5e6f-7a8b-9c0d-1e2f3a4b5c6d"


class FakeRuntime:
    """Подменяет Docker: счётчики и имена задаются тестом."""

    def __init__(self) -> None:
        self.totals: Dict[str, int] = {}
        self.names: Dict[str, str] = {}
        self.broken_stats: set[str] = set()
        self.discovery_error: Optional[str] = None
        self.filters: List[str] = []

    def list_container_ids(self, container_filter: str) -> List[str]:
        self.filters.append(container_filter)
        if self.discovery_error:
            raise ContainerDiscoveryError(self.discovery_error)
        return list(self.totals)

    def read_network_io(self, container_id: str) -> NetworkIO:
        if container_id in self.broken_stats:
            raise ContainerMetricsError(container_id, "No such container")
        return NetworkIO(rx=f"{self.totals[container_id]}B", tx="0B")

    def get_container_name(self, container_id: str) -> str:
        if container_id not in self.names:
            raise ContainerMetricsError(container_id, "No such container")
        return self.names[container_id]


class FakeStopper:
    """Запоминает имена задач, которые просили остановить."""

    def __init__(self, outcome: StopOutcome = StopOutcome.SUCCESS) -> None:
        self.outcome = outcome
        self.calls: List[str] = []

    def stop_job(self, job_name: str) -> StopResult:
        self.calls.append(job_name)
        return StopResult(
            job_name=job_name, url=f"http://nomad/v1/job/{job_name}", outcome=self.outcome
        )


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def stopper() -> FakeStopper:
    return FakeStopper()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def orchestrator(runtime: FakeRuntime, stopper: FakeStopper, clock: FakeClock) -> PollOrchestrator:
    tracker = ActivityTracker(TrackerStore(), idle_timeout=900, activity_threshold=500)
    return PollOrchestrator(
        runtime,
        stopper,
        tracker,
        container_filter="label=autostop=idle",
        check_interval=60,
        clock=clock,
    )


def test_end_to_end_idle_container_is_stopped_once(
    orchestrator: PollOrchestrator, runtime: FakeRuntime, stopper: FakeStopper, clock: FakeClock
) -> None:
    runtime.totals["c1"] = 10_000
    runtime.names["c1"] = f"web-api-{ALLOC_ID}"

    report = orchestrator.run_cycle()
    assert report.observations[0].event is ActivityEvent.SEEDED

    for cycle in range(1, 16):
        clock.now = cycle * 60.0
        report = orchestrator.run_cycle()
        if cycle < 15:
            assert report.observations[0].event is ActivityEvent.IDLE
            assert stopper.calls == []

    assert report.observations[0].event is ActivityEvent.IDLE_TIMEOUT
    assert stopper.calls == ["web-api"]
    assert report.stop_results[0].outcome is StopOutcome.SUCCESS
    assert orchestrator.tracker.tracked_ids() == []
    assert runtime.filters[-1] == "label=autostop=idle"


def test_unwritable_state_file_does_not_cancel_stop(
    runtime: FakeRuntime, stopper: FakeStopper, clock: FakeClock, tmp_path: Path
) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    store = JsonTrackerStore(blocker / "tracker.json")
    tracker = ActivityTracker(store, idle_timeout=900, activity_threshold=500)
    orchestrator = PollOrchestrator(runtime, stopper, tracker, check_interval=60, clock=clock)
    runtime.totals["c1"] = 10_000
    runtime.names["c1"] = f"web-api-{ALLOC_ID}"

    for cycle in range(17):
        clock.now = cycle * 60.0
        orchestrator.run_cycle()

    assert stopper.calls == ["web-api"]
    assert not (blocker / "tracker.json").exists()


def test_traffic_resets_idle_clock(
    orchestrator: PollOrchestrator, runtime: FakeRuntime, stopper: FakeStopper, clock: FakeClock
) -> None:
    runtime.totals["c1"] = 0
    runtime.names["c1"] = f"web-{ALLOC_ID}"
    orchestrator.run_cycle()

    clock.now = 600.0
    runtime.totals["c1"] = 10_000
    assert orchestrator.run_cycle().observations[0].event is ActivityEvent.ACTIVE

    clock.now = 1_200.0
    assert orchestrator.run_cycle().observations[0].event is ActivityEvent.IDLE
    assert stopper.calls == []


def test_discovery_failure_skips_cycle_without_touching_state(
    orchestrator: PollOrchestrator, runtime: FakeRuntime, stopper: FakeStopper, clock: FakeClock
) -> None:
    runtime.totals["c1"] = 0
    orchestrator.run_cycle()

    runtime.discovery_error = "Cannot connect to the Docker daemon"
    clock.now = 5_000.0
    report = orchestrator.run_cycle()

    assert report.skipped
    assert orchestrator.tracker.tracked_ids() == ["c1"]
    assert stopper.calls == []


def test_metric_failure_drops_only_that_container(
    orchestrator: PollOrchestrator, runtime: FakeRuntime, clock: FakeClock
) -> None:
    runtime.totals.update({"c1": 0, "c2": 0})
    orchestrator.run_cycle()

    runtime.broken_stats.add("c1")
    clock.now = 60.0
    report = orchestrator.run_cycle()

    assert report.dropped_after_error == ["c1"]
    assert orchestrator.tracker.tracked_ids() == ["c2"]

    runtime.broken_stats.clear()
    clock.now = 120.0
    report = orchestrator.run_cycle()
    events = {o.container_id: o.event for o in report.observations}
    assert events == {"c1": ActivityEvent.SEEDED, "c2": ActivityEvent.IDLE}


def test_disappeared_container_is_dropped_without_stop(
    orchestrator: PollOrchestrator, runtime: FakeRuntime, stopper: FakeStopper, clock: FakeClock
) -> None:
    runtime.totals["c1"] = 0
    runtime.names["c1"] = f"web-{ALLOC_ID}"
    orchestrator.run_cycle()

    del runtime.totals["c1"]
    clock.now = 10_000.0
    report = orchestrator.run_cycle()

    assert report.disappeared == ["c1"]
    assert orchestrator.tracker.tracked_ids() == []
    assert stopper.calls == []


def test_underivable_name_skips_stop_but_clears_state(
    orchestrator: PollOrchestrator,
    runtime: FakeRuntime,
    stopper: FakeStopper,
    clock: FakeClock,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level("WARNING")
    runtime.totals["c1"] = 0
    runtime.names["c1"] = "plain-container"
    orchestrator.run_cycle()

    clock.now = 900.0
    report = orchestrator.run_cycle()

    assert report.observations[0].event is ActivityEvent.IDLE_TIMEOUT
    assert stopper.calls == []
    assert report.stop_results == []
    assert orchestrator.tracker.tracked_ids() == []
    assert "Could not derive valid Nomad job name" in caplog.text


def test_missing_name_skips_stop(
    orchestrator: PollOrchestrator, runtime: FakeRuntime, stopper: FakeStopper, clock: FakeClock
) -> None:
    runtime.totals["c1"] = 0
    orchestrator.run_cycle()

    clock.now = 900.0
    orchestrator.run_cycle()
    assert stopper.calls == []
    assert orchestrator.tracker.tracked_ids() == []


def test_failed_stop_is_not_retried(
    runtime: FakeRuntime, clock: FakeClock
) -> None:
    stopper = FakeStopper(outcome=StopOutcome.UNAUTHORIZED)
    tracker = ActivityTracker(TrackerStore(), idle_timeout=900, activity_threshold=500)
    orchestrator = PollOrchestrator(runtime, stopper, tracker, clock=clock)
    runtime.totals["c1"] = 0
    runtime.names["c1"] = f"web-{ALLOC_ID}"
    orchestrator.run_cycle()

    clock.now = 900.0
    orchestrator.run_cycle()
    clock.now = 960.0
    report = orchestrator.run_cycle()

    assert stopper.calls == ["web"]
    assert report.observations[0].event is ActivityEvent.SEEDED


def test_run_forever_stops_on_event(orchestrator: PollOrchestrator, runtime: FakeRuntime) -> None:
    stop_event = threading.Event()
    cycles: List[int] = []
    original = orchestrator.run_cycle

    def counting_cycle():
        cycles.append(1)
        if len(cycles) == 3:
            stop_event.set()
        return original()

    orchestrator.run_cycle = counting_cycle  # type: ignore[method-assign]
    orchestrator.check_interval = 0
    orchestrator.run_forever(stop_event)
    assert len(cycles) == 3


def test_run_forever_survives_unexpected_errors(
    orchestrator: PollOrchestrator, caplog: pytest.LogCaptureFixture
) -> None:
    stop_event = threading.Event()
    calls: List[int] = []

    def failing_cycle():
        calls.append(1)
        if len(calls) == 2:
            stop_event.set()
        raise RuntimeError("boom")

    orchestrator.run_cycle = failing_cycle  # type: ignore[method-assign]
    orchestrator.check_interval = 0
    caplog.set_level("ERROR")
    orchestrator.run_forever(stop_event)
    assert len(calls) == 2
    assert "Unexpected error during poll cycle" in caplog.text
