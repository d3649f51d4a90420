"""Тесты разбора объёмов трафика."""

from __future__ import annotations

import pytest

from nomad_idle_monitor.docker_api.models import NetworkIO
from nomad_idle_monitor.monitor.metrics import MetricParseError, parse_bytes, parse_network_io


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0", 0),
        ("0B", 0),
        ("512", 512),
        ("1.2MB", 1_200_000),
        ("1.2kB", 1_200),
        ("3KB", 3_000),
        ("7K", 7_000),
        ("2.5GB", 2_500_000_000),
        ("1T", 1_000_000_000_000),
        ("1MiB", 1_048_576),
        ("1.5KiB", 1_536),
        ("2GiB", 2 * 1024**3),
        ("1TiB", 1024**4),
    ],
)
def test_parse_known_units(text: str, expected: int) -> None:
    assert parse_bytes(text) == expected


def test_parse_tolerates_whitespace() -> None:
    assert parse_bytes("  1.2 MB \n") == 1_200_000


def test_parse_rounds_half_up() -> None:
    assert parse_bytes("0.5") == 1
    assert parse_bytes("1.0005kB") == 1_001
    assert parse_bytes("1.0004kB") == 1_000


def test_parse_scientific_notation_from_docker() -> None:
    """docker stats печатает 999999 байт как 1e+03kB."""

    assert parse_bytes("1e+03kB") == 1_000_000


def test_unknown_unit_defaults_to_bytes_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("WARNING")
    assert parse_bytes("5XB") == 5
    assert "Unknown unit 'XB'" in caplog.text


@pytest.mark.parametrize(("text", "unit"), [("5B/s", "B/s"), ("5µB", "µB"), ("5 k-B", "k-B")])
def test_any_trailing_unit_is_treated_as_unknown(
    text: str, unit: str, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level("WARNING")
    assert parse_bytes(text) == 5
    assert f"Unknown unit '{unit}'" in caplog.text


def test_unparsable_number_raises() -> None:
    with pytest.raises(MetricParseError):
        parse_bytes("N/A")
    with pytest.raises(MetricParseError):
        parse_bytes("")


def test_parse_network_io_sums_rx_and_tx() -> None:
    assert parse_network_io(NetworkIO(rx="1.2kB", tx="800B")) == 2_000
