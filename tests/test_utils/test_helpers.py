"""Тесты вспомогательных утилит."""

from __future__ import annotations

from nomad_idle_monitor.utils.helpers import mask_secret, normalize_socket_path, short_id


def test_normalize_socket_path_adds_unix_prefix() -> None:
    assert normalize_socket_path("/var/run/docker.sock") == "unix:///var/run/docker.sock"


def test_normalize_socket_path_keeps_existing_scheme() -> None:
    assert normalize_socket_path("unix:///var/run/docker.sock") == "unix:///var/run/docker.sock"
    assert normalize_socket_path("tcp://127.0.0.1:2375") == "tcp://127.0.0.1:2375"


def test_short_id() -> None:
    assert short_id("0123456789abcdef0123") == "0123456789ab"


def test_mask_secret() -> None:
    assert mask_secret("token") == "****"
    assert mask_secret("") == "<empty>"
