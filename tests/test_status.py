"""Unit tests for container status normalization."""

from __future__ import annotations

import pytest

from dvm.core.models.enums import ContainerState
from dvm.core.runtime.status import is_running, is_stopped, normalize_status


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Up 5 minutes", ContainerState.RUNNING),
        ("Up About an hour (healthy)", ContainerState.RUNNING),
        ("running", ContainerState.RUNNING),
        ("RUNNING", ContainerState.RUNNING),
        ("Exited (0) 2 hours ago", ContainerState.STOPPED),
        ("exited", ContainerState.STOPPED),
        ("Created", ContainerState.STOPPED),
        ("stopped", ContainerState.STOPPED),
        ("dead", ContainerState.STOPPED),
        ("paused", ContainerState.UNKNOWN),
        ("restarting", ContainerState.UNKNOWN),
        ("", ContainerState.UNKNOWN),
        (None, ContainerState.UNKNOWN),
    ],
)
def test_normalize_status(raw: str | None, expected: ContainerState) -> None:
    assert normalize_status(raw) is expected


def test_is_running_ignores_surrounding_whitespace() -> None:
    assert is_running("  up 3 seconds ") is True
    assert is_running("exited") is False


@pytest.mark.parametrize("raw", ["paused", "restarting", "Up 2 hours (Paused)", "", None])
def test_is_stopped_only_for_settled_states(raw: str | None) -> None:
    assert is_stopped(raw) is False
    assert is_stopped("Exited (0) 2 hours ago") is True
