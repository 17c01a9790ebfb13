"""Normalize raw container status strings.

Docker reports ``Up 5 minutes`` or ``Exited (0) 2 hours ago`` in list output
and ``running`` / ``exited`` in inspect output; nerdctl has its own mix.
Every platform quirk is handled by the matcher table below, nowhere else.
"""

from __future__ import annotations

from collections.abc import Callable

from dvm.core.models.enums import ContainerState

Matcher = Callable[[str], bool]


def _prefix(*tokens: str) -> Matcher:
    return lambda status: status.startswith(tokens)


def _exact(*tokens: str) -> Matcher:
    return lambda status: status in tokens


# First match wins.  Input is stripped and lower-cased.
MATCHERS: list[tuple[Matcher, ContainerState]] = [
    (_prefix("up"), ContainerState.RUNNING),
    (_exact("running"), ContainerState.RUNNING),
    (_prefix("exited", "stopped", "created", "dead", "removing"), ContainerState.STOPPED),
]


def normalize_status(raw: str | None) -> ContainerState:
    """Map a platform's status string onto RUNNING, STOPPED or UNKNOWN."""
    if not raw:
        return ContainerState.UNKNOWN
    status = raw.strip().lower()
    for matches, state in MATCHERS:
        if matches(status):
            return state
    return ContainerState.UNKNOWN


def is_running(raw: str | None) -> bool:
    return normalize_status(raw) is ContainerState.RUNNING


def is_stopped(raw: str | None) -> bool:
    """Paused, restarting and unrecognised states still need a stop."""
    return normalize_status(raw) is ContainerState.STOPPED
