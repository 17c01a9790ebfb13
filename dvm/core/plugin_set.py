"""Per-workspace editor plugin selection.

A workspace either has no plugin list (``nvim_plugins`` is NULL, so its
build uses the whole global library) or an explicit, insertion-ordered,
comma-joined list of plugin names.  The functions here only mutate the
workspace object; callers persist it afterwards with
``dvm.core.managers.workspaces.save_workspace``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from dvm.core.models.enums import NvimStructure

_SEPARATOR = ","


class PluginConfigurable(Protocol):
    """The two workspace columns this module reads and writes."""

    nvim_plugins: str | None
    nvim_structure: str | None


@dataclass
class AddResult:
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    """Valid names that were already in the workspace's list."""
    not_found: list[str] = field(default_factory=list)
    """Names absent from the global library."""

    @property
    def changed(self) -> bool:
        return bool(self.added)


@dataclass
class RemoveResult:
    removed: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    """Names that were not in the workspace's list."""

    @property
    def changed(self) -> bool:
        return bool(self.removed)


def _store(ws: PluginConfigurable, names: list[str]) -> None:
    # An emptied list falls back to NULL, i.e. "inherit the global library".
    ws.nvim_plugins = _SEPARATOR.join(names) if names else None


def list_plugins(ws: PluginConfigurable) -> list[str]:
    """Configured plugin names in the order they were added; ``[]`` when none."""
    if not ws.nvim_plugins:
        return []
    return [name for name in ws.nvim_plugins.split(_SEPARATOR) if name]


def has_override(ws: PluginConfigurable) -> bool:
    """True when the workspace carries its own plugin list instead of inheriting the library."""
    return ws.nvim_plugins is not None and ws.nvim_plugins != ""


def add_plugins(ws: PluginConfigurable, requested: Iterable[str], global_names: Iterable[str]) -> AddResult:
    """Append every valid, not-yet-present name in *requested* to the workspace's list.

    A name repeated within *requested* is added once and then reported as
    skipped.  The first customization also switches the workspace to the
    ``custom`` editor structure if it has none yet.
    """
    library = set(global_names)
    current = list_plugins(ws)
    present = set(current)
    result = AddResult()

    for name in requested:
        if name not in library:
            result.not_found.append(name)
        elif name in present:
            result.skipped.append(name)
        else:
            current.append(name)
            present.add(name)
            result.added.append(name)

    _store(ws, current)
    if not ws.nvim_structure:
        ws.nvim_structure = NvimStructure.CUSTOM.value
    return result


def remove_plugins(ws: PluginConfigurable, names: Iterable[str]) -> RemoveResult:
    """Drop *names* from the workspace's list.

    On a workspace without a list every name is reported as not found and
    nothing is changed.
    """
    requested = list(dict.fromkeys(names))
    current = list_plugins(ws)
    if not current:
        return RemoveResult(not_found=requested)

    targets = set(requested)
    result = RemoveResult()
    remaining = []
    for name in current:
        if name in targets:
            result.removed.append(name)
        else:
            remaining.append(name)

    removed = set(result.removed)
    result.not_found = [name for name in requested if name not in removed]
    _store(ws, remaining)
    return result


def clear_plugins(ws: PluginConfigurable) -> int:
    """Drop the whole list and return how many names it held."""
    count = len(list_plugins(ws))
    _store(ws, [])
    return count
