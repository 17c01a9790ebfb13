"""Unit tests for per-workspace plugin selection.

No database required: the functions only touch two attributes.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from dvm.core.plugin_set import add_plugins, clear_plugins, has_override, list_plugins, remove_plugins

LIBRARY = ["telescope", "treesitter", "lspconfig", "gitsigns"]


@dataclass
class FakeWorkspace:
    nvim_plugins: str | None = None
    nvim_structure: str | None = None


@pytest.fixture
def ws() -> FakeWorkspace:
    return FakeWorkspace()


def test_fresh_workspace_inherits_library(ws: FakeWorkspace) -> None:
    assert list_plugins(ws) == []
    assert has_override(ws) is False


def test_add_preserves_insertion_order(ws: FakeWorkspace) -> None:
    add_plugins(ws, ["treesitter"], LIBRARY)
    add_plugins(ws, ["gitsigns", "telescope"], LIBRARY)

    assert list_plugins(ws) == ["treesitter", "gitsigns", "telescope"]
    assert ws.nvim_plugins == "treesitter,gitsigns,telescope"
    assert has_override(ws) is True


def test_add_classifies_every_name(ws: FakeWorkspace) -> None:
    add_plugins(ws, ["telescope"], LIBRARY)

    result = add_plugins(ws, ["telescope", "nope", "lspconfig", "lspconfig"], LIBRARY)

    assert result.added == ["lspconfig"]
    assert result.skipped == ["telescope", "lspconfig"]
    assert result.not_found == ["nope"]
    assert result.changed is True
    assert list_plugins(ws) == ["telescope", "lspconfig"]


def test_add_only_unknown_names_changes_nothing(ws: FakeWorkspace) -> None:
    result = add_plugins(ws, ["ghost"], LIBRARY)

    assert result.not_found == ["ghost"]
    assert result.changed is False
    assert ws.nvim_plugins is None


def test_first_add_switches_structure_to_custom(ws: FakeWorkspace) -> None:
    add_plugins(ws, ["telescope"], LIBRARY)
    assert ws.nvim_structure == "custom"


def test_add_keeps_existing_structure() -> None:
    ws = FakeWorkspace(nvim_structure="default")
    add_plugins(ws, ["telescope"], LIBRARY)
    assert ws.nvim_structure == "default"


def test_remove_reports_missing_names(ws: FakeWorkspace) -> None:
    add_plugins(ws, ["telescope", "treesitter", "gitsigns"], LIBRARY)

    result = remove_plugins(ws, ["treesitter", "lspconfig"])

    assert result.removed == ["treesitter"]
    assert result.not_found == ["lspconfig"]
    assert list_plugins(ws) == ["telescope", "gitsigns"]


def test_remove_last_plugin_returns_to_inheritance(ws: FakeWorkspace) -> None:
    add_plugins(ws, ["telescope"], LIBRARY)

    remove_plugins(ws, ["telescope"])

    assert ws.nvim_plugins is None
    assert has_override(ws) is False


def test_remove_without_list_is_all_not_found(ws: FakeWorkspace) -> None:
    result = remove_plugins(ws, ["telescope", "gitsigns", "telescope"])

    assert result.removed == []
    assert result.not_found == ["telescope", "gitsigns"]
    assert result.changed is False
    assert ws.nvim_plugins is None


def test_clear_returns_count(ws: FakeWorkspace) -> None:
    add_plugins(ws, ["telescope", "gitsigns"], LIBRARY)

    assert clear_plugins(ws) == 2
    assert list_plugins(ws) == []
    assert clear_plugins(ws) == 0


def test_empty_string_counts_as_no_list() -> None:
    ws = FakeWorkspace(nvim_plugins="")
    assert list_plugins(ws) == []
    assert has_override(ws) is False
