"""Tests for kind -> handler routing and the built-in handlers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest
from sqlalchemy.orm import Session

from dvm.core import resources
from dvm.core.errors import (
    AlreadyExistsError,
    NoActiveContextError,
    NotFoundError,
    NotSupportedError,
    UnsupportedKindError,
)
from dvm.core.models.enums import Kind
from dvm.core.models.hierarchy import WorkspaceResponse
from dvm.core.models.library import NvimPluginResponse, NvimThemeResponse
from dvm.core.resources import BaseHandler, Resource, ResourceContext, ResourceRegistry, default_registry

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ReadOnlyThemes(BaseHandler):
    """A handler that only supports reads."""

    kind = Kind.NVIM_THEME

    def get(self, ctx: ResourceContext, name: str) -> Resource:
        return Resource(self.kind, name, NvimThemeResponse(id=1, name=name, plugin_repo="folke/tokyonight.nvim"))

    def list(self, ctx: ResourceContext) -> list[Resource]:
        return []

    def delete(self, ctx: ResourceContext, name: str) -> None:
        raise NotSupportedError(self.kind, "delete")


def _ctx(db: Session, tree: dict[str, int] | None = None, **overrides: Any) -> ResourceContext:
    ids: Mapping[str, int | None] = {}
    if tree is not None:
        ids = {"ecosystem_id": tree["ecosystem"], "domain_id": tree["payments"], "app_id": tree["api"]}
    return ResourceContext(db=db, **{**ids, **overrides})


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def test_default_registry_covers_every_kind() -> None:
    assert set(default_registry().kinds()) == set(Kind)


def test_duplicate_registration_rejected() -> None:
    registry = ResourceRegistry([ReadOnlyThemes()])
    with pytest.raises(ValueError, match="already registered"):
        registry.register(ReadOnlyThemes())


def test_unregistered_kind_raises(db: Session) -> None:
    registry = ResourceRegistry([ReadOnlyThemes()])

    with pytest.raises(UnsupportedKindError, match="App"):
        resources.get(_ctx(db), Kind.APP, "api", registry=registry)


def test_unknown_kind_name_raises() -> None:
    with pytest.raises(UnsupportedKindError, match="Gadget"):
        default_registry().handler_for("Gadget")


def test_aliases_route_to_handler() -> None:
    registry = default_registry()
    assert registry.handler_for("plugins").kind is Kind.NVIM_PLUGIN
    assert registry.handler_for("ws").kind is Kind.WORKSPACE
    assert Kind.APP in registry


def test_missing_operation_is_not_supported(db: Session) -> None:
    registry = ResourceRegistry([ReadOnlyThemes()])

    with pytest.raises(NotSupportedError, match="create is not supported for kind: NvimTheme"):
        resources.create(_ctx(db), Kind.NVIM_THEME, {"name": "x"}, registry=registry)


# ---------------------------------------------------------------------------
# Resource
# ---------------------------------------------------------------------------


def test_expect_returns_payload_of_matching_kind() -> None:
    payload = NvimPluginResponse(id=1, name="telescope", repo="nvim-telescope/telescope.nvim")
    res = Resource(Kind.NVIM_PLUGIN, "telescope", payload)

    assert res.expect(Kind.NVIM_PLUGIN, NvimPluginResponse) is payload


def test_expect_mismatch_raises() -> None:
    res = Resource(Kind.NVIM_PLUGIN, "telescope", NvimPluginResponse(id=1, name="telescope", repo="a/b"))

    with pytest.raises(UnsupportedKindError, match="expected Workspace resource, got NvimPlugin"):
        res.expect(Kind.WORKSPACE)
    with pytest.raises(UnsupportedKindError):
        res.expect(Kind.NVIM_PLUGIN, WorkspaceResponse)


def test_to_dict_document_shape(db: Session, tree: dict[str, int]) -> None:
    resources.create(_ctx(db, tree), Kind.WORKSPACE, {"name": "review", "description": "PR review box"})

    doc = resources.get(_ctx(db, tree), Kind.WORKSPACE, "review").to_dict()

    assert doc["apiVersion"] == "devopsmaestro.io/v1"
    assert doc["kind"] == "Workspace"
    assert doc["metadata"] == {"name": "review", "app": "api", "annotations": {"description": "PR review box"}}
    assert doc["spec"]["image_name"] == "dvm-review-api:pending"
    assert "id" not in doc["spec"]
    assert "app_id" not in doc["spec"]


# ---------------------------------------------------------------------------
# Built-in handlers
# ---------------------------------------------------------------------------


def test_workspace_scoped_to_active_app(db: Session, tree: dict[str, int]) -> None:
    names = [r.name for r in resources.list_resources(_ctx(db, tree), Kind.WORKSPACE)]
    assert names == ["ci", "dev"]

    other = _ctx(db, tree, app_id=tree["infra_api"])
    assert [r.name for r in resources.list_resources(other, Kind.WORKSPACE)] == ["dev"]


def test_list_without_active_parent_lists_everything(db: Session, tree: dict[str, int]) -> None:
    assert len(resources.list_resources(_ctx(db), Kind.WORKSPACE)) == 3
    assert len(resources.list_resources(_ctx(db), Kind.APP)) == 2


def test_get_scoped_kind_without_parent_raises(db: Session, tree: dict[str, int]) -> None:
    with pytest.raises(NoActiveContextError, match="no active app context"):
        resources.get(_ctx(db), Kind.WORKSPACE, "dev")


def test_spec_parent_overrides_active_context(db: Session, tree: dict[str, int]) -> None:
    res = resources.create(_ctx(db, tree), Kind.DOMAIN, {"name": "web", "ecosystem": "acme"})
    assert res.labels == {"ecosystem": "acme"}

    eco = resources.create(_ctx(db), Kind.ECOSYSTEM, {"name": "other"})
    res = resources.create(_ctx(db, tree), Kind.DOMAIN, {"name": "web", "ecosystem": "other"})
    assert res.expect(Kind.DOMAIN).ecosystem_id == eco.payload.id  # type: ignore[attr-defined]


def test_create_duplicate_raises(db: Session, tree: dict[str, int]) -> None:
    with pytest.raises(AlreadyExistsError):
        resources.create(_ctx(db, tree), Kind.WORKSPACE, {"name": "dev"})


def test_delete_library_entry(db: Session, plugin_library: list[str]) -> None:
    resources.delete(_ctx(db), Kind.NVIM_PLUGIN, "gitsigns")

    names = [r.name for r in resources.list_resources(_ctx(db), "plugins")]
    assert names == sorted(set(plugin_library) - {"gitsigns"})


def test_terminal_package_extends_must_exist(db: Session) -> None:
    with pytest.raises(NotFoundError):
        resources.create(_ctx(db), Kind.TERMINAL_PACKAGE, {"name": "mine", "extends": "base"})


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def test_spec_from_document_flattens_metadata() -> None:
    kind, spec = resources.spec_from_document(
        {
            "apiVersion": "devopsmaestro.io/v1",
            "kind": "App",
            "metadata": {"name": "api", "domain": "payments", "annotations": {"description": "REST API"}},
            "spec": {"path": "/src/api", "language": "go"},
        }
    )

    assert kind == "App"
    assert spec == {
        "name": "api",
        "domain": "payments",
        "description": "REST API",
        "path": "/src/api",
        "language": "go",
    }


@pytest.mark.parametrize(
    "document",
    [
        {"metadata": {"name": "x"}},
        {"kind": "App", "metadata": {}},
    ],
)
def test_spec_from_document_requires_kind_and_name(document: dict) -> None:
    with pytest.raises(ValueError, match="missing required"):
        resources.spec_from_document(document)


def test_apply_creates_then_updates(db: Session) -> None:
    document = {
        "kind": "NvimPlugin",
        "metadata": {"name": "telescope"},
        "spec": {"repo": "nvim-telescope/telescope.nvim", "category": "navigation"},
    }

    res, created = resources.apply(_ctx(db), document)
    assert created is True

    document["spec"]["category"] = "search"
    res, created = resources.apply(_ctx(db), document)
    assert created is False
    assert res.expect(Kind.NVIM_PLUGIN, NvimPluginResponse).category == "search"
    assert len(resources.list_resources(_ctx(db), Kind.NVIM_PLUGIN)) == 1
