"""Handlers for every built-in resource kind.

Hierarchy kinds are scoped to the active parent: a Domain needs an active
Ecosystem, an App an active Domain, a Workspace an active App.  Listing a
scoped kind with no active parent lists every row.  A ``spec`` may name the
parent explicitly (``ecosystem``, ``domain`` or ``app``), which takes
precedence over the active context.

Library kinds (plugins, themes, terminal packages) are global.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from dvm.core.db.tables import App, Domain, Ecosystem, NvimPlugin, NvimTheme, TerminalPackage, Workspace
from dvm.core.managers import hierarchy, library, workspaces
from dvm.core.models.enums import Kind, Level
from dvm.core.models.hierarchy import (
    AppCreate,
    AppResponse,
    AppUpdate,
    DomainCreate,
    DomainResponse,
    DomainUpdate,
    EcosystemCreate,
    EcosystemResponse,
    EcosystemUpdate,
    WorkspaceCreate,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from dvm.core.models.library import (
    NvimPluginCreate,
    NvimPluginResponse,
    NvimPluginUpdate,
    NvimThemeCreate,
    NvimThemeResponse,
    NvimThemeUpdate,
    TerminalPackageCreate,
    TerminalPackageResponse,
    TerminalPackageUpdate,
)
from dvm.core.resources.base import BaseHandler, Resource, ResourceContext


def _without_name(spec: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in spec.items() if key != "name"}


def _parent_name(db: Session, model: type, parent_id: int) -> str:
    parent = db.get(model, parent_id)
    return parent.name if parent is not None else ""


# -- Hierarchy -----------------------------------------------------------------


class EcosystemHandler(BaseHandler):
    kind = Kind.ECOSYSTEM

    def _wrap(self, row: Ecosystem) -> Resource:
        return Resource(self.kind, row.name, EcosystemResponse.model_validate(row))

    def get(self, ctx: ResourceContext, name: str) -> Resource:
        return self._wrap(hierarchy.get_ecosystem_by_name(ctx.db, name))

    def list(self, ctx: ResourceContext) -> list[Resource]:
        return [self._wrap(row) for row in hierarchy.list_ecosystems(ctx.db)]

    def delete(self, ctx: ResourceContext, name: str) -> None:
        hierarchy.delete_ecosystem(ctx.db, name)

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource:
        return self._wrap(hierarchy.create_ecosystem(ctx.db, EcosystemCreate.model_validate(dict(spec))))

    def update(self, ctx: ResourceContext, name: str, spec: Mapping[str, Any]) -> Resource:
        row = hierarchy.get_ecosystem_by_name(ctx.db, name)
        body = EcosystemUpdate.model_validate(_without_name(spec))
        return self._wrap(hierarchy.update_ecosystem(ctx.db, row.id, body))


class DomainHandler(BaseHandler):
    kind = Kind.DOMAIN

    def _wrap(self, ctx: ResourceContext, row: Domain) -> Resource:
        labels = {"ecosystem": _parent_name(ctx.db, Ecosystem, row.ecosystem_id)}
        return Resource(self.kind, row.name, DomainResponse.model_validate(row), labels=labels)

    def _ecosystem_id(self, ctx: ResourceContext, spec: Mapping[str, Any] | None = None) -> int:
        if spec and spec.get("ecosystem"):
            return hierarchy.get_ecosystem_by_name(ctx.db, spec["ecosystem"]).id
        return ctx.require(Level.ECOSYSTEM)

    def get(self, ctx: ResourceContext, name: str) -> Resource:
        return self._wrap(ctx, hierarchy.get_domain_by_name(ctx.db, self._ecosystem_id(ctx), name))

    def list(self, ctx: ResourceContext) -> list[Resource]:
        return [self._wrap(ctx, row) for row in hierarchy.list_domains(ctx.db, ctx.ecosystem_id)]

    def delete(self, ctx: ResourceContext, name: str) -> None:
        hierarchy.delete_domain(ctx.db, self._ecosystem_id(ctx), name)

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource:
        body = DomainCreate.model_validate({**spec, "ecosystem_id": self._ecosystem_id(ctx, spec)})
        return self._wrap(ctx, hierarchy.create_domain(ctx.db, body))

    def update(self, ctx: ResourceContext, name: str, spec: Mapping[str, Any]) -> Resource:
        row = hierarchy.get_domain_by_name(ctx.db, self._ecosystem_id(ctx, spec), name)
        body = DomainUpdate.model_validate(_without_name(spec))
        return self._wrap(ctx, hierarchy.update_domain(ctx.db, row.id, body))


class AppHandler(BaseHandler):
    kind = Kind.APP

    def _wrap(self, ctx: ResourceContext, row: App) -> Resource:
        labels = {"domain": _parent_name(ctx.db, Domain, row.domain_id)}
        return Resource(self.kind, row.name, AppResponse.model_validate(row), labels=labels)

    def _domain_id(self, ctx: ResourceContext, spec: Mapping[str, Any] | None = None) -> int:
        if spec and spec.get("domain"):
            if spec.get("ecosystem"):
                ecosystem_id = hierarchy.get_ecosystem_by_name(ctx.db, spec["ecosystem"]).id
            else:
                ecosystem_id = ctx.require(Level.ECOSYSTEM)
            return hierarchy.get_domain_by_name(ctx.db, ecosystem_id, spec["domain"]).id
        return ctx.require(Level.DOMAIN)

    def get(self, ctx: ResourceContext, name: str) -> Resource:
        return self._wrap(ctx, hierarchy.get_app_by_name(ctx.db, self._domain_id(ctx), name))

    def list(self, ctx: ResourceContext) -> list[Resource]:
        return [self._wrap(ctx, row) for row in hierarchy.list_apps(ctx.db, ctx.domain_id)]

    def delete(self, ctx: ResourceContext, name: str) -> None:
        hierarchy.delete_app(ctx.db, self._domain_id(ctx), name)

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource:
        body = AppCreate.model_validate({**spec, "domain_id": self._domain_id(ctx, spec)})
        return self._wrap(ctx, hierarchy.create_app(ctx.db, body))

    def update(self, ctx: ResourceContext, name: str, spec: Mapping[str, Any]) -> Resource:
        row = hierarchy.get_app_by_name(ctx.db, self._domain_id(ctx, spec), name)
        body = AppUpdate.model_validate(_without_name(spec))
        return self._wrap(ctx, hierarchy.update_app(ctx.db, row.id, body))


class WorkspaceHandler(BaseHandler):
    kind = Kind.WORKSPACE

    def _wrap(self, ctx: ResourceContext, row: Workspace) -> Resource:
        labels = {"app": _parent_name(ctx.db, App, row.app_id)}
        return Resource(self.kind, row.name, WorkspaceResponse.model_validate(row), labels=labels)

    def _app_id(self, ctx: ResourceContext, spec: Mapping[str, Any] | None = None) -> int:
        if spec and spec.get("app"):
            if ctx.domain_id is not None:
                return hierarchy.get_app_by_name(ctx.db, ctx.domain_id, spec["app"]).id
            return hierarchy.find_app_by_name(ctx.db, spec["app"]).id
        return ctx.require(Level.APP)

    def get(self, ctx: ResourceContext, name: str) -> Resource:
        return self._wrap(ctx, workspaces.get_workspace_by_name(ctx.db, self._app_id(ctx), name))

    def list(self, ctx: ResourceContext) -> list[Resource]:
        return [self._wrap(ctx, row) for row in workspaces.list_workspaces(ctx.db, ctx.app_id)]

    def delete(self, ctx: ResourceContext, name: str) -> None:
        workspaces.delete_workspace(ctx.db, self._app_id(ctx), name)

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource:
        body = WorkspaceCreate.model_validate({**spec, "app_id": self._app_id(ctx, spec)})
        return self._wrap(ctx, workspaces.create_workspace(ctx.db, body))

    def update(self, ctx: ResourceContext, name: str, spec: Mapping[str, Any]) -> Resource:
        row = workspaces.get_workspace_by_name(ctx.db, self._app_id(ctx, spec), name)
        body = WorkspaceUpdate.model_validate(_without_name(spec))
        return self._wrap(ctx, workspaces.update_workspace(ctx.db, row.id, body))


# -- Global library ------------------------------------------------------------


class NvimPluginHandler(BaseHandler):
    kind = Kind.NVIM_PLUGIN

    def _wrap(self, row: NvimPlugin) -> Resource:
        return Resource(self.kind, row.name, NvimPluginResponse.model_validate(row))

    def get(self, ctx: ResourceContext, name: str) -> Resource:
        return self._wrap(library.get_plugin_by_name(ctx.db, name))

    def list(self, ctx: ResourceContext) -> list[Resource]:
        return [self._wrap(row) for row in library.list_plugins(ctx.db)]

    def delete(self, ctx: ResourceContext, name: str) -> None:
        library.delete_plugin(ctx.db, name)

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource:
        return self._wrap(library.create_plugin(ctx.db, NvimPluginCreate.model_validate(dict(spec))))

    def update(self, ctx: ResourceContext, name: str, spec: Mapping[str, Any]) -> Resource:
        body = NvimPluginUpdate.model_validate(_without_name(spec))
        return self._wrap(library.update_plugin(ctx.db, name, body))


class NvimThemeHandler(BaseHandler):
    kind = Kind.NVIM_THEME

    def _wrap(self, row: NvimTheme) -> Resource:
        return Resource(self.kind, row.name, NvimThemeResponse.model_validate(row))

    def get(self, ctx: ResourceContext, name: str) -> Resource:
        return self._wrap(library.get_theme_by_name(ctx.db, name))

    def list(self, ctx: ResourceContext) -> list[Resource]:
        return [self._wrap(row) for row in library.list_themes(ctx.db)]

    def delete(self, ctx: ResourceContext, name: str) -> None:
        library.delete_theme(ctx.db, name)

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource:
        return self._wrap(library.create_theme(ctx.db, NvimThemeCreate.model_validate(dict(spec))))

    def update(self, ctx: ResourceContext, name: str, spec: Mapping[str, Any]) -> Resource:
        body = NvimThemeUpdate.model_validate(_without_name(spec))
        return self._wrap(library.update_theme(ctx.db, name, body))


class TerminalPackageHandler(BaseHandler):
    kind = Kind.TERMINAL_PACKAGE

    def _wrap(self, row: TerminalPackage) -> Resource:
        return Resource(self.kind, row.name, TerminalPackageResponse.model_validate(row))

    def get(self, ctx: ResourceContext, name: str) -> Resource:
        return self._wrap(library.get_terminal_package_by_name(ctx.db, name))

    def list(self, ctx: ResourceContext) -> list[Resource]:
        return [self._wrap(row) for row in library.list_terminal_packages(ctx.db)]

    def delete(self, ctx: ResourceContext, name: str) -> None:
        library.delete_terminal_package(ctx.db, name)

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource:
        body = TerminalPackageCreate.model_validate(dict(spec))
        return self._wrap(library.create_terminal_package(ctx.db, body))

    def update(self, ctx: ResourceContext, name: str, spec: Mapping[str, Any]) -> Resource:
        body = TerminalPackageUpdate.model_validate(_without_name(spec))
        return self._wrap(library.update_terminal_package(ctx.db, name, body))


BUILTIN_HANDLERS: tuple[type[BaseHandler], ...] = (
    EcosystemHandler,
    DomainHandler,
    AppHandler,
    WorkspaceHandler,
    NvimPluginHandler,
    NvimThemeHandler,
    TerminalPackageHandler,
)
