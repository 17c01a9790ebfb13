"""CRUD operations for the global library.

Plugins, themes and terminal packages are unscoped catalog rows keyed by a
globally unique name.  The three entity types share one lookup shape, so the
name-keyed plumbing is factored into ``_get_by_name`` / ``_create`` and the
public functions stay thin.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from dvm.core.db.tables import NvimPlugin, NvimTheme, TerminalPackage
from dvm.core.errors import AlreadyExistsError, NotFoundError
from dvm.core.models.library import (
    NvimPluginCreate,
    NvimPluginUpdate,
    NvimThemeCreate,
    NvimThemeUpdate,
    TerminalPackageCreate,
    TerminalPackageUpdate,
)

_Row = TypeVar("_Row", NvimPlugin, NvimTheme, TerminalPackage)

_LABELS = {
    NvimPlugin: ("NvimPlugin", "nvim-plugins"),
    NvimTheme: ("NvimTheme", "nvim-themes"),
    TerminalPackage: ("TerminalPackage", "terminal-packages"),
}


def _get_by_name(db: Session, model: type[_Row], name: str) -> _Row:
    row = db.scalar(select(model).where(model.name == name))
    if row is None:
        label, plural = _LABELS[model]
        raise NotFoundError(label, name, hint=f"list available entries with 'dvm get {plural}'")
    return row


def _create(db: Session, model: type[_Row], body: BaseModel) -> _Row:
    name = body.name  # type: ignore[attr-defined]
    if db.scalar(select(model).where(model.name == name)) is not None:
        raise AlreadyExistsError(_LABELS[model][0], name)
    row = model(**body.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _update(db: Session, model: type[_Row], name: str, body: BaseModel) -> _Row:
    row = _get_by_name(db, model, name)
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        return row
    for key, value in changes.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def _delete(db: Session, model: type[_Row], name: str) -> None:
    row = _get_by_name(db, model, name)
    db.delete(row)
    db.commit()


# ---------------------------------------------------------------------------
# NvimPlugin
# ---------------------------------------------------------------------------


def create_plugin(db: Session, body: NvimPluginCreate) -> NvimPlugin:
    """Add a plugin to the library.  Raises ``AlreadyExistsError`` if the name is taken."""
    return _create(db, NvimPlugin, body)


def list_plugins(db: Session, *, category: str | None = None, enabled_only: bool = False) -> list[NvimPlugin]:
    stmt = select(NvimPlugin).order_by(NvimPlugin.name)
    if category is not None:
        stmt = stmt.where(NvimPlugin.category == category)
    if enabled_only:
        stmt = stmt.where(NvimPlugin.enabled.is_(True))
    return list(db.scalars(stmt).all())


def list_plugin_names(db: Session) -> list[str]:
    """Names of every plugin in the library; the validation set for workspace plugin edits."""
    return list(db.scalars(select(NvimPlugin.name).order_by(NvimPlugin.name)).all())


def get_plugin_by_name(db: Session, name: str) -> NvimPlugin:
    return _get_by_name(db, NvimPlugin, name)


def get_plugin_by_id(db: Session, plugin_id: int) -> NvimPlugin:
    plugin = db.get(NvimPlugin, plugin_id)
    if plugin is None:
        raise NotFoundError("NvimPlugin", plugin_id)
    return plugin


def update_plugin(db: Session, name: str, body: NvimPluginUpdate) -> NvimPlugin:
    return _update(db, NvimPlugin, name, body)


def delete_plugin(db: Session, name: str) -> None:
    _delete(db, NvimPlugin, name)


# ---------------------------------------------------------------------------
# NvimTheme
# ---------------------------------------------------------------------------


def create_theme(db: Session, body: NvimThemeCreate) -> NvimTheme:
    return _create(db, NvimTheme, body)


def list_themes(db: Session, *, category: str | None = None) -> list[NvimTheme]:
    stmt = select(NvimTheme).order_by(NvimTheme.name)
    if category is not None:
        stmt = stmt.where(NvimTheme.category == category)
    return list(db.scalars(stmt).all())


def get_theme_by_name(db: Session, name: str) -> NvimTheme:
    return _get_by_name(db, NvimTheme, name)


def get_theme_by_id(db: Session, theme_id: int) -> NvimTheme:
    theme = db.get(NvimTheme, theme_id)
    if theme is None:
        raise NotFoundError("NvimTheme", theme_id)
    return theme


def update_theme(db: Session, name: str, body: NvimThemeUpdate) -> NvimTheme:
    return _update(db, NvimTheme, name, body)


def delete_theme(db: Session, name: str) -> None:
    _delete(db, NvimTheme, name)


# ---------------------------------------------------------------------------
# TerminalPackage
# ---------------------------------------------------------------------------


def create_terminal_package(db: Session, body: TerminalPackageCreate) -> TerminalPackage:
    """Add a terminal package.

    Raises ``NotFoundError`` when ``extends`` names a package that does not
    exist, and ``AlreadyExistsError`` when the name is taken.
    """
    if body.extends:
        _get_by_name(db, TerminalPackage, body.extends)
    return _create(db, TerminalPackage, body)


def list_terminal_packages(db: Session, *, category: str | None = None) -> list[TerminalPackage]:
    stmt = select(TerminalPackage).order_by(TerminalPackage.name)
    if category is not None:
        stmt = stmt.where(TerminalPackage.category == category)
    return list(db.scalars(stmt).all())


def get_terminal_package_by_name(db: Session, name: str) -> TerminalPackage:
    return _get_by_name(db, TerminalPackage, name)


def get_terminal_package_by_id(db: Session, package_id: int) -> TerminalPackage:
    package = db.get(TerminalPackage, package_id)
    if package is None:
        raise NotFoundError("TerminalPackage", package_id)
    return package


def update_terminal_package(db: Session, name: str, body: TerminalPackageUpdate) -> TerminalPackage:
    return _update(db, TerminalPackage, name, body)


def delete_terminal_package(db: Session, name: str) -> None:
    _delete(db, TerminalPackage, name)
