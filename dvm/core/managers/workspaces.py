"""Workspace CRUD operations.

Encapsulates all workspace data access: create, list, get, update, delete.
Plugin-set mutation lives in ``dvm.core.plugin_set``; callers persist the
mutated row with ``save_workspace``.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from dvm.core.db.tables import App, Workspace
from dvm.core.errors import AlreadyExistsError, NotFoundError
from dvm.core.models.hierarchy import WorkspaceCreate, WorkspaceUpdate


def default_image_name(app_name: str, workspace_name: str) -> str:
    """Placeholder image tag for a workspace that has not been built yet."""
    return f"dvm-{workspace_name}-{app_name}:pending"


def create_workspace(db: Session, body: WorkspaceCreate) -> Workspace:
    """Create a new workspace.

    Raises ``NotFoundError`` if the app is missing and ``AlreadyExistsError``
    if the app already has a workspace of that name.
    """
    app = db.get(App, body.app_id)
    if app is None:
        raise NotFoundError("App", body.app_id)

    stmt = select(Workspace).where(Workspace.app_id == body.app_id, Workspace.name == body.name)
    if db.scalar(stmt) is not None:
        raise AlreadyExistsError("Workspace", body.name)

    workspace = Workspace(
        app_id=body.app_id,
        name=body.name,
        description=body.description,
        image_name=body.image_name or default_image_name(app.name, body.name),
        status="stopped",
        nvim_structure=body.nvim_structure.value if body.nvim_structure else None,
    )
    db.add(workspace)
    db.commit()
    db.refresh(workspace)
    return workspace


def list_workspaces(db: Session, app_id: int | None = None) -> list[Workspace]:
    """List workspaces, optionally restricted to one app, ordered by name."""
    stmt = select(Workspace).order_by(Workspace.name)
    if app_id is not None:
        stmt = stmt.where(Workspace.app_id == app_id)
    return list(db.scalars(stmt).all())


def get_workspace_by_name(db: Session, app_id: int, name: str) -> Workspace:
    """Get a workspace by name within an app.  Raises ``NotFoundError`` if missing."""
    workspace = db.scalar(select(Workspace).where(Workspace.app_id == app_id, Workspace.name == name))
    if workspace is None:
        raise NotFoundError("Workspace", name, hint="list workspaces with 'dvm get workspaces'")
    return workspace


def get_workspace_by_id(db: Session, workspace_id: int) -> Workspace:
    workspace = db.get(Workspace, workspace_id)
    if workspace is None:
        raise NotFoundError("Workspace", workspace_id)
    return workspace


def update_workspace(db: Session, workspace_id: int, body: WorkspaceUpdate) -> Workspace:
    """Partially update a workspace.  Raises ``NotFoundError`` if missing."""
    workspace = get_workspace_by_id(db, workspace_id)

    changes = body.model_dump(exclude_unset=True, mode="json")
    if not changes:
        return workspace

    for key, value in changes.items():
        setattr(workspace, key, value)

    db.commit()
    db.refresh(workspace)
    return workspace


def save_workspace(db: Session, workspace: Workspace) -> Workspace:
    """Persist in-memory changes made to *workspace* (e.g. by the plugin-set functions)."""
    db.add(workspace)
    db.commit()
    db.refresh(workspace)
    return workspace


def delete_workspace(db: Session, app_id: int, name: str) -> None:
    """Delete a workspace.  Raises ``NotFoundError`` if missing."""
    workspace = get_workspace_by_name(db, app_id, name)
    db.delete(workspace)
    db.commit()
