"""Persistence for the singleton active-context row.

The row is created by the initial migration; ``_context_row`` also creates
it on demand so that stores built with ``create_all`` behave the same.
These functions store exactly what they are given.  Cascade rules live in
``dvm.core.context``.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from dvm.core.db.tables import Context
from dvm.core.models.context import ActiveContext

CONTEXT_ROW_ID = 1


def _context_row(db: Session) -> Context:
    # Always re-read: ON DELETE SET NULL happens in the database, behind the identity map.
    row = db.get(Context, CONTEXT_ROW_ID, populate_existing=True)
    if row is None:
        row = Context(id=CONTEXT_ROW_ID)
        db.add(row)
        db.flush()
    return row


def get_context(db: Session) -> ActiveContext:
    """Load the active context as a detached value."""
    return ActiveContext.model_validate(_context_row(db))


def save_context(db: Session, ctx: ActiveContext) -> ActiveContext:
    """Write every level of *ctx* back to the singleton row in one commit."""
    row = _context_row(db)
    for key, value in ctx.model_dump().items():
        setattr(row, key, value)
    db.commit()
    return ctx


def set_active_ecosystem(db: Session, ecosystem_id: int | None) -> None:
    _context_row(db).active_ecosystem_id = ecosystem_id
    db.commit()


def set_active_domain(db: Session, domain_id: int | None) -> None:
    _context_row(db).active_domain_id = domain_id
    db.commit()


def set_active_app(db: Session, app_id: int | None) -> None:
    _context_row(db).active_app_id = app_id
    db.commit()


def set_active_workspace(db: Session, workspace_id: int | None) -> None:
    _context_row(db).active_workspace_id = workspace_id
    db.commit()
