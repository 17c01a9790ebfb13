"""Key-value defaults (e.g. ``theme``, ``nvim-package``, ``terminal-package``)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from dvm.core.db.tables import Default


def get_default(db: Session, key: str) -> str | None:
    """Return the value stored for *key*, or ``None`` when unset."""
    row = db.get(Default, key)
    return row.value if row is not None else None


def set_default(db: Session, key: str, value: str) -> None:
    """Insert or overwrite *key*."""
    row = db.get(Default, key)
    if row is None:
        db.add(Default(key=key, value=value))
    else:
        row.value = value
    db.commit()


def delete_default(db: Session, key: str) -> bool:
    """Remove *key*.  Returns ``False`` if it was not set."""
    row = db.get(Default, key)
    if row is None:
        return False
    db.delete(row)
    db.commit()
    return True


def list_defaults(db: Session) -> dict[str, str]:
    rows = db.scalars(select(Default).order_by(Default.key)).all()
    return {row.key: row.value for row in rows}
