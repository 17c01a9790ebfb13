"""SQLAlchemy engine, session factory and schema migration.

The store is a single local SQLite file.  Every command opens one session,
does its read-modify-write, and commits once.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import Engine, event
from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

ALEMBIC_INI = Path(__file__).parent.parent / "alembic.ini"


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str, **kwargs: object) -> Engine:
    """Create a SQLAlchemy engine for *database_url*.

    For file-backed SQLite URLs the parent directory is created first, and
    foreign-key enforcement is enabled on every connection so that hierarchy
    deletes cascade.  All defaults can be overridden via *kwargs*.
    """
    url = make_url(database_url)
    defaults: dict[str, object] = {"echo": False}
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        defaults["connect_args"] = {"check_same_thread": False}
    defaults.update(kwargs)
    engine = _sa_create_engine(url, **defaults)  # type: ignore[arg-type]
    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to *engine*.

    ``expire_on_commit=False`` so that ORM instances remain usable after
    commit, for example when a command prints the row it just created.
    """
    return sessionmaker(engine, expire_on_commit=False)


def alembic_config(database_url: str | None = None):
    """Build an Alembic Config from the package's alembic.ini.

    Both alembic.ini and the alembic/ directory live inside the package,
    so this works whether running from source or from an installed package.
    """
    from alembic.config import Config

    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    if database_url is not None:
        cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def upgrade_database(database_url: str, revision: str = "head") -> None:
    """Apply migrations up to *revision*."""
    from alembic import command

    logger.debug("Migrating database {} to {}", database_url, revision)
    command.upgrade(alembic_config(database_url), revision)


@contextmanager
def open_session(database_url: str, *, migrate: bool = True) -> Iterator[Session]:
    """Yield a session on *database_url*, migrating the schema first.

    The caller is responsible for calling ``session.commit()`` on success.
    If the body raises, the session is closed and the implicit transaction is
    rolled back.
    """
    if migrate:
        upgrade_database(database_url)
    engine = create_engine(database_url)
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
