"""Alembic migration environment.

Uses the URL set on the Alembic config by ``dvm.core.db.engine`` when
present, otherwise reads it from DvmSettings (DVM_DATABASE_URL or the
default SQLite file under DVM_DATA_DIR).  SQLite cannot ALTER most
constraints in place, so migrations run in batch mode.

Logging is owned by ``dvm.core.log``; alembic.ini carries no logging
sections and ``fileConfig`` is deliberately not called.
"""

from __future__ import annotations

from typing import Any

from alembic import context
from sqlalchemy import pool

from dvm.core.db.engine import create_engine
from dvm.core.db.tables import Base
from dvm.core.settings import DvmSettings

# -- Alembic Config object ----------------------------------------------------
config = context.config

# -- Target metadata for autogenerate ----------------------------------------
target_metadata = Base.metadata


def get_url() -> str:
    """Return the database URL from the Alembic config or the settings."""
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return url
    return DvmSettings().resolve_database_url()


def include_object(obj: Any, name: str | None, type_: str, reflected: bool, compare_to: Any) -> bool:
    """Filter objects for autogenerate.

    Excludes tables that exist in the database but are not defined in our
    models, preventing Alembic from generating DROP TABLE for foreign tables.
    """
    return not (type_ == "table" and reflected and compare_to is None)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Generates SQL scripts without connecting to the database.
    """
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode.

    Connects to the database and applies migrations directly.
    """
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            compare_type=True,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
