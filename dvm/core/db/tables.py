"""SQLAlchemy ORM models for the local SQLite store.

These are the single source of truth for the database schema.  Alembic reads
``Base.metadata`` to autogenerate migration scripts.

Uses SQLAlchemy 2.0 declarative style with ``Mapped`` type annotations.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

Timestamp = DateTime(timezone=False)


class Base(DeclarativeBase):
    """Declarative base with naming convention for constraints."""

    pass


# Apply naming convention to the metadata for deterministic constraint names.
Base.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# -- Hierarchy: Ecosystem -> Domain -> App -> Workspace ------------------------


class Ecosystem(Base):
    __tablename__ = "ecosystems"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    theme: Mapped[str | None]
    created_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())


class Domain(Base):
    __tablename__ = "domains"
    __table_args__ = (
        UniqueConstraint("ecosystem_id", "name"),
        Index("ix_domains_ecosystem_id", "ecosystem_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ecosystem_id: Mapped[int] = mapped_column(ForeignKey("ecosystems.id", ondelete="CASCADE"))
    name: Mapped[str]
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())


class App(Base):
    __tablename__ = "apps"
    __table_args__ = (
        UniqueConstraint("domain_id", "name"),
        Index("ix_apps_domain_id", "domain_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    domain_id: Mapped[int] = mapped_column(ForeignKey("domains.id", ondelete="CASCADE"))
    name: Mapped[str]
    path: Mapped[str] = mapped_column(server_default="")
    description: Mapped[str | None] = mapped_column(Text)
    language: Mapped[str | None]
    created_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())


class Workspace(Base):
    __tablename__ = "workspaces"
    __table_args__ = (
        UniqueConstraint("app_id", "name"),
        Index("ix_workspaces_app_id", "app_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    app_id: Mapped[int] = mapped_column(ForeignKey("apps.id", ondelete="CASCADE"))
    name: Mapped[str]
    description: Mapped[str | None] = mapped_column(Text)
    image_name: Mapped[str]
    status: Mapped[str] = mapped_column(server_default="stopped")
    nvim_structure: Mapped[str | None]
    nvim_plugins: Mapped[str | None] = mapped_column(Text)
    """Comma-joined plugin names.  NULL means the workspace inherits the whole library."""
    created_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())


# -- Singleton active context and defaults -------------------------------------


class Context(Base):
    __tablename__ = "context"
    __table_args__ = (CheckConstraint("id = 1", name="singleton"),)

    id: Mapped[int] = mapped_column(primary_key=True, default=1)
    active_ecosystem_id: Mapped[int | None] = mapped_column(ForeignKey("ecosystems.id", ondelete="SET NULL"))
    active_domain_id: Mapped[int | None] = mapped_column(ForeignKey("domains.id", ondelete="SET NULL"))
    active_app_id: Mapped[int | None] = mapped_column(ForeignKey("apps.id", ondelete="SET NULL"))
    active_workspace_id: Mapped[int | None] = mapped_column(ForeignKey("workspaces.id", ondelete="SET NULL"))
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())


class Default(Base):
    __tablename__ = "defaults"

    key: Mapped[str] = mapped_column(primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())


# -- Global library: plugins, themes, terminal packages ------------------------


class NvimPlugin(Base):
    __tablename__ = "nvim_plugins"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(unique=True)
    repo: Mapped[str]
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None]
    enabled: Mapped[bool] = mapped_column(default=True, server_default="1")
    created_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())


class NvimTheme(Base):
    __tablename__ = "nvim_themes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(unique=True)
    plugin_repo: Mapped[str]
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None]
    style: Mapped[str | None]
    created_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())


class TerminalPackage(Base):
    __tablename__ = "terminal_packages"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None]
    plugins: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    prompts: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    profiles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    extends: Mapped[str | None]
    created_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(Timestamp, server_default=func.now(), onupdate=func.now())
