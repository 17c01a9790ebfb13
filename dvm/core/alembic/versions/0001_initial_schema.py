"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-02-02 10:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "ecosystems",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("theme", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ecosystems")),
        sa.UniqueConstraint("name", name=op.f("uq_ecosystems_name")),
    )
    op.create_table(
        "domains",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ecosystem_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["ecosystem_id"],
            ["ecosystems.id"],
            name=op.f("fk_domains_ecosystem_id_ecosystems"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_domains")),
        sa.UniqueConstraint("ecosystem_id", "name", name=op.f("uq_domains_ecosystem_id")),
    )
    op.create_index("ix_domains_ecosystem_id", "domains", ["ecosystem_id"])
    op.create_table(
        "apps",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("domain_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("path", sa.String(), server_default="", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("language", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["domain_id"],
            ["domains.id"],
            name=op.f("fk_apps_domain_id_domains"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_apps")),
        sa.UniqueConstraint("domain_id", "name", name=op.f("uq_apps_domain_id")),
    )
    op.create_index("ix_apps_domain_id", "apps", ["domain_id"])
    op.create_table(
        "workspaces",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("app_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), server_default="stopped", nullable=False),
        sa.Column("nvim_structure", sa.String(), nullable=True),
        sa.Column("nvim_plugins", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["app_id"],
            ["apps.id"],
            name=op.f("fk_workspaces_app_id_apps"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_workspaces")),
        sa.UniqueConstraint("app_id", "name", name=op.f("uq_workspaces_app_id")),
    )
    op.create_index("ix_workspaces_app_id", "workspaces", ["app_id"])
    op.create_table(
        "context",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("active_ecosystem_id", sa.Integer(), nullable=True),
        sa.Column("active_domain_id", sa.Integer(), nullable=True),
        sa.Column("active_app_id", sa.Integer(), nullable=True),
        sa.Column("active_workspace_id", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("id = 1", name=op.f("ck_context_singleton")),
        sa.ForeignKeyConstraint(
            ["active_ecosystem_id"],
            ["ecosystems.id"],
            name=op.f("fk_context_active_ecosystem_id_ecosystems"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["active_domain_id"],
            ["domains.id"],
            name=op.f("fk_context_active_domain_id_domains"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["active_app_id"],
            ["apps.id"],
            name=op.f("fk_context_active_app_id_apps"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["active_workspace_id"],
            ["workspaces.id"],
            name=op.f("fk_context_active_workspace_id_workspaces"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_context")),
    )
    op.execute("INSERT INTO context (id) VALUES (1)")
    op.create_table(
        "defaults",
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("key", name=op.f("pk_defaults")),
    )
    op.create_table(
        "nvim_plugins",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("repo", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("enabled", sa.Boolean(), server_default="1", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_nvim_plugins")),
        sa.UniqueConstraint("name", name=op.f("uq_nvim_plugins_name")),
    )
    op.create_table(
        "nvim_themes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("plugin_repo", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("style", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_nvim_themes")),
        sa.UniqueConstraint("name", name=op.f("uq_nvim_themes_name")),
    )
    op.create_table(
        "terminal_packages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("plugins", sa.JSON(), nullable=False),
        sa.Column("prompts", sa.JSON(), nullable=False),
        sa.Column("profiles", sa.JSON(), nullable=False),
        sa.Column("extends", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_terminal_packages")),
        sa.UniqueConstraint("name", name=op.f("uq_terminal_packages_name")),
    )


def downgrade() -> None:
    op.drop_table("terminal_packages")
    op.drop_table("nvim_themes")
    op.drop_table("nvim_plugins")
    op.drop_table("defaults")
    op.drop_table("context")
    op.drop_index("ix_workspaces_app_id", table_name="workspaces")
    op.drop_table("workspaces")
    op.drop_index("ix_apps_domain_id", table_name="apps")
    op.drop_table("apps")
    op.drop_index("ix_domains_ecosystem_id", table_name="domains")
    op.drop_table("domains")
    op.drop_table("ecosystems")
