"""Shared test fixtures.

Unit tests run against an in-memory SQLite store built from the ORM
metadata.  Tests exercising the real Alembic migrations (and the CLI, which
migrates on every invocation) use a SQLite file under ``tmp_path``.

Tests that need a live container platform are marked with
``@pytest.mark.integration`` and are skipped by default.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from dvm.core.db.engine import create_engine, create_session_factory
from dvm.core.db.tables import App, Base, Domain, Ecosystem, NvimPlugin, Workspace
from dvm.core.settings import _get_settings_cached

# ---------------------------------------------------------------------------
# Settings isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Point every DVM_* setting at the test's temp dir and drop cached settings."""
    for key in (
        "DVM_APP",
        "DVM_WORKSPACE",
        "DVM_PLATFORM",
        "DVM_DATABASE_URL",
        "DVM_LOG_FILE",
        "DVM_LOG_LEVEL",
        "DOCKER_HOST",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DVM_DATA_DIR", str(tmp_path / "data"))
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Iterator[Session]:
    session = create_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'dvm.db'}"


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@pytest.fixture
def tree(db: Session) -> dict[str, int]:
    """A small hierarchy: acme/payments/api/{dev,ci} and acme/infra/api/dev."""
    eco = Ecosystem(name="acme")
    db.add(eco)
    db.flush()
    payments = Domain(ecosystem_id=eco.id, name="payments")
    infra = Domain(ecosystem_id=eco.id, name="infra")
    db.add_all([payments, infra])
    db.flush()
    api = App(domain_id=payments.id, name="api", path="/src/api")
    infra_api = App(domain_id=infra.id, name="api", path="/src/infra-api")
    db.add_all([api, infra_api])
    db.flush()
    dev = Workspace(app_id=api.id, name="dev", image_name="dvm-dev-api:pending")
    ci = Workspace(app_id=api.id, name="ci", image_name="dvm-ci-api:pending")
    infra_dev = Workspace(app_id=infra_api.id, name="dev", image_name="dvm-dev-api:pending")
    db.add_all([dev, ci, infra_dev])
    db.commit()
    return {
        "ecosystem": eco.id,
        "payments": payments.id,
        "infra": infra.id,
        "api": api.id,
        "infra_api": infra_api.id,
        "dev": dev.id,
        "ci": ci.id,
        "infra_dev": infra_dev.id,
    }


@pytest.fixture
def plugin_library(db: Session) -> list[str]:
    names = ["telescope", "treesitter", "lspconfig", "gitsigns"]
    db.add_all(NvimPlugin(name=name, repo=f"example/{name}.nvim") for name in names)
    db.commit()
    return names
