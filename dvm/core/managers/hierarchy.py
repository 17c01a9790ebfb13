"""Ecosystem, Domain and App CRUD operations.

Names are unique per parent: ecosystems globally, domains within an
ecosystem, apps within a domain.  Deletes cascade down the hierarchy at the
database level.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from dvm.core.db.tables import App, Domain, Ecosystem
from dvm.core.errors import AlreadyExistsError, NotFoundError
from dvm.core.models.hierarchy import (
    AppCreate,
    AppUpdate,
    DomainCreate,
    DomainUpdate,
    EcosystemCreate,
    EcosystemUpdate,
)


def _apply(db: Session, row: object, changes: dict) -> None:
    for key, value in changes.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)


# ---------------------------------------------------------------------------
# Ecosystem
# ---------------------------------------------------------------------------


def create_ecosystem(db: Session, body: EcosystemCreate) -> Ecosystem:
    """Create a new ecosystem.  Raises ``AlreadyExistsError`` if the name is taken."""
    if db.scalar(select(Ecosystem).where(Ecosystem.name == body.name)) is not None:
        raise AlreadyExistsError("Ecosystem", body.name)

    ecosystem = Ecosystem(**body.model_dump())
    db.add(ecosystem)
    db.commit()
    db.refresh(ecosystem)
    return ecosystem


def list_ecosystems(db: Session) -> list[Ecosystem]:
    """List all ecosystems, ordered by name."""
    return list(db.scalars(select(Ecosystem).order_by(Ecosystem.name)).all())


def get_ecosystem_by_name(db: Session, name: str) -> Ecosystem:
    """Get an ecosystem by name.  Raises ``NotFoundError`` if missing."""
    ecosystem = db.scalar(select(Ecosystem).where(Ecosystem.name == name))
    if ecosystem is None:
        raise NotFoundError("Ecosystem", name, hint="list ecosystems with 'dvm get ecosystems'")
    return ecosystem


def get_ecosystem_by_id(db: Session, ecosystem_id: int) -> Ecosystem:
    ecosystem = db.get(Ecosystem, ecosystem_id)
    if ecosystem is None:
        raise NotFoundError("Ecosystem", ecosystem_id)
    return ecosystem


def update_ecosystem(db: Session, ecosystem_id: int, body: EcosystemUpdate) -> Ecosystem:
    """Partially update an ecosystem.  Raises ``NotFoundError`` if missing."""
    ecosystem = get_ecosystem_by_id(db, ecosystem_id)
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        return ecosystem
    new_name = changes.get("name")
    if new_name and new_name != ecosystem.name:
        if db.scalar(select(Ecosystem).where(Ecosystem.name == new_name)) is not None:
            raise AlreadyExistsError("Ecosystem", new_name)
    _apply(db, ecosystem, changes)
    return ecosystem


def delete_ecosystem(db: Session, name: str) -> None:
    """Delete an ecosystem and everything beneath it.  Raises ``NotFoundError`` if missing."""
    ecosystem = get_ecosystem_by_name(db, name)
    db.delete(ecosystem)
    db.commit()


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------


def create_domain(db: Session, body: DomainCreate) -> Domain:
    """Create a domain inside an ecosystem.

    Raises ``NotFoundError`` if the ecosystem is missing and
    ``AlreadyExistsError`` if the ecosystem already has a domain of that name.
    """
    get_ecosystem_by_id(db, body.ecosystem_id)
    stmt = select(Domain).where(Domain.ecosystem_id == body.ecosystem_id, Domain.name == body.name)
    if db.scalar(stmt) is not None:
        raise AlreadyExistsError("Domain", body.name)

    domain = Domain(**body.model_dump())
    db.add(domain)
    db.commit()
    db.refresh(domain)
    return domain


def list_domains(db: Session, ecosystem_id: int | None = None) -> list[Domain]:
    """List domains, optionally restricted to one ecosystem."""
    stmt = select(Domain).order_by(Domain.name)
    if ecosystem_id is not None:
        stmt = stmt.where(Domain.ecosystem_id == ecosystem_id)
    return list(db.scalars(stmt).all())


def get_domain_by_name(db: Session, ecosystem_id: int, name: str) -> Domain:
    domain = db.scalar(select(Domain).where(Domain.ecosystem_id == ecosystem_id, Domain.name == name))
    if domain is None:
        raise NotFoundError("Domain", name, hint="list domains with 'dvm get domains'")
    return domain


def get_domain_by_id(db: Session, domain_id: int) -> Domain:
    domain = db.get(Domain, domain_id)
    if domain is None:
        raise NotFoundError("Domain", domain_id)
    return domain


def update_domain(db: Session, domain_id: int, body: DomainUpdate) -> Domain:
    domain = get_domain_by_id(db, domain_id)
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        return domain
    new_name = changes.get("name")
    if new_name and new_name != domain.name:
        stmt = select(Domain).where(Domain.ecosystem_id == domain.ecosystem_id, Domain.name == new_name)
        if db.scalar(stmt) is not None:
            raise AlreadyExistsError("Domain", new_name)
    _apply(db, domain, changes)
    return domain


def delete_domain(db: Session, ecosystem_id: int, name: str) -> None:
    domain = get_domain_by_name(db, ecosystem_id, name)
    db.delete(domain)
    db.commit()


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


def create_app(db: Session, body: AppCreate) -> App:
    """Create an app inside a domain.

    Raises ``NotFoundError`` if the domain is missing and
    ``AlreadyExistsError`` if the domain already has an app of that name.
    """
    get_domain_by_id(db, body.domain_id)
    stmt = select(App).where(App.domain_id == body.domain_id, App.name == body.name)
    if db.scalar(stmt) is not None:
        raise AlreadyExistsError("App", body.name)

    app = App(**body.model_dump())
    db.add(app)
    db.commit()
    db.refresh(app)
    return app


def list_apps(db: Session, domain_id: int | None = None) -> list[App]:
    """List apps, optionally restricted to one domain."""
    stmt = select(App).order_by(App.name)
    if domain_id is not None:
        stmt = stmt.where(App.domain_id == domain_id)
    return list(db.scalars(stmt).all())


def get_app_by_name(db: Session, domain_id: int, name: str) -> App:
    app = db.scalar(select(App).where(App.domain_id == domain_id, App.name == name))
    if app is None:
        raise NotFoundError("App", name, hint="list apps with 'dvm get apps'")
    return app


def find_app_by_name(db: Session, name: str) -> App:
    """Find an app by name across every domain.

    Used when no domain is active.  When several domains hold an app of
    that name the oldest one wins.  Raises ``NotFoundError`` if none does.
    """
    app = db.scalar(select(App).where(App.name == name).order_by(App.id).limit(1))
    if app is None:
        raise NotFoundError("App", name, hint="list apps with 'dvm get apps'")
    return app


def get_app_by_id(db: Session, app_id: int) -> App:
    app = db.get(App, app_id)
    if app is None:
        raise NotFoundError("App", app_id)
    return app


def update_app(db: Session, app_id: int, body: AppUpdate) -> App:
    app = get_app_by_id(db, app_id)
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        return app
    new_name = changes.get("name")
    if new_name and new_name != app.name:
        stmt = select(App).where(App.domain_id == app.domain_id, App.name == new_name)
        if db.scalar(stmt) is not None:
            raise AlreadyExistsError("App", new_name)
    _apply(db, app, changes)
    return app


def delete_app(db: Session, domain_id: int, name: str) -> None:
    app = get_app_by_name(db, domain_id, name)
    db.delete(app)
    db.commit()
