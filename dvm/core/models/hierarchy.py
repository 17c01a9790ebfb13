"""Request / response schemas for the Ecosystem -> Domain -> App -> Workspace hierarchy.

- **Create** schemas validate user input and provide defaults.
- **Update** schemas allow partial updates via ``exclude_unset``.
- **Response** schemas serialize ORM rows via ``from_attributes``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from dvm.core.models.enums import NvimStructure

# ---------------------------------------------------------------------------
# Ecosystem
# ---------------------------------------------------------------------------


class EcosystemCreate(BaseModel):
    """Input for creating a new ecosystem."""

    name: str = Field(min_length=1)
    description: str | None = None
    theme: str | None = None


class EcosystemUpdate(BaseModel):
    """Partial ecosystem update."""

    name: str | None = None
    description: str | None = None
    theme: str | None = None


class EcosystemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    theme: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------


class DomainCreate(BaseModel):
    """Input for creating a domain inside an ecosystem."""

    ecosystem_id: int
    name: str = Field(min_length=1)
    description: str | None = None


class DomainUpdate(BaseModel):
    name: str | None = None
    description: str | None = None


class DomainResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ecosystem_id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


class AppCreate(BaseModel):
    """Input for creating an app inside a domain."""

    domain_id: int
    name: str = Field(min_length=1)
    path: str = Field(default="", description="Host source directory mounted into workspaces.")
    description: str | None = None
    language: str | None = None


class AppUpdate(BaseModel):
    name: str | None = None
    path: str | None = None
    description: str | None = None
    language: str | None = None


class AppResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    domain_id: int
    name: str
    path: str = ""
    description: str | None = None
    language: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


class WorkspaceCreate(BaseModel):
    """Input for creating a workspace inside an app.

    ``image_name`` defaults to ``dvm-<workspace>-<app>:pending`` when omitted;
    the real tag is written once an image has been built.
    """

    app_id: int
    name: str = Field(min_length=1)
    description: str | None = None
    image_name: str | None = None
    nvim_structure: NvimStructure | None = None


class WorkspaceUpdate(BaseModel):
    """Partial workspace update.

    Plugin-set changes go through ``dvm.core.plugin_set`` rather than here.
    """

    description: str | None = None
    image_name: str | None = None
    status: str | None = None
    nvim_structure: NvimStructure | None = None


class WorkspaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    app_id: int
    name: str
    description: str | None = None
    image_name: str
    status: str = "stopped"
    nvim_structure: str | None = None
    nvim_plugins: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
