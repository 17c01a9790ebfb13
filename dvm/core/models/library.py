"""Schemas for the global library: editor plugins, themes and terminal packages.

These are catalog entries, not owned by the hierarchy.  Workspaces refer to
plugins by name only.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# NvimPlugin
# ---------------------------------------------------------------------------


class NvimPluginCreate(BaseModel):
    name: str = Field(min_length=1)
    repo: str = Field(min_length=1, description="Plugin source, e.g. 'nvim-telescope/telescope.nvim'.")
    description: str | None = None
    category: str | None = None
    enabled: bool = True


class NvimPluginUpdate(BaseModel):
    repo: str | None = None
    description: str | None = None
    category: str | None = None
    enabled: bool | None = None


class NvimPluginResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    repo: str
    description: str | None = None
    category: str | None = None
    enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# NvimTheme
# ---------------------------------------------------------------------------


class NvimThemeCreate(BaseModel):
    name: str = Field(min_length=1)
    plugin_repo: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    style: str | None = None


class NvimThemeUpdate(BaseModel):
    plugin_repo: str | None = None
    description: str | None = None
    category: str | None = None
    style: str | None = None


class NvimThemeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    plugin_repo: str
    description: str | None = None
    category: str | None = None
    style: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# TerminalPackage
# ---------------------------------------------------------------------------


class TerminalPackageCreate(BaseModel):
    """Bundle of shell plugins, prompts and profiles, optionally extending another package."""

    name: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    plugins: list[str] = Field(default_factory=list)
    prompts: list[str] = Field(default_factory=list)
    profiles: list[str] = Field(default_factory=list)
    extends: str | None = None


class TerminalPackageUpdate(BaseModel):
    description: str | None = None
    category: str | None = None
    plugins: list[str] | None = None
    prompts: list[str] | None = None
    profiles: list[str] | None = None
    extends: str | None = None


class TerminalPackageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    category: str | None = None
    plugins: list[str] = Field(default_factory=list)
    prompts: list[str] = Field(default_factory=list)
    profiles: list[str] = Field(default_factory=list)
    extends: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
