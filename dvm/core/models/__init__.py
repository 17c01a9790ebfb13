"""Data models for the dvm core."""

from dvm.core.models.context import ActiveContext
from dvm.core.models.enums import (
    ContainerState,
    Kind,
    Level,
    NvimStructure,
    PlatformType,
    ResolutionSource,
)
from dvm.core.models.hierarchy import (
    AppCreate,
    AppResponse,
    AppUpdate,
    DomainCreate,
    DomainResponse,
    DomainUpdate,
    EcosystemCreate,
    EcosystemResponse,
    EcosystemUpdate,
    WorkspaceCreate,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from dvm.core.models.library import (
    NvimPluginCreate,
    NvimPluginResponse,
    NvimPluginUpdate,
    NvimThemeCreate,
    NvimThemeResponse,
    NvimThemeUpdate,
    TerminalPackageCreate,
    TerminalPackageResponse,
    TerminalPackageUpdate,
)

__all__ = [
    # Context
    "ActiveContext",
    # Hierarchy
    "AppCreate",
    "AppResponse",
    "AppUpdate",
    # Enums
    "ContainerState",
    "DomainCreate",
    "DomainResponse",
    "DomainUpdate",
    "EcosystemCreate",
    "EcosystemResponse",
    "EcosystemUpdate",
    "Kind",
    "Level",
    # Library
    "NvimPluginCreate",
    "NvimPluginResponse",
    "NvimPluginUpdate",
    "NvimStructure",
    "NvimThemeCreate",
    "NvimThemeResponse",
    "NvimThemeUpdate",
    "PlatformType",
    "ResolutionSource",
    "TerminalPackageCreate",
    "TerminalPackageResponse",
    "TerminalPackageUpdate",
    "WorkspaceCreate",
    "WorkspaceResponse",
    "WorkspaceUpdate",
]
