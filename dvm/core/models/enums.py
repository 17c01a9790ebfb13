"""Shared enumerations used across the core."""

from __future__ import annotations

from enum import StrEnum

# -- Hierarchy ---------------------------------------------------------------


class Level(StrEnum):
    """Hierarchy levels, declared top-down.  Declaration order is significant."""

    ECOSYSTEM = "ecosystem"
    DOMAIN = "domain"
    APP = "app"
    WORKSPACE = "workspace"

    def below(self) -> list[Level]:
        """Levels strictly beneath this one, top-down."""
        levels = list(Level)
        return levels[levels.index(self) + 1 :]


class ResolutionSource(StrEnum):
    """Where a resolved target came from."""

    EXPLICIT = "explicit"
    FLAG = "flag"
    CONTEXT = "context"
    ENVIRONMENT = "environment"


class NvimStructure(StrEnum):
    """How a workspace's editor configuration is generated."""

    DEFAULT = "default"
    CUSTOM = "custom"


# -- Resources ---------------------------------------------------------------


_KIND_ALIASES = {
    "ecosystem": "Ecosystem",
    "ecosystems": "Ecosystem",
    "eco": "Ecosystem",
    "domain": "Domain",
    "domains": "Domain",
    "dom": "Domain",
    "app": "App",
    "apps": "App",
    "workspace": "Workspace",
    "workspaces": "Workspace",
    "ws": "Workspace",
    "nvimplugin": "NvimPlugin",
    "nvimplugins": "NvimPlugin",
    "plugin": "NvimPlugin",
    "plugins": "NvimPlugin",
    "np": "NvimPlugin",
    "nvimtheme": "NvimTheme",
    "nvimthemes": "NvimTheme",
    "theme": "NvimTheme",
    "themes": "NvimTheme",
    "nt": "NvimTheme",
    "terminalpackage": "TerminalPackage",
    "terminalpackages": "TerminalPackage",
    "terminal-package": "TerminalPackage",
    "tp": "TerminalPackage",
}


class Kind(StrEnum):
    """Resource kinds routed through the resource registry."""

    ECOSYSTEM = "Ecosystem"
    DOMAIN = "Domain"
    APP = "App"
    WORKSPACE = "Workspace"
    NVIM_PLUGIN = "NvimPlugin"
    NVIM_THEME = "NvimTheme"
    TERMINAL_PACKAGE = "TerminalPackage"

    @classmethod
    def parse(cls, value: str) -> Kind:
        """Parse a user-facing kind name or alias.  Raises ``ValueError`` if unknown."""
        if value in cls._value2member_map_:
            return cls(value)
        canonical = _KIND_ALIASES.get(value.lower().replace("_", ""))
        if canonical is None:
            msg = f"unknown resource kind: {value}"
            raise ValueError(msg)
        return cls(canonical)


# -- Container runtime -------------------------------------------------------


class ContainerState(StrEnum):
    """Normalized container state, independent of the platform's vocabulary."""

    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


class PlatformType(StrEnum):
    ORBSTACK = "orbstack"
    COLIMA = "colima"
    PODMAN = "podman"
    DOCKER_DESKTOP = "docker-desktop"
    LINUX_NATIVE = "linux-native"
