"""Container platform detection.

Several platforms can be installed side by side, so detection happens in two
steps.  ``detect_all`` probes every platform's socket paths and returns the
reachable ones in priority order.  ``detect`` then picks one:

1. ``DVM_PLATFORM`` forces a platform (an error if it is not reachable).
2. A reachable platform that reports itself as the current default wins:
   ``DOCKER_HOST`` points at its socket, the Docker CLI's ``currentContext``
   names it, or ``/var/run/docker.sock`` is a symlink into its directory.
3. Otherwise, and to break ties between several self-reported platforms, the
   first in ``PRIORITY``: OrbStack, Colima, Podman, Docker Desktop, Linux
   native.
"""

from __future__ import annotations

import glob
import json
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from dvm.core.errors import NoPlatformDetectedError
from dvm.core.models.enums import PlatformType

PRIORITY: tuple[PlatformType, ...] = (
    PlatformType.ORBSTACK,
    PlatformType.COLIMA,
    PlatformType.PODMAN,
    PlatformType.DOCKER_DESKTOP,
    PlatformType.LINUX_NATIVE,
)

_ALIASES = {"docker": PlatformType.DOCKER_DESKTOP, "native": PlatformType.LINUX_NATIVE}

_INSTALL_HINTS = {
    PlatformType.ORBSTACK: "install OrbStack from https://orbstack.dev or run: brew install orbstack",
    PlatformType.COLIMA: "install Colima with: brew install colima && colima start",
    PlatformType.DOCKER_DESKTOP: "install Docker Desktop from https://docker.com/products/docker-desktop",
    PlatformType.PODMAN: "install Podman with: brew install podman && podman machine init && podman machine start",
    PlatformType.LINUX_NATIVE: "install Docker Engine from https://docs.docker.com/engine/install/",
}

# Docker CLI context names each platform registers for itself.
_DOCKER_CONTEXTS = {
    PlatformType.ORBSTACK: ("orbstack",),
    PlatformType.COLIMA: ("colima",),
    PlatformType.DOCKER_DESKTOP: ("desktop-linux", "desktop-windows"),
    PlatformType.PODMAN: ("podman",),
}

# Path fragments identifying a platform's own directory in a symlink target.
_DIR_MARKERS = {
    PlatformType.ORBSTACK: "orbstack",
    PlatformType.COLIMA: ".colima",
    PlatformType.DOCKER_DESKTOP: ".docker",
    PlatformType.PODMAN: "podman",
}


def install_hint(platform_type: PlatformType | None = None) -> str:
    if platform_type is None:
        return "install and start one of: OrbStack, Colima, Podman, Docker Desktop, Docker"
    return _INSTALL_HINTS[platform_type]


@dataclass(frozen=True)
class Platform:
    """A reachable container platform."""

    type: PlatformType
    socket_path: Path
    name: str
    profile: str | None = None
    is_active: bool = False
    """The platform reports itself as the current default on this host."""

    @property
    def is_containerd(self) -> bool:
        """Speaks containerd rather than the Docker API (Colima in containerd mode)."""
        return self.type is PlatformType.COLIMA and self.socket_path.name == "containerd.sock"

    @property
    def is_docker_compatible(self) -> bool:
        if self.type is PlatformType.COLIMA:
            return not self.is_containerd
        return True

    @property
    def docker_host(self) -> str:
        return f"unix://{self.socket_path}"

    def start_hint(self) -> str:
        if self.type is PlatformType.ORBSTACK:
            return "start OrbStack from the menu bar or run: open -a OrbStack"
        if self.type is PlatformType.COLIMA:
            if self.profile and self.profile != "default":
                return f"start Colima with: colima start --profile {self.profile}"
            return "start Colima with: colima start"
        if self.type is PlatformType.DOCKER_DESKTOP:
            return "start Docker Desktop from Applications"
        if self.type is PlatformType.PODMAN:
            return "start the Podman machine with: podman machine start"
        return "start the Docker daemon with: sudo systemctl start docker"


def parse_platform_type(value: str) -> PlatformType:
    """Parse a ``DVM_PLATFORM`` value.  Raises ``NoPlatformDetectedError`` for unknown names."""
    key = value.strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return PlatformType(key)
    except ValueError:
        valid = ", ".join(p.value for p in PRIORITY)
        raise NoPlatformDetectedError(f"unknown platform type: {value} (valid: {valid})") from None


class PlatformDetector:
    """Probes the host for container platforms.

    ``home``, ``root`` and ``environ`` default to the real home directory,
    ``/`` and ``os.environ``; tests point them at a temporary tree.
    """

    def __init__(
        self,
        *,
        home: Path | None = None,
        root: Path | None = None,
        environ: Mapping[str, str] | None = None,
        forced: str | None = None,
    ) -> None:
        self.home = home if home is not None else Path.home()
        self.root = root if root is not None else Path("/")
        self.environ = os.environ if environ is None else environ
        self.forced = forced
        self._probes: dict[PlatformType, Callable[[], Platform | None]] = {
            PlatformType.ORBSTACK: self._probe_orbstack,
            PlatformType.COLIMA: self._probe_colima,
            PlatformType.PODMAN: self._probe_podman,
            PlatformType.DOCKER_DESKTOP: self._probe_docker_desktop,
            PlatformType.LINUX_NATIVE: self._probe_linux_native,
        }

    # -- Public API ------------------------------------------------------------

    def detect_all(self) -> list[Platform]:
        """Every reachable platform, in ``PRIORITY`` order.  An empty list is not an error."""
        return [platform for platform_type in PRIORITY if (platform := self.probe(platform_type)) is not None]

    def detect(self) -> Platform:
        """Pick the platform to operate through.

        Raises ``NoPlatformDetectedError`` when nothing is reachable, or when
        the forced platform is unknown or unreachable.
        """
        if self.forced and self.forced.lower() != "auto":
            platform_type = parse_platform_type(self.forced)
            platform = self.probe(platform_type)
            if platform is None:
                raise NoPlatformDetectedError(
                    f"platform {platform_type.value} is not available",
                    hint=install_hint(platform_type),
                )
            logger.debug("Using forced platform {}", platform.name)
            return platform

        candidates = self.detect_all()
        if not candidates:
            raise NoPlatformDetectedError(hint=install_hint())

        active = [platform for platform in candidates if platform.is_active]
        chosen = (active or candidates)[0]
        logger.debug(
            "Detected platforms {} (active: {}), using {}",
            [p.type.value for p in candidates],
            [p.type.value for p in active],
            chosen.name,
        )
        return chosen

    def probe(self, platform_type: PlatformType) -> Platform | None:
        return self._probes[platform_type]()

    # -- Self-report -----------------------------------------------------------

    @property
    def system_socket(self) -> Path:
        return self.root / "var" / "run" / "docker.sock"

    def _docker_host_path(self) -> Path | None:
        value = self.environ.get("DOCKER_HOST", "")
        if not value.startswith("unix://"):
            return None
        return Path(value.removeprefix("unix://"))

    def _docker_context(self) -> str | None:
        """``currentContext`` from the Docker CLI config, if any."""
        config_dir = Path(self.environ.get("DOCKER_CONFIG") or self.home / ".docker")
        try:
            data = json.loads((config_dir / "config.json").read_text())
        except (OSError, ValueError):
            return None
        value = data.get("currentContext") if isinstance(data, dict) else None
        return value or None

    def _context_platform(self) -> PlatformType | None:
        context = self._docker_context()
        if context is None:
            return None
        for platform_type, prefixes in _DOCKER_CONTEXTS.items():
            if context.startswith(prefixes):
                return platform_type
        return None

    def _system_socket_target(self) -> str | None:
        try:
            return os.readlink(self.system_socket)
        except OSError:
            return None

    def _is_active(self, platform_type: PlatformType, socket_path: Path) -> bool:
        docker_host = self._docker_host_path()
        if docker_host is not None:
            return docker_host == socket_path
        context_platform = self._context_platform()
        if context_platform is not None:
            return context_platform is platform_type
        # "default" and unknown contexts mean the system socket, so its symlink decides.
        target = self._system_socket_target()
        marker = _DIR_MARKERS.get(platform_type)
        return target is not None and marker is not None and marker in target

    def _platform(
        self, platform_type: PlatformType, socket_path: Path, name: str, profile: str | None = None
    ) -> Platform:
        return Platform(
            type=platform_type,
            socket_path=socket_path,
            name=name,
            profile=profile,
            is_active=self._is_active(platform_type, socket_path),
        )

    # -- Probes ----------------------------------------------------------------

    def _probe_orbstack(self) -> Platform | None:
        if not (self.home / ".orbstack").is_dir():
            return None
        socket = self.home / ".orbstack" / "run" / "docker.sock"
        if socket.exists():
            return self._platform(PlatformType.ORBSTACK, socket, "OrbStack")
        # OrbStack set as the system default only shows up via the symlink.
        target = self._system_socket_target()
        if target is not None and "orbstack" in target and self.system_socket.exists():
            return self._platform(PlatformType.ORBSTACK, self.system_socket, "OrbStack")
        return None

    def _probe_colima(self) -> Platform | None:
        profile = (
            self.environ.get("COLIMA_DOCKER_PROFILE") or self.environ.get("COLIMA_ACTIVE_PROFILE") or "default"
        )
        profile_dir = self.home / ".colima" / profile
        docker_socket = profile_dir / "docker.sock"
        if docker_socket.exists():
            return self._platform(PlatformType.COLIMA, docker_socket, f"Colima (profile: {profile})", profile)
        containerd_socket = profile_dir / "containerd.sock"
        if containerd_socket.exists():
            return self._platform(
                PlatformType.COLIMA, containerd_socket, f"Colima containerd (profile: {profile})", profile
            )
        return None

    def _probe_podman(self) -> Platform | None:
        uid = os.getuid() if hasattr(os, "getuid") else 1000
        candidates = [
            self.home / ".local" / "share" / "containers" / "podman" / "machine" / "podman.sock",
            self.root / "run" / "podman" / "podman.sock",
            self.root / "run" / "user" / str(uid) / "podman" / "podman.sock",
        ]
        for socket in candidates:
            if socket.exists():
                return self._platform(PlatformType.PODMAN, socket, "Podman")
        # macOS podman machine API socket lives under the per-user temp dir.
        pattern = str(self.root / "var" / "folders" / "*" / "*" / "T" / "podman" / "podman-machine-default-api.sock")
        matches = sorted(glob.glob(pattern))
        if matches:
            return self._platform(PlatformType.PODMAN, Path(matches[0]), "Podman")
        return None

    def _probe_docker_desktop(self) -> Platform | None:
        socket = self.home / ".docker" / "run" / "docker.sock"
        if socket.exists():
            return self._platform(PlatformType.DOCKER_DESKTOP, socket, "Docker Desktop")
        target = self._system_socket_target()
        if target is not None and ".docker" in target and self.system_socket.exists():
            return self._platform(PlatformType.DOCKER_DESKTOP, self.system_socket, "Docker Desktop")
        return None

    def _probe_linux_native(self) -> Platform | None:
        """A plain daemon socket that is not a symlink into another platform's directory."""
        if not self.system_socket.exists():
            return None
        target = self._system_socket_target()
        if target is not None and any(marker in target for marker in _DIR_MARKERS.values()):
            return None
        return self._platform(PlatformType.LINUX_NATIVE, self.system_socket, "Docker (native)")
