"""Unit tests for container platform detection.

Every test builds a fake host under ``tmp_path``: a ``home`` directory and a
filesystem ``root``.  Sockets are plain files; detection only checks that
they exist.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dvm.core.errors import NoPlatformDetectedError
from dvm.core.models.enums import PlatformType
from dvm.core.runtime import PlatformDetector, create_runtime
from dvm.core.runtime.docker_runtime import DockerRuntime
from dvm.core.runtime.nerdctl import NerdctlRuntime
from dvm.core.settings import DvmSettings


class FakeHost:
    def __init__(self, base: Path) -> None:
        self.home = base / "home"
        self.root = base / "root"
        self.home.mkdir()
        self.root.mkdir()
        self.environ: dict[str, str] = {}

    def touch(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
        return path

    def orbstack(self) -> Path:
        return self.touch(self.home / ".orbstack" / "run" / "docker.sock")

    def colima(self, profile: str = "default", sock: str = "docker.sock") -> Path:
        return self.touch(self.home / ".colima" / profile / sock)

    def docker_desktop(self) -> Path:
        return self.touch(self.home / ".docker" / "run" / "docker.sock")

    def system_socket(self, target: Path | None = None) -> Path:
        path = self.root / "var" / "run" / "docker.sock"
        if target is None:
            return self.touch(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.symlink_to(target)
        return path

    def docker_context(self, name: str) -> None:
        config = self.home / ".docker" / "config.json"
        config.parent.mkdir(parents=True, exist_ok=True)
        config.write_text(json.dumps({"currentContext": name}))

    def detector(self, forced: str | None = None) -> PlatformDetector:
        return PlatformDetector(home=self.home, root=self.root, environ=self.environ, forced=forced)


@pytest.fixture
def host(tmp_path: Path) -> FakeHost:
    return FakeHost(tmp_path)


# ---------------------------------------------------------------------------
# detect_all
# ---------------------------------------------------------------------------


def test_nothing_installed(host: FakeHost) -> None:
    detector = host.detector()

    assert detector.detect_all() == []
    with pytest.raises(NoPlatformDetectedError) as excinfo:
        detector.detect()
    assert "OrbStack" in excinfo.value.hint


def test_detect_all_in_priority_order(host: FakeHost) -> None:
    host.docker_desktop()
    host.colima()
    host.orbstack()

    types = [p.type for p in host.detector().detect_all()]

    assert types == [PlatformType.ORBSTACK, PlatformType.COLIMA, PlatformType.DOCKER_DESKTOP]


def test_podman_rootful_socket(host: FakeHost) -> None:
    sock = host.touch(host.root / "run" / "podman" / "podman.sock")

    platform = host.detector().detect()

    assert platform.type is PlatformType.PODMAN
    assert platform.socket_path == sock


def test_colima_profile_from_environment(host: FakeHost) -> None:
    host.colima(profile="work")
    host.environ["COLIMA_ACTIVE_PROFILE"] = "work"

    platform = host.detector().detect()

    assert platform.profile == "work"
    assert platform.name == "Colima (profile: work)"
    assert "--profile work" in platform.start_hint()


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def test_priority_breaks_ties_without_self_report(host: FakeHost) -> None:
    host.orbstack()
    host.colima()

    assert host.detector().detect().type is PlatformType.ORBSTACK


def test_docker_host_selects_platform(host: FakeHost) -> None:
    host.orbstack()
    colima_sock = host.colima()
    host.environ["DOCKER_HOST"] = f"unix://{colima_sock}"

    platforms = host.detector().detect_all()
    chosen = host.detector().detect()

    assert [p.is_active for p in platforms] == [False, True]
    assert chosen.type is PlatformType.COLIMA


def test_docker_cli_context_selects_platform(host: FakeHost) -> None:
    host.orbstack()
    host.docker_desktop()
    host.docker_context("desktop-linux")

    assert host.detector().detect().type is PlatformType.DOCKER_DESKTOP



@pytest.mark.parametrize("context", ["default", "my-remote"])
def test_generic_docker_context_defers_to_system_socket(host: FakeHost, context: str) -> None:
    host.orbstack()
    host.system_socket(target=host.docker_desktop())
    host.docker_context(context)

    platforms = {p.type: p for p in host.detector().detect_all()}

    assert platforms[PlatformType.DOCKER_DESKTOP].is_active is True
    assert platforms[PlatformType.ORBSTACK].is_active is False
    assert host.detector().detect().type is PlatformType.DOCKER_DESKTOP


def test_system_socket_symlink_marks_platform_active(host: FakeHost) -> None:
    host.orbstack()
    desktop_sock = host.docker_desktop()
    host.system_socket(target=desktop_sock)

    platforms = {p.type: p for p in host.detector().detect_all()}

    assert platforms[PlatformType.DOCKER_DESKTOP].is_active is True
    assert platforms[PlatformType.ORBSTACK].is_active is False
    # A symlink into another platform's directory is not a native daemon.
    assert PlatformType.LINUX_NATIVE not in platforms
    assert host.detector().detect().type is PlatformType.DOCKER_DESKTOP


def test_plain_system_socket_is_linux_native(host: FakeHost) -> None:
    host.system_socket()

    platform = host.detector().detect()

    assert platform.type is PlatformType.LINUX_NATIVE
    assert platform.docker_host == f"unix://{host.root / 'var' / 'run' / 'docker.sock'}"


def test_orbstack_found_through_system_socket(host: FakeHost) -> None:
    (host.home / ".orbstack").mkdir()
    real = host.touch(host.home / "Library" / "Group Containers" / "orbstack" / "docker.sock")
    host.system_socket(target=real)

    platform = host.detector().detect()

    assert platform.type is PlatformType.ORBSTACK
    assert platform.socket_path == host.root / "var" / "run" / "docker.sock"


# ---------------------------------------------------------------------------
# Forced platform
# ---------------------------------------------------------------------------


def test_forced_platform_wins_over_priority(host: FakeHost) -> None:
    host.orbstack()
    host.docker_desktop()

    assert host.detector(forced="docker").detect().type is PlatformType.DOCKER_DESKTOP


def test_forced_platform_missing(host: FakeHost) -> None:
    host.orbstack()

    with pytest.raises(NoPlatformDetectedError, match="podman is not available"):
        host.detector(forced="podman").detect()


def test_forced_platform_unknown(host: FakeHost) -> None:
    with pytest.raises(NoPlatformDetectedError, match="unknown platform type: lxc"):
        host.detector(forced="lxc").detect()


def test_forced_auto_means_autodetect(host: FakeHost) -> None:
    host.colima()
    assert host.detector(forced="auto").detect().type is PlatformType.COLIMA


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


def test_colima_containerd_is_not_docker_compatible(host: FakeHost) -> None:
    host.colima(sock="containerd.sock")

    platform = host.detector().detect()

    assert platform.is_containerd is True
    assert platform.is_docker_compatible is False
    assert isinstance(create_runtime(platform, DvmSettings()), NerdctlRuntime)


@pytest.mark.parametrize("make", ["orbstack", "colima", "docker_desktop", "system_socket"])
def test_docker_api_platforms_get_docker_runtime(host: FakeHost, make: str) -> None:
    getattr(host, make)()

    platform = host.detector().detect()
    runtime = create_runtime(platform, DvmSettings(container_prefix="ws"))

    assert platform.is_docker_compatible is True
    assert platform.is_containerd is False
    assert isinstance(runtime, DockerRuntime)
    assert runtime.runtime_type == "docker"
    assert runtime.prefix == "ws"
