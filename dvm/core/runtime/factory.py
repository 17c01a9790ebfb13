"""Pick a runtime for a detected platform by capability."""

from __future__ import annotations

from dvm.core.errors import NoPlatformDetectedError
from dvm.core.runtime.base import ContainerRuntime
from dvm.core.runtime.docker_runtime import DockerRuntime
from dvm.core.runtime.nerdctl import NerdctlRuntime
from dvm.core.runtime.platform import Platform, PlatformDetector
from dvm.core.settings import DvmSettings, get_settings


def create_runtime(platform: Platform, settings: DvmSettings | None = None) -> ContainerRuntime:
    """Docker-API platforms get ``DockerRuntime``; containerd-only ones get ``NerdctlRuntime``."""
    settings = settings or get_settings()
    options = {
        "timeout": settings.runtime_timeout,
        "stop_timeout": settings.stop_timeout,
        "prefix": settings.container_prefix,
    }
    if platform.is_docker_compatible:
        return DockerRuntime(platform, **options)
    if platform.is_containerd:
        return NerdctlRuntime(platform, **options)
    raise NoPlatformDetectedError(f"{platform.name} supports neither the Docker API nor containerd")


def detect_runtime(settings: DvmSettings | None = None) -> ContainerRuntime:
    """Detect the active platform (honouring ``DVM_PLATFORM``) and build its runtime."""
    settings = settings or get_settings()
    platform = PlatformDetector(forced=settings.platform).detect()
    return create_runtime(platform, settings)
