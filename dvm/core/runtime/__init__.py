"""Container platform detection and uniform workspace lifecycle operations."""

from dvm.core.runtime.base import (
    CONTAINER_PREFIX,
    LABEL_MANAGED,
    ContainerRuntime,
    StartOptions,
    StopAllResult,
    WorkspaceInfo,
    container_name,
)
from dvm.core.runtime.factory import create_runtime, detect_runtime
from dvm.core.runtime.platform import PRIORITY, Platform, PlatformDetector
from dvm.core.runtime.status import normalize_status

__all__ = [
    "CONTAINER_PREFIX",
    "LABEL_MANAGED",
    "PRIORITY",
    "ContainerRuntime",
    "Platform",
    "PlatformDetector",
    "StartOptions",
    "StopAllResult",
    "WorkspaceInfo",
    "container_name",
    "create_runtime",
    "detect_runtime",
    "normalize_status",
]
