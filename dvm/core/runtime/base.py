"""Runtime-neutral container types and naming.

A workspace's container is named ``<prefix>-<app>-<workspace>`` and carries
the ``io.devopsmaestro.*`` labels; those two conventions are the only handle
any runtime needs to find it again.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from loguru import logger

from dvm.core.errors import RuntimeCommunicationError
from dvm.core.models.enums import ContainerState
from dvm.core.runtime.status import normalize_status

CONTAINER_PREFIX = "dvm"
LABEL_MANAGED = "io.devopsmaestro.managed"
LABEL_NAMESPACE = "io.devopsmaestro.namespace"
LABEL_APP = "io.devopsmaestro.app"
LABEL_WORKSPACE = "io.devopsmaestro.workspace"
LABEL_IMAGE = "io.devopsmaestro.image"

DEFAULT_WORKING_DIR = "/workspace"
KEEP_ALIVE_COMMAND = ("/bin/sleep", "infinity")
DEFAULT_SHELL = "/bin/zsh"


def container_name(app: str, workspace: str, prefix: str = CONTAINER_PREFIX) -> str:
    return f"{prefix}-{app}-{workspace}"


def is_managed(name: str, labels: Mapping[str, str] | None = None, prefix: str = CONTAINER_PREFIX) -> bool:
    """A container is ours if it carries the managed label or follows the naming convention."""
    if labels and labels.get(LABEL_MANAGED) == "true":
        return True
    return name.lstrip("/").startswith(f"{prefix}-")


def managed_labels(app: str, workspace: str, image: str) -> dict[str, str]:
    return {
        LABEL_MANAGED: "true",
        LABEL_NAMESPACE: "devopsmaestro",
        LABEL_APP: app,
        LABEL_WORKSPACE: workspace,
        LABEL_IMAGE: image,
    }


@dataclass
class StartOptions:
    """What a runtime needs to create or restart a workspace container."""

    image_name: str
    workspace_name: str
    app_name: str
    app_path: str = ""
    container_name: str | None = None
    """Defaults to ``container_name(app_name, workspace_name)``."""
    working_dir: str = DEFAULT_WORKING_DIR
    command: list[str] = field(default_factory=list)
    """Defaults to a keep-alive command so the container stays up for ``attach``."""
    env: dict[str, str] = field(default_factory=dict)

    def resolved_name(self, prefix: str = CONTAINER_PREFIX) -> str:
        return self.container_name or container_name(self.app_name, self.workspace_name, prefix)

    def resolved_command(self) -> list[str]:
        return list(self.command) if self.command else list(KEEP_ALIVE_COMMAND)

    def resolved_env(self) -> dict[str, str]:
        env = dict(self.env)
        env["DVM_APP"] = self.app_name
        env["DVM_WORKSPACE"] = self.workspace_name
        return env


@dataclass
class WorkspaceInfo:
    """A managed container as reported by the platform."""

    id: str
    name: str
    status: str
    image: str = ""
    app: str = ""
    workspace: str = ""
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def state(self) -> ContainerState:
        return normalize_status(self.status)


@dataclass
class StopAllResult:
    """Outcome of a bulk stop: nothing aborts the loop, everything is reported."""

    stopped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    """Container name -> error message."""
    skipped: list[str] = field(default_factory=list)
    """Containers not attempted because the operation was cancelled."""

    @property
    def count(self) -> int:
        return len(self.stopped)


def workspace_binds(opts: StartOptions, home: Path | None = None) -> list[str]:
    """Bind mounts for a new container: the app source, plus ``~/.ssh`` read-only if present."""
    binds = []
    if opts.app_path:
        binds.append(f"{opts.app_path}:{DEFAULT_WORKING_DIR}")
    ssh_dir = (home or Path.home()) / ".ssh"
    if ssh_dir.is_dir():
        binds.append(f"{ssh_dir}:/home/dev/.ssh:ro")
    return binds


def stop_each(
    names: Iterable[str],
    stop: Callable[[str], None],
    cancel: threading.Event | None = None,
) -> StopAllResult:
    """Stop *names* one by one, recording failures instead of aborting.

    Once *cancel* is set, the remaining names are reported as skipped; a stop
    already issued always runs to completion.
    """
    result = StopAllResult()
    for name in names:
        if cancel is not None and cancel.is_set():
            result.skipped.append(name)
            continue
        try:
            stop(name)
        except RuntimeCommunicationError as exc:
            logger.warning("Failed to stop {}: {}", name, exc)
            result.failed[name] = str(exc)
            continue
        result.stopped.append(name)
    if result.skipped:
        logger.info("Stop cancelled, {} container(s) left running", len(result.skipped))
    return result


@runtime_checkable
class ContainerRuntime(Protocol):
    """Uniform lifecycle operations over one detected platform."""

    @property
    def runtime_type(self) -> str: ...

    @property
    def platform_name(self) -> str: ...

    def start_workspace(self, opts: StartOptions) -> str: ...

    def stop_workspace(self, name: str) -> None: ...

    def attach(self, name: str, shell: str = DEFAULT_SHELL) -> int: ...

    def find_workspace(self, name: str) -> WorkspaceInfo | None: ...

    def list_workspaces(self) -> list[WorkspaceInfo]: ...

    def stop_all_workspaces(self, cancel: threading.Event | None = None) -> StopAllResult: ...
