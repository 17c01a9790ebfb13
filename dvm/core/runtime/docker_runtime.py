"""Docker-API runtime (OrbStack, Colima docker mode, Docker Desktop, Podman, native Docker).

Talks to the platform's socket through the docker SDK.  Interactive attach
shells out to the ``docker`` CLI, which owns TTY handling far better than
a raw exec stream can.
"""

from __future__ import annotations

import os
import subprocess
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import docker
from docker.errors import DockerException, NotFound
from docker.models.containers import Container
from loguru import logger

from dvm.core.errors import RuntimeCommunicationError
from dvm.core.runtime.base import (
    CONTAINER_PREFIX,
    DEFAULT_SHELL,
    LABEL_APP,
    LABEL_IMAGE,
    LABEL_MANAGED,
    LABEL_WORKSPACE,
    StartOptions,
    StopAllResult,
    WorkspaceInfo,
    is_managed,
    managed_labels,
    stop_each,
    workspace_binds,
)
from dvm.core.runtime.platform import Platform
from dvm.core.runtime.status import is_running, is_stopped


@contextmanager
def _communication(action: str, platform: Platform) -> Iterator[None]:
    """Translate SDK and transport failures into ``RuntimeCommunicationError``.

    requests' connection and timeout errors derive from ``OSError``.
    """
    try:
        yield
    except (DockerException, OSError) as exc:
        raise RuntimeCommunicationError(f"failed to {action}: {exc}", hint=platform.start_hint()) from exc


def _info(container: Container) -> WorkspaceInfo:
    labels = container.labels or {}
    return WorkspaceInfo(
        id=container.short_id,
        name=container.name,
        status=container.status,
        image=container.attrs.get("Config", {}).get("Image", ""),
        app=labels.get(LABEL_APP, ""),
        workspace=labels.get(LABEL_WORKSPACE, ""),
        labels=dict(labels),
    )


class DockerRuntime:
    def __init__(
        self,
        platform: Platform,
        *,
        timeout: float = 30.0,
        stop_timeout: int = 10,
        prefix: str = CONTAINER_PREFIX,
        client: Any = None,
        home: Path | None = None,
    ) -> None:
        self.platform = platform
        self.timeout = timeout
        self.stop_timeout = stop_timeout
        self.prefix = prefix
        self.home = home
        self._client = client

    @property
    def runtime_type(self) -> str:
        return "docker"

    @property
    def platform_name(self) -> str:
        return self.platform.name

    @property
    def client(self) -> Any:
        """The SDK client, created on first use (creation already talks to the daemon)."""
        if self._client is None:
            with _communication(f"connect to {self.platform.name}", self.platform):
                self._client = docker.DockerClient(base_url=self.platform.docker_host, timeout=self.timeout)
        return self._client

    def _get(self, name: str) -> Container | None:
        with _communication(f"inspect container {name}", self.platform):
            try:
                return self.client.containers.get(name)
            except NotFound:
                return None

    # -- Lifecycle -------------------------------------------------------------

    def start_workspace(self, opts: StartOptions) -> str:
        """Start the workspace container, creating or recreating it as needed.

        An existing container built from a different image is replaced; a
        stopped one with the right image is restarted.  Returns the short id.
        """
        name = opts.resolved_name(self.prefix)
        existing = self._get(name)

        with _communication(f"start container {name}", self.platform):
            if existing is not None:
                existing_image = existing.labels.get(LABEL_IMAGE) or existing.attrs.get("Config", {}).get("Image")
                if existing_image == opts.image_name:
                    if not is_running(existing.status):
                        logger.info("Starting existing container {}", name)
                        existing.start()
                    return existing.short_id
                logger.info("Image changed for {}: {} -> {}, recreating", name, existing_image, opts.image_name)
                if not is_stopped(existing.status):
                    existing.stop(timeout=self.stop_timeout)
                existing.remove()

            container = self.client.containers.run(
                opts.image_name,
                opts.resolved_command(),
                name=name,
                detach=True,
                tty=True,
                stdin_open=True,
                working_dir=opts.working_dir,
                environment=opts.resolved_env(),
                labels=managed_labels(opts.app_name, opts.workspace_name, opts.image_name),
                volumes=workspace_binds(opts, self.home),
            )
            logger.info("Created container {} ({})", name, container.short_id)
            return container.short_id

    def stop_workspace(self, name: str) -> None:
        """Stop *name*.  Missing and already-stopped containers are a no-op."""
        container = self._get(name)
        if container is None:
            logger.debug("Container {} not found, nothing to stop", name)
            return
        if is_stopped(container.status):
            logger.debug("Container {} already {}", name, container.status)
            return
        with _communication(f"stop container {name}", self.platform):
            container.stop(timeout=self.stop_timeout)
        logger.info("Stopped container {}", name)

    def attach(self, name: str, shell: str = DEFAULT_SHELL) -> int:
        """Run an interactive shell in *name*; returns the shell's exit code."""
        env = {**os.environ, "DOCKER_HOST": self.platform.docker_host}
        try:
            return subprocess.run(["docker", "exec", "-it", name, shell], env=env, check=False).returncode
        except FileNotFoundError as exc:
            raise RuntimeCommunicationError(
                "docker CLI not found on PATH", hint="install the docker CLI to attach to workspaces"
            ) from exc

    # -- Queries ---------------------------------------------------------------

    def find_workspace(self, name: str) -> WorkspaceInfo | None:
        container = self._get(name)
        return _info(container) if container is not None else None

    def list_workspaces(self) -> list[WorkspaceInfo]:
        with _communication("list containers", self.platform):
            containers = self.client.containers.list(all=True, filters={"label": f"{LABEL_MANAGED}=true"})
        return [_info(container) for container in containers]

    def stop_all_workspaces(self, cancel: threading.Event | None = None) -> StopAllResult:
        """Stop every running managed container, continuing past per-container failures."""
        with _communication("list containers", self.platform):
            running = self.client.containers.list()
        targets = [c.name for c in running if is_managed(c.name, c.labels, self.prefix)]
        logger.debug("Stopping {} managed container(s)", len(targets))
        return stop_each(targets, self._stop_running, cancel)

    def _stop_running(self, name: str) -> None:
        container = self._get(name)
        if container is None:
            return
        with _communication(f"stop container {name}", self.platform):
            container.stop(timeout=self.stop_timeout)
