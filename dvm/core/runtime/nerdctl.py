"""containerd runtime driven through the ``nerdctl`` CLI.

On Colima the containerd socket lives inside the VM, so every command is
wrapped in ``colima --profile <p> ssh -- sh -c 'sudo nerdctl ...'``.
Elsewhere ``nerdctl`` is invoked directly against the platform socket.
All containers live in the ``devopsmaestro`` namespace.
"""

from __future__ import annotations

import json
import shlex
import subprocess
import threading
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from dvm.core.errors import RuntimeCommunicationError
from dvm.core.models.enums import PlatformType
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

NAMESPACE = "devopsmaestro"

_MISSING_MARKERS = ("no such", "not found")


def _parse_labels(raw: object) -> dict[str, str]:
    """``nerdctl ps`` prints labels as ``k=v,k=v``; ``inspect`` gives a mapping."""
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    if not raw:
        return {}
    labels = {}
    for pair in str(raw).split(","):
        key, _, value = pair.partition("=")
        if key:
            labels[key] = value
    return labels


class NerdctlRuntime:
    def __init__(
        self,
        platform: Platform,
        *,
        timeout: float = 30.0,
        stop_timeout: int = 10,
        prefix: str = CONTAINER_PREFIX,
        namespace: str = NAMESPACE,
        home: Path | None = None,
    ) -> None:
        self.platform = platform
        self.timeout = timeout
        self.stop_timeout = stop_timeout
        self.prefix = prefix
        self.namespace = namespace
        self.home = home

    @property
    def runtime_type(self) -> str:
        return "containerd"

    @property
    def platform_name(self) -> str:
        return self.platform.name

    # -- Command plumbing ------------------------------------------------------

    def command(self, args: Sequence[str]) -> list[str]:
        """Full argv for ``nerdctl <args>`` on this platform."""
        if self.platform.type is PlatformType.COLIMA:
            inner = shlex.join(["sudo", "nerdctl", "--namespace", self.namespace, *args])
            return ["colima", "--profile", self.platform.profile or "default", "ssh", "--", "sh", "-c", inner]
        return ["nerdctl", "--address", str(self.platform.socket_path), "--namespace", self.namespace, *args]

    def _run(self, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        argv = self.command(args)
        logger.debug("Running {}", shlex.join(argv))
        try:
            return subprocess.run(argv, capture_output=True, text=True, timeout=self.timeout, check=False)
        except FileNotFoundError as exc:
            raise RuntimeCommunicationError(f"{argv[0]} not found on PATH", hint=self.platform.start_hint()) from exc
        except subprocess.TimeoutExpired as exc:
            raise RuntimeCommunicationError(
                f"nerdctl {args[0]} timed out after {self.timeout:g}s", hint=self.platform.start_hint()
            ) from exc

    def _check(self, args: Sequence[str]) -> str:
        proc = self._run(args)
        if proc.returncode != 0:
            msg = f"nerdctl {args[0]} failed: {proc.stderr.strip() or proc.stdout.strip()}"
            raise RuntimeCommunicationError(msg, hint=self.platform.start_hint())
        return proc.stdout

    def _inspect(self, name: str) -> dict | None:
        proc = self._run(["inspect", name])
        if proc.returncode != 0:
            if any(marker in proc.stderr.lower() for marker in _MISSING_MARKERS):
                return None
            msg = f"nerdctl inspect failed: {proc.stderr.strip()}"
            raise RuntimeCommunicationError(msg, hint=self.platform.start_hint())
        try:
            data = json.loads(proc.stdout or "[]")
        except ValueError as exc:
            raise RuntimeCommunicationError(f"unreadable nerdctl inspect output: {exc}") from exc
        return data[0] if data else None

    # -- Lifecycle -------------------------------------------------------------

    def start_workspace(self, opts: StartOptions) -> str:
        """Start the workspace container, creating or recreating it as needed.

        Returns the container name, which nerdctl accepts wherever an id is expected.
        """
        name = opts.resolved_name(self.prefix)
        existing = self._inspect(name)
        if existing is not None:
            labels = _parse_labels(existing.get("Config", {}).get("Labels"))
            if labels.get(LABEL_IMAGE) == opts.image_name:
                status = existing.get("State", {}).get("Status", "")
                if is_running(status):
                    return name
                if self._run(["start", name]).returncode == 0:
                    logger.info("Started existing container {}", name)
                    return name
                logger.warning("Restart of {} failed, recreating", name)
            else:
                logger.info("Image changed for {}, recreating", name)
            self._run(["rm", "-f", name])

        args = ["run", "-d", "--name", name, "-w", opts.working_dir]
        for bind in workspace_binds(opts, self.home):
            args += ["-v", bind]
        for key, value in opts.resolved_env().items():
            args += ["-e", f"{key}={value}"]
        for key, value in managed_labels(opts.app_name, opts.workspace_name, opts.image_name).items():
            args += ["--label", f"{key}={value}"]
        args += [opts.image_name, *opts.resolved_command()]
        self._check(args)
        logger.info("Created container {}", name)
        return name

    def stop_workspace(self, name: str) -> None:
        """Stop *name*.  Missing and already-stopped containers are a no-op."""
        info = self.find_workspace(name)
        if info is None or is_stopped(info.status):
            logger.debug("Container {} not found or already stopped, nothing to stop", name)
            return
        self._check(["stop", "-t", str(self.stop_timeout), name])
        logger.info("Stopped container {}", name)

    def attach(self, name: str, shell: str = DEFAULT_SHELL) -> int:
        argv = self.command(["exec", "-it", name, shell])
        try:
            return subprocess.run(argv, check=False).returncode
        except FileNotFoundError as exc:
            raise RuntimeCommunicationError(f"{argv[0]} not found on PATH", hint=self.platform.start_hint()) from exc

    # -- Queries ---------------------------------------------------------------

    def find_workspace(self, name: str) -> WorkspaceInfo | None:
        data = self._inspect(name)
        if data is None:
            return None
        config = data.get("Config", {})
        labels = _parse_labels(config.get("Labels"))
        return WorkspaceInfo(
            id=str(data.get("Id", ""))[:12],
            name=str(data.get("Name", name)).lstrip("/"),
            status=data.get("State", {}).get("Status", ""),
            image=labels.get(LABEL_IMAGE) or config.get("Image", ""),
            app=labels.get(LABEL_APP, ""),
            workspace=labels.get(LABEL_WORKSPACE, ""),
            labels=labels,
        )

    def _ps(self, *, all_: bool) -> list[WorkspaceInfo]:
        args = ["ps", "--format", "{{json .}}", "--no-trunc"]
        if all_:
            args.append("-a")
        infos = []
        for line in self._check(args).splitlines():
            if not line.strip():
                continue
            try:
                row = json.loads(line)
            except ValueError:
                logger.warning("Skipping unreadable nerdctl ps line: {}", line)
                continue
            labels = _parse_labels(row.get("Labels"))
            infos.append(
                WorkspaceInfo(
                    id=str(row.get("ID", ""))[:12],
                    name=str(row.get("Names", "")),
                    status=str(row.get("Status", "")),
                    image=str(row.get("Image", "")),
                    app=labels.get(LABEL_APP, ""),
                    workspace=labels.get(LABEL_WORKSPACE, ""),
                    labels=labels,
                )
            )
        return infos

    def list_workspaces(self) -> list[WorkspaceInfo]:
        return [info for info in self._ps(all_=True) if info.labels.get(LABEL_MANAGED) == "true"]

    def stop_all_workspaces(self, cancel: threading.Event | None = None) -> StopAllResult:
        targets = [
            info.name
            for info in self._ps(all_=False)
            if is_running(info.status) and is_managed(info.name, info.labels, self.prefix)
        ]
        logger.debug("Stopping {} managed container(s)", len(targets))
        return stop_each(targets, self._stop_running, cancel)

    def _stop_running(self, name: str) -> None:
        self._check(["stop", "-t", str(self.stop_timeout), name])
