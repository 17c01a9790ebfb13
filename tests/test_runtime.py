"""Unit tests for the container runtimes.

The docker SDK client and ``subprocess.run`` are replaced with in-memory
fakes; nothing here talks to a real platform.
"""

from __future__ import annotations

import json
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from docker.errors import APIError, NotFound

from dvm.core.errors import RuntimeCommunicationError
from dvm.core.models.enums import ContainerState, PlatformType
from dvm.core.runtime import StartOptions, container_name
from dvm.core.runtime.base import LABEL_IMAGE, LABEL_MANAGED, is_managed, stop_each
from dvm.core.runtime.docker_runtime import DockerRuntime
from dvm.core.runtime.nerdctl import NerdctlRuntime
from dvm.core.runtime.platform import Platform

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


@dataclass
class FakeContainer:
    name: str
    status: str = "running"
    labels: dict[str, str] = field(default_factory=dict)
    image: str = "ubuntu:24.04"
    fail_stop: bool = False
    calls: list[str] = field(default_factory=list)

    @property
    def short_id(self) -> str:
        return f"id-{self.name}"

    @property
    def attrs(self) -> dict[str, Any]:
        return {"Config": {"Image": self.image}}

    def start(self) -> None:
        self.calls.append("start")
        self.status = "running"

    def stop(self, timeout: int = 10) -> None:
        self.calls.append("stop")
        if self.fail_stop:
            raise APIError("daemon refused")
        self.status = "exited"

    def remove(self) -> None:
        self.calls.append("remove")


class FakeContainers:
    def __init__(self, *containers: FakeContainer) -> None:
        self.by_name = {c.name: c for c in containers}
        self.run_kwargs: list[dict[str, Any]] = []
        self.list_error: Exception | None = None

    def get(self, name: str) -> FakeContainer:
        try:
            return self.by_name[name]
        except KeyError:
            raise NotFound(f"No such container: {name}") from None

    def list(self, all: bool = False, filters: dict | None = None) -> list[FakeContainer]:  # noqa: A002
        if self.list_error is not None:
            raise self.list_error
        found = [c for c in self.by_name.values() if all or c.status == "running"]
        if filters and "label" in filters:
            key, _, value = filters["label"].partition("=")
            found = [c for c in found if c.labels.get(key) == value]
        return found

    def run(self, image: str, command: list[str], **kwargs: Any) -> FakeContainer:
        self.run_kwargs.append({"image": image, "command": command, **kwargs})
        container = FakeContainer(name=kwargs["name"], labels=kwargs["labels"], image=image)
        self.by_name[container.name] = container
        return container


class FakeClient:
    def __init__(self, *containers: FakeContainer) -> None:
        self.containers = FakeContainers(*containers)


def _platform(
    tmp_path: Path, platform_type: PlatformType = PlatformType.ORBSTACK, sock: str = "docker.sock"
) -> Platform:
    return Platform(type=platform_type, socket_path=tmp_path / sock, name=platform_type.value, profile="default")


def _docker(tmp_path: Path, *containers: FakeContainer) -> tuple[DockerRuntime, FakeContainers]:
    client = FakeClient(*containers)
    runtime = DockerRuntime(_platform(tmp_path), client=client, home=tmp_path / "home")
    return runtime, client.containers


OPTS = StartOptions(image_name="dvm-dev-api:20250101", workspace_name="dev", app_name="api", app_path="/src/api")


# ---------------------------------------------------------------------------
# Naming and helpers
# ---------------------------------------------------------------------------


def test_container_name_and_ownership() -> None:
    assert container_name("api", "dev") == "dvm-api-dev"
    assert is_managed("dvm-api-dev") is True
    assert is_managed("/dvm-api-dev") is True
    assert is_managed("postgres", {LABEL_MANAGED: "true"}) is True
    assert is_managed("postgres") is False


def test_start_options_defaults() -> None:
    assert OPTS.resolved_name() == "dvm-api-dev"
    assert OPTS.resolved_command() == ["/bin/sleep", "infinity"]
    assert OPTS.resolved_env() == {"DVM_APP": "api", "DVM_WORKSPACE": "dev"}


def test_stop_each_honours_cancel() -> None:
    cancel = threading.Event()
    stopped: list[str] = []

    def stop(name: str) -> None:
        stopped.append(name)
        cancel.set()

    result = stop_each(["a", "b", "c"], stop, cancel)

    assert result.stopped == ["a"]
    assert result.skipped == ["b", "c"]
    assert stopped == ["a"]


# ---------------------------------------------------------------------------
# DockerRuntime
# ---------------------------------------------------------------------------


def test_start_creates_labelled_container(tmp_path: Path) -> None:
    (tmp_path / "home" / ".ssh").mkdir(parents=True)
    runtime, containers = _docker(tmp_path)

    runtime.start_workspace(OPTS)

    (kwargs,) = containers.run_kwargs
    assert kwargs["name"] == "dvm-api-dev"
    assert kwargs["command"] == ["/bin/sleep", "infinity"]
    assert kwargs["working_dir"] == "/workspace"
    assert kwargs["labels"][LABEL_IMAGE] == "dvm-dev-api:20250101"
    assert kwargs["labels"][LABEL_MANAGED] == "true"
    assert kwargs["volumes"] == [
        "/src/api:/workspace",
        f"{tmp_path / 'home' / '.ssh'}:/home/dev/.ssh:ro",
    ]


def test_start_restarts_stopped_container_with_same_image(tmp_path: Path) -> None:
    existing = FakeContainer("dvm-api-dev", status="exited", labels={LABEL_IMAGE: OPTS.image_name})
    runtime, containers = _docker(tmp_path, existing)

    assert runtime.start_workspace(OPTS) == "id-dvm-api-dev"

    assert existing.calls == ["start"]
    assert containers.run_kwargs == []


def test_start_recreates_container_when_image_changed(tmp_path: Path) -> None:
    existing = FakeContainer("dvm-api-dev", status="running", labels={LABEL_IMAGE: "dvm-dev-api:old"})
    runtime, containers = _docker(tmp_path, existing)

    runtime.start_workspace(OPTS)

    assert existing.calls == ["stop", "remove"]
    assert containers.run_kwargs[0]["image"] == OPTS.image_name


def test_stop_is_idempotent(tmp_path: Path) -> None:
    container = FakeContainer("dvm-api-dev")
    runtime, _ = _docker(tmp_path, container)

    runtime.stop_workspace("dvm-api-dev")
    runtime.stop_workspace("dvm-api-dev")
    runtime.stop_workspace("dvm-api-missing")

    assert container.calls == ["stop"]
    info = runtime.find_workspace("dvm-api-dev")
    assert info is not None
    assert info.state is ContainerState.STOPPED


@pytest.mark.parametrize("status", ["restarting", "paused"])
def test_stop_issued_for_containers_not_yet_stopped(tmp_path: Path, status: str) -> None:
    container = FakeContainer("dvm-api-dev", status=status)
    runtime, _ = _docker(tmp_path, container)

    runtime.stop_workspace("dvm-api-dev")

    assert container.calls == ["stop"]


def test_client_keeps_fractional_timeout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    created: dict[str, Any] = {}

    def fake_client(**kwargs: Any) -> FakeClient:
        created.update(kwargs)
        return FakeClient()

    monkeypatch.setattr("dvm.core.runtime.docker_runtime.docker.DockerClient", fake_client)
    runtime = DockerRuntime(_platform(tmp_path), timeout=0.5)

    assert isinstance(runtime.client, FakeClient)
    assert created["timeout"] == 0.5


def test_stop_all_continues_past_failures(tmp_path: Path) -> None:
    ok = FakeContainer("dvm-api-dev")
    broken = FakeContainer("dvm-api-ci", fail_stop=True)
    labelled = FakeContainer("legacy", labels={LABEL_MANAGED: "true"})
    foreign = FakeContainer("postgres")
    stopped_already = FakeContainer("dvm-web-dev", status="exited")
    runtime, _ = _docker(tmp_path, ok, broken, labelled, foreign, stopped_already)

    result = runtime.stop_all_workspaces()

    assert result.stopped == ["dvm-api-dev", "legacy"]
    assert list(result.failed) == ["dvm-api-ci"]
    assert "daemon refused" in result.failed["dvm-api-ci"]
    assert result.count == 2
    assert foreign.calls == []
    assert stopped_already.calls == []


def test_stop_all_cancelled_before_start(tmp_path: Path) -> None:
    container = FakeContainer("dvm-api-dev")
    runtime, _ = _docker(tmp_path, container)
    cancel = threading.Event()
    cancel.set()

    result = runtime.stop_all_workspaces(cancel)

    assert result.stopped == []
    assert result.skipped == ["dvm-api-dev"]
    assert container.calls == []


def test_list_workspaces_filters_on_label(tmp_path: Path) -> None:
    runtime, _ = _docker(
        tmp_path,
        FakeContainer("dvm-api-dev", status="exited", labels={LABEL_MANAGED: "true", "io.devopsmaestro.app": "api"}),
        FakeContainer("postgres"),
    )

    infos = runtime.list_workspaces()

    assert [(i.name, i.app, i.state) for i in infos] == [("dvm-api-dev", "api", ContainerState.STOPPED)]


def test_platform_errors_become_communication_errors(tmp_path: Path) -> None:
    runtime, containers = _docker(tmp_path)
    containers.list_error = ConnectionError("socket closed")

    with pytest.raises(RuntimeCommunicationError, match="failed to list containers") as excinfo:
        runtime.list_workspaces()
    assert excinfo.value.hint == "start OrbStack from the menu bar or run: open -a OrbStack"


# ---------------------------------------------------------------------------
# NerdctlRuntime
# ---------------------------------------------------------------------------


class FakeNerdctl:
    """Scripted ``subprocess.run`` replacement keyed on the nerdctl subcommand."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.responses: dict[str, subprocess.CompletedProcess[str]] = {}
        self.raise_timeout = False

    def respond(self, subcommand: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.responses[subcommand] = subprocess.CompletedProcess([], returncode, stdout, stderr)

    def __call__(self, argv: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append(argv)
        if self.raise_timeout:
            raise subprocess.TimeoutExpired(argv, kwargs.get("timeout", 0))
        subcommand = argv[argv.index("--namespace") + 2]
        return self.responses.get(subcommand, subprocess.CompletedProcess(argv, 0, "", ""))


@pytest.fixture
def nerdctl_run(monkeypatch: pytest.MonkeyPatch) -> FakeNerdctl:
    fake = FakeNerdctl()
    monkeypatch.setattr("dvm.core.runtime.nerdctl.subprocess.run", fake)
    return fake


def _nerdctl(tmp_path: Path, platform_type: PlatformType = PlatformType.PODMAN) -> NerdctlRuntime:
    return NerdctlRuntime(_platform(tmp_path, platform_type, "containerd.sock"), home=tmp_path)


def test_colima_commands_run_inside_the_vm(tmp_path: Path) -> None:
    runtime = _nerdctl(tmp_path, PlatformType.COLIMA)

    argv = runtime.command(["ps", "-a"])

    assert argv[:6] == ["colima", "--profile", "default", "ssh", "--", "sh"]
    assert argv[-1] == "sudo nerdctl --namespace devopsmaestro ps -a"
    assert runtime.runtime_type == "containerd"


def test_direct_commands_use_socket(tmp_path: Path) -> None:
    argv = _nerdctl(tmp_path).command(["ps"])
    assert argv == ["nerdctl", "--address", str(tmp_path / "containerd.sock"), "--namespace", "devopsmaestro", "ps"]


def test_nerdctl_stop_missing_container_is_noop(tmp_path: Path, nerdctl_run: FakeNerdctl) -> None:
    nerdctl_run.respond("inspect", returncode=1, stderr="Error: no such container: dvm-api-dev")

    _nerdctl(tmp_path).stop_workspace("dvm-api-dev")

    assert len(nerdctl_run.calls) == 1



def test_nerdctl_stop_restarting_container(tmp_path: Path, nerdctl_run: FakeNerdctl) -> None:
    inspect = [{"Id": "abc123", "Name": "dvm-api-dev", "State": {"Status": "restarting"}, "Config": {}}]
    nerdctl_run.respond("inspect", stdout=json.dumps(inspect))

    _nerdctl(tmp_path).stop_workspace("dvm-api-dev")

    assert nerdctl_run.calls[-1][-4:] == ["stop", "-t", "10", "dvm-api-dev"]


def test_nerdctl_stop_all(tmp_path: Path, nerdctl_run: FakeNerdctl) -> None:
    rows = [
        {"ID": "abc", "Names": "dvm-api-dev", "Status": "Up 2 minutes", "Image": "img", "Labels": ""},
        {"ID": "def", "Names": "redis", "Status": "Up 1 hour", "Image": "redis", "Labels": ""},
        {"ID": "ghi", "Names": "other", "Status": "Up 1 hour", "Image": "img", "Labels": f"{LABEL_MANAGED}=true"},
    ]
    nerdctl_run.respond("ps", stdout="\n".join(json.dumps(row) for row in rows))

    result = _nerdctl(tmp_path).stop_all_workspaces()

    assert result.stopped == ["dvm-api-dev", "other"]
    stops = [call for call in nerdctl_run.calls if "stop" in call]
    assert [call[-1] for call in stops] == ["dvm-api-dev", "other"]


def test_nerdctl_timeout_is_communication_error(tmp_path: Path, nerdctl_run: FakeNerdctl) -> None:
    nerdctl_run.raise_timeout = True

    with pytest.raises(RuntimeCommunicationError, match="timed out"):
        _nerdctl(tmp_path).list_workspaces()
