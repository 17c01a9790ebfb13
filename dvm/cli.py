from __future__ import annotations

import json
import os
import signal
import sys
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import click
import yaml
from pydantic import ValidationError
from sqlalchemy.orm import Session

from dvm.core.context import ContextResolver
from dvm.core.db.engine import alembic_config, open_session
from dvm.core.db.tables import App, Workspace
from dvm.core.errors import DvmError, NoActiveContextError, NotFoundError
from dvm.core.log import setup_logging
from dvm.core.managers import defaults as defaults_store
from dvm.core.managers import hierarchy, library, workspaces
from dvm.core.models.enums import Kind, Level
from dvm.core.settings import get_settings

if TYPE_CHECKING:
    from dvm.core.resources import ResourceContext

OUTPUT_FORMATS = ("plain", "json", "yaml")

output_option = click.option(
    "-o",
    "--output",
    type=click.Choice(OUTPUT_FORMATS),
    default="plain",
    show_default=True,
    help="Output format.",
)
app_option = click.option("-a", "--app", "app_flag", default=None, help="App name (default: active app or DVM_APP).")
workspace_option = click.option(
    "-w", "--workspace", "workspace_flag", default=None, help="Workspace name (default: active workspace)."
)


class DvmGroup(click.Group):
    """Translate domain errors into a message, a hint and exit code 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except DvmError as exc:
            click.secho(f"Error: {exc}", fg="red", err=True)
            if exc.hint:
                click.echo(f"Hint: {exc.hint}", err=True)
            ctx.exit(1)
        except ValidationError as exc:
            click.secho(f"Error: invalid input\n{exc}", fg="red", err=True)
            ctx.exit(1)


@click.group(cls=DvmGroup)
@click.option("-v", "--verbose", count=True, help="More log output on stderr (repeatable).")
def main(verbose: int) -> None:
    """dvm - containerized development workspaces, organized by ecosystem, domain and app."""
    settings = get_settings()
    setup_logging(settings.log_level, verbose=verbose, log_file=settings.log_file)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextmanager
def _session() -> Iterator[Session]:
    with open_session(get_settings().resolve_database_url()) as db:
        yield db


def _emit(data: Any, output: str, plain: Callable[[], None]) -> None:
    if output == "json":
        click.echo(json.dumps(data, indent=2, default=str))
    elif output == "yaml":
        if isinstance(data, list) and data and all(isinstance(item, dict) and "kind" in item for item in data):
            click.echo(yaml.safe_dump_all(data, sort_keys=False), nl=False)
        else:
            click.echo(yaml.safe_dump(data, sort_keys=False), nl=False)
    else:
        plain()


def _table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    cells = [[str(value) if value is not None else "" for value in row] for row in rows]
    widths = [max([len(h), *(len(row[i]) for row in cells)]) for i, h in enumerate(headers)]
    click.echo("  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True)).rstrip())
    for row in cells:
        click.echo("  ".join(value.ljust(w) for value, w in zip(row, widths, strict=True)).rstrip())


def _parse_level(value: str) -> Level:
    aliases = {"eco": Level.ECOSYSTEM, "dom": Level.DOMAIN, "ws": Level.WORKSPACE}
    key = value.lower()
    if key in aliases:
        return aliases[key]
    try:
        return Level(key)
    except ValueError:
        raise click.BadParameter(f"unknown level '{value}' (ecosystem, domain, app, workspace)") from None


def _parse_kind(value: str) -> Kind:
    try:
        return Kind.parse(value)
    except ValueError:
        kinds = ", ".join(k.value for k in Kind)
        raise click.BadParameter(f"unknown resource kind '{value}' (one of: {kinds})") from None


def _lookup_app(db: Session, resolver: ContextResolver, name: str, entity_id: int | None = None) -> App:
    """Find an app: by id when it came from the context, else in the active domain, else anywhere."""
    if entity_id is not None:
        return hierarchy.get_app_by_id(db, entity_id)
    domain_id = resolver.active_id(Level.DOMAIN)
    if domain_id is not None:
        try:
            return hierarchy.get_app_by_name(db, domain_id, name)
        except NotFoundError:
            pass
    return hierarchy.find_app_by_name(db, name)


def _resolve_workspace(
    db: Session,
    resolver: ContextResolver,
    explicit: str | None,
    workspace_flag: str | None,
    app_flag: str | None,
) -> tuple[App, Workspace]:
    app_res = resolver.resolve(Level.APP, flag=app_flag)
    app = _lookup_app(db, resolver, app_res.name, app_res.entity_id)
    ws_res = resolver.resolve(Level.WORKSPACE, explicit, workspace_flag)
    return app, workspaces.get_workspace_by_name(db, app.id, ws_res.name)


def _activate_app_chain(resolver: ContextResolver, db: Session, app: App) -> None:
    domain = hierarchy.get_domain_by_id(db, app.domain_id)
    resolver.activate([(Level.ECOSYSTEM, domain.ecosystem_id), (Level.DOMAIN, domain.id), (Level.APP, app.id)])


def _resource_context(
    db: Session, resolver: ContextResolver, output: str, **parents: str | None
) -> ResourceContext:
    """Build a ResourceContext from the active context, overridden by ``--ecosystem/--domain/--app``."""
    from dvm.core.resources import ResourceContext

    ctx = ResourceContext.from_active(db, resolver.load(), output=output)
    ecosystem_id, domain_id, app_id = ctx.ecosystem_id, ctx.domain_id, ctx.app_id
    if parents.get("ecosystem"):
        ecosystem_id = hierarchy.get_ecosystem_by_name(db, parents["ecosystem"]).id
        domain_id = app_id = None
    if parents.get("domain"):
        if ecosystem_id is None:
            raise DvmError("--domain needs an ecosystem", hint="pass --ecosystem or run 'dvm use ecosystem <name>'")
        domain_id = hierarchy.get_domain_by_name(db, ecosystem_id, parents["domain"]).id
        app_id = None
    if parents.get("app"):
        app_id = _lookup_app(db, resolver, parents["app"]).id
    return ResourceContext(db=db, ecosystem_id=ecosystem_id, domain_id=domain_id, app_id=app_id, output=output)


_COLUMNS: dict[Kind, tuple[tuple[str, ...], Callable[[dict, dict], tuple]]] = {
    Kind.ECOSYSTEM: (("NAME", "THEME", "DESCRIPTION"), lambda m, s: (m["name"], s.get("theme"), _desc(m))),
    Kind.DOMAIN: (("NAME", "ECOSYSTEM", "DESCRIPTION"), lambda m, s: (m["name"], m.get("ecosystem"), _desc(m))),
    Kind.APP: (
        ("NAME", "DOMAIN", "LANGUAGE", "PATH"),
        lambda m, s: (m["name"], m.get("domain"), s.get("language"), s.get("path")),
    ),
    Kind.WORKSPACE: (
        ("NAME", "APP", "IMAGE", "STATUS"),
        lambda m, s: (m["name"], m.get("app"), s.get("image_name"), s.get("status")),
    ),
    Kind.NVIM_PLUGIN: (
        ("NAME", "REPO", "CATEGORY", "ENABLED"),
        lambda m, s: (m["name"], s.get("repo"), s.get("category"), s.get("enabled")),
    ),
    Kind.NVIM_THEME: (
        ("NAME", "PLUGIN_REPO", "STYLE", "CATEGORY"),
        lambda m, s: (m["name"], s.get("plugin_repo"), s.get("style"), s.get("category")),
    ),
    Kind.TERMINAL_PACKAGE: (
        ("NAME", "CATEGORY", "EXTENDS", "PLUGINS"),
        lambda m, s: (m["name"], s.get("category"), s.get("extends"), ",".join(s.get("plugins") or [])),
    ),
}


def _desc(metadata: dict) -> str:
    return (metadata.get("annotations") or {}).get("description", "")


def _print_resources(kind: Kind, documents: list[dict]) -> None:
    if not documents:
        click.echo(f"No {kind.value} resources found.")
        return
    headers, row = _COLUMNS[kind]
    _table(headers, [row(doc["metadata"], doc["spec"]) for doc in documents])


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@main.command()
@click.argument("level", required=False)
@click.argument("name", required=False)
@click.option("--clear", is_flag=True, default=False, help="Clear the whole active context.")
def use(level: str | None, name: str | None, clear: bool) -> None:
    """Select the active ecosystem, domain, app or workspace.

    Pass 'none' as NAME to clear that level (and everything beneath it).
    """
    with _session() as db:
        resolver = ContextResolver(db)
        if clear:
            resolver.clear_all()
            click.echo("Cleared active context.")
            return
        if not level or not name:
            raise click.UsageError("expected LEVEL and NAME, or --clear")

        lvl = _parse_level(level)
        if lvl is Level.APP and name.lower() != "none":
            app = _lookup_app(db, resolver, name)
            _activate_app_chain(resolver, db, app)
            click.echo(f"Switched to app '{app.name}'.")
            return

        def lookup(value: str) -> int:
            if lvl is Level.ECOSYSTEM:
                return hierarchy.get_ecosystem_by_name(db, value).id
            if lvl is Level.DOMAIN:
                ecosystem_id = resolver.active_id(Level.ECOSYSTEM)
                if ecosystem_id is None:
                    raise NoActiveContextError(Level.ECOSYSTEM.value)
                return hierarchy.get_domain_by_name(db, ecosystem_id, value).id
            app_id = resolver.active_id(Level.APP)
            if app_id is None:
                raise NoActiveContextError(Level.APP.value)
            return workspaces.get_workspace_by_name(db, app_id, value).id

        resolver.use(lvl, name, lookup)
        if name.lower() == "none":
            click.echo(f"Cleared active {lvl.value}.")
        else:
            click.echo(f"Switched to {lvl.value} '{name}'.")


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@main.command()
@click.argument("kind")
@click.argument("name", required=False)
@click.option("--ecosystem", default=None, help="Scope to this ecosystem instead of the active one.")
@click.option("--domain", default=None, help="Scope to this domain instead of the active one.")
@click.option("--app", default=None, help="Scope to this app instead of the active one.")
@output_option
def get(kind: str, name: str | None, ecosystem: str | None, domain: str | None, app: str | None, output: str) -> None:
    """Show the active context, or get/list resources of KIND."""
    from dvm.core import resources

    with _session() as db:
        resolver = ContextResolver(db)
        if kind.lower() == "context":
            summary = resolver.summary()
            _emit(summary, output, lambda: _table(("LEVEL", "ACTIVE"), [(k, v or "-") for k, v in summary.items()]))
            return

        parsed = _parse_kind(kind)
        ctx = _resource_context(db, resolver, output, ecosystem=ecosystem, domain=domain, app=app)
        if name:
            document = resources.get(ctx, parsed, name).to_dict()
            _emit(document, output, lambda: _print_resources(parsed, [document]))
            return
        documents = [res.to_dict() for res in resources.list_resources(ctx, parsed)]
        _emit(documents, output, lambda: _print_resources(parsed, documents))


@main.command()
@click.argument("kind", required=False)
@click.argument("name", required=False)
@click.option("-f", "--file", "file_", type=click.File("r"), default=None, help="Create or update from a YAML file.")
@click.option("--description", default=None)
@click.option("--ecosystem", default=None, help="Parent ecosystem (domains).")
@click.option("--domain", default=None, help="Parent domain (apps).")
@click.option("--app", default=None, help="Parent app (workspaces).")
@click.option("--theme", default=None, help="Ecosystem theme.")
@click.option("--path", default=None, help="App source directory.")
@click.option("--language", default=None, help="App language.")
@click.option("--image", "image_name", default=None, help="Workspace image reference.")
@click.option("--repo", default=None, help="Plugin repository.")
@click.option("--plugin-repo", default=None, help="Theme plugin repository.")
@click.option("--category", default=None)
@click.option("--style", default=None, help="Theme style.")
@click.option("--extends", default=None, help="Parent terminal package.")
@output_option
def create(kind: str | None, name: str | None, file_: Any, output: str, **fields: str | None) -> None:
    """Create a resource of KIND named NAME, or apply every document in a YAML file."""
    from dvm.core import resources

    with _session() as db:
        resolver = ContextResolver(db)
        if file_ is not None:
            ctx = _resource_context(db, resolver, output)
            for document in yaml.safe_load_all(file_):
                if not document:
                    continue
                res, created = resources.apply(ctx, document)
                click.echo(f"{res.kind.value} '{res.name}' {'created' if created else 'configured'}.")
            return
        if not kind or not name:
            raise click.UsageError("expected KIND and NAME, or -f FILE")

        parsed = _parse_kind(kind)
        spec = {key: value for key, value in fields.items() if value is not None}
        spec["name"] = name
        if parsed is Kind.APP and "path" not in spec:
            spec["path"] = os.getcwd()
        ctx = _resource_context(db, resolver, output)
        res = resources.create(ctx, parsed, spec)

        if parsed is Kind.ECOSYSTEM:
            resolver.set_active(Level.ECOSYSTEM, res.payload.id)  # type: ignore[attr-defined]
        elif parsed is Kind.DOMAIN:
            domain_row = hierarchy.get_domain_by_id(db, res.payload.id)  # type: ignore[attr-defined]
            resolver.activate([(Level.ECOSYSTEM, domain_row.ecosystem_id), (Level.DOMAIN, domain_row.id)])

        document = res.to_dict()
        _emit(document, output, lambda: click.echo(f"{parsed.value} '{res.name}' created."))


@main.command()
@click.argument("kind")
@click.argument("name")
@click.option("--ecosystem", default=None)
@click.option("--domain", default=None)
@click.option("--app", default=None)
def delete(kind: str, name: str, ecosystem: str | None, domain: str | None, app: str | None) -> None:
    """Delete the resource of KIND named NAME (hierarchy deletes cascade)."""
    from dvm.core import resources

    parsed = _parse_kind(kind)
    with _session() as db:
        resolver = ContextResolver(db)
        ctx = _resource_context(db, resolver, "plain", ecosystem=ecosystem, domain=domain, app=app)
        resources.delete(ctx, parsed, name)
        click.echo(f"{parsed.value} '{name}' deleted.")


# ---------------------------------------------------------------------------
# Workspace plugins
# ---------------------------------------------------------------------------


@main.group()
def plugin() -> None:
    """Manage the editor plugins configured for a workspace."""


@plugin.command("list")
@workspace_option
@app_option
@output_option
def plugin_list(workspace_flag: str | None, app_flag: str | None, output: str) -> None:
    """List the workspace's plugins (or note that it inherits the whole library)."""
    from dvm.core import plugin_set

    with _session() as db:
        _, ws = _resolve_workspace(db, ContextResolver(db), None, workspace_flag, app_flag)
        names = plugin_set.list_plugins(ws)
        inherited = not plugin_set.has_override(ws)
        data = {"workspace": ws.name, "inherits_library": inherited, "plugins": names}

        def plain() -> None:
            if inherited:
                count = len(library.list_plugin_names(db))
                click.echo(f"Workspace '{ws.name}' has no plugin list; it uses all {count} library plugins.")
                return
            for name in names:
                click.echo(name)

        _emit(data, output, plain)


@plugin.command("add")
@click.argument("names", nargs=-1, required=True)
@workspace_option
@app_option
@output_option
def plugin_add(names: tuple[str, ...], workspace_flag: str | None, app_flag: str | None, output: str) -> None:
    """Add library plugins to the workspace."""
    from dvm.core import plugin_set

    with _session() as db:
        _, ws = _resolve_workspace(db, ContextResolver(db), None, workspace_flag, app_flag)
        result = plugin_set.add_plugins(ws, names, library.list_plugin_names(db))
        workspaces.save_workspace(db, ws)
        data = {"added": result.added, "skipped": result.skipped, "not_found": result.not_found}

        def plain() -> None:
            for name in result.added:
                click.echo(f"added    {name}")
            for name in result.skipped:
                click.echo(f"skipped  {name} (already configured)")
            for name in result.not_found:
                click.echo(f"missing  {name} (not in the plugin library)", err=True)

        _emit(data, output, plain)
        if result.not_found and not result.added and not result.skipped:
            sys.exit(1)


@plugin.command("remove")
@click.argument("names", nargs=-1, required=True)
@workspace_option
@app_option
@output_option
def plugin_remove(names: tuple[str, ...], workspace_flag: str | None, app_flag: str | None, output: str) -> None:
    """Remove plugins from the workspace."""
    from dvm.core import plugin_set

    with _session() as db:
        _, ws = _resolve_workspace(db, ContextResolver(db), None, workspace_flag, app_flag)
        result = plugin_set.remove_plugins(ws, names)
        if result.changed:
            workspaces.save_workspace(db, ws)
        data = {"removed": result.removed, "not_found": result.not_found}

        def plain() -> None:
            for name in result.removed:
                click.echo(f"removed  {name}")
            for name in result.not_found:
                click.echo(f"missing  {name} (not configured)", err=True)

        _emit(data, output, plain)


@plugin.command("clear")
@workspace_option
@app_option
def plugin_clear(workspace_flag: str | None, app_flag: str | None) -> None:
    """Drop the workspace's plugin list so it inherits the whole library again."""
    from dvm.core import plugin_set

    with _session() as db:
        _, ws = _resolve_workspace(db, ContextResolver(db), None, workspace_flag, app_flag)
        count = plugin_set.clear_plugins(ws)
        workspaces.save_workspace(db, ws)
        click.echo(f"Cleared {count} plugin(s) from workspace '{ws.name}'.")


# ---------------------------------------------------------------------------
# Container lifecycle
# ---------------------------------------------------------------------------


def _start(db: Session, app: App, ws: Workspace, image: str | None) -> tuple[Any, str]:
    from dvm.core.runtime import StartOptions, detect_runtime

    if image:
        ws.image_name = image
    if ws.image_name.endswith(":pending"):
        raise DvmError(
            f"workspace image '{ws.image_name}' has not been built yet",
            hint="pass --image <ref> to run a prebuilt image",
        )
    runtime = detect_runtime()
    click.echo(f"Platform: {runtime.platform_name}", err=True)
    settings = get_settings()
    opts = StartOptions(
        image_name=ws.image_name,
        workspace_name=ws.name,
        app_name=app.name,
        app_path=app.path,
    )
    runtime.start_workspace(opts)
    ws.status = "running"
    workspaces.save_workspace(db, ws)
    resolver = ContextResolver(db)
    _activate_app_chain(resolver, db, app)
    resolver.set_active(Level.WORKSPACE, ws.id)
    return runtime, opts.resolved_name(settings.container_prefix)


@main.command()
@click.argument("workspace", required=False)
@app_option
@click.option("--image", default=None, help="Run this image and record it on the workspace.")
def start(workspace: str | None, app_flag: str | None, image: str | None) -> None:
    """Start a workspace container."""
    with _session() as db:
        app, ws = _resolve_workspace(db, ContextResolver(db), workspace, None, app_flag)
        _, name = _start(db, app, ws, image)
        click.echo(f"Workspace '{ws.name}' running as {name}.")


@main.command()
@click.argument("workspace", required=False)
@app_option
@click.option("--image", default=None, help="Run this image and record it on the workspace.")
@click.option("--shell", default="/bin/zsh", show_default=True)
def attach(workspace: str | None, app_flag: str | None, image: str | None, shell: str) -> None:
    """Start a workspace container if needed and open a shell in it."""
    with _session() as db:
        app, ws = _resolve_workspace(db, ContextResolver(db), workspace, None, app_flag)
        runtime, name = _start(db, app, ws, image)
    sys.exit(runtime.attach(name, shell))


@main.command()
@click.argument("workspace", required=False)
@app_option
@click.option("--all", "all_", is_flag=True, default=False, help="Stop every dvm-managed container.")
@output_option
def stop(workspace: str | None, app_flag: str | None, all_: bool, output: str) -> None:
    """Stop a workspace container, or all of them with --all."""
    from dvm.core.runtime import container_name, detect_runtime

    settings = get_settings()
    if all_:
        runtime = detect_runtime()
        cancel = threading.Event()
        previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
        try:
            result = runtime.stop_all_workspaces(cancel)
        finally:
            signal.signal(signal.SIGINT, previous)
        data = {"stopped": result.stopped, "failed": result.failed, "skipped": result.skipped}

        def plain() -> None:
            click.echo(f"Stopped {result.count} workspace(s).")
            for name, error in result.failed.items():
                click.echo(f"failed   {name}: {error}", err=True)
            if result.skipped:
                click.echo(f"Cancelled; {len(result.skipped)} left running.", err=True)

        _emit(data, output, plain)
        return

    with _session() as db:
        app, ws = _resolve_workspace(db, ContextResolver(db), workspace, None, app_flag)
        runtime = detect_runtime()
        runtime.stop_workspace(container_name(app.name, ws.name, settings.container_prefix))
        ws.status = "stopped"
        workspaces.save_workspace(db, ws)
        click.echo(f"Workspace '{ws.name}' stopped.")


@main.command()
@click.argument("workspace", required=False)
@app_option
@click.option("--all", "all_", is_flag=True, default=False, help="List every dvm-managed container.")
@output_option
def status(workspace: str | None, app_flag: str | None, all_: bool, output: str) -> None:
    """Show the container state of a workspace, or of all managed containers."""
    from dvm.core.runtime import container_name, detect_runtime

    settings = get_settings()
    runtime = detect_runtime()
    if all_:
        infos = runtime.list_workspaces()
        data = [
            {"name": i.name, "app": i.app, "workspace": i.workspace, "image": i.image, "state": i.state.value}
            for i in infos
        ]
        rows = [(d["name"], d["app"], d["workspace"], d["state"]) for d in data]
        _emit(data, output, lambda: _table(("CONTAINER", "APP", "WORKSPACE", "STATE"), rows))
        return

    with _session() as db:
        app, ws = _resolve_workspace(db, ContextResolver(db), workspace, None, app_flag)
        name = container_name(app.name, ws.name, settings.container_prefix)
        info = runtime.find_workspace(name)
        data = {
            "platform": runtime.platform_name,
            "container": name,
            "state": info.state.value if info else "absent",
            "status": info.status if info else None,
            "image": info.image if info else ws.image_name,
        }
        _emit(data, output, lambda: _table(("KEY", "VALUE"), [(k, v) for k, v in data.items()]))


@main.command()
@output_option
def platforms(output: str) -> None:
    """List the container platforms found on this host and the one dvm will use."""
    from dvm.core.errors import NoPlatformDetectedError
    from dvm.core.runtime import PlatformDetector

    detector = PlatformDetector(forced=get_settings().platform)
    found = detector.detect_all()
    try:
        chosen = detector.detect().type if found else None
    except NoPlatformDetectedError:
        chosen = None
    data = [
        {
            "type": p.type.value,
            "name": p.name,
            "socket": str(p.socket_path),
            "active": p.is_active,
            "selected": p.type is chosen,
            "containerd": p.is_containerd,
            "docker_compatible": p.is_docker_compatible,
        }
        for p in found
    ]

    def plain() -> None:
        if not found:
            click.echo("No container platform found.")
            click.echo("Hint: install and start one of: OrbStack, Colima, Podman, Docker Desktop, Docker", err=True)
            return
        _table(
            ("", "PLATFORM", "SOCKET", "API"),
            [
                ("*" if d["selected"] else "", d["name"], d["socket"], "containerd" if d["containerd"] else "docker")
                for d in data
            ],
        )

    _emit(data, output, plain)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


@main.group()
def defaults() -> None:
    """Key-value defaults (e.g. theme, terminal-package)."""


@defaults.command("get")
@click.argument("key")
def defaults_get(key: str) -> None:
    with _session() as db:
        value = defaults_store.get_default(db, key)
    if value is None:
        raise NotFoundError("Default", key, hint=f"set it with 'dvm defaults set {key} <value>'")
    click.echo(value)


@defaults.command("set")
@click.argument("key")
@click.argument("value")
def defaults_set(key: str, value: str) -> None:
    with _session() as db:
        defaults_store.set_default(db, key, value)
    click.echo(f"{key} = {value}")


@defaults.command("unset")
@click.argument("key")
def defaults_unset(key: str) -> None:
    with _session() as db:
        removed = defaults_store.delete_default(db, key)
    click.echo(f"Unset {key}." if removed else f"{key} was not set.")


@defaults.command("list")
@output_option
def defaults_list(output: str) -> None:
    with _session() as db:
        values = defaults_store.list_defaults(db)
    _emit(values, output, lambda: _table(("KEY", "VALUE"), list(values.items())))


# ---------------------------------------------------------------------------
# Database management
# ---------------------------------------------------------------------------


@main.group()
def db() -> None:
    """Database migration and management commands."""


@db.command()
@click.option("--revision", default="head", help="Target revision (default: head).")
def upgrade(revision: str) -> None:
    """Run database migrations forward."""
    from alembic import command

    command.upgrade(alembic_config(get_settings().resolve_database_url()), revision)
    click.echo(f"Database upgraded to {revision}.")


@db.command()
@click.option("--revision", default="-1", help="Target revision (default: -1, one step back).")
def downgrade(revision: str) -> None:
    """Roll back database migrations."""
    from alembic import command

    command.downgrade(alembic_config(get_settings().resolve_database_url()), revision)
    click.echo(f"Database downgraded to {revision}.")


@db.command()
def current() -> None:
    """Show current database revision."""
    from alembic import command

    command.current(alembic_config(get_settings().resolve_database_url()), verbose=True)


@db.command()
def history() -> None:
    """Show migration history."""
    from alembic import command

    command.history(alembic_config(get_settings().resolve_database_url()), verbose=True)


if __name__ == "__main__":
    main()
