"""Kind -> Handler routing.

Commands never branch on the resource kind themselves: they parse the kind,
build a ``ResourceContext`` and call ``get`` / ``list_resources`` /
``delete`` / ``create`` here.  Adding a kind means writing one handler and
registering it in ``default_registry``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache
from typing import Any

from loguru import logger

from dvm.core.errors import AlreadyExistsError, UnsupportedKindError
from dvm.core.models.enums import Kind
from dvm.core.resources.base import Handler, Resource, ResourceContext
from dvm.core.resources.handlers import BUILTIN_HANDLERS


class ResourceRegistry:
    """One handler per kind, registered once at startup."""

    def __init__(self, handlers: Iterable[Handler] = ()) -> None:
        self._handlers: dict[Kind, Handler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: Handler) -> None:
        """Bind *handler* to its kind.  Raises ``ValueError`` if the kind is already bound."""
        if handler.kind in self._handlers:
            msg = f"resource handler already registered for kind: {handler.kind}"
            raise ValueError(msg)
        self._handlers[handler.kind] = handler

    def handler_for(self, kind: Kind | str) -> Handler:
        """Return the handler for *kind*.  Raises ``UnsupportedKindError`` if none is bound."""
        try:
            key = kind if isinstance(kind, Kind) else Kind.parse(kind)
        except ValueError:
            raise UnsupportedKindError(kind) from None
        handler = self._handlers.get(key)
        if handler is None:
            raise UnsupportedKindError(kind)
        return handler

    def kinds(self) -> list[Kind]:
        return list(self._handlers)

    def __contains__(self, kind: object) -> bool:
        return kind in self._handlers


@lru_cache(maxsize=1)
def default_registry() -> ResourceRegistry:
    """Registry with every built-in handler, built once per process."""
    return ResourceRegistry(handler_cls() for handler_cls in BUILTIN_HANDLERS)


# -- Dispatch ------------------------------------------------------------------


def get(ctx: ResourceContext, kind: Kind | str, name: str, *, registry: ResourceRegistry | None = None) -> Resource:
    return (registry or default_registry()).handler_for(kind).get(ctx, name)


def list_resources(
    ctx: ResourceContext, kind: Kind | str, *, registry: ResourceRegistry | None = None
) -> list[Resource]:
    return (registry or default_registry()).handler_for(kind).list(ctx)


def delete(ctx: ResourceContext, kind: Kind | str, name: str, *, registry: ResourceRegistry | None = None) -> None:
    (registry or default_registry()).handler_for(kind).delete(ctx, name)
    logger.debug("Deleted {} {}", kind, name)


def create(
    ctx: ResourceContext,
    kind: Kind | str,
    spec: Mapping[str, Any],
    *,
    registry: ResourceRegistry | None = None,
) -> Resource:
    """Create a resource from a flat *spec*.

    Raises ``NotSupportedError`` when the kind's handler has no create and
    ``AlreadyExistsError`` when the name is taken.
    """
    resource = (registry or default_registry()).handler_for(kind).create(ctx, spec)
    logger.debug("Created {} {}", resource.kind, resource.name)
    return resource


# -- Documents -----------------------------------------------------------------


def spec_from_document(document: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    """Flatten an ``apiVersion/kind/metadata/spec`` document into ``(kind, spec)``.

    This is the inverse of ``Resource.to_dict``.  Raises ``ValueError`` when
    ``kind`` or ``metadata.name`` is missing.
    """
    kind = document.get("kind")
    if not kind:
        msg = "resource document is missing required 'kind' field"
        raise ValueError(msg)
    metadata = document.get("metadata") or {}
    name = metadata.get("name")
    if not name:
        msg = f"{kind} document is missing required 'metadata.name' field"
        raise ValueError(msg)

    spec: dict[str, Any] = dict(document.get("spec") or {})
    spec["name"] = name
    for parent in ("ecosystem", "domain", "app"):
        if metadata.get(parent):
            spec[parent] = metadata[parent]
    description = (metadata.get("annotations") or {}).get("description")
    if description:
        spec["description"] = description
    return kind, spec


def apply(
    ctx: ResourceContext,
    document: Mapping[str, Any],
    *,
    registry: ResourceRegistry | None = None,
) -> tuple[Resource, bool]:
    """Create the resource described by *document*, or update it if it already exists.

    Returns the resource and whether it was newly created.
    """
    kind, spec = spec_from_document(document)
    handler = (registry or default_registry()).handler_for(kind)
    try:
        return handler.create(ctx, spec), True
    except AlreadyExistsError:
        ctx.db.rollback()
        logger.debug("{} {} exists, updating", kind, spec["name"])
        return handler.update(ctx, spec["name"], spec), False  # type: ignore[attr-defined]
