"""Resource, ResourceContext and the Handler protocol.

A ``Resource`` is a tagged value: its ``kind`` says which pydantic payload it
carries, and ``expect`` is the only sanctioned way to get the typed payload
back out.  ``to_dict`` is the kind-agnostic projection used for YAML/JSON
output and accepted back by ``dvm create -f``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel
from sqlalchemy.orm import Session

from dvm.core.errors import NoActiveContextError, NotSupportedError, UnsupportedKindError
from dvm.core.models.context import ActiveContext
from dvm.core.models.enums import Kind, Level

API_VERSION = "devopsmaestro.io/v1"

# Fields that live in ``metadata`` or are store bookkeeping, never in ``spec``.
_NON_SPEC_FIELDS = frozenset(
    {"id", "name", "ecosystem_id", "domain_id", "app_id", "created_at", "updated_at", "description"}
)

P = TypeVar("P", bound=BaseModel)


@dataclass(frozen=True)
class Resource:
    """One resource of any kind, e.g. a workspace or a plugin."""

    kind: Kind
    name: str
    payload: BaseModel
    labels: Mapping[str, str] = field(default_factory=dict)
    """Parent names (``ecosystem``, ``domain``, ``app``) for hierarchy kinds."""

    def expect(self, kind: Kind, payload_type: type[P] | None = None) -> P:
        """Return the payload if this resource is of *kind*.

        Raises ``UnsupportedKindError`` on a mismatch instead of handing back
        a payload of the wrong shape.
        """
        if self.kind is not kind:
            raise UnsupportedKindError(self.kind, expected=kind)
        if payload_type is not None and not isinstance(self.payload, payload_type):
            raise UnsupportedKindError(type(self.payload).__name__, expected=payload_type.__name__)
        return self.payload  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        data = self.payload.model_dump(mode="json")
        metadata: dict[str, Any] = {"name": self.name, **self.labels}
        if data.get("description"):
            metadata["annotations"] = {"description": data["description"]}
        return {
            "apiVersion": API_VERSION,
            "kind": self.kind.value,
            "metadata": metadata,
            "spec": {key: value for key, value in data.items() if key not in _NON_SPEC_FIELDS},
        }


@dataclass(frozen=True)
class ResourceContext:
    """Everything a handler needs: the store and the resolved active ancestors."""

    db: Session
    ecosystem_id: int | None = None
    domain_id: int | None = None
    app_id: int | None = None
    output: str = "plain"

    @classmethod
    def from_active(cls, db: Session, active: ActiveContext, *, output: str = "plain") -> ResourceContext:
        return cls(
            db=db,
            ecosystem_id=active.active_ecosystem_id,
            domain_id=active.active_domain_id,
            app_id=active.active_app_id,
            output=output,
        )

    def require(self, level: Level) -> int:
        """Return the active id at *level* or raise ``NoActiveContextError``."""
        value = getattr(self, f"{level.value}_id")
        if value is None:
            raise NoActiveContextError(level.value)
        return value


@runtime_checkable
class Handler(Protocol):
    """Get/List/Delete/Create for one resource kind."""

    kind: Kind

    def get(self, ctx: ResourceContext, name: str) -> Resource: ...

    def list(self, ctx: ResourceContext) -> list[Resource]: ...

    def delete(self, ctx: ResourceContext, name: str) -> None: ...

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource: ...


class BaseHandler:
    """Shared defaults: operations a handler does not override are unsupported."""

    kind: Kind

    def create(self, ctx: ResourceContext, spec: Mapping[str, Any]) -> Resource:
        raise NotSupportedError(self.kind, "create")

    def update(self, ctx: ResourceContext, name: str, spec: Mapping[str, Any]) -> Resource:
        raise NotSupportedError(self.kind, "update")
