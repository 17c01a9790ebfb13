"""Active-context resolution and cascade rules.

The active context is a chain of pointers, one per hierarchy level.  Every
mutation here keeps the chain consistent: activating a level clears every
level beneath it, and clearing a level clears everything beneath it too.
Siblings and ancestors are never touched.

Resolution precedence for an implicit target is fixed:

1. the explicit positional value,
2. the command-line flag,
3. the persisted active context,
4. the environment override (``DVM_APP`` / ``DVM_WORKSPACE`` only).
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from loguru import logger
from sqlalchemy.orm import Session

from dvm.core.db.tables import App, Domain, Ecosystem, Workspace
from dvm.core.errors import NoActiveContextError
from dvm.core.managers import context as context_store
from dvm.core.models.context import ActiveContext
from dvm.core.models.enums import Level, ResolutionSource

CLEAR_SENTINEL = "none"
"""Value accepted by ``dvm use <level>`` to clear a level instead of naming an entity."""

ENV_OVERRIDES: dict[Level, str] = {
    Level.APP: "DVM_APP",
    Level.WORKSPACE: "DVM_WORKSPACE",
}

_TABLES = {
    Level.ECOSYSTEM: Ecosystem,
    Level.DOMAIN: Domain,
    Level.APP: App,
    Level.WORKSPACE: Workspace,
}


@dataclass(frozen=True)
class Resolution:
    """A resolved target and where it came from.

    ``entity_id`` is only known when the value came from the persisted
    context; names from arguments, flags and the environment are looked up
    by the caller within the right parent scope.
    """

    level: Level
    name: str
    source: ResolutionSource
    entity_id: int | None = None


def cascade(ctx: ActiveContext, level: Level, entity_id: int | None) -> ActiveContext:
    """Return *ctx* with *level* set to *entity_id* and every level beneath it cleared."""
    updated = ctx.with_value(level, entity_id)
    for lower in level.below():
        updated = updated.with_value(lower, None)
    return updated


class ContextResolver:
    """Reads and writes the active context for one command invocation.

    The resolver holds no state of its own beyond the session and the
    environment mapping; every call loads the persisted row, so the value
    seen by a command is always the stored one.
    """

    def __init__(self, db: Session, *, environ: Mapping[str, str] | None = None) -> None:
        self._db = db
        self._environ = os.environ if environ is None else environ

    # -- Read ------------------------------------------------------------------

    def load(self) -> ActiveContext:
        return context_store.get_context(self._db)

    def active_id(self, level: Level) -> int | None:
        return self.load().get(level)

    def name_of(self, level: Level, entity_id: int | None) -> str | None:
        """Name of the entity *entity_id* at *level*, or ``None`` if it no longer exists."""
        if entity_id is None:
            return None
        row = self._db.get(_TABLES[level], entity_id, populate_existing=True)
        return row.name if row is not None else None

    def resolve(self, level: Level, explicit: str | None = None, flag: str | None = None) -> Resolution:
        """Resolve the target name for *level*.

        Raises ``NoActiveContextError`` when no source provides a value.
        """
        if explicit:
            return Resolution(level, explicit, ResolutionSource.EXPLICIT)
        if flag:
            return Resolution(level, flag, ResolutionSource.FLAG)

        entity_id = self.active_id(level)
        name = self.name_of(level, entity_id)
        if name is not None:
            return Resolution(level, name, ResolutionSource.CONTEXT, entity_id)

        env_var = ENV_OVERRIDES.get(level)
        if env_var is not None:
            value = self._environ.get(env_var, "").strip()
            if value:
                logger.debug("Resolved {} from {}={}", level, env_var, value)
                return Resolution(level, value, ResolutionSource.ENVIRONMENT)

        raise NoActiveContextError(level.value)

    def summary(self) -> dict[str, str | None]:
        """Active name at every level, top-down."""
        ctx = self.load()
        return {level.value: self.name_of(level, ctx.get(level)) for level in Level}

    # -- Write -----------------------------------------------------------------

    def set_active(self, level: Level, entity_id: int) -> ActiveContext:
        """Make *entity_id* active at *level* and clear every level beneath it.

        Existence is not re-validated; callers look the entity up first.
        """
        return self.activate([(level, entity_id)])

    def activate(self, chain: Iterable[tuple[Level, int]]) -> ActiveContext:
        """Apply several ``set_active`` steps top-down and save once.

        Used when selecting an entity also selects its ancestors, e.g.
        ``dvm use app`` activating the app's ecosystem and domain.
        """
        ctx = self.load()
        for level, entity_id in sorted(chain, key=lambda step: list(Level).index(step[0])):
            ctx = cascade(ctx, level, entity_id)
        logger.debug("Active context -> {}", ctx.model_dump())
        return context_store.save_context(self._db, ctx)

    def clear_active(self, level: Level) -> ActiveContext:
        """Clear *level* and everything beneath it.  Already-empty levels are a no-op."""
        ctx = self.load()
        cleared = cascade(ctx, level, None)
        if cleared == ctx:
            return ctx
        return context_store.save_context(self._db, cleared)

    def clear_all(self) -> ActiveContext:
        return self.clear_active(Level.ECOSYSTEM)

    def use(self, level: Level, value: str, lookup: Callable[[str], int]) -> ActiveContext:
        """Handle ``dvm use <level> <value>``.

        The ``none`` sentinel clears the level; any other value is passed to
        *lookup*, which must return the entity id or raise ``NotFoundError``.
        """
        if value.strip().lower() == CLEAR_SENTINEL:
            return self.clear_active(level)
        return self.set_active(level, lookup(value))
