"""Active-context value object.

The persisted form is the singleton ``context`` row; in-process code loads
it into an ``ActiveContext``, mutates the copy, and saves it back.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from dvm.core.models.enums import Level


class ActiveContext(BaseModel):
    """Active entity id at each hierarchy level (``None`` means unset)."""

    model_config = ConfigDict(from_attributes=True)

    active_ecosystem_id: int | None = None
    active_domain_id: int | None = None
    active_app_id: int | None = None
    active_workspace_id: int | None = None

    @staticmethod
    def field_for(level: Level) -> str:
        return f"active_{level.value}_id"

    def get(self, level: Level) -> int | None:
        return getattr(self, self.field_for(level))

    def with_value(self, level: Level, entity_id: int | None) -> ActiveContext:
        """Return a copy with *level* set, leaving every other level untouched."""
        return self.model_copy(update={self.field_for(level): entity_id})

    def is_empty(self) -> bool:
        return all(self.get(level) is None for level in Level)
