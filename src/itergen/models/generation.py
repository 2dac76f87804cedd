"""Generation request models."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from itergen.models.node import TreeKind


class MatchMode(str, Enum):
    """Duplicate-detection policy for one run.

    ``path`` matches the exact canonical path and is the default. ``name`` is the legacy,
    looser check that treats any node with the same name anywhere in the project as existing.
    """

    PATH = "path"
    NAME = "name"


class GenerationSpec(BaseModel):
    """Shape of the tree to generate. Immutable for the duration of a run."""

    model_config = ConfigDict(frozen=True)

    depth: int = Field(default=1, ge=1)
    children_per_level: int = Field(default=1, ge=1)
    base_name: str = Field(default="Sprint", min_length=1)
    kind: TreeKind = Field(default=TreeKind.ITERATION)
    start_date: date = Field(default_factory=date.today)
    days_per_iteration: int = Field(default=14, ge=1)

    def window(self, start: date) -> tuple[date, date]:
        """Inclusive date window of an iteration starting at ``start``."""

        return start, start + timedelta(days=self.days_per_iteration - 1)

    @property
    def planned_count(self) -> int:
        """Total number of nodes a full run addresses."""

        return sum(self.children_per_level**level for level in range(1, self.depth + 1))
