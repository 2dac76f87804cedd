"""Classification node models.

These mirror the subset of the remote classification-node payload the engine reads and writes.
Unknown remote fields are ignored.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TreeKind(str, Enum):
    """Which classification tree a node belongs to."""

    ITERATION = "iteration"
    AREA = "area"

    @property
    def collection(self) -> str:
        """URL collection segment (``iterations`` / ``areas``)."""

        return "iterations" if self is TreeKind.ITERATION else "areas"

    @property
    def structure_segment(self) -> str:
        """Root segment servers insert after the project name in node paths."""

        return "Iteration" if self is TreeKind.ITERATION else "Area"


class NodeAttributes(BaseModel):
    """Optional date window of an iteration."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    start_date: datetime | None = Field(default=None, alias="startDate")
    finish_date: datetime | None = Field(default=None, alias="finishDate")


class ClassificationNode(BaseModel):
    """An iteration or area node, as fetched from or returned by the remote service."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int | str | None = None
    identifier: str | None = None
    name: str = ""
    path: str = ""
    children: list[ClassificationNode] = Field(default_factory=list)
    attributes: NodeAttributes | None = None

    @field_validator("children", mode="before")
    @classmethod
    def _none_children(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_identity(self) -> bool:
        """Whether the node carries anything a subscription request can reference."""

        return self.id is not None or bool(self.identifier)

    def label(self) -> str:
        """Path if known, else name; used in logs and reports."""

        return self.path or self.name or "(unknown)"
