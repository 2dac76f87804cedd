"""Event model used for progress reporting and replay.

Generation and assignment runs produce a sequence of events. Events are recorded to JSONL so a
run can be replayed later (e.g., to see exactly which nodes were created before a failure).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol, Sequence

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """High-level event categories."""

    SYSTEM = "system"
    REMOTE = "remote"
    ERROR = "error"


class ContentType(str, Enum):
    """Semantic types within event streams."""

    RUN_STARTED = "run_started"
    TREE_FETCHED = "tree_fetched"

    # Generation
    NODE_ATTEMPTED = "node_attempted"
    NODE_CREATED = "node_created"
    NODE_MATCHED_EXISTING = "node_matched_existing"

    # Team subscription
    NODE_SUBSCRIBED = "node_subscribed"
    SUBSCRIPTION_FAILED = "subscription_failed"
    LIMIT_REACHED = "limit_reached"

    RUN_DONE = "run_done"


class RunEvent(BaseModel):
    """A single event in a run."""

    run_id: str
    seq: int = Field(ge=1)
    ts: datetime = Field(default_factory=datetime.utcnow)

    event_type: EventType
    content_type: ContentType

    data: str | dict | list | None = None
    metadata: dict[str, str | int | float | bool | None] = Field(default_factory=dict)


class EventRecorder(Protocol):
    """Anything that can persist an event."""

    def append(self, event: RunEvent) -> None:
        """Record one event."""


@dataclass
class RunEmitter:
    """Assigns sequence numbers and fans events out to recorders."""

    run_id: str
    recorders: Sequence[EventRecorder] = field(default_factory=tuple)
    seq: int = 0

    def emit(
        self,
        event_type: EventType,
        content_type: ContentType,
        data: str | dict | list | None = None,
        *,
        metadata: dict[str, str | int | float | bool | None] | None = None,
    ) -> RunEvent:
        self.seq += 1
        ev = RunEvent(
            run_id=self.run_id,
            seq=self.seq,
            event_type=event_type,
            content_type=content_type,
            data=data,
            metadata=dict(metadata or {}),
        )
        for recorder in self.recorders:
            recorder.append(ev)
        return ev
