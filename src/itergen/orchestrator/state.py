from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from itergen.models.node import ClassificationNode


class RunOutcome(str, Enum):
    COMPLETED = "completed"
    STOPPED_AT_LIMIT = "stopped_at_limit"


@dataclass(frozen=True)
class LedgerEntry:
    """A node addressed by a generation run, either created or matched."""

    node: ClassificationNode
    created: bool


@dataclass
class GenerationReport:
    """Ledger and counters of one generation run."""

    ledger: list[LedgerEntry] = field(default_factory=list)
    subscribed: int = 0
    subscription_failures: int = 0
    outcome: RunOutcome = RunOutcome.COMPLETED

    @property
    def created_count(self) -> int:
        return sum(1 for e in self.ledger if e.created)

    @property
    def matched_count(self) -> int:
        return sum(1 for e in self.ledger if not e.created)

    def snapshot(self) -> dict[str, str | int]:
        return {
            "created": self.created_count,
            "matched": self.matched_count,
            "subscribed": self.subscribed,
            "subscription_failures": self.subscription_failures,
            "outcome": self.outcome.value,
        }


@dataclass
class AssignmentReport:
    """Counters of one bulk team assignment run."""

    visited: int = 0
    subscribed: int = 0
    skipped: int = 0
    failures: int = 0
    outcome: RunOutcome = RunOutcome.COMPLETED
    subscribed_paths: list[str] = field(default_factory=list)

    def snapshot(self) -> dict[str, str | int]:
        return {
            "visited": self.visited,
            "subscribed": self.subscribed,
            "skipped": self.skipped,
            "failures": self.failures,
            "outcome": self.outcome.value,
        }
