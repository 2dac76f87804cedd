"""File-based recorders.

Events go to `events.jsonl` for replay. Bulk assignment also writes the fetched tree to
`tree.json` before touching anything, which is a diagnostic aid only.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from itergen.events import RunEvent
from itergen.models.node import ClassificationNode


@dataclass
class FileEventRecorder:
    """Append-only JSONL recorder."""

    path: Path

    def __post_init__(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, event: RunEvent) -> None:
        """Append an event."""

        line = json.dumps(event.model_dump(mode="json"), ensure_ascii=False)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")


def iter_events(path: Path) -> list[RunEvent]:
    """Load all events from a JSONL file."""

    events: list[RunEvent] = []
    if not path.exists():
        return events
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        events.append(RunEvent.model_validate_json(line))
    return events


def dump_tree_json(root: ClassificationNode, path: Path) -> Path:
    """Write a fetched tree as UTF-8 JSON using the remote field names."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = root.model_dump(mode="json", by_alias=True, exclude_none=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return path
