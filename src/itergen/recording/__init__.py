"""Recording utilities for run events."""

from __future__ import annotations

from itergen.recording.file_recorder import FileEventRecorder, dump_tree_json, iter_events

__all__ = ["FileEventRecorder", "dump_tree_json", "iter_events"]
