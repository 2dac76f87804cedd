"""Run wiring: artifacts directory, event recording and engine selection."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator

from itergen.config import Settings
from itergen.errors import ConfigurationError
from itergen.events import RunEmitter, RunEvent
from itergen.logging import get_logger, run_context
from itergen.models.generation import GenerationSpec, MatchMode
from itergen.orchestrator.assigner import BulkTeamAssigner
from itergen.orchestrator.generator import HierarchyGenerator
from itergen.orchestrator.state import AssignmentReport, GenerationReport
from itergen.recording.file_recorder import FileEventRecorder, dump_tree_json, iter_events
from itergen.tree.client import TreeClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class RunPaths:
    """Paths for a run."""

    root: Path

    @property
    def events_path(self) -> Path:
        return self.root / "events.jsonl"

    @property
    def tree_path(self) -> Path:
        return self.root / "tree.json"


def run_generation_stream(
    *,
    settings: Settings,
    spec: GenerationSpec,
    client: TreeClient,
    report: GenerationReport,
) -> Iterator[RunEvent]:
    """Generate the tree described by ``spec`` and yield events.

    Events are recorded to JSONL for replay.
    """

    run_id, run_root = _prepare_run_dir(settings.artifacts_dir)
    paths = RunPaths(root=run_root)
    emitter = RunEmitter(run_id=run_id, recorders=(FileEventRecorder(paths.events_path),))
    generator = HierarchyGenerator(
        client,
        project=settings.project,
        emitter=emitter,
        team=settings.team,
        match_mode=MatchMode(settings.match_mode),
        fetch_depth=settings.fetch_depth,
    )

    with run_context(run_id=run_id, step="init"):
        logger.info("Run started", extra={"mode": "generate", "artifacts": str(paths.root)})
        yield from generator.iter_run(spec, report)


def run_assignment_stream(
    *,
    settings: Settings,
    client: TreeClient,
    report: AssignmentReport,
) -> Iterator[RunEvent]:
    """Subscribe ``settings.team`` to every iteration of ``settings.project`` and yield events.

    The fetched tree is written to ``tree.json`` in the run directory before any subscription
    is attempted, unless ``settings.dump_tree`` is off.

    Raises:
        ConfigurationError: No team configured.
    """

    if not (settings.team or "").strip():
        raise ConfigurationError("A team is required for assign-all-to-team (--team or ITERGEN_TEAM).")

    run_id, run_root = _prepare_run_dir(settings.artifacts_dir)
    paths = RunPaths(root=run_root)
    emitter = RunEmitter(run_id=run_id, recorders=(FileEventRecorder(paths.events_path),))
    assigner = BulkTeamAssigner(client, emitter=emitter, fetch_depth=settings.assign_fetch_depth)

    with run_context(run_id=run_id, step="init"):
        logger.info("Run started", extra={"mode": "assign-all-to-team", "artifacts": str(paths.root)})
        tree = assigner.fetch(settings.project)
        if settings.dump_tree:
            dump_tree_json(tree, paths.tree_path)
            logger.info("Tree written", extra={"tree_path": str(paths.tree_path)})
        yield from assigner.iter_run(settings.project, settings.team, report, tree=tree)


def replay_run(*, run_id: str, artifacts_dir: Path) -> Iterator[RunEvent]:
    """Replay a run from recorded events."""

    # Run directory naming matches _prepare_run_dir
    events_path = RunPaths(root=artifacts_dir / f"run_{run_id}").events_path
    yield from iter_events(events_path)


def _prepare_run_dir(base: Path) -> tuple[str, Path]:
    base.mkdir(parents=True, exist_ok=True)
    # <utc timestamp>_<8 hex chars>
    ts = datetime.utcnow().strftime("%Y%m%dT%H%M%SZ")
    suffix = uuid.uuid4().hex[:8]
    run_id = f"{ts}_{suffix}"
    run_dir = base / f"run_{run_id}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_id, run_dir
