"""Depth x fan-out tree generation.

The generator fetches the target tree once, then walks the planned hierarchy level by level.
Each planned node is resolved to its canonical path and looked up in the fetched tree first;
only missing nodes are created, so re-running the same spec is a no-op on the remote side.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator

from itergen.errors import SubscriptionLimitReached, TransportError
from itergen.events import ContentType, EventType, RunEmitter, RunEvent
from itergen.logging import get_logger, set_step
from itergen.models.generation import GenerationSpec, MatchMode
from itergen.models.node import ClassificationNode, TreeKind
from itergen.orchestrator.state import GenerationReport, LedgerEntry, RunOutcome
from itergen.tree.client import TreeClient
from itergen.tree.matcher import find_existing
from itergen.tree.paths import resolve_path

logger = get_logger(__name__)


class HierarchyGenerator:
    """Create (or reuse) a nested tree of iterations or areas."""

    def __init__(
        self,
        client: TreeClient,
        *,
        project: str,
        emitter: RunEmitter,
        team: str | None = None,
        match_mode: MatchMode = MatchMode.PATH,
        fetch_depth: int = 10,
    ) -> None:
        self._client = client
        self._project = project
        self._emitter = emitter
        self._team = team
        self._match_mode = match_mode
        self._fetch_depth = fetch_depth

    def run(self, spec: GenerationSpec) -> GenerationReport:
        """Run to completion and return the report.

        This is a convenience wrapper around :meth:`iter_run`.
        """

        report = GenerationReport()
        for _ in self.iter_run(spec, report):
            pass
        return report

    def iter_run(self, spec: GenerationSpec, report: GenerationReport) -> Iterator[RunEvent]:
        """Run the generation and yield progress events.

        ``report`` is filled in as the run progresses; it holds the ledger once the iterator is
        exhausted. Fetch and create failures propagate; subscription failures do not.
        """

        emit = self._emitter.emit
        set_step("fetch")
        logger.info(
            "Generation started",
            extra={"project": self._project, "kind": spec.kind.value, "planned": spec.planned_count},
        )
        yield emit(
            EventType.SYSTEM,
            ContentType.RUN_STARTED,
            data=spec.model_dump(mode="json"),
            metadata={"project": self._project, "team": self._team, "match_mode": self._match_mode.value},
        )

        # the tree must reach one level below the deepest planned node
        depth = max(self._fetch_depth, spec.depth + 1)
        tree = self._client.fetch_tree(self._project, spec.kind, depth)
        yield emit(EventType.REMOTE, ContentType.TREE_FETCHED, data={"path": tree.path, "depth": depth})

        set_step("generate")
        yield from self._generate_level(
            spec,
            tree,
            report,
            parent_path=self._project,
            level=1,
            start=spec.start_date,
            prefix=spec.base_name,
        )

        if self._team and spec.kind is TreeKind.ITERATION:
            set_step("subscribe")
            yield from self._subscribe_ledger(report, self._team)

        set_step("done")
        logger.info("Generation finished", extra={"report": report.snapshot()})
        yield emit(EventType.SYSTEM, ContentType.RUN_DONE, data=report.snapshot())

    def _generate_level(
        self,
        spec: GenerationSpec,
        tree: ClassificationNode,
        report: GenerationReport,
        *,
        parent_path: str,
        level: int,
        start: date,
        prefix: str,
    ) -> Iterator[RunEvent]:
        if level > spec.depth:
            return

        emit = self._emitter.emit
        window_start, window_finish = spec.window(start)
        dated = spec.kind is TreeKind.ITERATION

        for i in range(1, spec.children_per_level + 1):
            name = f"{prefix}_{level}.{i}"
            target = resolve_path(self._project, parent_path, name)
            yield emit(
                EventType.REMOTE,
                ContentType.NODE_ATTEMPTED,
                data={
                    "name": name,
                    "path": target.desired_full_path,
                    "create_under": target.create_under_path,
                    "start": window_start.isoformat() if dated else None,
                    "finish": window_finish.isoformat() if dated else None,
                },
            )

            existing = find_existing(
                tree,
                desired_full_path=target.desired_full_path,
                name=name,
                mode=self._match_mode,
            )
            if existing is not None:
                node = existing
                logger.info("Node already exists", extra={"path": node.label()})
                yield emit(
                    EventType.REMOTE,
                    ContentType.NODE_MATCHED_EXISTING,
                    data={"name": name, "path": node.path, "id": node.id},
                )
            else:
                node = self._client.create_node(
                    self._project,
                    spec.kind,
                    target.create_under_path,
                    name,
                    start_date=window_start if dated else None,
                    finish_date=window_finish if dated else None,
                )
                yield emit(
                    EventType.REMOTE,
                    ContentType.NODE_CREATED,
                    data={"name": name, "path": node.path, "id": node.id},
                )
            report.ledger.append(LedgerEntry(node=node, created=existing is None))

            yield from self._generate_level(
                spec,
                tree,
                report,
                parent_path=node.path or target.desired_full_path,
                level=level + 1,
                start=window_finish + timedelta(days=1),
                prefix=name,
            )

    def _subscribe_ledger(self, report: GenerationReport, team: str) -> Iterator[RunEvent]:
        emit = self._emitter.emit
        logger.info("Subscribing team to generated iterations", extra={"team": team, "count": len(report.ledger)})

        for index, entry in enumerate(report.ledger):
            node = entry.node
            if not node.has_identity:
                report.subscription_failures += 1
                logger.error("Node has no id or identifier; cannot subscribe", extra={"team": team, "path": node.label()})
                yield emit(
                    EventType.ERROR,
                    ContentType.SUBSCRIPTION_FAILED,
                    data="node has neither 'id' nor 'identifier'",
                    metadata={"team": team, "path": node.label(), "status_code": None},
                )
                continue
            try:
                result = self._client.subscribe_team_to_iteration(self._project, team, node)
            except SubscriptionLimitReached as e:
                remaining = len(report.ledger) - index
                report.outcome = RunOutcome.STOPPED_AT_LIMIT
                logger.warning(
                    "Team subscription limit reached; skipping remaining subscriptions",
                    extra={"team": team, "path": node.label(), "remaining": remaining},
                )
                yield emit(
                    EventType.ERROR,
                    ContentType.LIMIT_REACHED,
                    data=str(e),
                    metadata={"team": team, "path": node.label(), "remaining": remaining},
                )
                return
            except TransportError as e:
                report.subscription_failures += 1
                logger.error("Team subscription failed", extra={"team": team, "path": node.label(), "error": str(e)})
                yield emit(
                    EventType.ERROR,
                    ContentType.SUBSCRIPTION_FAILED,
                    data=str(e),
                    metadata={"team": team, "path": node.label(), "status_code": e.status_code},
                )
                continue

            report.subscribed += 1
            yield emit(
                EventType.REMOTE,
                ContentType.NODE_SUBSCRIBED,
                data={"path": node.path, "payload": result.payload, "attempts": result.attempts},
                metadata={"team": team},
            )
