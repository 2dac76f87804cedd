"""Subscribe a team to every iteration of a project."""

from __future__ import annotations

from typing import Iterator

from itergen.errors import SubscriptionLimitReached, TransportError
from itergen.events import ContentType, EventType, RunEmitter, RunEvent
from itergen.logging import get_logger, set_step
from itergen.models.node import ClassificationNode, TreeKind
from itergen.orchestrator.state import AssignmentReport, RunOutcome
from itergen.tree.client import TreeClient
from itergen.tree.matcher import iter_nodes

logger = get_logger(__name__)


class BulkTeamAssigner:
    """Walk the full iteration tree in pre-order and subscribe a team to each node.

    A failure on one node is local to that node. The subscription ceiling is global to the
    team, so reaching it ends the walk at once.
    """

    def __init__(self, client: TreeClient, *, emitter: RunEmitter, fetch_depth: int = 50) -> None:
        self._client = client
        self._emitter = emitter
        self._fetch_depth = fetch_depth

    def fetch(self, project: str) -> ClassificationNode:
        """Fetch the iteration tree as deep as configured."""

        set_step("fetch")
        return self._client.fetch_tree(project, TreeKind.ITERATION, self._fetch_depth)

    def run(self, project: str, team: str) -> AssignmentReport:
        """Run to completion and return the report."""

        report = AssignmentReport()
        for _ in self.iter_run(project, team, report):
            pass
        return report

    def iter_run(
        self,
        project: str,
        team: str,
        report: AssignmentReport,
        *,
        tree: ClassificationNode | None = None,
    ) -> Iterator[RunEvent]:
        """Yield progress events while subscribing ``team`` to every node.

        Args:
            project: Project name.
            team: Team name.
            report: Filled in as the walk progresses.
            tree: Already fetched tree; fetched here when omitted.
        """

        emit = self._emitter.emit
        yield emit(
            EventType.SYSTEM,
            ContentType.RUN_STARTED,
            data={"mode": "assign-all-to-team"},
            metadata={"project": project, "team": team},
        )
        if tree is None:
            tree = self.fetch(project)
        yield emit(EventType.REMOTE, ContentType.TREE_FETCHED, data={"path": tree.path, "depth": self._fetch_depth})

        set_step("subscribe")
        logger.info("Bulk assignment started", extra={"project": project, "team": team})
        for node in iter_nodes(tree):
            report.visited += 1
            if not node.has_identity:
                report.skipped += 1
                logger.debug("Node has no id; skipping", extra={"path": node.label()})
                continue

            yield emit(EventType.REMOTE, ContentType.NODE_ATTEMPTED, data={"path": node.path, "id": node.id})
            try:
                result = self._client.subscribe_team_to_iteration(project, team, node)
            except SubscriptionLimitReached as e:
                report.outcome = RunOutcome.STOPPED_AT_LIMIT
                logger.warning(
                    "Team subscription limit reached; stopping traversal",
                    extra={"team": team, "path": node.label(), "subscribed": report.subscribed},
                )
                yield emit(
                    EventType.ERROR,
                    ContentType.LIMIT_REACHED,
                    data=str(e),
                    metadata={"team": team, "path": node.label()},
                )
                break
            except TransportError as e:
                report.failures += 1
                logger.error("Team subscription failed", extra={"team": team, "path": node.label(), "error": str(e)})
                yield emit(
                    EventType.ERROR,
                    ContentType.SUBSCRIPTION_FAILED,
                    data=str(e),
                    metadata={"team": team, "path": node.label(), "status_code": e.status_code},
                )
                continue

            report.subscribed += 1
            report.subscribed_paths.append(node.path)
            yield emit(
                EventType.REMOTE,
                ContentType.NODE_SUBSCRIBED,
                data={"path": node.path, "payload": result.payload, "attempts": result.attempts},
                metadata={"team": team},
            )

        set_step("done")
        logger.info("Bulk assignment finished", extra={"report": report.snapshot()})
        yield emit(EventType.SYSTEM, ContentType.RUN_DONE, data=report.snapshot())
