"""Tests for BulkTeamAssigner."""

from __future__ import annotations

from conftest import PROJECT, FakeTreeClient
from itergen.events import ContentType, RunEmitter
from itergen.models.node import ClassificationNode
from itergen.orchestrator.assigner import BulkTeamAssigner
from itergen.orchestrator.state import AssignmentReport, RunOutcome


def _five_node_tree() -> ClassificationNode:
    return ClassificationNode.model_validate(
        {
            "id": 1,
            "identifier": "guid-1",
            "name": PROJECT,
            "path": "\\Proj",
            "children": [
                {
                    "id": 2,
                    "identifier": "guid-2",
                    "name": "R1",
                    "path": "\\Proj\\R1",
                    "children": [{"id": 3, "identifier": "guid-3", "name": "S1", "path": "\\Proj\\R1\\S1"}],
                },
                {
                    "id": 4,
                    "identifier": "guid-4",
                    "name": "R2",
                    "path": "\\Proj\\R2",
                    "children": [{"id": 5, "identifier": "guid-5", "name": "S2", "path": "\\Proj\\R2\\S2"}],
                },
            ],
        }
    )


def _assigner(client: FakeTreeClient) -> BulkTeamAssigner:
    return BulkTeamAssigner(client, emitter=RunEmitter(run_id="test-run"))


def test_assign_subscribes_every_node_in_pre_order() -> None:
    """It should subscribe the team to every node, parents before children."""

    client = FakeTreeClient(_five_node_tree())

    report = _assigner(client).run(PROJECT, "Team A")

    assert report.subscribed == 5
    assert report.outcome is RunOutcome.COMPLETED
    assert client.subscribed == ["\\Proj", "\\Proj\\R1", "\\Proj\\R1\\S1", "\\Proj\\R2", "\\Proj\\R2\\S2"]
    assert report.subscribed_paths == client.subscribed


def test_assign_stops_at_limit() -> None:
    """It should stop the whole traversal when the third node hits the limit."""

    client = FakeTreeClient(_five_node_tree(), limit_after=2)
    report = AssignmentReport()

    events = list(_assigner(client).iter_run(PROJECT, "Team A", report))

    assert report.subscribed == 2
    assert report.visited == 3
    assert report.outcome is RunOutcome.STOPPED_AT_LIMIT
    assert [e.content_type for e in events][-2:] == [ContentType.LIMIT_REACHED, ContentType.RUN_DONE]


def test_assign_failure_is_node_local() -> None:
    """It should continue into children and siblings after a failed subscription."""

    client = FakeTreeClient(_five_node_tree(), fail_paths=("\\Proj\\R1",))

    report = _assigner(client).run(PROJECT, "Team A")

    assert report.subscribed == 4
    assert report.failures == 1
    assert "\\Proj\\R1\\S1" in client.subscribed
    assert report.outcome is RunOutcome.COMPLETED


def test_assign_skips_nodes_without_identity() -> None:
    """It should skip nodes the server returned without id or identifier."""

    tree = ClassificationNode(
        id=1,
        name=PROJECT,
        path="\\Proj",
        children=[ClassificationNode(name="ghost", path="\\Proj\\ghost")],
    )
    client = FakeTreeClient(tree)

    report = _assigner(client).run(PROJECT, "Team A")

    assert report.visited == 2
    assert report.skipped == 1
    assert client.subscribed == ["\\Proj"]


def test_assign_uses_given_tree_without_fetching() -> None:
    """It should not fetch again when the caller already holds the tree."""

    client = FakeTreeClient(_five_node_tree())
    assigner = _assigner(client)
    tree = assigner.fetch(PROJECT)

    list(assigner.iter_run(PROJECT, "Team A", AssignmentReport(), tree=tree))

    assert client.fetch_calls == [50]
