"""Shared fixtures: an in-memory remote tree."""

from __future__ import annotations

from datetime import date, datetime, time

import pytest

from itergen.errors import SubscriptionLimitReached, TransportError
from itergen.events import RunEmitter
from itergen.models.node import ClassificationNode, NodeAttributes, TreeKind
from itergen.tree.client import SubscriptionResult
from itergen.tree.matcher import find_by_path

PROJECT = "Proj"


class FakeTreeClient:
    """Keeps one tree in memory and behaves like the remote service.

    Created nodes are attached to the stored tree, so a later ``fetch_tree`` sees them.
    """

    def __init__(
        self,
        root: ClassificationNode | None = None,
        *,
        limit_after: int | None = None,
        fail_paths: tuple[str, ...] = (),
        fail_create: bool = False,
    ) -> None:
        self.root = root or ClassificationNode(id=1, identifier="guid-1", name=PROJECT, path=f"\\{PROJECT}")
        self.limit_after = limit_after
        self.fail_paths = set(fail_paths)
        self.fail_create = fail_create
        self.created: list[tuple[str, str, date | None, date | None]] = []
        self.subscribed: list[str] = []
        self.fetch_calls: list[int] = []
        self._next_id = 100

    def fetch_tree(self, project: str, kind: TreeKind = TreeKind.ITERATION, depth: int = 10) -> ClassificationNode:
        self.fetch_calls.append(depth)
        return self.root.model_copy(deep=True)

    def create_node(
        self,
        project: str,
        kind: TreeKind,
        create_under_path: str,
        name: str,
        start_date: date | None = None,
        finish_date: date | None = None,
    ) -> ClassificationNode:
        if self.fail_create:
            raise TransportError("POST failed: 500", status_code=500, body="boom", payload={"name": name})
        parent_path = f"\\{project}" + (f"\\{create_under_path}" if create_under_path else "")
        parent = find_by_path(self.root, parent_path)
        if parent is None:
            raise TransportError(f"parent {parent_path} not found", status_code=404, payload={"name": name})

        self._next_id += 1
        attributes = None
        if start_date is not None or finish_date is not None:
            attributes = NodeAttributes(
                start_date=datetime.combine(start_date, time()) if start_date else None,
                finish_date=datetime.combine(finish_date, time()) if finish_date else None,
            )
        node = ClassificationNode(
            id=self._next_id,
            identifier=f"guid-{self._next_id}",
            name=name,
            path=f"{parent_path}\\{name}",
            attributes=attributes,
        )
        parent.children.append(node)
        self.created.append((name, create_under_path, start_date, finish_date))
        return node.model_copy(deep=True)

    def subscribe_team_to_iteration(self, project: str, team: str, node: ClassificationNode) -> SubscriptionResult:
        if not node.has_identity:
            raise ValueError(f"node {node.label()!r} has neither 'id' nor 'identifier'")
        if node.path in self.fail_paths:
            raise TransportError("POST teamsettings failed: 500", status_code=500, body="boom")
        if self.limit_after is not None and len(self.subscribed) >= self.limit_after:
            raise SubscriptionLimitReached(
                f"Team '{team}' has reached the maximum number of subscribed iterations.",
                attempts=[({"id": node.identifier}, 400, "VS403228: limit")],
            )
        self.subscribed.append(node.path)
        return SubscriptionResult(payload={"id": node.identifier}, status_code=200, attempts=1)


@pytest.fixture()
def fake_client() -> FakeTreeClient:
    return FakeTreeClient()


@pytest.fixture()
def emitter() -> RunEmitter:
    return RunEmitter(run_id="test-run")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for var in (
        "ITERGEN_ORGANIZATION",
        "ITERGEN_PROJECT",
        "ITERGEN_TEAM",
        "ITERGEN_PAT",
        "AZURE_DEVOPS_PAT",
        "ITERGEN_ENV_FILE",
        "ITERGEN_ARTIFACTS_DIR",
        "ITERGEN_MATCH_MODE",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
