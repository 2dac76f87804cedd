"""Tests for subscription payload strategies."""

from __future__ import annotations

from itergen.models.node import ClassificationNode
from itergen.tree.subscription import candidate_payloads, is_subscription_limit


def test_candidate_payloads_order_for_full_node() -> None:
    """It should try identifier-as-id, then id, then iterationId."""

    node = ClassificationNode(id=42, identifier="guid-42", name="Sprint_1.1")

    assert candidate_payloads(node) == [
        {"id": "guid-42", "name": "Sprint_1.1"},
        {"id": 42, "name": "Sprint_1.1"},
        {"iterationId": "guid-42", "name": "Sprint_1.1"},
    ]


def test_candidate_payloads_identifier_only() -> None:
    """It should skip the id shape when the node has no id."""

    node = ClassificationNode(identifier="guid-7")

    assert candidate_payloads(node) == [{"id": "guid-7"}, {"iterationId": "guid-7"}]


def test_candidate_payloads_drops_duplicates() -> None:
    """It should not send the same payload twice."""

    node = ClassificationNode(id="same", identifier="same", name="X")

    assert candidate_payloads(node) == [{"id": "same", "name": "X"}, {"iterationId": "same", "name": "X"}]


def test_candidate_payloads_empty_without_identity() -> None:
    """It should produce nothing for a node without id or identifier."""

    assert candidate_payloads(ClassificationNode(name="orphan")) == []


def test_is_subscription_limit_signatures() -> None:
    """It should recognize every known limit wording, case-insensitively."""

    assert is_subscription_limit('{"message": "VS403228: team is full"}')
    assert is_subscription_limit("The team is SUBSCRIBED TO 301 ITERATIONS already")
    assert is_subscription_limit("This team is subscribed to the maximum number of iterations")
    assert not is_subscription_limit("TF400898: An Internal Error Occurred")
    assert not is_subscription_limit("")
    assert not is_subscription_limit(None)
