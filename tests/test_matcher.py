"""Tests for tree matchers."""

from __future__ import annotations

from itergen.models.generation import MatchMode
from itergen.models.node import ClassificationNode
from itergen.tree.matcher import find_by_name, find_by_path, find_existing, iter_nodes


def _tree() -> ClassificationNode:
    return ClassificationNode.model_validate(
        {
            "id": 1,
            "name": "Proj",
            "path": "\\Proj",
            "children": [
                {
                    "id": 2,
                    "name": "Release",
                    "path": "\\Proj\\Release",
                    "children": [{"id": 4, "name": "Sprint_1.1", "path": "\\Proj\\Release\\Sprint_1.1"}],
                },
                {"id": 3, "name": "Other", "path": "\\Proj\\Other", "children": None},
            ],
        }
    )


def test_iter_nodes_is_pre_order() -> None:
    """It should visit a parent before its children and children in order."""

    assert [n.id for n in iter_nodes(_tree())] == [1, 2, 4, 3]


def test_find_by_path_absent_returns_none() -> None:
    """It should return None when no node has the exact path."""

    assert find_by_path(_tree(), "\\Proj\\Sprint_1.1") is None


def test_find_by_path_matches_at_any_depth() -> None:
    """It should find a deeply nested node by its exact path."""

    node = find_by_path(_tree(), "\\Proj\\Release\\Sprint_1.1")

    assert node is not None
    assert node.id == 4


def test_find_by_name_matches_anywhere() -> None:
    """It should match a same-named node in an unrelated branch."""

    node = find_by_name(_tree(), "Sprint_1.1")

    assert node is not None
    assert node.path == "\\Proj\\Release\\Sprint_1.1"


def test_find_existing_dispatches_on_mode() -> None:
    """It should use exact paths by default and names in legacy mode."""

    tree = _tree()
    kwargs = {"desired_full_path": "\\Proj\\Sprint_1.1", "name": "Sprint_1.1"}

    assert find_existing(tree, **kwargs) is None
    assert find_existing(tree, mode=MatchMode.PATH, **kwargs) is None
    found = find_existing(tree, mode=MatchMode.NAME, **kwargs)
    assert found is not None and found.id == 4
