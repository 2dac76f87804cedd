"""Search helpers over a fetched classification tree.

Both matchers are depth-first, read-only and stop at the first hit.
"""

from __future__ import annotations

from typing import Callable, Iterator

from itergen.models.generation import MatchMode
from itergen.models.node import ClassificationNode


def iter_nodes(root: ClassificationNode) -> Iterator[ClassificationNode]:
    """Yield ``root`` and all descendants in pre-order."""

    yield root
    for child in root.children:
        yield from iter_nodes(child)


def _find(root: ClassificationNode, predicate: Callable[[ClassificationNode], bool]) -> ClassificationNode | None:
    return next((node for node in iter_nodes(root) if predicate(node)), None)


def find_by_path(root: ClassificationNode, desired_full_path: str) -> ClassificationNode | None:
    """Return the node whose ``path`` equals ``desired_full_path`` exactly, if any."""

    return _find(root, lambda node: node.path == desired_full_path)


def find_by_name(root: ClassificationNode, name: str) -> ClassificationNode | None:
    """Return the first node anywhere in the tree named ``name``.

    This is the legacy project-wide check; it will report a match for a same-named node in an
    unrelated branch.
    """

    return _find(root, lambda node: node.name == name)


def find_existing(
    root: ClassificationNode,
    *,
    desired_full_path: str,
    name: str,
    mode: MatchMode = MatchMode.PATH,
) -> ClassificationNode | None:
    """Dispatch to the matcher selected by ``mode``."""

    if mode is MatchMode.NAME:
        return find_by_name(root, name)
    return find_by_path(root, desired_full_path)
