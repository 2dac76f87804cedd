"""Pydantic models used across the project."""

from __future__ import annotations

from itergen.models.generation import GenerationSpec, MatchMode
from itergen.models.node import ClassificationNode, NodeAttributes, TreeKind

__all__ = [
    "ClassificationNode",
    "GenerationSpec",
    "MatchMode",
    "NodeAttributes",
    "TreeKind",
]
