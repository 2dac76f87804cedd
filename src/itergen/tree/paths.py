"""Path resolution for classification nodes.

Internally every path is backslash-delimited. Absolute paths start with ``\\<project>``; the
"create under" path handed to the create request is project-relative and only turned into
forward-slash URL segments at the very edge (:func:`url_segments`).
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from itergen.models.node import TreeKind

SEP = "\\"


@dataclass(frozen=True)
class PathSpec:
    """Resolved addressing for one create operation.

    Attributes:
        desired_full_path: Absolute path the node will have, used for duplicate matching.
        create_under_path: Project-relative parent path; empty means the project root.
    """

    desired_full_path: str
    create_under_path: str

    @property
    def is_root(self) -> bool:
        return not self.create_under_path


def _split(value: str) -> list[str]:
    return [seg for seg in value.replace("/", SEP).split(SEP) if seg]


def _is_project_root(project: str, parent: str) -> bool:
    return not parent or parent.strip("\\/").lower() == project.lower()


def resolve_path(project: str, raw_parent: str | None, name: str) -> PathSpec:
    """Turn a human-supplied parent reference into a :class:`PathSpec`.

    ``raw_parent`` may be empty, the project name, a project-relative path, or an absolute path
    copied from a fetched node (``\\Project\\Sprint_1.1``). Either separator is accepted.

    Args:
        project: Project name.
        raw_parent: Parent reference as supplied by the caller.
        name: Name of the node to create.

    Returns:
        The canonical absolute path of the node and the project-relative parent path.
    """

    parent = (raw_parent or "").strip()
    if _is_project_root(project, parent):
        return PathSpec(desired_full_path=f"{SEP}{project}{SEP}{name}", create_under_path="")

    segments = _split(parent)
    # absolute paths copied from a fetched node carry the project as first segment
    if len(segments) > 1 and segments[0].lower() == project.lower():
        segments = segments[1:]

    relative = SEP.join(segments)
    return PathSpec(
        desired_full_path=f"{SEP}{project}{SEP}{relative}{SEP}{name}",
        create_under_path=relative,
    )


def canonical_node_path(path: str, project: str, kind: TreeKind) -> str:
    """Normalize a server-reported node path to ``\\<project>\\...``.

    Servers report ``\\Project\\Iteration\\Sprint 1``; the engine addresses the same node as
    ``\\Project\\Sprint 1``. The project segment is rewritten to ``project``'s casing so exact
    comparison against resolved paths works regardless of how the user typed the name.
    """

    segments = _split(path)
    if not segments or segments[0].lower() != project.lower():
        return path
    rest = segments[1:]
    if rest and rest[0].lower() == kind.structure_segment.lower():
        rest = rest[1:]
    return SEP + SEP.join([project, *rest])


def url_segments(create_under_path: str) -> str:
    """Render a project-relative path as percent-encoded forward-slash URL segments."""

    return "/".join(quote(seg, safe="") for seg in _split(create_under_path))
