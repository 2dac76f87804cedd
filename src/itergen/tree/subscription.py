"""Team subscription payload strategies and limit detection.

The team-settings endpoint accepts different identity shapes depending on the service version,
and which one a given instance wants is not discoverable up front. Each strategy turns a node
into one candidate payload; the client tries them in order and keeps the first success.
"""

from __future__ import annotations

from typing import Any, Callable

from itergen.models.node import ClassificationNode

PayloadBuilder = Callable[[ClassificationNode], dict[str, Any] | None]

# Known wordings of "team already subscribed to the maximum number of iterations".
LIMIT_SIGNATURES: tuple[str, ...] = (
    "subscribed to 301 iterations",
    "this team is subscribed to",
    "vs403228",
)


def _with_name(payload: dict[str, Any], node: ClassificationNode) -> dict[str, Any]:
    if node.name:
        payload["name"] = node.name
    return payload


def identifier_as_id(node: ClassificationNode) -> dict[str, Any] | None:
    """``{"id": <identifier GUID>, "name"}``."""

    if not node.identifier:
        return None
    return _with_name({"id": node.identifier}, node)


def numeric_or_string_id(node: ClassificationNode) -> dict[str, Any] | None:
    """``{"id": <id>, "name"}`` with the id kept as int when the server sent an int."""

    if node.id is None:
        return None
    return _with_name({"id": node.id}, node)


def identifier_as_iteration_id(node: ClassificationNode) -> dict[str, Any] | None:
    """``{"iterationId": <identifier GUID>, "name"}``."""

    if not node.identifier:
        return None
    return _with_name({"iterationId": node.identifier}, node)


DEFAULT_STRATEGIES: tuple[PayloadBuilder, ...] = (
    identifier_as_id,
    numeric_or_string_id,
    identifier_as_iteration_id,
)


def candidate_payloads(
    node: ClassificationNode,
    strategies: tuple[PayloadBuilder, ...] = DEFAULT_STRATEGIES,
) -> list[dict[str, Any]]:
    """Build the ordered, de-duplicated list of payloads to try for ``node``."""

    out: list[dict[str, Any]] = []
    for build in strategies:
        payload = build(node)
        if payload is not None and payload not in out:
            out.append(payload)
    return out


def is_subscription_limit(body: str | None) -> bool:
    """Whether an error body says the team hit the subscribed-iterations ceiling."""

    if not body:
        return False
    lowered = body.lower()
    return any(sig in lowered for sig in LIMIT_SIGNATURES)
