"""Classification tree access: remote client, path resolution and matching."""

from __future__ import annotations

from itergen.tree.client import RemoteTreeClient, SubscriptionResult, TreeClient
from itergen.tree.matcher import find_by_name, find_by_path, find_existing, iter_nodes
from itergen.tree.paths import PathSpec, canonical_node_path, resolve_path
from itergen.tree.subscription import candidate_payloads, is_subscription_limit

__all__ = [
    "PathSpec",
    "RemoteTreeClient",
    "SubscriptionResult",
    "TreeClient",
    "candidate_payloads",
    "canonical_node_path",
    "find_by_name",
    "find_by_path",
    "find_existing",
    "is_subscription_limit",
    "iter_nodes",
    "resolve_path",
]
