"""Classification-node client for the work-tracking REST API.

The client owns no state beyond the HTTP session. It maps three operations onto requests
(fetch a subtree, create a node, subscribe a team to an iteration) and classifies failures
into the error types in :mod:`itergen.errors`.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from itergen.config import Settings
from itergen.core.http import build_http_client
from itergen.errors import SubscriptionLimitReached, TransportError, UnexpectedContentError
from itergen.logging import get_logger
from itergen.models.node import ClassificationNode, TreeKind
from itergen.tree.paths import canonical_node_path, url_segments
from itergen.tree.subscription import candidate_payloads, is_subscription_limit

logger = get_logger(__name__)

_SNIPPET_CHARS = 2048


def _snippet(body: str) -> str:
    if len(body) > _SNIPPET_CHARS:
        return body[:_SNIPPET_CHARS] + "...[truncated]"
    return body


def _iso_midnight(value: date) -> str:
    return f"{value.isoformat()}T00:00:00Z"


def _canonicalize(raw: dict[str, Any], project: str, kind: TreeKind) -> dict[str, Any]:
    out = dict(raw)
    if isinstance(out.get("path"), str):
        out["path"] = canonical_node_path(out["path"], project, kind)
    children = out.get("children")
    if isinstance(children, list):
        out["children"] = [
            _canonicalize(child, project, kind) if isinstance(child, dict) else child for child in children
        ]
    return out


@dataclass(frozen=True)
class SubscriptionResult:
    """Successful team subscription.

    Attributes:
        payload: The candidate payload the server accepted.
        status_code: Status of the accepted attempt.
        attempts: Number of requests sent, including the successful one.
        failures: ``(payload, status_code, body)`` for every rejected attempt before it.
    """

    payload: dict[str, Any]
    status_code: int
    attempts: int
    failures: list[tuple[dict[str, Any], int | None, str]] = field(default_factory=list)


class TreeClient(Protocol):
    """Operations the engines need from the remote service."""

    def fetch_tree(self, project: str, kind: TreeKind = TreeKind.ITERATION, depth: int = 10) -> ClassificationNode:
        """Fetch a classification subtree."""

    def create_node(
        self,
        project: str,
        kind: TreeKind,
        create_under_path: str,
        name: str,
        start_date: date | None = None,
        finish_date: date | None = None,
    ) -> ClassificationNode:
        """Create one node."""

    def subscribe_team_to_iteration(self, project: str, team: str, node: ClassificationNode) -> SubscriptionResult:
        """Subscribe a team to one iteration."""


class RemoteTreeClient:
    """Read, create and subscribe classification nodes."""

    def __init__(self, http: httpx.Client, *, api_version: str = "7.1") -> None:
        self._http = http
        self.api_version = api_version

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> RemoteTreeClient:
        """Build a client with the credentialed transport described by ``settings``."""

        return cls(build_http_client(settings, transport=transport), api_version=settings.api_version)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> RemoteTreeClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    def _collection_url(self, project: str, kind: TreeKind, create_under_path: str = "") -> str:
        url = f"{quote(project, safe='')}/_apis/wit/classificationnodes/{kind.collection}"
        segments = url_segments(create_under_path)
        if segments:
            url = f"{url}/{segments}"
        return url

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> httpx.Response:
        query = {"api-version": self.api_version, **(params or {})}
        started = time.monotonic()
        try:
            resp = self._http.request(method, url, params=query, json=payload)
        except httpx.RequestError as e:
            raise TransportError(
                f"{method} {url} failed: {type(e).__name__}: {e}",
                payload=payload,
                url=url,
            ) from e
        logger.debug(
            "Remote request",
            extra={
                "method": method,
                "url": url,
                "status_code": resp.status_code,
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return resp

    @staticmethod
    def _reject_html(resp: httpx.Response, *, method: str, url: str) -> None:
        body = resp.text
        content_type = resp.headers.get("content-type", "")
        if "html" in content_type.lower() or body.lstrip().startswith("<"):
            raise UnexpectedContentError(
                f"{method} {url} returned HTML (likely a sign-in page or redirect). This usually "
                f"means authentication failed or the organization URL is wrong. "
                f"Response snippet:\n{_snippet(body)}",
                body_snippet=_snippet(body),
                url=url,
            )

    @classmethod
    def _parse_json_object(cls, resp: httpx.Response, *, method: str, url: str) -> dict[str, Any]:
        cls._reject_html(resp, method=method, url=url)
        body = resp.text
        try:
            data = json.loads(body)
        except ValueError as e:
            raise UnexpectedContentError(
                f"{method} {url} returned a non-JSON response. Response body:\n{_snippet(body)}",
                body_snippet=_snippet(body),
                url=url,
            ) from e
        if not isinstance(data, dict):
            raise UnexpectedContentError(
                f"{method} {url} returned JSON that is not an object",
                body_snippet=_snippet(body),
                url=url,
            )
        return data

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def fetch_tree(self, project: str, kind: TreeKind = TreeKind.ITERATION, depth: int = 10) -> ClassificationNode:
        """Fetch the classification tree of ``project`` up to ``depth`` levels.

        Node paths are canonicalized to ``\\<project>\\...`` (see
        :func:`itergen.tree.paths.canonical_node_path`).

        Raises:
            TransportError: Non-success status or connection failure.
            UnexpectedContentError: Success status with HTML / non-JSON body.
        """

        url = self._collection_url(project, kind)
        resp = self._send("GET", url, params={"$depth": depth})
        if not resp.is_success:
            raise TransportError(
                f"GET {url} failed: {resp.status_code} {resp.reason_phrase}\nResponse body:\n{resp.text}",
                status_code=resp.status_code,
                body=resp.text,
                url=url,
            )
        data = self._parse_json_object(resp, method="GET", url=url)
        root = ClassificationNode.model_validate(_canonicalize(data, project, kind))
        logger.info("Fetched tree", extra={"project": project, "kind": kind.value, "depth": depth})
        return root

    def create_node(
        self,
        project: str,
        kind: TreeKind,
        create_under_path: str,
        name: str,
        start_date: date | None = None,
        finish_date: date | None = None,
    ) -> ClassificationNode:
        """Create ``name`` under ``create_under_path`` (empty for the project root).

        Raises:
            TransportError: Non-success status; carries the response body and request payload.
            UnexpectedContentError: Success status with HTML / non-JSON body.
        """

        url = self._collection_url(project, kind, create_under_path)
        payload: dict[str, Any] = {"name": name}
        attributes: dict[str, str] = {}
        if start_date is not None:
            attributes["startDate"] = _iso_midnight(start_date)
        if finish_date is not None:
            attributes["finishDate"] = _iso_midnight(finish_date)
        if attributes:
            payload["attributes"] = attributes

        resp = self._send("POST", url, payload=payload)
        if not resp.is_success:
            raise TransportError(
                f"POST {url} failed: {resp.status_code} {resp.reason_phrase}\n"
                f"Response body:\n{resp.text}\nRequest body:\n{json.dumps(payload)}",
                status_code=resp.status_code,
                body=resp.text,
                payload=payload,
                url=url,
            )
        data = self._parse_json_object(resp, method="POST", url=url)
        node = ClassificationNode.model_validate(_canonicalize(data, project, kind))
        logger.info("Created node", extra={"path": node.path, "id": node.id})
        return node

    def subscribe_team_to_iteration(self, project: str, team: str, node: ClassificationNode) -> SubscriptionResult:
        """Subscribe ``team`` to the iteration ``node``.

        Candidate payloads are tried in order (see :mod:`itergen.tree.subscription`); the first
        2xx wins.

        Raises:
            ValueError: The node has neither ``id`` nor ``identifier``.
            SubscriptionLimitReached: Every attempt failed and one of them carried the
                subscription-limit signature.
            TransportError: Every attempt failed for any other reason.
            UnexpectedContentError: An attempt got a success status with an HTML body.
        """

        candidates = candidate_payloads(node)
        if not candidates:
            raise ValueError(f"node {node.label()!r} has neither 'id' nor 'identifier'")

        url = f"{quote(project, safe='')}/{quote(team, safe='')}/_apis/work/teamsettings/iterations"
        failures: list[tuple[dict[str, Any], int | None, str]] = []
        for attempt, payload in enumerate(candidates, start=1):
            try:
                resp = self._send("POST", url, payload=payload)
            except TransportError as e:
                failures.append((payload, None, str(e)))
                continue
            if resp.is_success:
                self._reject_html(resp, method="POST", url=url)
                logger.info(
                    "Team subscribed",
                    extra={"team": team, "path": node.path, "attempt": attempt, "payload": payload},
                )
                return SubscriptionResult(
                    payload=payload,
                    status_code=resp.status_code,
                    attempts=attempt,
                    failures=failures,
                )
            failures.append((payload, resp.status_code, resp.text))

        if any(is_subscription_limit(body) for _, _, body in failures):
            raise SubscriptionLimitReached(
                f"Team '{team}' has reached the maximum number of subscribed iterations. "
                "Remove some team iterations before retrying.",
                attempts=failures,
            )

        details = "\n".join(
            f"Attempt with payload {json.dumps(p)} failed: {s if s is not None else 'no response'}\nResponse: {b}"
            for p, s, b in failures
        )
        last_status = next((s for _, s, _ in reversed(failures) if s is not None), None)
        raise TransportError(
            f"POST {url} failed for all candidate payloads. Details:\n{details}",
            status_code=last_status,
            body=failures[-1][2],
            payload=[p for p, _, _ in failures],
            url=url,
        )

    # ------------------------------------------------------------------
    # Connectivity probes
    # ------------------------------------------------------------------

    def _probe(self, url: str, *, expect: str) -> bool:
        try:
            resp = self._send("GET", url)
        except TransportError as e:
            logger.error("Connectivity probe failed", extra={"url": url, "error": str(e)})
            return False
        if resp.is_success and expect in resp.text and not resp.text.lstrip().startswith("<"):
            logger.info("Connectivity probe succeeded", extra={"url": url})
            return True
        logger.error(
            "Connectivity probe failed",
            extra={"url": url, "status_code": resp.status_code, "body": _snippet(resp.text)},
        )
        return False

    def check_connection(self) -> bool:
        """GET the organization's project list to verify credentials and URL."""

        return self._probe("_apis/projects", expect='"value"')

    def check_project_tree(self, project: str, kind: TreeKind = TreeKind.ITERATION) -> bool:
        """GET the project's classification endpoint to verify access to it."""

        return self._probe(self._collection_url(project, kind), expect='"path"')
