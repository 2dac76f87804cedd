"""Credentialed HTTP transport.

The engine never handles credentials itself; it consumes an ``httpx.Client`` that already
points at the organization and carries basic auth with a personal access token.
"""

from __future__ import annotations

import httpx

from itergen.config import Settings


def organization_base_url(ado_url: str, organization: str) -> str:
    """``https://dev.azure.com`` + ``contoso`` -> ``https://dev.azure.com/contoso/``."""

    return f"{ado_url.strip().rstrip('/')}/{organization.strip().strip('/')}/"


def build_http_client(
    settings: Settings,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create the ``httpx.Client`` used by :class:`itergen.tree.client.RemoteTreeClient`.

    Redirects are not followed: a redirect to a sign-in page must surface as a failure instead
    of being silently turned into an HTML 200.

    Args:
        settings: Application settings; ``organization`` and ``pat`` must be set.
        transport: Optional transport override (tests use ``httpx.MockTransport``).
    """

    settings.require_connection()
    return httpx.Client(
        base_url=organization_base_url(settings.ado_url, settings.organization),
        auth=httpx.BasicAuth("", settings.pat or ""),
        headers={"Accept": "application/json"},
        timeout=httpx.Timeout(settings.http_timeout_s),
        follow_redirects=False,
        transport=transport,
    )
