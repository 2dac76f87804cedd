"""Error hierarchy for tree synchronization.

All errors raised by the client and the engines inherit from :class:`TreeSyncError` so the CLI
can map them onto exit codes in one place.
"""

from __future__ import annotations

from typing import Any


class TreeSyncError(RuntimeError):
    """Base for all itergen errors."""


class ConfigurationError(TreeSyncError):
    """Missing or invalid required input, detected before any network call."""


class TransportError(TreeSyncError):
    """Non-2xx response or connection failure.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        body: Response body text (may be empty).
        payload: Outbound request payload, if any.
        url: Request URL (relative to the organization base URL).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str = "",
        payload: Any = None,
        url: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.payload = payload
        self.url = url
        super().__init__(message)


class UnexpectedContentError(TreeSyncError):
    """Success status but an HTML or otherwise non-JSON body.

    This is the usual signature of a sign-in page served instead of the API response, which
    means the credentials or the organization URL are wrong.
    """

    def __init__(self, message: str, *, body_snippet: str = "", url: str | None = None) -> None:
        self.body_snippet = body_snippet
        self.url = url
        super().__init__(message)


class SubscriptionLimitReached(TreeSyncError):
    """The team is already subscribed to the maximum number of iterations.

    Attributes:
        attempts: One ``(payload, status_code, body)`` tuple per failed attempt; the status is None
            when no response was received.
    """

    def __init__(self, message: str, *, attempts: list[tuple[dict[str, Any], int | None, str]] | None = None) -> None:
        self.attempts = list(attempts or [])
        super().__init__(message)
