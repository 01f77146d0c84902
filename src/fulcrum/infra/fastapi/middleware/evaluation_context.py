"""Middleware populating the ambient evaluation context from HTTP requests.

Extracts the tenant ID, client IP and User-Agent of each request and makes
them available to every setting resolution performed while the request is
handled. ``geocoding`` and ``user_agent`` conditions read ``ip`` and
``user_agent`` from the ambient attributes when no scope supplies them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fulcrum.foundation.application.context import (
    clear_ambient_context,
    set_ambient_context,
)

if TYPE_CHECKING:
    from collections.abc import Callable


# Header names
TENANT_ID_HEADER = "X-Tenant-ID"
FORWARDED_FOR_HEADER = "X-Forwarded-For"
USER_AGENT_HEADER = "User-Agent"


def _extract_header(headers: list[tuple[bytes, bytes]], name: bytes) -> str:
    """Extract a header value from raw ASGI headers."""
    for key, value in headers:
        if key.lower() == name:
            return value.decode("latin-1")
    return ""


def _client_ip(scope: dict[str, Any], headers: list[tuple[bytes, bytes]]) -> str | None:
    """First hop of X-Forwarded-For, else the socket peer address."""
    forwarded = _extract_header(headers, b"x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    client = scope.get("client")
    return client[0] if client else None


class EvaluationContextMiddleware:
    """Pure ASGI middleware that sets the ambient context per request.

    Populates:
    - tenant_id: from X-Tenant-ID (None if absent)
    - attributes["ip"]: client IP
    - attributes["user_agent"]: User-Agent header (None if absent)

    The context is cleared after the request completes.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        headers = scope.get("headers", [])
        tenant_id = _extract_header(headers, b"x-tenant-id") or None
        user_agent = _extract_header(headers, b"user-agent") or None

        token = set_ambient_context(
            tenant_id=tenant_id,
            attributes={"ip": _client_ip(scope, headers), "user_agent": user_agent},
        )
        try:
            await self.app(scope, receive, send)
        finally:
            clear_ambient_context(token)
