"""Ambient and per-call evaluation context.

Two layers of context feed the resolver:

- ``AmbientContext`` is request-scoped data (tenant id, actor, a bag of
  attributes such as the client IP) propagated through a ContextVar. It
  is populated once at the boundary, e.g. by the FastAPI middleware, and
  read by the resolver only as a lowest-priority fallback.
- ``EvaluationContext`` is built by the resolver at the start of every
  call. It pins the evaluation instant, the effective tenant and actor,
  a snapshot of the ambient attributes, and a memo for attribute-source
  results. It is discarded when the call returns, so memoized geo or
  user-agent data never leaks into another call.

Usage:
    from fulcrum.foundation.application.context import ambient_context

    with ambient_context(tenant_id="acme", attributes={"ip": "203.0.113.7"}):
        value, trace = resolver.resolve("checkout.flow")
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from contextvars import Token
    from datetime import datetime


_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class AmbientContext:
    """Immutable request-scoped data available to every resolution.

    Attributes:
        tenant_id: Tenant of the current request, if known.
        user: Actor of the current request, if known.
        attributes: Free-form key/value bag (ip, user_agent, locale, ...).
    """

    tenant_id: str | None = None
    user: Any = None
    attributes: Mapping[str, Any] = _EMPTY

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def has(self, name: str) -> bool:
        return name in self.attributes


EMPTY_AMBIENT = AmbientContext()

_ambient_context: ContextVar[AmbientContext | None] = ContextVar(
    "fulcrum_ambient_context", default=None
)


def set_ambient_context(
    tenant_id: str | None = None,
    user: Any = None,
    attributes: Mapping[str, Any] | None = None,
) -> Token[AmbientContext | None]:
    """Set the ambient context for the current task.

    Should be called at the boundary at the start of request handling.
    Returns a token that must be used to reset the context.

    Args:
        tenant_id: Tenant of the current request.
        user: Actor of the current request.
        attributes: Attribute bag. Copied, so later mutation has no effect.

    Returns:
        Token for resetting the context via ``clear_ambient_context``.
    """
    ctx = AmbientContext(
        tenant_id=tenant_id,
        user=user,
        attributes=MappingProxyType(dict(attributes or {})),
    )
    return _ambient_context.set(ctx)


def clear_ambient_context(token: Token[AmbientContext | None]) -> None:
    """Reset the ambient context using the provided token.

    Args:
        token: The token returned from ``set_ambient_context``.
    """
    _ambient_context.reset(token)


def get_ambient_context() -> AmbientContext:
    """Get the ambient context, or an empty one outside any request."""
    return _ambient_context.get() or EMPTY_AMBIENT


@contextmanager
def ambient_context(
    tenant_id: str | None = None,
    user: Any = None,
    attributes: Mapping[str, Any] | None = None,
) -> Iterator[AmbientContext]:
    """Scope an ambient context to a ``with`` block."""
    token = set_ambient_context(tenant_id=tenant_id, user=user, attributes=attributes)
    try:
        yield get_ambient_context()
    finally:
        clear_ambient_context(token)


@dataclass(frozen=True, slots=True)
class EvaluationContext:
    """Explicit context threaded through one resolution call.

    Attributes:
        now: Evaluation instant (timezone-aware UTC).
        tenant_id: Effective tenant id.
        user: Effective actor, or None for anonymous evaluation.
        ambient: Ambient attribute bag captured at call start.
        memo: Per-call cache for attribute-source results. Never shared.
    """

    now: datetime
    tenant_id: str | None = None
    user: Any = None
    ambient: Mapping[str, Any] = _EMPTY
    memo: dict[str, Any] = field(default_factory=dict)
