"""Attribute resolvers turning a raw scope into condition inputs.

Each condition names an attribute domain (``user``, ``date_time``,
``geocoding``, ``user_agent``, ``segment``, ``context``). The registry maps
the domain to exactly one resolver; it is assembled once when the resolver
is built and never mutated afterwards.

Every resolver returns an ``AttributeValue`` carrying an existence flag, so
that "attribute absent" and "attribute present but None" stay distinct.
The condition evaluator fails closed on the former.

Geo and user-agent lookups call external collaborators. Their results are
memoized in the per-call ``EvaluationContext.memo`` and therefore never
outlive one resolution call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from fulcrum.foundation.application.temporal import to_datetime
from fulcrum.foundation.domain.models import ConditionType

if TYPE_CHECKING:
    from fulcrum.foundation.application.context import EvaluationContext
    from fulcrum.foundation.domain.models import RuleCondition
    from fulcrum.foundation.domain.ports import (
        GeoResolverPort,
        SegmentDriverPort,
        UserAgentResolverPort,
    )

logger = logging.getLogger(__name__)

_SCALARS = (str, int, float, bool)


@dataclass(frozen=True, slots=True)
class AttributeValue:
    """Resolved attribute with an existence flag.

    Attributes:
        exists: Whether the attribute was found at all.
        value: Attribute value. Meaningless when ``exists`` is False.
    """

    exists: bool
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> AttributeValue:
        return cls(exists=True, value=value)

    @classmethod
    def missing(cls) -> AttributeValue:
        return MISSING


MISSING = AttributeValue(exists=False)

_ABSENT = object()


def _step(current: Any, segment: str) -> Any:
    """Descend one path segment, returning ``_ABSENT`` when it does not exist."""
    if isinstance(current, Mapping):
        return current[segment] if segment in current else _ABSENT
    if isinstance(current, Sequence) and not isinstance(current, str | bytes):
        try:
            index = int(segment)
        except ValueError:
            return _ABSENT
        if -len(current) <= index < len(current):
            return current[index]
        return _ABSENT
    if current is None or isinstance(current, _SCALARS) or segment.startswith("_"):
        return _ABSENT
    value = getattr(current, segment, _ABSENT)
    if value is _ABSENT:
        extra = getattr(current, "attributes", None)
        if isinstance(extra, Mapping) and segment in extra:
            return extra[segment]
    return value


def lookup_path(source: Any, path: str) -> AttributeValue:
    """Resolve a dotted path over nested mappings, sequences and objects.

    Example:
        >>> lookup_path({"account": {"plan": "pro"}}, "account.plan")
        AttributeValue(exists=True, value='pro')
        >>> lookup_path({"tags": ["a", "b"]}, "tags.1").value
        'b'
    """
    if isinstance(source, Mapping) and path in source:
        return AttributeValue.of(source[path])
    current = source
    for segment in path.split("."):
        current = _step(current, segment)
        if current is _ABSENT:
            return MISSING
    return AttributeValue.of(current)


@runtime_checkable
class AttributeResolver(Protocol):
    """Resolve one attribute name within a domain."""

    def resolve(self, attribute: str, scope: Any, context: EvaluationContext) -> AttributeValue:
        """Return the attribute value for ``scope``.

        Args:
            attribute: Dotted path or domain-specific name.
            scope: Caller-supplied scope (mapping, object, scalar or None).
            context: Per-call evaluation context.
        """
        ...


class PlainAttributeResolver:
    """Dotted-path lookup over the scope, with the ambient bag as fallback.

    Order: the scope (or the actor when no scope is given), then the
    scalar-scope alias ``scope``, then the ambient context bag.
    """

    def resolve(self, attribute: str, scope: Any, context: EvaluationContext) -> AttributeValue:
        subject = scope if scope is not None else context.user
        if subject is not None:
            if isinstance(subject, _SCALARS):
                if attribute == "scope":
                    return AttributeValue.of(subject)
            else:
                found = lookup_path(subject, attribute)
                if found.exists:
                    return found
        return lookup_path(context.ambient, attribute)


class AmbientAttributeResolver:
    """Reads only from the ambient context bag."""

    def resolve(self, attribute: str, scope: Any, context: EvaluationContext) -> AttributeValue:
        return lookup_path(context.ambient, attribute)


class DateTimeAttributeResolver:
    """``now`` is the evaluation instant; other names are scope timestamps."""

    def __init__(self, fallback: AttributeResolver | None = None) -> None:
        self._fallback = fallback or PlainAttributeResolver()

    def resolve(self, attribute: str, scope: Any, context: EvaluationContext) -> AttributeValue:
        if attribute == "now":
            return AttributeValue.of(context.now)
        found = self._fallback.resolve(attribute, scope, context)
        if not found.exists:
            return found
        parsed = to_datetime(found.value)
        return AttributeValue.of(parsed if parsed is not None else found.value)


class _MemoizedSourceResolver:
    """Calls an external resolver at most once per resolution call."""

    memo_key: str = ""

    def __init__(self, source: GeoResolverPort | UserAgentResolverPort | None) -> None:
        self._source = source

    def resolve(self, attribute: str, scope: Any, context: EvaluationContext) -> AttributeValue:
        if self._source is None:
            return MISSING
        data = context.memo.get(self.memo_key)
        if data is None:
            source_input = scope if scope is not None else context.ambient
            data = dict(self._source.resolve(source_input) or {})
            context.memo[self.memo_key] = data
            logger.debug(
                "attribute_source_resolved",
                extra={"domain": self.memo_key, "attributes": sorted(data)},
            )
        return lookup_path(data, attribute)


class GeoAttributeResolver(_MemoizedSourceResolver):
    """Geographic attributes (``country``, ``region``, ``city``, ...)."""

    memo_key = ConditionType.GEOCODING.value


class UserAgentAttributeResolver(_MemoizedSourceResolver):
    """Device and browser attributes (``browser``, ``os``, ``is_mobile``, ...)."""

    memo_key = ConditionType.USER_AGENT.value


class SegmentAttributeResolver:
    """Segment membership of the current actor.

    ``segments`` returns the full segment list; any other name answers
    membership in the segment of that name. Without an actor nothing exists.
    """

    def __init__(self, driver: SegmentDriverPort | None) -> None:
        self._driver = driver

    def resolve(self, attribute: str, scope: Any, context: EvaluationContext) -> AttributeValue:
        if context.user is None:
            return MISSING
        if attribute == "segments":
            segments = self._driver.user_segments(context.user) if self._driver else []
            return AttributeValue.of(list(segments))
        member = self._driver.is_in_segment(context.user, attribute) if self._driver else False
        return AttributeValue.of(bool(member))


class AttributeResolverRegistry:
    """Maps attribute domains to resolvers.

    Args:
        resolvers: Domain name to resolver mapping.
        default_domain: Domain used for conditions that name none.
    """

    def __init__(
        self,
        resolvers: Mapping[str, AttributeResolver],
        default_domain: str = ConditionType.USER,
    ) -> None:
        self._resolvers = {str(domain): resolver for domain, resolver in resolvers.items()}
        self._default_domain = str(default_domain)

    @classmethod
    def default(
        cls,
        *,
        geo: GeoResolverPort | None = None,
        user_agent: UserAgentResolverPort | None = None,
        segments: SegmentDriverPort | None = None,
        default_domain: str = ConditionType.USER,
        extra: Mapping[str, AttributeResolver] | None = None,
    ) -> AttributeResolverRegistry:
        """Build the standard registry, optionally adding custom domains."""
        plain = PlainAttributeResolver()
        resolvers: dict[str, AttributeResolver] = {
            ConditionType.USER: plain,
            ConditionType.DATE_TIME: DateTimeAttributeResolver(plain),
            ConditionType.GEOCODING: GeoAttributeResolver(geo),
            ConditionType.USER_AGENT: UserAgentAttributeResolver(user_agent),
            ConditionType.SEGMENT: SegmentAttributeResolver(segments),
            ConditionType.CONTEXT: AmbientAttributeResolver(),
        }
        resolvers.update(extra or {})
        return cls(resolvers, default_domain=default_domain)

    @property
    def domains(self) -> list[str]:
        return sorted(self._resolvers)

    def get(self, domain: str) -> AttributeResolver | None:
        return self._resolvers.get(str(domain))

    def domain_of(self, condition: RuleCondition) -> str:
        """Domain a condition reads from, the default domain when it names none."""
        return str(condition.type) if condition.type else self._default_domain

    def supports(self, condition: RuleCondition) -> bool:
        return self.domain_of(condition) in self._resolvers

    def resolve(
        self,
        condition: RuleCondition,
        scope: Any,
        context: EvaluationContext,
    ) -> AttributeValue:
        """Resolve a condition's attribute through its domain's resolver.

        Unknown domains resolve to a missing attribute.
        """
        domain = self.domain_of(condition)
        resolver = self._resolvers.get(domain)
        if resolver is None:
            logger.debug(
                "attribute_domain_unknown",
                extra={"domain": domain, "attribute": condition.attribute},
            )
            return MISSING
        return resolver.resolve(condition.attribute, scope, context)
