"""Observability events emitted by the setting resolver.

Two events leave the resolver:

- ``ResolutionRecorded`` after every resolution call, when recording is
  enabled.
- ``VariantAssigned`` whenever a rollout variant is selected, when
  assignment events are enabled. It carries the identifier and bucket so
  analytics pipelines can join exposures to outcomes.

Events are immutable and transport-agnostic; an ``EventDispatcher``
adapter decides where they go.

Example:
    >>> event = VariantAssigned(
    ...     setting_key="checkout.flow",
    ...     rule_name="half",
    ...     variant_name="B",
    ...     value="new",
    ...     identifier="user-1",
    ...     bucket=73120,
    ... )
    >>> event.to_analytics()["variant_key"]
    'B'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, kw_only=True)
class ResolutionEvent:
    """Base class for resolver events.

    Attributes:
        occurred_at: UTC timestamp of emission.
    """

    event_name: ClassVar[str] = "resolution_event"

    occurred_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True, kw_only=True)
class ResolutionRecorded(ResolutionEvent):
    """A setting was resolved.

    Attributes:
        key: Setting key.
        value: Resolved value.
        source: Trace source (default, rule, rollout, not_found).
        rule_name: Matched rule name, if any.
        rule_priority: Matched rule priority, if any.
        rules_evaluated: Number of rules visited.
        tenant_id: Effective tenant id.
        user_id: Actor the setting was resolved for, if any.
        duration_ms: Duration of the resolution call.
    """

    event_name: ClassVar[str] = "resolution_recorded"

    key: str
    value: Any
    source: str
    rule_name: str | None = None
    rule_priority: int | None = None
    rules_evaluated: int = 0
    tenant_id: str | None = None
    user_id: str | None = None
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "source": self.source,
            "matched_rule": self.rule_name,
            "matched_rule_priority": self.rule_priority,
            "rules_evaluated": self.rules_evaluated,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "duration_ms": round(self.duration_ms, 2),
        }


@dataclass(frozen=True, kw_only=True)
class VariantAssigned(ResolutionEvent):
    """An identifier was bucketed into a rollout variant.

    Attributes:
        setting_key: Setting key.
        rule_name: Rule carrying the variants. "unnamed" if the rule has no name.
        variant_name: Selected variant.
        value: Variant value.
        identifier: Rollout identifier (user id, scope id).
        bucket: Bucket the identifier fell into.
        tenant_id: Effective tenant id.
        context: Extra analytics context supplied by the caller.
    """

    event_name: ClassVar[str] = "variant_assigned"

    setting_key: str
    rule_name: str = "unnamed"
    variant_name: str
    value: Any
    identifier: str
    bucket: int
    tenant_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "setting_key": self.setting_key,
            "rule_name": self.rule_name,
            "variant_name": self.variant_name,
            "value": self.value,
            "identifier": self.identifier,
            "bucket": self.bucket,
            "tenant_id": self.tenant_id,
            "context": dict(self.context),
            "timestamp": self.occurred_at.isoformat(),
        }

    def to_analytics(self) -> dict[str, Any]:
        """Flatten into the experiment-exposure shape analytics tools ingest."""
        return {
            "experiment_key": self.setting_key,
            "experiment_name": self.rule_name,
            "variant_key": self.variant_name,
            "variant_value": self.value,
            "assignment_id": self.identifier,
            "bucket_value": self.bucket,
            **self.context,
        }
