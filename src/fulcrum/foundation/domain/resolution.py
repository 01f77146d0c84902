"""Resolution trace describing how a setting value was derived.

A trace is created once per resolution call and handed back to the caller
alongside the value. The resolver never persists it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ResolutionSource(StrEnum):
    """Where a resolved value came from."""

    DEFAULT = "default"
    RULE = "rule"
    ROLLOUT = "rollout"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class ResolutionTrace:
    """Metadata for one resolution call.

    Attributes:
        key: Requested setting key.
        value: Resolved value (None when not found).
        source: Where the value came from.
        tenant_id: Effective tenant id used for the lookup.
        rules_evaluated: Number of rules visited before the outcome.
        duration_ms: Wall-clock duration of the call in milliseconds.
        rule_name: Name of the matched rule, if any.
        rule_priority: Priority of the matched rule, if any.
        variant_name: Selected rollout variant, if any.
        bucket: Computed bucket, if the matched rule was a rollout.
        identifier: Rollout identifier the bucket was computed from.
    """

    key: str
    value: Any
    source: ResolutionSource
    tenant_id: str | None = None
    rules_evaluated: int = 0
    duration_ms: float = 0.0
    rule_name: str | None = None
    rule_priority: int | None = None
    variant_name: str | None = None
    bucket: int | None = None
    identifier: str | None = None

    @property
    def found(self) -> bool:
        return self.source is not ResolutionSource.NOT_FOUND

    @property
    def matched(self) -> bool:
        """True when a rule or rollout variant produced the value."""
        return self.source in (ResolutionSource.RULE, ResolutionSource.ROLLOUT)
