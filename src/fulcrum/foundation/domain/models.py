"""Setting, rule, condition and rollout variant models.

All models are immutable Pydantic snapshots. The configuration-management
side owns and persists them; the resolver only reads them for the duration
of one call. Models load from plain dicts via ``model_validate`` so any
store can hand over its rows unchanged.

Example:
    >>> setting = Setting.model_validate(
    ...     {
    ...         "key": "checkout.new_flow",
    ...         "type": "boolean",
    ...         "default_value": False,
    ...         "rules": [{"priority": 10, "value": True}],
    ...     }
    ... )
    >>> setting.group
    'checkout'
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fulcrum.foundation.domain.exceptions import InvalidRuleError
from fulcrum.foundation.domain.operators import ComparisonOperator

__all__ = [
    "MAX_WEIGHT",
    "ConditionType",
    "RolloutVariant",
    "RuleCondition",
    "Setting",
    "SettingRule",
    "SettingType",
]

MAX_WEIGHT: int = 100_000
"""Weight units in 100%. One unit is 0.001%."""

SALT_LENGTH: int = 16


class SettingType(StrEnum):
    """Declared value type of a setting."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    JSON = "json"
    DATETIME = "datetime"


class ConditionType(StrEnum):
    """Attribute domain a condition reads its actual value from."""

    USER = "user"
    DATE_TIME = "date_time"
    GEOCODING = "geocoding"
    USER_AGENT = "user_agent"
    SEGMENT = "segment"
    CONTEXT = "context"


def _ensure_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class RuleCondition(BaseModel):
    """One attribute/operator/expected-value test within a rule.

    Unrecognized operators and domains are kept as raw strings so that a
    rule with a typo still loads; it simply never matches.

    Attributes:
        attribute: Dotted path or domain-specific attribute name.
        operator: Comparison operator, or the raw stored name if unrecognized.
        value: Expected value. Shape depends on the operator family.
        type: Attribute domain. None selects the configured default domain.
    """

    model_config = ConfigDict(frozen=True)

    attribute: str
    operator: ComparisonOperator | str = Field(union_mode="left_to_right")
    value: Any = None
    type: ConditionType | str | None = Field(default=None, union_mode="left_to_right")

    @field_validator("operator", mode="before")
    @classmethod
    def normalize_operator(cls, v: Any) -> Any:
        """Map stored operator names onto the closed operator set."""
        return ComparisonOperator.parse(v) or v

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        """Lower-case domain names; empty strings select the default domain."""
        if isinstance(v, str) and not isinstance(v, ConditionType):
            v = v.strip().lower()
            return v or None
        return v

    @property
    def comparison(self) -> ComparisonOperator | None:
        """Recognized operator, or None when the stored name is unknown."""
        return self.operator if isinstance(self.operator, ComparisonOperator) else None


class RolloutVariant(BaseModel):
    """Named, weighted alternative value selected by bucketing.

    Attributes:
        name: Variant name, unique within its rule.
        weight: Share of the bucket space in milli-percent (0-100000).
        value: Value returned when the variant is selected.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    weight: int = Field(ge=0, le=MAX_WEIGHT)
    value: Any = None

    @property
    def weight_percentage(self) -> float:
        """Weight expressed as a percentage (50000 -> 50.0)."""
        return self.weight / 1000

    @classmethod
    def from_percentage(cls, name: str, percentage: float, value: Any = None) -> RolloutVariant:
        """Build a variant from a percentage (12.5 -> weight 12500)."""
        return cls(name=name, weight=round(percentage * 1000), value=value)


class SettingRule(BaseModel):
    """Conditionally-active override of a setting's value.

    A rule either carries a direct ``value`` or a set of rollout
    ``variants``, never both. A rule without variants is a direct-value
    rule, even when its value is None.

    Attributes:
        name: Optional display name, reported in traces and events.
        priority: Evaluation order. Lower values are evaluated first.
        conditions: Conditions ANDed together. Empty matches unconditionally.
        starts_at: Inclusive start of the activation window.
        ends_at: Inclusive end of the activation window.
        rollout_salt: Salt mixed into bucketing. Falls back to the setting key.
        value: Direct value returned on match.
        variants: Weighted rollout variants, in selection order.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    priority: int = 0
    conditions: tuple[RuleCondition, ...] = ()
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    rollout_salt: str | None = None
    value: Any = None
    variants: tuple[RolloutVariant, ...] = ()

    @field_validator("starts_at", "ends_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Treat naive window bounds as UTC."""
        return _ensure_utc(v)

    @model_validator(mode="after")
    def check_invariants(self) -> SettingRule:
        """Enforce the structural rule invariants."""
        if self.variants and self.value is not None:
            raise InvalidRuleError(
                "A rule cannot carry both a direct value and rollout variants",
                rule=self.name,
            )
        names = [variant.name for variant in self.variants]
        if len(names) != len(set(names)):
            raise InvalidRuleError("Rollout variant names must be unique", rule=self.name)
        if self.total_weight > MAX_WEIGHT:
            raise InvalidRuleError(
                f"Rollout variant weights must not exceed {MAX_WEIGHT}",
                rule=self.name,
                total_weight=self.total_weight,
            )
        if self.starts_at and self.ends_at and self.starts_at > self.ends_at:
            raise InvalidRuleError("Rule window ends before it starts", rule=self.name)
        return self

    @property
    def has_rollout_variants(self) -> bool:
        return bool(self.variants)

    @property
    def has_direct_value(self) -> bool:
        return not self.variants

    @property
    def total_weight(self) -> int:
        return sum(variant.weight for variant in self.variants)

    @property
    def total_percentage(self) -> float:
        return self.total_weight / 1000

    @property
    def display_name(self) -> str:
        return self.name or "unnamed"

    def is_active_at(self, now: datetime) -> bool:
        """Check the activation window. Both bounds are inclusive."""
        now = _ensure_utc(now) or now
        if self.starts_at is not None and now < self.starts_at:
            return False
        return not (self.ends_at is not None and now > self.ends_at)

    def effective_salt(self, setting_key: str) -> str:
        """Salt used for bucketing: the rule's own, else the setting key."""
        return self.rollout_salt or setting_key

    def with_reset_salt(self) -> SettingRule:
        """Return a copy with a fresh random salt.

        Changing the salt re-randomizes every identifier's bucket, which
        resets all rollout assignments for this rule at once.
        """
        return self.model_copy(update={"rollout_salt": secrets.token_hex(SALT_LENGTH // 2)})


class Setting(BaseModel):
    """Named, typed configuration value with optional targeting rules.

    Tenant-specific rows shadow the global row (``tenant_id`` None) of the
    same key.

    Attributes:
        key: Dotted setting key, unique within a tenant scope.
        type: Declared value type.
        tenant_id: Owning tenant, None for the global row.
        description: Free-form description.
        default_value: Value returned when no rule produces one.
        rules: Targeting rules in stored order.
        group: Key prefix before the last dot. Derived from the key if omitted.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    type: SettingType = SettingType.STRING
    tenant_id: str | None = None
    description: str | None = None
    default_value: Any = None
    rules: tuple[SettingRule, ...] = ()
    group: str | None = None

    @model_validator(mode="before")
    @classmethod
    def derive_group(cls, data: Any) -> Any:
        """Fill ``group`` from the key when not given explicitly."""
        if isinstance(data, dict) and not data.get("group"):
            key = data.get("key")
            if isinstance(key, str) and "." in key:
                data = {**data, "group": key.rsplit(".", 1)[0]}
        return data

    def ordered_rules(self) -> list[SettingRule]:
        """Rules sorted by ascending priority. Ties keep stored order."""
        return sorted(self.rules, key=lambda rule: rule.priority)
