"""Unit tests for fulcrum.foundation.domain.models."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from fulcrum.foundation.domain.models import (
    MAX_WEIGHT,
    ConditionType,
    RolloutVariant,
    RuleCondition,
    Setting,
    SettingRule,
    SettingType,
)
from fulcrum.foundation.domain.operators import ComparisonOperator


class TestRuleCondition:
    @pytest.mark.unit
    def test_operator_normalized(self) -> None:
        condition = RuleCondition(attribute="plan", operator="EQUALS", value="pro")
        assert condition.operator is ComparisonOperator.EQUALS
        assert condition.comparison is ComparisonOperator.EQUALS

    @pytest.mark.unit
    def test_unknown_operator_kept_raw(self) -> None:
        condition = RuleCondition(attribute="plan", operator="resembles")
        assert condition.operator == "resembles"
        assert condition.comparison is None

    @pytest.mark.unit
    def test_type_normalized(self) -> None:
        condition = RuleCondition(attribute="country", operator="equals", type=" Geocoding ")
        assert condition.type is ConditionType.GEOCODING

    @pytest.mark.unit
    def test_empty_type_selects_default(self) -> None:
        condition = RuleCondition(attribute="plan", operator="equals", type="")
        assert condition.type is None

    @pytest.mark.unit
    def test_is_frozen(self) -> None:
        condition = RuleCondition(attribute="plan", operator="equals")
        with pytest.raises(ValidationError):
            condition.attribute = "other"  # type: ignore[misc]


class TestRolloutVariant:
    @pytest.mark.unit
    def test_weight_percentage(self) -> None:
        assert RolloutVariant(name="A", weight=12_500).weight_percentage == 12.5

    @pytest.mark.unit
    def test_from_percentage(self) -> None:
        variant = RolloutVariant.from_percentage("A", 33.333, value="x")
        assert variant.weight == 33_333
        assert variant.value == "x"

    @pytest.mark.unit
    @pytest.mark.parametrize("weight", [-1, MAX_WEIGHT + 1])
    def test_weight_bounds(self, weight: int) -> None:
        with pytest.raises(ValidationError):
            RolloutVariant(name="A", weight=weight)

    @pytest.mark.unit
    def test_name_required(self) -> None:
        with pytest.raises(ValidationError):
            RolloutVariant(name="", weight=1)


class TestSettingRuleInvariants:
    @pytest.mark.unit
    def test_value_and_variants_are_exclusive(self) -> None:
        with pytest.raises(ValidationError, match="both a direct value and rollout variants"):
            SettingRule(value=True, variants=(RolloutVariant(name="A", weight=1),))

    @pytest.mark.unit
    def test_none_value_with_variants_is_allowed(self) -> None:
        rule = SettingRule(value=None, variants=(RolloutVariant(name="A", weight=1),))
        assert rule.has_rollout_variants
        assert not rule.has_direct_value

    @pytest.mark.unit
    def test_duplicate_variant_names_rejected(self) -> None:
        with pytest.raises(ValidationError, match="unique"):
            SettingRule(
                variants=(
                    RolloutVariant(name="A", weight=10),
                    RolloutVariant(name="A", weight=20),
                )
            )

    @pytest.mark.unit
    def test_total_weight_capped(self) -> None:
        with pytest.raises(ValidationError, match="must not exceed"):
            SettingRule(
                variants=(
                    RolloutVariant(name="A", weight=60_000),
                    RolloutVariant(name="B", weight=50_000),
                )
            )

    @pytest.mark.unit
    def test_window_must_be_ordered(self) -> None:
        with pytest.raises(ValidationError, match="ends before it starts"):
            SettingRule(
                starts_at=datetime(2025, 2, 1, tzinfo=UTC),
                ends_at=datetime(2025, 1, 1, tzinfo=UTC),
            )

    @pytest.mark.unit
    def test_rule_without_variants_is_direct(self) -> None:
        rule = SettingRule()
        assert rule.has_direct_value
        assert rule.value is None
        assert rule.display_name == "unnamed"


class TestSettingRuleHelpers:
    @pytest.mark.unit
    def test_totals(self) -> None:
        rule = SettingRule(
            variants=(
                RolloutVariant(name="A", weight=30_000),
                RolloutVariant(name="B", weight=20_000),
            )
        )
        assert rule.total_weight == 50_000
        assert rule.total_percentage == 50.0

    @pytest.mark.unit
    def test_naive_window_treated_as_utc(self) -> None:
        rule = SettingRule(starts_at=datetime(2025, 1, 1, 9, 0))
        assert rule.starts_at == datetime(2025, 1, 1, 9, 0, tzinfo=UTC)

    @pytest.mark.unit
    def test_window_bounds_inclusive(self) -> None:
        start = datetime(2025, 1, 1, tzinfo=UTC)
        end = datetime(2025, 1, 31, tzinfo=UTC)
        rule = SettingRule(starts_at=start, ends_at=end)
        assert rule.is_active_at(start)
        assert rule.is_active_at(end)
        assert not rule.is_active_at(datetime(2024, 12, 31, 23, 59, tzinfo=UTC))
        assert not rule.is_active_at(datetime(2025, 1, 31, 0, 0, 1, tzinfo=UTC))

    @pytest.mark.unit
    def test_open_window_always_active(self) -> None:
        assert SettingRule().is_active_at(datetime(1999, 1, 1, tzinfo=UTC))

    @pytest.mark.unit
    def test_effective_salt_falls_back_to_key(self) -> None:
        assert SettingRule().effective_salt("checkout.flow") == "checkout.flow"
        assert SettingRule(rollout_salt="s").effective_salt("checkout.flow") == "s"

    @pytest.mark.unit
    def test_with_reset_salt_returns_new_rule(self) -> None:
        rule = SettingRule(name="half", rollout_salt="old")
        reset = rule.with_reset_salt()
        assert rule.rollout_salt == "old"
        assert reset.rollout_salt != "old"
        assert reset.rollout_salt is not None
        assert len(reset.rollout_salt) == 16
        assert reset.name == "half"


class TestSetting:
    @pytest.mark.unit
    def test_group_derived_from_key(self) -> None:
        assert Setting(key="billing.tax.rate").group == "billing.tax"

    @pytest.mark.unit
    def test_key_without_dot_has_no_group(self) -> None:
        assert Setting(key="maintenance").group is None

    @pytest.mark.unit
    def test_explicit_group_kept(self) -> None:
        assert Setting(key="billing.rate", group="finance").group == "finance"

    @pytest.mark.unit
    def test_ordered_rules_stable(self) -> None:
        setting = Setting(
            key="feature.x",
            rules=(
                SettingRule(name="late", priority=20),
                SettingRule(name="first-tie", priority=10),
                SettingRule(name="second-tie", priority=10),
            ),
        )
        names = [rule.name for rule in setting.ordered_rules()]
        assert names == ["first-tie", "second-tie", "late"]

    @pytest.mark.unit
    def test_model_validate_from_row(self) -> None:
        setting = Setting.model_validate(
            {
                "key": "checkout.new_flow",
                "type": "boolean",
                "default_value": False,
                "rules": [
                    {
                        "name": "beta",
                        "priority": 5,
                        "conditions": [
                            {"attribute": "plan", "operator": "equals", "value": "beta"}
                        ],
                        "value": True,
                    }
                ],
            }
        )
        assert setting.type is SettingType.BOOLEAN
        assert setting.group == "checkout"
        assert setting.rules[0].conditions[0].operator is ComparisonOperator.EQUALS

    @pytest.mark.unit
    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Setting(key="")
