"""Unit tests for fulcrum.foundation.application.rules."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from fulcrum.foundation.application.attributes import AttributeResolverRegistry, AttributeValue
from fulcrum.foundation.application.conditions import ConditionEvaluator
from fulcrum.foundation.application.context import EvaluationContext
from fulcrum.foundation.application.rules import RuleEvaluator
from fulcrum.foundation.domain.models import RuleCondition, SettingRule
from fulcrum.foundation.domain.principal import Principal

NOW = datetime(2025, 6, 4, 12, 0, tzinfo=UTC)


def _evaluator() -> RuleEvaluator:
    return RuleEvaluator(AttributeResolverRegistry.default(), ConditionEvaluator())


def _ctx() -> EvaluationContext:
    return EvaluationContext(now=NOW)


class TestRuleEvaluator:
    @pytest.mark.unit
    def test_empty_conditions_match(self) -> None:
        assert _evaluator().evaluate_rule(SettingRule(value=True), {}, _ctx())

    @pytest.mark.unit
    def test_all_conditions_must_hold(self) -> None:
        rule = SettingRule(
            conditions=(
                RuleCondition(attribute="plan", operator="equals", value="pro"),
                RuleCondition(attribute="seats", operator="number_gte", value=10),
            ),
            value=True,
        )
        evaluator = _evaluator()
        assert evaluator.evaluate_rule(rule, {"plan": "pro", "seats": 12}, _ctx())
        assert not evaluator.evaluate_rule(rule, {"plan": "pro", "seats": 3}, _ctx())
        assert not evaluator.evaluate_rule(rule, {"seats": 12}, _ctx())

    @pytest.mark.unit
    def test_inactive_window_never_matches(self) -> None:
        rule = SettingRule(starts_at=datetime(2025, 7, 1, tzinfo=UTC), value=True)
        assert not _evaluator().evaluate_rule(rule, {}, _ctx())

    @pytest.mark.unit
    def test_expired_window_never_matches(self) -> None:
        rule = SettingRule(ends_at=datetime(2025, 6, 1, tzinfo=UTC), value=True)
        assert not _evaluator().evaluate_rule(rule, {}, _ctx())

    @pytest.mark.unit
    def test_short_circuits_on_first_failure(self) -> None:
        attributes = MagicMock(spec=AttributeResolverRegistry)
        attributes.resolve.return_value = AttributeValue.of("free")
        rule = SettingRule(
            conditions=(
                RuleCondition(attribute="plan", operator="equals", value="pro"),
                RuleCondition(attribute="seats", operator="number_gte", value=10),
            ),
            value=True,
        )
        evaluator = RuleEvaluator(attributes, ConditionEvaluator())
        assert not evaluator.evaluate_rule(rule, {}, _ctx())
        assert attributes.resolve.call_count == 1

    @pytest.mark.unit
    def test_window_checked_before_conditions(self) -> None:
        attributes = MagicMock(spec=AttributeResolverRegistry)
        rule = SettingRule(
            ends_at=datetime(2025, 1, 1, tzinfo=UTC),
            conditions=(RuleCondition(attribute="plan", operator="equals", value="pro"),),
        )
        assert not RuleEvaluator(attributes, ConditionEvaluator()).evaluate_rule(rule, {}, _ctx())
        attributes.resolve.assert_not_called()

    @pytest.mark.unit
    def test_segment_operator_on_unknown_domain_never_matches(self) -> None:
        segments = MagicMock()
        segments.is_in_segment.return_value = True
        evaluator = RuleEvaluator(
            AttributeResolverRegistry.default(segments=segments),
            ConditionEvaluator(segments=segments),
        )
        ctx = EvaluationContext(now=NOW, user=Principal("u1", roles=("beta",)))
        known = SettingRule(
            conditions=(RuleCondition(attribute="roles", operator="in_segment", value="beta"),),
            value=True,
        )
        unknown = SettingRule(
            conditions=(
                RuleCondition(
                    attribute="roles", operator="in_segment", value="beta", type="weather"
                ),
            ),
            value=True,
        )
        assert evaluator.evaluate_rule(known, {}, ctx)
        assert not evaluator.evaluate_rule(unknown, {}, ctx)
        assert segments.is_in_segment.call_count == 1
