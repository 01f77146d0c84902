"""Unit tests for fulcrum.foundation.domain.operators."""

from __future__ import annotations

import pytest

from fulcrum.foundation.domain.operators import ComparisonOperator, OperatorFamily


class TestOperatorFamilies:
    @pytest.mark.unit
    def test_every_operator_has_a_family(self) -> None:
        for operator in ComparisonOperator:
            assert isinstance(operator.family, OperatorFamily)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("operator", "family"),
        [
            ("equals", OperatorFamily.STRING),
            ("matches_regex", OperatorFamily.STRING),
            ("number_between", OperatorFamily.NUMERIC),
            ("time_between", OperatorFamily.DATE),
            ("schedule_cron", OperatorFamily.DATE),
            ("version_gte", OperatorFamily.VERSION),
            ("not_in_segment", OperatorFamily.SEGMENT),
            ("is_false", OperatorFamily.BOOLEAN),
            ("is_not_null", OperatorFamily.NULL),
        ],
    )
    def test_family_mapping(self, operator: str, family: OperatorFamily) -> None:
        assert ComparisonOperator(operator).family is family

    @pytest.mark.unit
    def test_only_segment_operators_are_segment(self) -> None:
        segment_ops = {op for op in ComparisonOperator if op.is_segment}
        assert segment_ops == {ComparisonOperator.IN_SEGMENT, ComparisonOperator.NOT_IN_SEGMENT}

    @pytest.mark.unit
    def test_valueless_operators(self) -> None:
        assert not ComparisonOperator.IS_NULL.requires_value
        assert not ComparisonOperator.IS_BUSINESS_DAY.requires_value
        assert ComparisonOperator.EQUALS.requires_value

    @pytest.mark.unit
    def test_list_valued_operators(self) -> None:
        assert ComparisonOperator.CONTAINS_ANY.requires_list_value
        assert ComparisonOperator.VERSION_BETWEEN.requires_list_value
        assert not ComparisonOperator.NUMBER_GT.requires_list_value


class TestParse:
    @pytest.mark.unit
    def test_parses_wire_name(self) -> None:
        assert ComparisonOperator.parse("number_gte") is ComparisonOperator.NUMBER_GTE

    @pytest.mark.unit
    def test_normalizes_case_and_whitespace(self) -> None:
        assert ComparisonOperator.parse("  Starts_With_Any ") is ComparisonOperator.STARTS_WITH_ANY

    @pytest.mark.unit
    def test_returns_member_unchanged(self) -> None:
        assert ComparisonOperator.parse(ComparisonOperator.IS_TRUE) is ComparisonOperator.IS_TRUE

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["bogus", "", None, 42])
    def test_unrecognized_returns_none(self, raw: object) -> None:
        assert ComparisonOperator.parse(raw) is None
