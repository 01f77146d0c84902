"""Unit tests for fulcrum.foundation.application.attributes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock

import pytest

from fulcrum.foundation.application.attributes import (
    MISSING,
    AttributeResolverRegistry,
    AttributeValue,
    DateTimeAttributeResolver,
    GeoAttributeResolver,
    PlainAttributeResolver,
    SegmentAttributeResolver,
    lookup_path,
)
from fulcrum.foundation.application.context import EvaluationContext
from fulcrum.foundation.domain.models import ConditionType, RuleCondition
from fulcrum.foundation.domain.principal import Principal

NOW = datetime(2025, 6, 4, 12, 0, tzinfo=UTC)


def _ctx(**kwargs: Any) -> EvaluationContext:
    return EvaluationContext(now=NOW, **kwargs)


@dataclass
class _Account:
    plan: str
    _secret: str = "hidden"
    attributes: dict[str, Any] = field(default_factory=dict)


class TestLookupPath:
    @pytest.mark.unit
    def test_nested_mapping(self) -> None:
        assert lookup_path({"account": {"plan": "pro"}}, "account.plan") == AttributeValue.of("pro")

    @pytest.mark.unit
    def test_full_dotted_key_wins(self) -> None:
        scope = {"account.plan": "flat", "account": {"plan": "nested"}}
        assert lookup_path(scope, "account.plan").value == "flat"

    @pytest.mark.unit
    def test_sequence_index(self) -> None:
        assert lookup_path({"tags": ["a", "b"]}, "tags.1").value == "b"
        assert not lookup_path({"tags": ["a"]}, "tags.5").exists
        assert not lookup_path({"tags": ["a"]}, "tags.first").exists

    @pytest.mark.unit
    def test_object_attribute(self) -> None:
        assert lookup_path({"account": _Account(plan="pro")}, "account.plan").value == "pro"

    @pytest.mark.unit
    def test_object_attributes_fallback(self) -> None:
        account = _Account(plan="pro", attributes={"region": "eu"})
        assert lookup_path(account, "region").value == "eu"

    @pytest.mark.unit
    def test_private_names_not_exposed(self) -> None:
        assert not lookup_path(_Account(plan="pro"), "_secret").exists

    @pytest.mark.unit
    def test_present_none_differs_from_missing(self) -> None:
        present = lookup_path({"email": None}, "email")
        assert present.exists
        assert present.value is None
        assert lookup_path({}, "email") is MISSING

    @pytest.mark.unit
    def test_cannot_descend_into_scalar(self) -> None:
        assert not lookup_path({"plan": "pro"}, "plan.name").exists


class TestPlainAttributeResolver:
    @pytest.mark.unit
    def test_reads_scope(self) -> None:
        resolver = PlainAttributeResolver()
        assert resolver.resolve("plan", {"plan": "pro"}, _ctx()).value == "pro"

    @pytest.mark.unit
    def test_reads_user_without_scope(self) -> None:
        user = Principal(subject="u1", email="a@example.com")
        resolver = PlainAttributeResolver()
        assert resolver.resolve("email", None, _ctx(user=user)).value == "a@example.com"

    @pytest.mark.unit
    def test_scalar_scope_alias(self) -> None:
        resolver = PlainAttributeResolver()
        assert resolver.resolve("scope", "user-42", _ctx()).value == "user-42"
        assert not resolver.resolve("plan", "user-42", _ctx()).exists

    @pytest.mark.unit
    def test_falls_back_to_ambient(self) -> None:
        resolver = PlainAttributeResolver()
        found = resolver.resolve("locale", {"plan": "pro"}, _ctx(ambient={"locale": "de"}))
        assert found.value == "de"

    @pytest.mark.unit
    def test_scope_beats_ambient(self) -> None:
        resolver = PlainAttributeResolver()
        found = resolver.resolve("locale", {"locale": "fr"}, _ctx(ambient={"locale": "de"}))
        assert found.value == "fr"


class TestDateTimeAttributeResolver:
    @pytest.mark.unit
    def test_now_is_evaluation_instant(self) -> None:
        assert DateTimeAttributeResolver().resolve("now", None, _ctx()).value == NOW

    @pytest.mark.unit
    def test_scope_timestamp_parsed(self) -> None:
        found = DateTimeAttributeResolver().resolve(
            "signed_up_at", {"signed_up_at": "2024-01-02T03:04:05Z"}, _ctx()
        )
        assert found.value == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)

    @pytest.mark.unit
    def test_unparseable_value_kept(self) -> None:
        found = DateTimeAttributeResolver().resolve("label", {"label": "soon"}, _ctx())
        assert found.value == "soon"


class TestMemoizedSources:
    @pytest.mark.unit
    def test_source_called_once_per_call(self) -> None:
        source = MagicMock()
        source.resolve.return_value = {"country": "DE", "city": "Berlin"}
        resolver = GeoAttributeResolver(source)
        ctx = _ctx()
        assert resolver.resolve("country", {"ip": "1.2.3.4"}, ctx).value == "DE"
        assert resolver.resolve("city", {"ip": "1.2.3.4"}, ctx).value == "Berlin"
        source.resolve.assert_called_once_with({"ip": "1.2.3.4"})

    @pytest.mark.unit
    def test_memo_not_shared_between_calls(self) -> None:
        source = MagicMock()
        source.resolve.return_value = {"country": "DE"}
        resolver = GeoAttributeResolver(source)
        resolver.resolve("country", None, _ctx())
        resolver.resolve("country", None, _ctx())
        assert source.resolve.call_count == 2

    @pytest.mark.unit
    def test_ambient_passed_without_scope(self) -> None:
        source = MagicMock()
        source.resolve.return_value = {}
        GeoAttributeResolver(source).resolve("country", None, _ctx(ambient={"ip": "9.9.9.9"}))
        source.resolve.assert_called_once_with({"ip": "9.9.9.9"})

    @pytest.mark.unit
    def test_missing_source(self) -> None:
        assert GeoAttributeResolver(None).resolve("country", {}, _ctx()) is MISSING


class TestSegmentAttributeResolver:
    @pytest.mark.unit
    def test_without_user_missing(self) -> None:
        assert not SegmentAttributeResolver(MagicMock()).resolve("beta", None, _ctx()).exists

    @pytest.mark.unit
    def test_membership_and_list(self) -> None:
        driver = MagicMock()
        driver.is_in_segment.return_value = True
        driver.user_segments.return_value = ["beta", "staff"]
        user = Principal(subject="u1")
        resolver = SegmentAttributeResolver(driver)
        assert resolver.resolve("beta", None, _ctx(user=user)).value is True
        assert resolver.resolve("segments", None, _ctx(user=user)).value == ["beta", "staff"]

    @pytest.mark.unit
    def test_without_driver_not_member(self) -> None:
        user = Principal(subject="u1")
        assert SegmentAttributeResolver(None).resolve("beta", None, _ctx(user=user)).value is False


class TestAttributeResolverRegistry:
    @pytest.mark.unit
    def test_default_domains(self) -> None:
        registry = AttributeResolverRegistry.default()
        assert registry.domains == sorted(str(domain) for domain in ConditionType)

    @pytest.mark.unit
    def test_untyped_condition_uses_default_domain(self) -> None:
        registry = AttributeResolverRegistry.default(default_domain=ConditionType.CONTEXT)
        condition = RuleCondition(attribute="locale", operator="equals")
        found = registry.resolve(condition, {"locale": "fr"}, _ctx(ambient={"locale": "de"}))
        assert found.value == "de"

    @pytest.mark.unit
    def test_unknown_domain_is_missing(self) -> None:
        registry = AttributeResolverRegistry.default()
        condition = RuleCondition(attribute="temp", operator="number_gt", type="weather")
        assert registry.resolve(condition, {"temp": 30}, _ctx()) is MISSING

    @pytest.mark.unit
    def test_supports_and_domain_of(self) -> None:
        registry = AttributeResolverRegistry.default(default_domain=ConditionType.CONTEXT)
        untyped = RuleCondition(attribute="locale", operator="equals")
        weather = RuleCondition(attribute="temp", operator="number_gt", type="weather")
        assert registry.domain_of(untyped) == "context"
        assert registry.supports(untyped)
        assert registry.domain_of(weather) == "weather"
        assert not registry.supports(weather)

    @pytest.mark.unit
    def test_extra_resolvers(self) -> None:
        custom = MagicMock()
        custom.resolve.return_value = AttributeValue.of(30)
        registry = AttributeResolverRegistry.default(extra={"weather": custom})
        condition = RuleCondition(attribute="temp", operator="number_gt", type="weather")
        assert registry.resolve(condition, None, _ctx()).value == 30
        assert registry.get("weather") is custom
