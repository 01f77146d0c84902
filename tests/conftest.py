"""Shared fixtures for resolver tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest

from fulcrum.foundation.application.attributes import AttributeResolverRegistry
from fulcrum.foundation.application.conditions import ConditionEvaluator
from fulcrum.foundation.application.resolver import SettingResolver
from fulcrum.foundation.application.rules import RuleEvaluator
from fulcrum.foundation.application.settings import FulcrumSettings, get_fulcrum_settings
from fulcrum.infra.drivers import DefaultGeoResolver, DefaultUserAgentResolver, RoleSegmentDriver
from fulcrum.infra.observability.events import RecordingEventDispatcher
from fulcrum.infra.persistence.memory import InMemorySettingStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

# Wednesday, inside business hours.
FIXED_NOW = datetime(2025, 6, 4, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """Drop cached settings so environment patches take effect per test."""
    get_fulcrum_settings.cache_clear()
    yield
    get_fulcrum_settings.cache_clear()


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def store() -> InMemorySettingStore:
    return InMemorySettingStore()


@pytest.fixture()
def recorder() -> RecordingEventDispatcher:
    return RecordingEventDispatcher()


@pytest.fixture()
def make_resolver(
    store: InMemorySettingStore,
    recorder: RecordingEventDispatcher,
) -> Callable[..., SettingResolver]:
    """Factory building a resolver over ``store`` with a fixed clock.

    Keyword arguments override the collaborators: ``settings``, ``segments``,
    ``holidays``, ``cron`` and any ``SettingResolver`` option.
    """

    def _make(**overrides: Any) -> SettingResolver:
        settings = overrides.pop("settings", None) or FulcrumSettings()
        segments = overrides.pop("segments", RoleSegmentDriver())
        registry = AttributeResolverRegistry.default(
            geo=overrides.pop("geo", DefaultGeoResolver()),
            user_agent=overrides.pop("user_agent", DefaultUserAgentResolver()),
            segments=segments,
            default_domain=settings.default_condition_type,
        )
        conditions = ConditionEvaluator(
            segments=segments,
            holidays=overrides.pop("holidays", None),
            cron=overrides.pop("cron", None),
        )
        overrides.setdefault("events", recorder)
        overrides.setdefault("clock", lambda: FIXED_NOW)
        return SettingResolver(
            store,
            RuleEvaluator(registry, conditions),
            settings=settings,
            **overrides,
        )

    return _make
