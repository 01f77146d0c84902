"""Assemble a ready-to-use resolver from its collaborators.

The attribute resolver registry, condition evaluator and rule evaluator
are built once here; resolution calls only read them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fulcrum.foundation.application.attributes import AttributeResolverRegistry
from fulcrum.foundation.application.bucketing import Crc32BucketCalculator
from fulcrum.foundation.application.cached_resolver import CachedSettingResolver
from fulcrum.foundation.application.conditions import ConditionEvaluator
from fulcrum.foundation.application.distribution import (
    StratifiedDistributionStrategy,
    WeightDistributionStrategy,
)
from fulcrum.foundation.application.resolver import SettingResolver
from fulcrum.foundation.application.rules import RuleEvaluator
from fulcrum.foundation.application.settings import (
    DistributionStrategyName,
    get_fulcrum_settings,
)
from fulcrum.foundation.application.type_handlers import TypeRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from fulcrum.foundation.application.attributes import AttributeResolver
    from fulcrum.foundation.application.distribution import DistributionStrategy
    from fulcrum.foundation.application.resolver import BaseSettingResolver
    from fulcrum.foundation.application.settings import FulcrumSettings
    from fulcrum.foundation.domain.ports import (
        CronMatcherPort,
        EventDispatcherPort,
        GeoResolverPort,
        HolidayResolverPort,
        SegmentDriverPort,
        SettingStorePort,
        UserAgentResolverPort,
    )


def build_distribution_strategy(settings: FulcrumSettings) -> DistributionStrategy:
    if settings.distribution_strategy is DistributionStrategyName.STRATIFIED:
        return StratifiedDistributionStrategy()
    return WeightDistributionStrategy()


def build_setting_resolver(
    store: SettingStorePort,
    *,
    settings: FulcrumSettings | None = None,
    geo: GeoResolverPort | None = None,
    user_agent: UserAgentResolverPort | None = None,
    segments: SegmentDriverPort | None = None,
    holidays: HolidayResolverPort | None = None,
    cron: CronMatcherPort | None = None,
    events: EventDispatcherPort | None = None,
    types: TypeRegistry | None = None,
    tenant_resolver: Callable[[], str | None] | None = None,
    identifier_resolver: Callable[[Any, Any], Any] | None = None,
    extra_attribute_resolvers: Mapping[str, AttributeResolver] | None = None,
) -> BaseSettingResolver:
    """Build a resolver wired with the given collaborators.

    Args:
        store: Setting store.
        settings: Resolver configuration. Default: loaded from the environment.
        geo: Geo resolver for ``geocoding`` conditions.
        user_agent: User-agent resolver for ``user_agent`` conditions.
        segments: Segment driver for segment operators and ``segment`` conditions.
        holidays: Holiday resolver for ``is_holiday``.
        cron: Cron matcher for ``schedule_cron``.
        events: Dispatcher for resolution and assignment events.
        types: Value type registry. Default: built-in types.
        tenant_resolver: Callback returning the current tenant id.
        identifier_resolver: Rollout identifier override ``(scope, user)``.
        extra_attribute_resolvers: Additional attribute domains.

    Returns:
        A ``SettingResolver``, wrapped in ``CachedSettingResolver`` when
        caching is enabled.
    """
    settings = settings or get_fulcrum_settings()
    registry = AttributeResolverRegistry.default(
        geo=geo,
        user_agent=user_agent,
        segments=segments,
        default_domain=settings.default_condition_type,
        extra=extra_attribute_resolvers,
    )
    conditions = ConditionEvaluator(
        segments=segments,
        holidays=holidays,
        cron=cron,
        default_holiday_region=settings.holiday_default_region,
    )
    resolver = SettingResolver(
        store,
        RuleEvaluator(registry, conditions),
        bucket_calculator=Crc32BucketCalculator(),
        distribution=build_distribution_strategy(settings),
        types=types or TypeRegistry(),
        events=events,
        settings=settings,
        tenant_resolver=tenant_resolver,
        identifier_resolver=identifier_resolver,
    )
    if not settings.cache_enabled:
        return resolver
    return CachedSettingResolver(
        resolver,
        ttl=settings.cache_ttl,
        maxsize=settings.cache_maxsize,
        prefix=settings.cache_prefix,
    )
