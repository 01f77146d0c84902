"""Resolver configuration loaded from the environment.

Environment variables use the ``FULCRUM_`` prefix (e.g.,
``FULCRUM_BUCKET_PRECISION``). Callables such as a tenant resolver or a
rollout identifier override are code-level configuration and are passed
to the factory instead.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fulcrum.foundation.domain.models import MAX_WEIGHT, ConditionType


class DistributionStrategyName(StrEnum):
    """Selectable rollout distribution strategies."""

    WEIGHT = "weight"
    STRATIFIED = "stratified"


class FulcrumSettings(BaseSettings):
    """Settings resolver configuration.

    Attributes:
        bucket_precision: Size of the rollout bucket space. Default: 100000.
        fire_assignment_events: Emit ``VariantAssigned`` on rollout selection.
        record_resolutions: Emit ``ResolutionRecorded`` for every call.
        multi_tenancy_enabled: Consult the tenant resolver and ambient tenant.
        default_condition_type: Attribute domain for conditions naming none.
        distribution_strategy: Rollout distribution strategy.
        cache_enabled: Wrap the resolver in a TTL result cache.
        cache_ttl: Cache entry lifetime in seconds.
        cache_maxsize: Maximum cached results.
        cache_prefix: Prefix for cache keys.
        holiday_default_region: Region used by ``is_holiday`` when none is given.
    """

    model_config = SettingsConfigDict(
        env_prefix="FULCRUM_",
        extra="ignore",
        populate_by_name=True,
    )

    bucket_precision: int = Field(default=MAX_WEIGHT, gt=0)
    fire_assignment_events: bool = Field(default=True)
    record_resolutions: bool = Field(default=True)
    multi_tenancy_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("FULCRUM_MULTI_TENANCY", "multi_tenancy_enabled"),
    )
    default_condition_type: ConditionType = Field(default=ConditionType.USER)
    distribution_strategy: DistributionStrategyName = Field(
        default=DistributionStrategyName.WEIGHT
    )
    cache_enabled: bool = Field(default=False)
    cache_ttl: int = Field(default=3600, gt=0)
    cache_maxsize: int = Field(default=10_000, gt=0)
    cache_prefix: str = Field(default="fulcrum", min_length=1)
    holiday_default_region: str | None = Field(default=None)

    @field_validator("default_condition_type", "distribution_strategy", mode="before")
    @classmethod
    def _normalize_choice(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


@lru_cache(maxsize=1)
def get_fulcrum_settings() -> FulcrumSettings:
    """Get cached FulcrumSettings instance.

    Clear cache with ``get_fulcrum_settings.cache_clear()`` for testing.

    Returns:
        Singleton FulcrumSettings instance.
    """
    return FulcrumSettings()
