"""Fulcrum Foundation Application -- settings evaluation and resolution."""

from fulcrum.foundation.application.attributes import (
    AttributeResolver,
    AttributeResolverRegistry,
    AttributeValue,
)
from fulcrum.foundation.application.bucketing import BucketCalculator, Crc32BucketCalculator
from fulcrum.foundation.application.cached_resolver import CachedSettingResolver
from fulcrum.foundation.application.conditions import ConditionEvaluator
from fulcrum.foundation.application.context import (
    AmbientContext,
    EvaluationContext,
    ambient_context,
    clear_ambient_context,
    get_ambient_context,
    set_ambient_context,
)
from fulcrum.foundation.application.distribution import (
    DistributionStrategy,
    StratifiedDistributionStrategy,
    WeightDistributionStrategy,
)
from fulcrum.foundation.application.factory import build_setting_resolver
from fulcrum.foundation.application.grouped import GroupedSettingResolver
from fulcrum.foundation.application.resolver import BaseSettingResolver, SettingResolver
from fulcrum.foundation.application.rules import RuleEvaluator
from fulcrum.foundation.application.settings import FulcrumSettings, get_fulcrum_settings
from fulcrum.foundation.application.type_handlers import SettingTypeHandler, TypeRegistry

__all__ = [
    "AmbientContext",
    "AttributeResolver",
    "AttributeResolverRegistry",
    "AttributeValue",
    "BaseSettingResolver",
    "BucketCalculator",
    "CachedSettingResolver",
    "ConditionEvaluator",
    "Crc32BucketCalculator",
    "DistributionStrategy",
    "EvaluationContext",
    "FulcrumSettings",
    "GroupedSettingResolver",
    "RuleEvaluator",
    "SettingResolver",
    "SettingTypeHandler",
    "StratifiedDistributionStrategy",
    "TypeRegistry",
    "WeightDistributionStrategy",
    "ambient_context",
    "build_setting_resolver",
    "clear_ambient_context",
    "get_ambient_context",
    "get_fulcrum_settings",
    "set_ambient_context",
]
