"""Fulcrum Foundation Domain -- pure Python settings primitives.

This package provides the domain building blocks of settings resolution:
settings, rules, conditions, rollout variants, the operator set,
resolution traces, events, exceptions and port interfaces.
"""

from fulcrum.foundation.domain.events import (
    ResolutionEvent,
    ResolutionRecorded,
    VariantAssigned,
)
from fulcrum.foundation.domain.exceptions import (
    FulcrumError,
    InvalidRuleError,
    InvalidSettingValueError,
    MissingTypeHandlerError,
    SettingDisabledError,
    SettingNotFoundError,
)
from fulcrum.foundation.domain.models import (
    MAX_WEIGHT,
    ConditionType,
    RolloutVariant,
    RuleCondition,
    Setting,
    SettingRule,
    SettingType,
)
from fulcrum.foundation.domain.operators import ComparisonOperator, OperatorFamily
from fulcrum.foundation.domain.ports import (
    CronMatcherPort,
    EventDispatcherPort,
    GeoResolverPort,
    HolidayResolverPort,
    SegmentDriverPort,
    SettingStorePort,
    UserAgentResolverPort,
)
from fulcrum.foundation.domain.principal import Principal, PrincipalType
from fulcrum.foundation.domain.resolution import ResolutionSource, ResolutionTrace

__all__ = [
    "MAX_WEIGHT",
    "ComparisonOperator",
    "ConditionType",
    "CronMatcherPort",
    "EventDispatcherPort",
    "FulcrumError",
    "GeoResolverPort",
    "HolidayResolverPort",
    "InvalidRuleError",
    "InvalidSettingValueError",
    "MissingTypeHandlerError",
    "OperatorFamily",
    "Principal",
    "PrincipalType",
    "ResolutionEvent",
    "ResolutionRecorded",
    "ResolutionSource",
    "ResolutionTrace",
    "RolloutVariant",
    "RuleCondition",
    "SegmentDriverPort",
    "Setting",
    "SettingDisabledError",
    "SettingNotFoundError",
    "SettingRule",
    "SettingStorePort",
    "SettingType",
    "UserAgentResolverPort",
    "VariantAssigned",
]
