"""Comparison operators used by rule conditions.

Every operator belongs to exactly one operator family. The family decides
which evaluation function handles the comparison, so the mapping below is
the single place where the operator set is enumerated.

Example:
    >>> from fulcrum.foundation.domain.operators import ComparisonOperator
    >>> ComparisonOperator("number_gte").family
    <OperatorFamily.NUMERIC: 'numeric'>
"""

from __future__ import annotations

from enum import StrEnum

__all__ = [
    "ComparisonOperator",
    "OperatorFamily",
]


class OperatorFamily(StrEnum):
    """Group of operators sharing one evaluation function."""

    STRING = "string"
    NUMERIC = "numeric"
    DATE = "date"
    VERSION = "version"
    SEGMENT = "segment"
    BOOLEAN = "boolean"
    NULL = "null"


class ComparisonOperator(StrEnum):
    """Closed set of condition operators.

    Values are the stored wire names, so rules persisted by any
    configuration tool load without translation.
    """

    # String
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS_ANY = "contains_any"
    NOT_CONTAINS_ANY = "not_contains_any"
    STARTS_WITH_ANY = "starts_with_any"
    ENDS_WITH_ANY = "ends_with_any"
    MATCHES_REGEX = "matches_regex"

    # Numeric
    NUMBER_EQUALS = "number_equals"
    NUMBER_NOT_EQUALS = "number_not_equals"
    NUMBER_GT = "number_gt"
    NUMBER_GTE = "number_gte"
    NUMBER_LT = "number_lt"
    NUMBER_LTE = "number_lte"
    NUMBER_BETWEEN = "number_between"

    # Date and time
    DATE_EQUALS = "date_equals"
    DATE_NOT_EQUALS = "date_not_equals"
    DATE_GT = "date_gt"
    DATE_GTE = "date_gte"
    DATE_LT = "date_lt"
    DATE_LTE = "date_lte"
    DATE_BETWEEN = "date_between"
    TIME_BETWEEN = "time_between"
    DAY_OF_WEEK = "day_of_week"
    IS_BUSINESS_DAY = "is_business_day"
    IS_HOLIDAY = "is_holiday"
    SCHEDULE_CRON = "schedule_cron"

    # Semantic version
    VERSION_EQUALS = "version_equals"
    VERSION_NOT_EQUALS = "version_not_equals"
    VERSION_GT = "version_gt"
    VERSION_GTE = "version_gte"
    VERSION_LT = "version_lt"
    VERSION_LTE = "version_lte"
    VERSION_BETWEEN = "version_between"

    # Segment membership
    IN_SEGMENT = "in_segment"
    NOT_IN_SEGMENT = "not_in_segment"

    # Boolean
    IS_TRUE = "is_true"
    IS_FALSE = "is_false"

    # Null
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    @property
    def family(self) -> OperatorFamily:
        """Operator family that evaluates this operator."""
        return _FAMILIES[self]

    @property
    def is_segment(self) -> bool:
        """Segment operators evaluate the actor, not a scope attribute."""
        return self.family is OperatorFamily.SEGMENT

    @property
    def requires_value(self) -> bool:
        """Whether the condition must carry an expected value."""
        return self not in _VALUELESS

    @property
    def requires_list_value(self) -> bool:
        """Whether the expected value must be a list."""
        return self in _LIST_VALUED

    @classmethod
    def parse(cls, raw: object) -> ComparisonOperator | None:
        """Return the operator named by ``raw``, or None if unrecognized."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


_Op = ComparisonOperator

_FAMILIES: dict[ComparisonOperator, OperatorFamily] = {
    _Op.EQUALS: OperatorFamily.STRING,
    _Op.NOT_EQUALS: OperatorFamily.STRING,
    _Op.CONTAINS_ANY: OperatorFamily.STRING,
    _Op.NOT_CONTAINS_ANY: OperatorFamily.STRING,
    _Op.STARTS_WITH_ANY: OperatorFamily.STRING,
    _Op.ENDS_WITH_ANY: OperatorFamily.STRING,
    _Op.MATCHES_REGEX: OperatorFamily.STRING,
    _Op.NUMBER_EQUALS: OperatorFamily.NUMERIC,
    _Op.NUMBER_NOT_EQUALS: OperatorFamily.NUMERIC,
    _Op.NUMBER_GT: OperatorFamily.NUMERIC,
    _Op.NUMBER_GTE: OperatorFamily.NUMERIC,
    _Op.NUMBER_LT: OperatorFamily.NUMERIC,
    _Op.NUMBER_LTE: OperatorFamily.NUMERIC,
    _Op.NUMBER_BETWEEN: OperatorFamily.NUMERIC,
    _Op.DATE_EQUALS: OperatorFamily.DATE,
    _Op.DATE_NOT_EQUALS: OperatorFamily.DATE,
    _Op.DATE_GT: OperatorFamily.DATE,
    _Op.DATE_GTE: OperatorFamily.DATE,
    _Op.DATE_LT: OperatorFamily.DATE,
    _Op.DATE_LTE: OperatorFamily.DATE,
    _Op.DATE_BETWEEN: OperatorFamily.DATE,
    _Op.TIME_BETWEEN: OperatorFamily.DATE,
    _Op.DAY_OF_WEEK: OperatorFamily.DATE,
    _Op.IS_BUSINESS_DAY: OperatorFamily.DATE,
    _Op.IS_HOLIDAY: OperatorFamily.DATE,
    _Op.SCHEDULE_CRON: OperatorFamily.DATE,
    _Op.VERSION_EQUALS: OperatorFamily.VERSION,
    _Op.VERSION_NOT_EQUALS: OperatorFamily.VERSION,
    _Op.VERSION_GT: OperatorFamily.VERSION,
    _Op.VERSION_GTE: OperatorFamily.VERSION,
    _Op.VERSION_LT: OperatorFamily.VERSION,
    _Op.VERSION_LTE: OperatorFamily.VERSION,
    _Op.VERSION_BETWEEN: OperatorFamily.VERSION,
    _Op.IN_SEGMENT: OperatorFamily.SEGMENT,
    _Op.NOT_IN_SEGMENT: OperatorFamily.SEGMENT,
    _Op.IS_TRUE: OperatorFamily.BOOLEAN,
    _Op.IS_FALSE: OperatorFamily.BOOLEAN,
    _Op.IS_NULL: OperatorFamily.NULL,
    _Op.IS_NOT_NULL: OperatorFamily.NULL,
}

_VALUELESS: frozenset[ComparisonOperator] = frozenset(
    {
        _Op.IS_TRUE,
        _Op.IS_FALSE,
        _Op.IS_NULL,
        _Op.IS_NOT_NULL,
        _Op.IS_BUSINESS_DAY,
        _Op.IS_HOLIDAY,
    }
)

_LIST_VALUED: frozenset[ComparisonOperator] = frozenset(
    {
        _Op.CONTAINS_ANY,
        _Op.NOT_CONTAINS_ANY,
        _Op.STARTS_WITH_ANY,
        _Op.ENDS_WITH_ANY,
        _Op.NUMBER_BETWEEN,
        _Op.DATE_BETWEEN,
        _Op.TIME_BETWEEN,
        _Op.VERSION_BETWEEN,
    }
)
