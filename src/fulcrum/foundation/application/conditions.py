"""Condition evaluation across the operator families.

``ConditionEvaluator.evaluate`` compares one resolved attribute against a
condition's expected value. The operator's family selects the evaluation
function through a lookup table, so adding an operator means adding it to
the family mapping in ``operators`` and handling it in one function here.

Evaluation is fail-closed: a missing attribute (except for segment
operators), an unparseable date or version, a malformed range, an invalid
regular expression or an unrecognized operator all yield False. Errors
raised by collaborators (segment driver, holiday resolver, cron matcher)
are not caught.
"""

from __future__ import annotations

import json
import logging
import math
import re
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from packaging.version import InvalidVersion, Version

from fulcrum.foundation.application.temporal import to_datetime, to_time
from fulcrum.foundation.domain.operators import ComparisonOperator, OperatorFamily

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import time

    from fulcrum.foundation.application.attributes import AttributeValue
    from fulcrum.foundation.application.context import EvaluationContext
    from fulcrum.foundation.domain.models import RuleCondition
    from fulcrum.foundation.domain.ports import (
        CronMatcherPort,
        HolidayResolverPort,
        SegmentDriverPort,
    )

    Handler = Callable[[ComparisonOperator, Any, Any, EvaluationContext], bool]

logger = logging.getLogger(__name__)

Op = ComparisonOperator

WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

_REGEX_DELIMITERS = frozenset("/#~@%!|")
_REGEX_FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": re.UNICODE,
}

_FALSY_STRINGS = frozenset({"", "0", "false", "no", "off"})


def stringify(value: Any) -> str:
    """Render a value as the string compared by string operators.

    Example:
        >>> stringify(True), stringify(3), stringify(None), stringify(["a", 1])
        ('true', '3', '', '["a",1]')
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    try:
        return json.dumps(value, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return str(value)


def to_number(value: Any) -> float | None:
    """Numbers and numeric strings become floats; everything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str) and _NUMERIC_STRING.match(value):
        return float(value)
    return None


def as_list(value: Any) -> list[Any]:
    """Treat a scalar expected value as a one-element list."""
    if value is None:
        return []
    if isinstance(value, list | tuple | set | frozenset):
        return list(value)
    return [value]


def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a plain or delimited (``/expr/flags``) pattern.

    Returns None for invalid patterns or unknown flags.
    """
    expression, flags = pattern, 0
    if len(pattern) >= 2 and pattern[0] in _REGEX_DELIMITERS:
        end = pattern.rfind(pattern[0])
        if end > 0:
            expression = pattern[1:end]
            for flag in pattern[end + 1 :]:
                if flag not in _REGEX_FLAGS:
                    return None
                flags |= _REGEX_FLAGS[flag]
    try:
        return re.compile(expression, flags)
    except re.error:
        return None


def _time_within(current: time, start: time, end: time) -> bool:
    if start <= end:
        return start <= current <= end
    # Overnight window such as 22:00-06:00
    return current >= start or current <= end


class ConditionEvaluator:
    """Evaluate single conditions against resolved attributes.

    Args:
        segments: Segment driver. Without one nobody is in any segment.
        holidays: Holiday resolver. Without one ``is_holiday`` is always False.
        cron: Cron matcher. Without one ``schedule_cron`` is always False.
        default_holiday_region: Region used when a condition names none.
    """

    def __init__(
        self,
        *,
        segments: SegmentDriverPort | None = None,
        holidays: HolidayResolverPort | None = None,
        cron: CronMatcherPort | None = None,
        default_holiday_region: str | None = None,
    ) -> None:
        self._segments = segments
        self._holidays = holidays
        self._cron = cron
        self._default_holiday_region = default_holiday_region
        self._handlers: dict[OperatorFamily, Handler] = {
            OperatorFamily.STRING: self._string,
            OperatorFamily.NUMERIC: self._numeric,
            OperatorFamily.DATE: self._date,
            OperatorFamily.VERSION: self._version,
            OperatorFamily.SEGMENT: self._segment,
            OperatorFamily.BOOLEAN: self._boolean,
            OperatorFamily.NULL: self._null,
        }

    def evaluate(
        self,
        condition: RuleCondition,
        attribute: AttributeValue,
        context: EvaluationContext,
    ) -> bool:
        """Evaluate ``condition`` against an already-resolved attribute.

        Args:
            condition: Condition carrying the operator and expected value.
            attribute: Resolved attribute with its existence flag.
            context: Per-call context (actor, evaluation instant).

        Returns:
            True if the condition holds. Never raises for bad rule data.
        """
        operator = condition.comparison
        if operator is None:
            logger.debug(
                "condition_operator_unrecognized",
                extra={"operator": str(condition.operator), "attribute": condition.attribute},
            )
            return False
        if not operator.is_segment and not attribute.exists:
            return False
        handler = self._handlers[operator.family]
        return handler(operator, attribute.value, condition.value, context)

    # -- string ----------------------------------------------------------

    def _string(self, op: ComparisonOperator, actual: Any, expected: Any, _: Any) -> bool:
        text = stringify(actual)
        if op is Op.EQUALS:
            return text == stringify(expected)
        if op is Op.NOT_EQUALS:
            return text != stringify(expected)
        if op is Op.MATCHES_REGEX:
            if not isinstance(expected, str):
                return False
            pattern = compile_pattern(expected)
            if pattern is None:
                logger.debug("invalid_regex_pattern", extra={"pattern": expected})
                return False
            return pattern.search(text) is not None

        needles = [needle for needle in as_list(expected) if isinstance(needle, str)]
        if op is Op.CONTAINS_ANY:
            return any(needle in text for needle in needles)
        if op is Op.NOT_CONTAINS_ANY:
            return not any(needle in text for needle in needles)
        if op is Op.STARTS_WITH_ANY:
            return any(text.startswith(needle) for needle in needles)
        if op is Op.ENDS_WITH_ANY:
            return any(text.endswith(needle) for needle in needles)
        return False

    # -- numeric ---------------------------------------------------------

    def _numeric(self, op: ComparisonOperator, actual: Any, expected: Any, _: Any) -> bool:
        number = to_number(actual)
        if number is None:
            return False
        if op is Op.NUMBER_BETWEEN:
            bounds = as_list(expected)
            if len(bounds) != 2:
                return False
            low, high = to_number(bounds[0]), to_number(bounds[1])
            if low is None or high is None:
                return False
            return low <= number <= high

        target = to_number(expected)
        if op is Op.NUMBER_EQUALS:
            return target is not None and number == target
        if op is Op.NUMBER_NOT_EQUALS:
            return target is not None and number != target
        if op is Op.NUMBER_GT:
            return number > (math.inf if target is None else target)
        if op is Op.NUMBER_GTE:
            return number >= (math.inf if target is None else target)
        if op is Op.NUMBER_LT:
            return number < (-math.inf if target is None else target)
        if op is Op.NUMBER_LTE:
            return number <= (-math.inf if target is None else target)
        return False

    # -- date and time ---------------------------------------------------

    def _date(
        self,
        op: ComparisonOperator,
        actual: Any,
        expected: Any,
        context: EvaluationContext,
    ) -> bool:
        moment = to_datetime(actual)
        if moment is None:
            return False

        if op is Op.DATE_BETWEEN:
            bounds = as_list(expected)
            if len(bounds) != 2:
                return False
            start, end = to_datetime(bounds[0]), to_datetime(bounds[1])
            if start is None or end is None:
                return False
            low, high = min(start, end), max(start, end)
            return low <= moment <= high
        if op is Op.TIME_BETWEEN:
            bounds = as_list(expected)
            if len(bounds) != 2:
                return False
            start_time, end_time = to_time(bounds[0]), to_time(bounds[1])
            if start_time is None or end_time is None:
                return False
            current = moment.time().replace(tzinfo=None, microsecond=0)
            return _time_within(current, start_time, end_time)
        if op is Op.DAY_OF_WEEK:
            wanted = {stringify(day).strip().lower() for day in as_list(expected)}
            name = WEEKDAYS[moment.weekday()]
            return name in wanted or name[:3] in wanted
        if op is Op.IS_BUSINESS_DAY:
            return moment.weekday() < 5
        if op is Op.IS_HOLIDAY:
            return self._is_holiday(moment, expected)
        if op is Op.SCHEDULE_CRON:
            if self._cron is None or not isinstance(expected, str):
                return False
            return bool(self._cron.matches(expected, moment))

        target = to_datetime(expected)
        if target is None:
            return False
        if op is Op.DATE_EQUALS:
            return moment == target
        if op is Op.DATE_NOT_EQUALS:
            return moment != target
        if op is Op.DATE_GT:
            return moment > target
        if op is Op.DATE_GTE:
            return moment >= target
        if op is Op.DATE_LT:
            return moment < target
        if op is Op.DATE_LTE:
            return moment <= target
        return False

    def _is_holiday(self, moment: datetime, expected: Any) -> bool:
        if self._holidays is None:
            return False
        region: str | None = None
        if isinstance(expected, str) and expected:
            region = expected
        elif isinstance(expected, list | tuple) and expected and isinstance(expected[0], str):
            region = expected[0]
        region = region or self._default_holiday_region
        return bool(self._holidays.is_holiday(moment.date(), region))

    # -- semantic version ------------------------------------------------

    def _version(self, op: ComparisonOperator, actual: Any, expected: Any, _: Any) -> bool:
        try:
            version = Version(stringify(actual))
            if op is Op.VERSION_BETWEEN:
                bounds = [bound for bound in as_list(expected) if isinstance(bound, str)]
                if len(bounds) != 2:
                    return False
                return Version(bounds[0]) <= version <= Version(bounds[1])
            target = Version(stringify(expected))
        except InvalidVersion:
            return False

        if op is Op.VERSION_EQUALS:
            return version == target
        if op is Op.VERSION_NOT_EQUALS:
            return version != target
        if op is Op.VERSION_GT:
            return version > target
        if op is Op.VERSION_GTE:
            return version >= target
        if op is Op.VERSION_LT:
            return version < target
        if op is Op.VERSION_LTE:
            return version <= target
        return False

    # -- segment ---------------------------------------------------------

    def _segment(
        self,
        op: ComparisonOperator,
        actual: Any,
        expected: Any,
        context: EvaluationContext,
    ) -> bool:
        # Anonymous actors match neither form.
        if context.user is None:
            return False
        segment = stringify(expected)
        member = (
            bool(self._segments.is_in_segment(context.user, segment))
            if self._segments is not None
            else False
        )
        if op is Op.IN_SEGMENT:
            return member
        if op is Op.NOT_IN_SEGMENT:
            return not member
        return False

    # -- boolean and null ------------------------------------------------

    def _boolean(self, op: ComparisonOperator, actual: Any, expected: Any, _: Any) -> bool:
        if isinstance(actual, str):
            truthy = actual.strip().lower() not in _FALSY_STRINGS
        else:
            truthy = bool(actual)
        if op is Op.IS_TRUE:
            return truthy
        if op is Op.IS_FALSE:
            return not truthy
        return False

    def _null(self, op: ComparisonOperator, actual: Any, expected: Any, _: Any) -> bool:
        if op is Op.IS_NULL:
            return actual is None
        if op is Op.IS_NOT_NULL:
            return actual is not None
        return False
