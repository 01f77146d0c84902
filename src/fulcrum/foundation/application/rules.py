"""Rule evaluation: activation window plus ANDed conditions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fulcrum.foundation.application.attributes import AttributeResolverRegistry
    from fulcrum.foundation.application.conditions import ConditionEvaluator
    from fulcrum.foundation.application.context import EvaluationContext
    from fulcrum.foundation.domain.models import SettingRule

logger = logging.getLogger(__name__)


class RuleEvaluator:
    """Decide whether a rule applies to a scope.

    A rule outside its activation window never matches, whatever its
    conditions say. Inside the window an empty condition list matches
    unconditionally; otherwise every condition must hold, and evaluation
    stops at the first one that does not. A condition naming an attribute
    domain the registry does not know never holds, whatever its operator.

    Args:
        attributes: Registry resolving each condition's attribute.
        conditions: Evaluator comparing attributes with expected values.
    """

    def __init__(
        self,
        attributes: AttributeResolverRegistry,
        conditions: ConditionEvaluator,
    ) -> None:
        self._attributes = attributes
        self._conditions = conditions

    def evaluate_rule(self, rule: SettingRule, scope: Any, context: EvaluationContext) -> bool:
        if not rule.is_active_at(context.now):
            return False
        for condition in rule.conditions:
            if not self._attributes.supports(condition):
                logger.debug(
                    "attribute_domain_unknown",
                    extra={"domain": str(condition.type), "attribute": condition.attribute},
                )
                return False
            attribute = self._attributes.resolve(condition, scope, context)
            if not self._conditions.evaluate(condition, attribute, context):
                return False
        return True
