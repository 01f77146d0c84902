"""Fulcrum Infra FastAPI -- request context middleware, setting gates, error handlers."""

from fulcrum.infra.fastapi.dependencies.settings_gate import (
    get_setting_resolver,
    require_setting,
)
from fulcrum.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from fulcrum.infra.fastapi.middleware.evaluation_context import EvaluationContextMiddleware

__all__ = [
    "EvaluationContextMiddleware",
    "ProblemDetail",
    "get_setting_resolver",
    "register_exception_handlers",
    "require_setting",
]
