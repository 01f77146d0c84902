"""Middleware components for the Fulcrum FastAPI integration."""

from fulcrum.infra.fastapi.middleware.evaluation_context import EvaluationContextMiddleware

__all__ = ["EvaluationContextMiddleware"]
