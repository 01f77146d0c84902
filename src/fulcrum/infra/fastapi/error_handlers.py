"""RFC 7807 Problem Details exception handlers for FastAPI.

Translates settings exceptions into standardized HTTP responses following
RFC 7807 Problem Details for HTTP APIs. All handlers return responses with
Content-Type: application/problem+json.

Usage:
    from fulcrum.infra.fastapi.error_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from fastapi.responses import JSONResponse
from fulcrum.foundation.domain.exceptions import (
    FulcrumError,
    InvalidSettingValueError,
    SettingDisabledError,
    SettingNotFoundError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

_SENSITIVE_KEYS = frozenset({"password", "secret", "token", "api_key", "apikey", "credential"})


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response model.

    Standard fields:
    - type: URI reference identifying the problem type
    - title: Short human-readable summary
    - status: HTTP status code
    - detail: Human-readable explanation
    - instance: URI reference to specific occurrence

    Extension fields:
    - error_code: Machine-readable error code for client handling
    - context: Structured debugging information
    """

    type: str = Field(
        ...,
        description="URI reference identifying problem type",
        examples=["/errors/setting-not-found", "/errors/setting-disabled"],
    )
    title: str = Field(
        ...,
        description="Short human-readable summary",
        examples=["Setting Not Found", "Setting Disabled"],
    )
    status: int = Field(
        ...,
        ge=400,
        le=599,
        description="HTTP status code",
    )
    detail: str = Field(
        ...,
        description="Human-readable explanation",
    )
    instance: str | None = Field(
        default=None,
        description="URI reference to specific occurrence (request path)",
    )
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code",
        examples=["SETTING_NOT_FOUND", "SETTING_DISABLED"],
    )
    context: dict[str, Any] | None = Field(
        default=None,
        description="Structured debugging information",
    )


def _create_problem_response(problem: ProblemDetail) -> JSONResponse:
    """Create JSONResponse with RFC 7807 content type."""
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    """Sanitize context dictionary for safe inclusion in responses.

    - Drops keys naming secrets (password, token, ...)
    - Converts datetimes to ISO strings
    - Stringifies values that are not JSON-serializable
    - Drops None values

    Args:
        context: Context dictionary from exception

    Returns:
        Sanitized context dictionary, or None if nothing is left
    """
    if context is None:
        return None

    sanitized = {}
    for key, value in context.items():
        if key.lower() in _SENSITIVE_KEYS or value is None:
            continue
        sanitized[key] = _sanitize_value(value)

    return sanitized if sanitized else None


def _sanitize_value(value: Any) -> Any:
    """Sanitize a single value for JSON serialization."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return _sanitize_context(value)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(v) for v in value]
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def _problem(
    request: Request,
    exc: FulcrumError,
    *,
    type_: str,
    title: str,
    status: int,
) -> JSONResponse:
    problem = ProblemDetail(
        type=type_,
        title=title,
        status=status,
        detail=str(exc),
        instance=str(request.url.path),
        error_code=exc.error_code,
        context=_sanitize_context(exc.context),
    )
    return _create_problem_response(problem)


async def setting_not_found_handler(
    request: Request,
    exc: SettingNotFoundError,
) -> JSONResponse:
    """Translate SettingNotFoundError to 404 with RFC 7807 problem details."""
    return _problem(
        request,
        exc,
        type_="/errors/setting-not-found",
        title="Setting Not Found",
        status=404,
    )


async def setting_disabled_handler(
    request: Request,
    exc: SettingDisabledError,
) -> JSONResponse:
    """Translate SettingDisabledError to 403 Forbidden.

    Response includes the setting key in the context so clients can
    identify which gate blocked their request.
    """
    logger.info(
        "setting_gate_rejected",
        extra={"key": exc.key, "tenant_id": exc.tenant_id, "path": str(request.url.path)},
    )
    return _problem(
        request,
        exc,
        type_="/errors/setting-disabled",
        title="Setting Disabled",
        status=403,
    )


async def invalid_setting_value_handler(
    request: Request,
    exc: InvalidSettingValueError,
) -> JSONResponse:
    """Translate InvalidSettingValueError to 422."""
    return _problem(
        request,
        exc,
        type_="/errors/invalid-setting-value",
        title="Invalid Setting Value",
        status=422,
    )


async def fulcrum_error_handler(
    request: Request,
    exc: FulcrumError,
) -> JSONResponse:
    """Translate any other FulcrumError to 400 Bad Request.

    Fallback for settings errors without a more specific handler.
    """
    return _problem(
        request,
        exc,
        type_="/errors/settings-error",
        title="Bad Request",
        status=400,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the settings exception handlers on a FastAPI application.

    Handlers are registered from most specific to least specific:
    1. SettingNotFoundError -> 404
    2. SettingDisabledError -> 403
    3. InvalidSettingValueError -> 422
    4. FulcrumError -> 400 (base class fallback)

    Args:
        app: FastAPI application instance
    """
    # Starlette's handler typing is stricter than the exception-specific signatures.
    app.add_exception_handler(
        SettingNotFoundError,
        setting_not_found_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        SettingDisabledError,
        setting_disabled_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        InvalidSettingValueError,
        invalid_setting_value_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        FulcrumError,
        fulcrum_error_handler,  # type: ignore[arg-type]
    )
