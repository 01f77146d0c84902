"""Exception hierarchy for settings resolution.

Every error carries a machine-readable ``error_code`` and structured
``context`` so the HTTP boundary and log processors can render it
consistently.

Condition evaluation never raises; these exceptions surface from explicit
lookups (``require``), value coercion, and rule validation.

Example:
    >>> from fulcrum.foundation.domain.exceptions import SettingNotFoundError
    >>> raise SettingNotFoundError("feature.x", tenant_id="acme")
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "FulcrumError",
    "InvalidRuleError",
    "InvalidSettingValueError",
    "MissingTypeHandlerError",
    "SettingDisabledError",
    "SettingNotFoundError",
]


class FulcrumError(Exception):
    """Base class for all settings errors.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (setting key, tenant id).

    Example:
        >>> raise FulcrumError("Resolution failed", context={"key": "feature.x"})
        FulcrumError: Resolution failed (key=feature.x)
    """

    error_code: str = "FULCRUM_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class SettingNotFoundError(FulcrumError):
    """Raised when a required setting has no row for the key and tenant.

    Maps to HTTP 404 Not Found. Plain resolution reports a missing setting
    through its trace instead; this error is raised only when the caller
    asks for a setting that must exist.

    Attributes:
        error_code: "SETTING_NOT_FOUND" (class constant).
        key: Setting key that was requested.
        tenant_id: Tenant the lookup was scoped to, None for global.
    """

    error_code: str = "SETTING_NOT_FOUND"

    def __init__(self, key: str, tenant_id: str | None = None) -> None:
        self.key = key
        self.tenant_id = tenant_id
        tenant = tenant_id if tenant_id is not None else "global"
        super().__init__(
            f"Setting [{key}] for tenant [{tenant}] not found",
            {"key": key, "tenant_id": tenant_id},
        )


class SettingDisabledError(FulcrumError):
    """Raised when a gating setting resolves to a falsy value.

    Maps to HTTP 403 Forbidden.

    Attributes:
        error_code: "SETTING_DISABLED" (class constant).
        key: Setting key that gated the request.
        tenant_id: Tenant the setting was resolved for.
    """

    error_code: str = "SETTING_DISABLED"

    def __init__(self, key: str, tenant_id: str | None = None) -> None:
        self.key = key
        self.tenant_id = tenant_id
        super().__init__(
            f"Setting '{key}' is not enabled",
            {"key": key, "tenant_id": tenant_id},
        )


class InvalidSettingValueError(FulcrumError, ValueError):
    """Raised when a value cannot be represented as the setting's type.

    Maps to HTTP 422 Unprocessable Entity.

    Attributes:
        error_code: "INVALID_SETTING_VALUE" (class constant).
        setting_type: Declared type the value failed to match.
        key: Setting key, when known.
    """

    error_code: str = "INVALID_SETTING_VALUE"

    def __init__(self, value: Any, setting_type: str, key: str | None = None) -> None:
        self.value = value
        self.setting_type = setting_type
        self.key = key
        if key is None:
            message = f"Invalid value for type [{setting_type}]"
        else:
            message = f"Invalid value for setting [{key}] of type [{setting_type}]"
        context: dict[str, Any] = {
            "setting_type": setting_type,
            "value_type": type(value).__name__,
        }
        if key is not None:
            context["key"] = key
        super().__init__(message, context)


class MissingTypeHandlerError(FulcrumError, LookupError):
    """Raised when no value handler is registered for a setting type."""

    error_code: str = "MISSING_TYPE_HANDLER"

    def __init__(self, setting_type: str) -> None:
        self.setting_type = setting_type
        super().__init__(
            f"No handler registered for setting type [{setting_type}]",
            {"setting_type": setting_type},
        )


class InvalidRuleError(FulcrumError, ValueError):
    """Raised when a rule definition breaks a structural invariant.

    Covers a rule carrying both a direct value and rollout variants,
    duplicate variant names, variant weights above 100000, and an
    activation window that ends before it starts.
    """

    error_code: str = "INVALID_RULE"

    def __init__(self, reason: str, **extra_context: Any) -> None:
        self.reason = reason
        super().__init__(reason, dict(extra_context))
