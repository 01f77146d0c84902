"""Structured logging configuration using structlog.

This module provides environment-aware structured logging with:
- JSON output for production environments
- Console output with colors for development
- Sensitive data redaction for security
- stdlib ``logging`` records (the resolver core logs through stdlib)
  rendered by the same processor chain

Usage:
    # During application startup
    from fulcrum.infra.observability.logging import configure_logging
    configure_logging()

    # In application code
    from fulcrum.infra.observability import get_logger
    logger = get_logger(__name__)
    logger.info("setting_resolved", key="checkout.flow", source="rollout")
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

# Type alias for structlog processor
Processor = structlog.types.Processor

# Sensitive field names for redaction
SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "authorization",
        "api_key",
        "apikey",
        "secret",
        "credential",
        "ip",
        "email",
    }
)

REDACTED_VALUE: str = "***REDACTED***"

VALID_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class LoggingSettings(BaseSettings):
    """Logging configuration settings from environment variables.

    Loads configuration from environment variables:
    - LOG_LEVEL: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Environment name (development, staging, production, test)

    Attributes:
        log_level: Minimum log level to output. Default: INFO
        environment: Environment name for format selection. Default: development

    Example:
        >>> settings = LoggingSettings(log_level="DEBUG", environment="production")
        >>> settings.use_json_logs
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Minimum log level to output",
    )
    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Environment name for format selection",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.strip().upper()
        return str(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known level.

        Raises:
            ValueError: If log level is not a valid Python logging level.
        """
        if v not in VALID_LEVELS:
            msg = f"log_level must be one of {sorted(VALID_LEVELS)}"
            raise ValueError(msg)
        return v

    @property
    def use_json_logs(self) -> bool:
        """JSON logs in production, console logs elsewhere."""
        return self.environment == "production"

    @property
    def log_level_int(self) -> int:
        """Convert log level string to logging module constant."""
        return getattr(logging, self.log_level, logging.INFO)


class SensitiveDataProcessor:
    """Structlog processor to redact sensitive fields from log context.

    Redacts values for fields matching:
    1. Exact field names in SENSITIVE_FIELDS (case-insensitive)
    2. Field names containing "password" or "token" as substrings

    Resolution events can carry scope attributes; client IPs and emails
    are redacted along with credentials.

    Example:
        >>> processor = SensitiveDataProcessor()
        >>> processor(None, "info", {"event": "login", "password": "secret123"})["password"]
        '***REDACTED***'
    """

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key in list(event_dict.keys()):
            if self._is_sensitive(key):
                event_dict[key] = REDACTED_VALUE
            elif isinstance(event_dict[key], dict):
                event_dict[key] = self._redact_nested(event_dict[key])
        return event_dict

    def _redact_nested(self, values: dict[str, Any]) -> dict[str, Any]:
        return {
            key: REDACTED_VALUE if self._is_sensitive(str(key)) else value
            for key, value in values.items()
        }

    def _is_sensitive(self, key: str) -> bool:
        key_lower = key.lower()
        if key_lower in SENSITIVE_FIELDS:
            return True
        return "password" in key_lower or "token" in key_lower


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached LoggingSettings instance.

    Clear cache with ``get_logging_settings.cache_clear()`` for testing.
    """
    return LoggingSettings()


def build_processors(settings: LoggingSettings) -> list[Processor]:
    """Processor chain shared by structlog loggers and stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        SensitiveDataProcessor(),
        structlog.processors.format_exc_info,
    ]


def _renderer(settings: LoggingSettings) -> Processor:
    if settings.use_json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


class StructlogHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Root handler installed by ``configure_logging``. Replaced on reconfiguration."""


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure structlog and route stdlib ``logging`` through it.

    Configures structlog with:
    - Context variable merging
    - Log level filtering
    - ISO 8601 timestamps (UTC)
    - Sensitive data redaction
    - Environment-aware rendering (JSON for production, console for development)

    The root stdlib logger gets a handler using ``ProcessorFormatter`` so
    that the ``extra`` fields logged by the resolver core show up as
    structured keys.

    Should be called once during application startup.

    Args:
        settings: Optional LoggingSettings instance. If not provided,
            settings are loaded from environment variables.
    """
    if settings is None:
        settings = get_logging_settings()

    processors = build_processors(settings)

    structlog.configure(
        processors=[*processors, _renderer(settings)],
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level_int),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *processors],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(settings),
        ],
    )
    handler = StructlogHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not isinstance(h, StructlogHandler)]
    root.addHandler(handler)
    logging.getLogger("fulcrum").setLevel(settings.log_level_int)


def get_logger(name: str | None = None) -> structlog.typing.WrappedLogger:
    """Get a structlog logger bound to the given name.

    Args:
        name: Logger name (typically __name__ from calling module).
            If None, returns unbound logger.

    Returns:
        Bound structlog logger with name context.
    """
    logger = structlog.get_logger()
    if name is not None:
        logger = logger.bind(logger=name)
    return logger
