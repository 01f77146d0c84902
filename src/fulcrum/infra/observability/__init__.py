"""Fulcrum Infra Observability -- structlog logging and resolver event sinks."""

from __future__ import annotations

from fulcrum.infra.observability.events import (
    CompositeEventDispatcher,
    LoggingEventDispatcher,
    RecordingEventDispatcher,
)
from fulcrum.infra.observability.logging import (
    LoggingSettings,
    configure_logging,
    get_logger,
)

__all__ = [
    "CompositeEventDispatcher",
    "LoggingEventDispatcher",
    "LoggingSettings",
    "RecordingEventDispatcher",
    "configure_logging",
    "get_logger",
]
