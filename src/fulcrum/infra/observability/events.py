"""Event dispatchers delivering resolver events to observability sinks.

``LoggingEventDispatcher`` writes each event as one structured log line.
``CompositeEventDispatcher`` fans events out to several dispatchers, e.g.
logging plus an analytics exporter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fulcrum.foundation.domain.events import VariantAssigned
from fulcrum.infra.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fulcrum.foundation.domain.events import ResolutionEvent
    from fulcrum.foundation.domain.ports import EventDispatcherPort


class LoggingEventDispatcher:
    """Log resolver events through structlog.

    ``ResolutionRecorded`` is logged at debug level, ``VariantAssigned`` at
    info level in its analytics shape so exposure logs can be joined to
    outcomes downstream.

    Args:
        logger: Structlog logger. Default: a logger named after this module.
    """

    def __init__(self, logger: Any = None) -> None:
        self._logger = logger if logger is not None else get_logger(__name__)

    def dispatch(self, event: ResolutionEvent) -> None:
        if isinstance(event, VariantAssigned):
            payload = event.to_analytics()
            payload.pop("event", None)
            payload["tenant_id"] = event.tenant_id
            self._logger.info(event.event_name, **payload)
            return
        self._logger.debug(event.event_name, **event.to_dict())


class CompositeEventDispatcher:
    """Dispatch every event to each wrapped dispatcher in order."""

    def __init__(self, dispatchers: Iterable[EventDispatcherPort]) -> None:
        self._dispatchers = tuple(dispatchers)

    def dispatch(self, event: ResolutionEvent) -> None:
        for dispatcher in self._dispatchers:
            dispatcher.dispatch(event)


class RecordingEventDispatcher:
    """Keep dispatched events in memory, in order."""

    def __init__(self) -> None:
        self.events: list[ResolutionEvent] = []

    def dispatch(self, event: ResolutionEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[ResolutionEvent]) -> list[ResolutionEvent]:
        return [event for event in self.events if isinstance(event, event_type)]

    def clear(self) -> None:
        self.events.clear()
