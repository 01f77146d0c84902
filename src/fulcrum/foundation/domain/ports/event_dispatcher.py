"""Port interface for delivering resolver events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fulcrum.foundation.domain.events import ResolutionEvent


@runtime_checkable
class EventDispatcherPort(Protocol):
    """Deliver ``ResolutionRecorded`` and ``VariantAssigned`` events.

    Dispatch is synchronous from the resolver's point of view. Adapters
    that ship events over the network should buffer internally.
    """

    def dispatch(self, event: ResolutionEvent) -> None:
        """Deliver one event."""
        ...
