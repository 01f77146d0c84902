"""Port interfaces for external attribute sources.

Geo lookup, user-agent parsing, segment membership, holiday calendars and
cron schedules all live outside the evaluation core. Each is consumed
through one of the protocols below and may be left unconfigured; the
condition evaluator then fails closed for the operators that need it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date, datetime


@runtime_checkable
class GeoResolverPort(Protocol):
    """Resolve geographic attributes for a scope."""

    def resolve(self, scope: Any) -> Mapping[str, Any]:
        """Return a flat attribute map (e.g. ``country``, ``region``, ``city``).

        Args:
            scope: Caller-supplied scope, typically carrying an IP address.
        """
        ...


@runtime_checkable
class UserAgentResolverPort(Protocol):
    """Resolve device/browser attributes for a scope."""

    def resolve(self, scope: Any) -> Mapping[str, Any]:
        """Return a flat attribute map (e.g. ``browser``, ``os``, ``is_mobile``).

        Args:
            scope: Caller-supplied scope, typically carrying a User-Agent string.
        """
        ...


@runtime_checkable
class SegmentDriverPort(Protocol):
    """Answer segment membership questions for an actor."""

    def is_in_segment(self, user: Any, segment: str) -> bool:
        """Check whether ``user`` belongs to ``segment``."""
        ...

    def user_segments(self, user: Any) -> list[str]:
        """List every segment ``user`` belongs to."""
        ...


@runtime_checkable
class HolidayResolverPort(Protocol):
    """Holiday calendar lookup."""

    def is_holiday(self, day: date, region: str | None = None) -> bool:
        """Check whether ``day`` is a holiday in ``region``.

        Args:
            day: Calendar date to check.
            region: Region code (e.g. "US", "DE-BY"). None uses the calendar default.
        """
        ...


@runtime_checkable
class CronMatcherPort(Protocol):
    """Cron schedule matcher."""

    def matches(self, expression: str, moment: datetime) -> bool:
        """Check whether ``moment`` falls on the schedule ``expression``."""
        ...
