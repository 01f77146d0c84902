"""Lenient date and time coercion for condition evaluation.

Both helpers return None instead of raising so that callers can fail
closed on unparseable input.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import Any


def to_datetime(value: Any) -> datetime | None:
    """Coerce ``value`` to a timezone-aware datetime.

    Accepts datetimes, dates (midnight UTC), ISO-8601 strings (including a
    trailing ``Z``) and epoch seconds. Naive results are treated as UTC.
    Booleans are rejected even though they are integers.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, bool):
        return None
    elif isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_time(value: Any) -> time | None:
    """Coerce ``value`` to a wall-clock time, dropping any date part.

    Accepts ``time`` objects, ``HH:MM`` / ``HH:MM:SS`` strings, and anything
    ``to_datetime`` understands.
    """
    if isinstance(value, time):
        return value.replace(tzinfo=None, microsecond=0)
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip()).replace(tzinfo=None, microsecond=0)
        except ValueError:
            pass
    moment = to_datetime(value)
    if moment is None:
        return None
    return moment.time().replace(microsecond=0)
