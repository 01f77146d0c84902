"""Static holiday calendar.

Holds explicit dates per region. Suitable for tests and for deployments
that maintain their own closure calendar; plug a calendar library in
through ``HolidayResolverPort`` for computed national holidays.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class StaticHolidayResolver:
    """Holiday lookup over a fixed ``region -> dates`` table.

    Region codes are matched case-insensitively.

    Args:
        holidays: Dates per region code. Entries may be ``date`` objects
            or ISO ``YYYY-MM-DD`` strings.
        default_region: Region used when ``is_holiday`` is called without one.
    """

    def __init__(
        self,
        holidays: Mapping[str, Iterable[date | str]] | None = None,
        default_region: str | None = None,
    ) -> None:
        self._holidays: dict[str, frozenset[date]] = {
            region.upper(): frozenset(
                day if isinstance(day, date) else date.fromisoformat(day) for day in days
            )
            for region, days in (holidays or {}).items()
        }
        self._default_region = default_region

    @property
    def regions(self) -> list[str]:
        return sorted(self._holidays)

    def is_holiday(self, day: date, region: str | None = None) -> bool:
        code = region or self._default_region
        if not code:
            return False
        return day in self._holidays.get(code.upper(), frozenset())
