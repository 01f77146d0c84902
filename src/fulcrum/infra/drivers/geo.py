"""Fallback geo resolver.

No GeoIP database ships with the package. ``DefaultGeoResolver`` only
extracts the client IP so ``geocoding`` conditions on ``ip`` work out of
the box; plug in a real provider (MaxMind, IPinfo) through
``GeoResolverPort`` for country, region and city.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class DefaultGeoResolver:
    """Resolve ``{ip, country, region, city}`` with location fields left empty."""

    def resolve(self, scope: Any) -> dict[str, Any]:
        return {
            "ip": self._ip(scope),
            "country": None,
            "region": None,
            "city": None,
        }

    @staticmethod
    def _ip(scope: Any) -> str | None:
        if isinstance(scope, str):
            return scope
        if isinstance(scope, Mapping):
            ip = scope.get("ip")
            return ip if isinstance(ip, str) else None
        ip = getattr(scope, "ip", None)
        return ip if isinstance(ip, str) else None
