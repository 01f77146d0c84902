"""Default attribute-source drivers."""

from fulcrum.infra.drivers.geo import DefaultGeoResolver
from fulcrum.infra.drivers.holidays import StaticHolidayResolver
from fulcrum.infra.drivers.segments import RoleSegmentDriver
from fulcrum.infra.drivers.user_agent import DefaultUserAgentResolver

__all__ = [
    "DefaultGeoResolver",
    "DefaultUserAgentResolver",
    "RoleSegmentDriver",
    "StaticHolidayResolver",
]
