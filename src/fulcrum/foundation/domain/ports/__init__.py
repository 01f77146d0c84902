"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the resolver uses to interact with
storage and attribute sources. Implementations (adapters) live in
infrastructure.
"""

from fulcrum.foundation.domain.ports.attribute_sources import (
    CronMatcherPort,
    GeoResolverPort,
    HolidayResolverPort,
    SegmentDriverPort,
    UserAgentResolverPort,
)
from fulcrum.foundation.domain.ports.event_dispatcher import EventDispatcherPort
from fulcrum.foundation.domain.ports.setting_store import SettingStorePort

__all__ = [
    "CronMatcherPort",
    "EventDispatcherPort",
    "GeoResolverPort",
    "HolidayResolverPort",
    "SegmentDriverPort",
    "SettingStorePort",
    "UserAgentResolverPort",
]
