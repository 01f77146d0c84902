"""Regex-based User-Agent parser.

Good enough for coarse targeting (mobile vs desktop, browser family, OS
family). Exact device models need a dedicated parser behind
``UserAgentResolverPort``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_MOBILE = re.compile(
    r"(android|bb\d+|meego).+mobile|avantgo|bada/|blackberry|blazer|compal|elaine|fennec"
    r"|hiptop|iemobile|ip(hone|od)|iris|kindle|lge |maemo|midp|mmp|mobile.+firefox"
    r"|netfront|opera m(ob|in)i|palm( os)?|phone|p(ixi|re)/|plucker|pocket|psp"
    r"|series(4|6)0|symbian|treo|up\.(browser|link)|vodafone|wap|windows ce|xda|xiino",
    re.IGNORECASE,
)
_TABLET = re.compile(r"android|ipad|playbook|silk", re.IGNORECASE)
_BOT = re.compile(r"bot|googlebot|crawler|spider|robot|crawling", re.IGNORECASE)

# Checked in order; Edge and Opera carry "chrome" in their UA too.
_BROWSERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Edge", ("edg",)),
    ("Opera", ("opr", "opera")),
    ("Chrome", ("chrome",)),
    ("Firefox", ("firefox",)),
    ("Safari", ("safari",)),
    ("IE", ("msie", "trident")),
)
_BROWSER_VERSIONS: dict[str, re.Pattern[str]] = {
    "Chrome": re.compile(r"Chrome/([0-9.]+)", re.IGNORECASE),
    "Firefox": re.compile(r"Firefox/([0-9.]+)", re.IGNORECASE),
    "Safari": re.compile(r"Version/([0-9.]+)", re.IGNORECASE),
    "Edge": re.compile(r"Edg/([0-9.]+)", re.IGNORECASE),
    "Opera": re.compile(r"(?:Opera|OPR)/([0-9.]+)", re.IGNORECASE),
    "IE": re.compile(r"(?:MSIE |rv:)([0-9.]+)", re.IGNORECASE),
}
_OPERATING_SYSTEMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Windows", ("windows",)),
    ("Android", ("android",)),
    ("iOS", ("iphone", "ipad", "ipod")),
    ("macOS", ("mac os", "macintosh")),
    ("Linux", ("linux",)),
)
_OS_VERSIONS: tuple[re.Pattern[str], ...] = (
    re.compile(r"Windows NT ([0-9.]+)", re.IGNORECASE),
    re.compile(r"Android ([0-9.]+)", re.IGNORECASE),
    re.compile(r"OS ([0-9_]+)", re.IGNORECASE),
    re.compile(r"Mac OS X ([0-9_]+)", re.IGNORECASE),
)


def _first_match(user_agent: str, table: tuple[tuple[str, tuple[str, ...]], ...]) -> str:
    lowered = user_agent.lower()
    for name, needles in table:
        if any(needle in lowered for needle in needles):
            return name
    return "Unknown"


class DefaultUserAgentResolver:
    """Parse a User-Agent string into device, browser and OS attributes.

    The scope is either the raw User-Agent string, a mapping with a
    ``user_agent`` entry, or an object with a ``user_agent`` attribute.
    """

    def resolve(self, scope: Any) -> dict[str, Any]:
        user_agent = self._user_agent(scope)
        if not user_agent:
            return self._empty()

        is_mobile = self.is_mobile(user_agent)
        is_tablet = self.is_tablet(user_agent)
        is_bot = self.is_bot(user_agent)
        browser = _first_match(user_agent, _BROWSERS)
        return {
            "device": self._device(is_mobile=is_mobile, is_tablet=is_tablet, is_bot=is_bot),
            "browser": browser,
            "browser_version": self._browser_version(user_agent, browser),
            "os": _first_match(user_agent, _OPERATING_SYSTEMS),
            "os_version": self._os_version(user_agent),
            "is_mobile": is_mobile,
            "is_tablet": is_tablet,
            "is_desktop": not (is_mobile or is_tablet or is_bot),
            "is_bot": is_bot,
        }

    @staticmethod
    def is_mobile(user_agent: str) -> bool:
        return _MOBILE.search(user_agent) is not None

    @staticmethod
    def is_tablet(user_agent: str) -> bool:
        return _TABLET.search(user_agent) is not None and "mobile" not in user_agent.lower()

    @staticmethod
    def is_bot(user_agent: str) -> bool:
        return _BOT.search(user_agent) is not None

    @staticmethod
    def _user_agent(scope: Any) -> str | None:
        if isinstance(scope, str):
            return scope
        if isinstance(scope, Mapping):
            value = scope.get("user_agent")
        else:
            value = getattr(scope, "user_agent", None)
        return value if isinstance(value, str) else None

    @staticmethod
    def _device(*, is_mobile: bool, is_tablet: bool, is_bot: bool) -> str:
        if is_tablet:
            return "Tablet"
        if is_mobile:
            return "Mobile"
        if is_bot:
            return "Bot"
        return "Desktop"

    @staticmethod
    def _browser_version(user_agent: str, browser: str) -> str | None:
        pattern = _BROWSER_VERSIONS.get(browser)
        if pattern is None:
            return None
        match = pattern.search(user_agent)
        return match.group(1) if match else None

    @staticmethod
    def _os_version(user_agent: str) -> str | None:
        for pattern in _OS_VERSIONS:
            match = pattern.search(user_agent)
            if match:
                return match.group(1).replace("_", ".")
        return None

    @staticmethod
    def _empty() -> dict[str, Any]:
        return {
            "device": None,
            "browser": None,
            "browser_version": None,
            "os": None,
            "os_version": None,
            "is_mobile": False,
            "is_tablet": False,
            "is_desktop": False,
            "is_bot": False,
        }
