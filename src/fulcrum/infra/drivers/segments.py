"""Segment driver backed by principal roles.

Segments are role names: a principal with role ``beta-testers`` is in the
``beta-testers`` segment. Actors without roles belong to no segment.
"""

from __future__ import annotations

from typing import Any


class RoleSegmentDriver:
    """Answer segment membership from ``user.roles``.

    Works with ``Principal`` and with any object exposing a ``roles``
    iterable of strings.
    """

    def is_in_segment(self, user: Any, segment: str) -> bool:
        return segment in self.user_segments(user)

    def user_segments(self, user: Any) -> list[str]:
        roles = getattr(user, "roles", None)
        if roles is None or isinstance(roles, str):
            return []
        segments: list[str] = []
        for role in roles:
            if isinstance(role, str) and role not in segments:
                segments.append(role)
        return segments
