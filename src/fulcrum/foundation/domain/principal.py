"""Principal value object representing the actor a setting is resolved for.

Pure domain object with no external dependencies. Immutable (frozen dataclass).
Segment operators and rollout identifier resolution read from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class PrincipalType(StrEnum):
    """Type of authenticated principal."""

    USER = "user"
    AGENT = "agent"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated entity a setting is resolved for.

    Attributes:
        subject: Unique principal identifier. Used as the default rollout identifier.
        tenant_id: Tenant the principal belongs to. None for global actors.
        roles: Role strings. The default segment driver treats them as segments.
        email: Email address. None if absent.
        attributes: Extra profile attributes addressable by condition paths.
        principal_type: USER or AGENT. Defaults to USER.
    """

    subject: str
    tenant_id: str | None = None
    roles: tuple[str, ...] = ()
    email: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    principal_type: PrincipalType = PrincipalType.USER

    @property
    def id(self) -> str:
        """Alias for ``subject`` so ``id`` paths resolve against a principal."""
        return self.subject
