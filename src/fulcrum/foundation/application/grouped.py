"""Grouped view over settings sharing a key prefix.

A group is the part of a key before its last dot: ``billing.tax_rate`` and
``billing.currency`` both belong to ``billing``. The grouped resolver
qualifies relative keys with the group and can resolve a whole group at
once.

Example:
    >>> billing = resolver.group("billing")
    >>> billing.get("currency", "EUR")
    >>> billing.all(scope={"country": "DE"})
    {'currency': 'EUR', 'tax_rate': 0.19}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fulcrum.foundation.application.resolver import BaseSettingResolver
    from fulcrum.foundation.domain.resolution import ResolutionTrace

_STRIP_CHARS = " .\t\n\r\0\x0b"


def normalize_group(group: str) -> str:
    """Trim whitespace and dots from a group name.

    Raises:
        ValueError: If nothing is left.
    """
    normalized = group.strip(_STRIP_CHARS)
    if not normalized:
        msg = "Group name cannot be empty"
        raise ValueError(msg)
    return normalized


class GroupedSettingResolver:
    """Resolve settings relative to a group.

    Args:
        resolver: Underlying resolver.
        group: Group name. Surrounding whitespace and dots are trimmed.

    Raises:
        ValueError: If the group name is empty after trimming.
    """

    def __init__(self, resolver: BaseSettingResolver, group: str) -> None:
        self._resolver = resolver
        self._group = normalize_group(group)

    @property
    def name(self) -> str:
        return self._group

    def qualify(self, key: str) -> str:
        """Full key for a key relative to this group."""
        return f"{self._group}.{key.lstrip('.')}"

    def strip_prefix(self, key: str) -> str:
        prefix = f"{self._group}."
        return key[len(prefix) :] if key.startswith(prefix) else key

    def resolve(self, key: str, scope: Any = None, **options: Any) -> tuple[Any, ResolutionTrace]:
        return self._resolver.resolve(self.qualify(key), scope, **options)

    def get(self, key: str, default: Any = None, scope: Any = None, **options: Any) -> Any:
        return self._resolver.get(self.qualify(key), default, scope, **options)

    def is_active(self, key: str, scope: Any = None, **options: Any) -> bool:
        return self._resolver.is_active(self.qualify(key), scope, **options)

    def keys(self, *, tenant_id: str | None = None) -> list[str]:
        """Full keys of every setting in the group."""
        return self._resolver.keys_in_group(self._group, tenant_id=tenant_id)

    def all(
        self,
        scope: Any = None,
        strip_prefix: bool = True,
        *,
        tenant_id: str | None = None,
        user: Any = None,
    ) -> dict[str, Any]:
        """Resolve every setting in the group.

        Args:
            scope: Scope each setting is resolved against.
            strip_prefix: Return keys relative to the group.
            tenant_id: Explicit tenant override.
            user: Explicit actor.

        Returns:
            Mapping of key to resolved value.
        """
        values: dict[str, Any] = {}
        for key in self.keys(tenant_id=tenant_id):
            value, _ = self._resolver.resolve(key, scope, tenant_id=tenant_id, user=user)
            values[self.strip_prefix(key) if strip_prefix else key] = value
        return values

    def for_user(self, user: Any) -> GroupedSettingResolver:
        return GroupedSettingResolver(self._resolver.for_user(user), self._group)

    def for_tenant(self, tenant_id: str | None) -> GroupedSettingResolver:
        return GroupedSettingResolver(self._resolver.for_tenant(tenant_id), self._group)

    def group(self, name: str) -> GroupedSettingResolver:
        """Nested group, e.g. ``billing`` then ``tax`` gives ``billing.tax``."""
        return GroupedSettingResolver(self._resolver, self.qualify(normalize_group(name)))
