"""Port interface for reading settings from storage.

The store owns tenant fallback: asked for ``(key, tenant_id)`` it returns
the tenant's own row when one exists and the global row otherwise, so the
resolver performs exactly one fetch per call.

Example:
    >>> from fulcrum.foundation.domain.ports import SettingStorePort
    >>> def load(store: SettingStorePort) -> None:
    ...     setting = store.fetch("checkout.flow", "acme")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fulcrum.foundation.domain.models import Setting


@runtime_checkable
class SettingStorePort(Protocol):
    """Port for setting lookup.

    Returned settings must carry their rules, conditions and rollout
    variants eagerly. Errors (connection failures, timeouts) propagate to
    the resolver's caller unchanged.
    """

    def fetch(self, key: str, tenant_id: str | None = None) -> Setting | None:
        """Fetch the effective setting row for a key.

        Args:
            key: Setting key.
            tenant_id: Tenant to scope the lookup to. None reads the global row.

        Returns:
            The tenant row if present, else the global row, else None.
        """
        ...

    def keys_in_group(self, group: str, tenant_id: str | None = None) -> list[str]:
        """List setting keys belonging to a group.

        Args:
            group: Group name (key prefix before the last dot).
            tenant_id: Tenant whose rows are included alongside global rows.

        Returns:
            Distinct keys, sorted.
        """
        ...
