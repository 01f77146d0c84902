"""In-process setting store.

Holds settings in a dict keyed by ``(tenant_id, key)``. Tenant rows shadow
the global row of the same key on ``fetch``. Values are validated against
the declared type on ``save`` so bad data never reaches the resolver.

Usage:
    store = InMemorySettingStore()
    store.save(Setting(key="checkout.flow", type=SettingType.STRING, default_value="v1"))
    resolver = build_setting_resolver(store)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from fulcrum.foundation.application.type_handlers import TypeRegistry
from fulcrum.foundation.domain.exceptions import SettingNotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fulcrum.foundation.domain.models import Setting

logger = logging.getLogger(__name__)


class InMemorySettingStore:
    """Thread-safe dict-backed ``SettingStorePort`` implementation.

    Args:
        settings: Initial settings to save.
        types: Type registry used for value validation. Default: built-in types.
    """

    def __init__(
        self,
        settings: Iterable[Setting] = (),
        *,
        types: TypeRegistry | None = None,
    ) -> None:
        self._types = types or TypeRegistry()
        self._rows: dict[tuple[str | None, str], Setting] = {}
        self._lock = threading.Lock()
        for setting in settings:
            self.save(setting)

    def __len__(self) -> int:
        return len(self._rows)

    def fetch(self, key: str, tenant_id: str | None = None) -> Setting | None:
        with self._lock:
            if tenant_id is not None:
                row = self._rows.get((tenant_id, key))
                if row is not None:
                    return row
            return self._rows.get((None, key))

    def keys_in_group(self, group: str, tenant_id: str | None = None) -> list[str]:
        with self._lock:
            return sorted(
                {
                    setting.key
                    for (owner, _), setting in self._rows.items()
                    if setting.group == group and owner in (None, tenant_id)
                }
            )

    def save(self, setting: Setting) -> Setting:
        """Validate and store a setting, replacing any row with the same key and tenant.

        Raises:
            InvalidSettingValueError: If the default value or a rule or
                variant value does not fit the declared type.
            MissingTypeHandlerError: If the declared type has no handler.
        """
        self._types.validate(setting.type, setting.default_value, key=setting.key)
        for rule in setting.rules:
            self._types.validate(setting.type, rule.value, key=setting.key)
            for variant in rule.variants:
                self._types.validate(setting.type, variant.value, key=setting.key)

        with self._lock:
            self._rows[(setting.tenant_id, setting.key)] = setting
        logger.debug(
            "setting_saved",
            extra={"key": setting.key, "tenant_id": setting.tenant_id},
        )
        return setting

    def delete(self, key: str, tenant_id: str | None = None) -> bool:
        """Remove one row. Returns False if it did not exist."""
        with self._lock:
            return self._rows.pop((tenant_id, key), None) is not None

    def reset_rollout_salt(
        self,
        key: str,
        rule_name: str | None = None,
        tenant_id: str | None = None,
    ) -> Setting:
        """Give rollout rules a fresh salt, re-randomizing every assignment.

        Args:
            key: Setting key.
            rule_name: Only reset the rule with this name. None resets every
                rollout rule of the setting.
            tenant_id: Tenant owning the row. None targets the global row.

        Raises:
            SettingNotFoundError: If the row does not exist.
        """
        with self._lock:
            setting = self._rows.get((tenant_id, key))
            if setting is None:
                raise SettingNotFoundError(key, tenant_id)
            rules = tuple(
                rule.with_reset_salt()
                if rule.has_rollout_variants and (rule_name is None or rule.name == rule_name)
                else rule
                for rule in setting.rules
            )
            updated = setting.model_copy(update={"rules": rules})
            self._rows[(tenant_id, key)] = updated
        logger.info(
            "rollout_salt_reset",
            extra={"key": key, "rule_name": rule_name, "tenant_id": tenant_id},
        )
        return updated
