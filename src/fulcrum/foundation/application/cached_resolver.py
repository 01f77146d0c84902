"""TTL result cache in front of a SettingResolver.

In-memory (cachetools.TTLCache, per-process). Entries are keyed by prefix,
effective tenant, setting key and a scope key:

- no scope: ``user:{id}`` for a bound or ambient actor, else ``global``
- scalar scope: the scalar itself
- any other scope: SHA256 of its canonical JSON form
- non-empty ambient attributes (client IP, User-Agent, ...): ``|ctx:``
  plus the SHA256 of the attribute bag, since ``geocoding``,
  ``user_agent`` and ``context`` conditions read them

Cached entries hold the ``(value, trace)`` pair of the original call.
Every call, hit or miss, dispatches ``ResolutionRecorded``; a hit reports
the cached trace. ``VariantAssigned`` is dispatched only when an entry is
computed. Conditions on the evaluation instant (``date_time`` rules,
activation windows) are only as fresh as the TTL allows.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from cachetools import TTLCache  # type: ignore[import-untyped]

from fulcrum.foundation.application.context import get_ambient_context
from fulcrum.foundation.application.resolver import BaseSettingResolver

if TYPE_CHECKING:
    from fulcrum.foundation.application.context import AmbientContext
    from fulcrum.foundation.application.resolver import SettingResolver
    from fulcrum.foundation.domain.resolution import ResolutionTrace

logger = logging.getLogger(__name__)

_SCALARS = (str, int, float, bool)


def _canonical(value: Any) -> str:
    """Stable text form of a value. Mappings with mixed key types sort by ``str(key)``."""
    try:
        return json.dumps(value, sort_keys=True, default=str, separators=(",", ":"))
    except (TypeError, ValueError):
        if isinstance(value, Mapping):
            items = sorted(((str(k), v) for k, v in value.items()), key=lambda kv: kv[0])
            return repr(items)
        return repr(value)


def _digest(value: Any) -> str:
    return hashlib.sha256(_canonical(value).encode("utf-8")).hexdigest()


def scope_cache_key(
    scope: Any,
    user_id: str | None = None,
    ambient: Mapping[str, Any] | None = None,
) -> str:
    """Stable cache key fragment for a scope, actor and ambient attribute bag."""
    if scope is None:
        key = f"user:{user_id}" if user_id is not None else "global"
    else:
        base = str(scope) if isinstance(scope, _SCALARS) else _digest(scope)
        key = f"{base}|user:{user_id}" if user_id is not None else base
    if ambient:
        key = f"{key}|ctx:{_digest(dict(ambient))}"
    return key


class CachedSettingResolver(BaseSettingResolver):
    """Caching decorator for ``SettingResolver``.

    Args:
        resolver: Resolver to delegate to.
        enabled: When False every call passes straight through.
        ttl: Entry lifetime in seconds (default: 3600 = 1 hour).
        maxsize: Maximum entries (default: 10,000).
        prefix: Cache key prefix.
        cache: Existing cache to share between derived resolvers.
        lock: Lock guarding ``cache``.
    """

    def __init__(
        self,
        resolver: SettingResolver,
        *,
        enabled: bool = True,
        ttl: int = 3600,
        maxsize: int = 10_000,
        prefix: str = "fulcrum",
        cache: TTLCache[str, tuple[Any, ResolutionTrace]] | None = None,
        lock: threading.Lock | None = None,
    ) -> None:
        self._resolver = resolver
        self._enabled = enabled
        self._prefix = prefix
        self._cache: TTLCache[str, tuple[Any, ResolutionTrace]] = (
            cache if cache is not None else TTLCache(maxsize=maxsize, ttl=ttl)
        )
        self._lock = lock or threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def inner(self) -> SettingResolver:
        return self._resolver

    def _wrap(self, resolver: SettingResolver) -> CachedSettingResolver:
        return CachedSettingResolver(
            resolver,
            enabled=self._enabled,
            prefix=self._prefix,
            cache=self._cache,
            lock=self._lock,
        )

    def for_user(self, user: Any) -> CachedSettingResolver:
        return self._wrap(self._resolver.for_user(user))

    def for_tenant(self, tenant_id: str | None) -> CachedSettingResolver:
        return self._wrap(self._resolver.for_tenant(tenant_id))

    def keys_in_group(self, group: str, *, tenant_id: str | None = None) -> list[str]:
        return self._resolver.keys_in_group(group, tenant_id=tenant_id)

    def cache_key(
        self,
        key: str,
        scope: Any = None,
        *,
        tenant_id: str | None = None,
        user: Any = None,
    ) -> str:
        """Build the cache key for a resolution call."""
        cache_key, _ = self._key_and_actor(key, scope, tenant_id, user, get_ambient_context())
        return cache_key

    def _key_and_actor(
        self,
        key: str,
        scope: Any,
        tenant_id: str | None,
        user: Any,
        ambient: AmbientContext,
    ) -> tuple[str, Any]:
        tenant = self._resolver.effective_tenant_id(tenant_id, ambient)
        actor = self._resolver.effective_user(user, scope, ambient)
        user_id = self._resolver.user_identifier(actor)
        fragment = scope_cache_key(scope, user_id, ambient.attributes)
        return f"{self._prefix}:{tenant or 'global'}:{key}:{fragment}", actor

    def resolve(
        self,
        key: str,
        scope: Any = None,
        *,
        tenant_id: str | None = None,
        user: Any = None,
    ) -> tuple[Any, ResolutionTrace]:
        if not self._enabled:
            return self._resolver.resolve(key, scope, tenant_id=tenant_id, user=user)

        cache_key, actor = self._key_and_actor(
            key, scope, tenant_id, user, get_ambient_context()
        )
        with self._lock:
            cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("setting_cache_hit", extra={"cache_key": cache_key})
            self._resolver.record_resolution(cached[1], actor)
            return cached

        result = self._resolver.resolve(key, scope, tenant_id=tenant_id, user=user)
        with self._lock:
            self._cache[cache_key] = result
        return result

    def invalidate(self, key: str | None = None) -> int:
        """Drop cached entries, all of them or those for one setting key.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            if key is None:
                removed = len(self._cache)
                self._cache.clear()
                return removed
            marker = f":{key}:"
            stale = [
                cache_key
                for cache_key in list(self._cache.keys())
                if cache_key.startswith(f"{self._prefix}:") and marker in cache_key
            ]
            for cache_key in stale:
                self._cache.pop(cache_key, None)
            return len(stale)
