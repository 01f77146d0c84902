"""Unit tests for fulcrum.foundation.application.cached_resolver."""

from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING

import pytest

from fulcrum.foundation.application.cached_resolver import CachedSettingResolver, scope_cache_key
from fulcrum.foundation.application.context import ambient_context
from fulcrum.foundation.domain.events import ResolutionRecorded
from fulcrum.foundation.domain.models import RuleCondition, Setting, SettingRule, SettingType
from fulcrum.foundation.domain.principal import Principal

if TYPE_CHECKING:
    from collections.abc import Callable

    from fulcrum.foundation.application.resolver import SettingResolver
    from fulcrum.infra.observability.events import RecordingEventDispatcher
    from fulcrum.infra.persistence.memory import InMemorySettingStore

    MakeResolver = Callable[..., SettingResolver]


class TestScopeCacheKey:
    @pytest.mark.unit
    def test_no_scope(self) -> None:
        assert scope_cache_key(None) == "global"
        assert scope_cache_key(None, "u1") == "user:u1"

    @pytest.mark.unit
    def test_scalar_scope(self) -> None:
        assert scope_cache_key("acct-9") == "acct-9"
        assert scope_cache_key(42, "u1") == "42|user:u1"

    @pytest.mark.unit
    def test_structured_scope_hashed_canonically(self) -> None:
        expected = hashlib.sha256(
            json.dumps({"a": 1, "b": 2}, sort_keys=True, separators=(",", ":")).encode()
        ).hexdigest()
        assert scope_cache_key({"b": 2, "a": 1}) == expected

    @pytest.mark.unit
    def test_mixed_key_types(self) -> None:
        first = scope_cache_key({1: "a", "plan": "pro"})
        assert first == scope_cache_key({"plan": "pro", 1: "a"})
        assert first != scope_cache_key({1: "b", "plan": "pro"})

    @pytest.mark.unit
    def test_ambient_attributes_appended(self) -> None:
        assert scope_cache_key(None, ambient={}) == "global"
        with_ip = scope_cache_key(None, ambient={"ip": "1.1.1.1"})
        assert with_ip.startswith("global|ctx:")
        assert with_ip != scope_cache_key(None, ambient={"ip": "9.9.9.9"})
        scoped = scope_cache_key("acct-1", "u1", {"ip": "1.1.1.1"})
        assert scoped.startswith("acct-1|user:u1|ctx:")


class TestCachedSettingResolver:
    @pytest.mark.unit
    def test_second_call_served_from_cache(
        self, store: InMemorySettingStore, make_resolver: MakeResolver
    ) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        cached = CachedSettingResolver(make_resolver())
        assert cached.get("ui.theme") == "light"
        store.save(Setting(key="ui.theme", default_value="dark"))
        assert cached.get("ui.theme") == "light"

    @pytest.mark.unit
    def test_invalidate_key(self, store: InMemorySettingStore, make_resolver: MakeResolver) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        store.save(Setting(key="ui.font", default_value="serif"))
        cached = CachedSettingResolver(make_resolver())
        cached.get("ui.theme")
        cached.get("ui.theme", scope={"plan": "pro"})
        cached.get("ui.font")
        assert cached.invalidate("ui.theme") == 2
        store.save(Setting(key="ui.theme", default_value="dark"))
        assert cached.get("ui.theme") == "dark"

    @pytest.mark.unit
    def test_invalidate_all(self, store: InMemorySettingStore, make_resolver: MakeResolver) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        cached = CachedSettingResolver(make_resolver())
        cached.get("ui.theme")
        cached.get("ui.theme", tenant_id="acme")
        assert cached.invalidate() == 2
        assert cached.invalidate() == 0

    @pytest.mark.unit
    def test_disabled_passes_through(
        self, store: InMemorySettingStore, make_resolver: MakeResolver
    ) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        cached = CachedSettingResolver(make_resolver(), enabled=False)
        cached.get("ui.theme")
        store.save(Setting(key="ui.theme", default_value="dark"))
        assert cached.get("ui.theme") == "dark"
        assert not cached.enabled

    @pytest.mark.unit
    def test_tenants_cached_separately(
        self, store: InMemorySettingStore, make_resolver: MakeResolver
    ) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        store.save(Setting(key="ui.theme", tenant_id="acme", default_value="dark"))
        cached = CachedSettingResolver(make_resolver())
        assert cached.get("ui.theme") == "light"
        assert cached.get("ui.theme", tenant_id="acme") == "dark"
        assert cached.for_tenant("acme").get("ui.theme") == "dark"

    @pytest.mark.unit
    def test_users_cached_separately(
        self, store: InMemorySettingStore, make_resolver: MakeResolver
    ) -> None:
        store.save(
            Setting(
                key="feature.staff",
                default_value="no",
                rules=(
                    SettingRule(
                        conditions=(
                            {"attribute": "roles", "operator": "in_segment", "value": "staff"},
                        ),
                        value="yes",
                    ),
                ),
            )
        )
        cached = CachedSettingResolver(make_resolver())
        assert cached.for_user(Principal("u1", roles=("staff",))).get("feature.staff") == "yes"
        assert cached.for_user(Principal("u2")).get("feature.staff") == "no"

    @pytest.mark.unit
    def test_derived_resolvers_share_cache(
        self, store: InMemorySettingStore, make_resolver: MakeResolver
    ) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        cached = CachedSettingResolver(make_resolver())
        user = Principal("u1")
        cached.for_user(user).get("ui.theme")
        assert cached.invalidate("ui.theme") == 1

    @pytest.mark.unit
    def test_cache_key_format(self, make_resolver: MakeResolver) -> None:
        cached = CachedSettingResolver(make_resolver(), prefix="app")
        assert cached.cache_key("ui.theme") == "app:global:ui.theme:global"
        assert (
            cached.cache_key("ui.theme", "acct-1", tenant_id="acme", user=Principal("u1"))
            == "app:acme:ui.theme:acct-1|user:u1"
        )

    @pytest.mark.unit
    def test_group_view_over_cache(
        self, store: InMemorySettingStore, make_resolver: MakeResolver
    ) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        cached = CachedSettingResolver(make_resolver())
        assert cached.group("ui").all() == {"theme": "light"}

    @pytest.mark.unit
    def test_ambient_attributes_cached_separately(
        self, store: InMemorySettingStore, make_resolver: MakeResolver
    ) -> None:
        store.save(
            Setting(
                key="promo.eu",
                type=SettingType.BOOLEAN,
                default_value=False,
                rules=(
                    SettingRule(
                        conditions=(
                            RuleCondition(
                                attribute="ip",
                                operator="equals",
                                value="1.1.1.1",
                                type="geocoding",
                            ),
                        ),
                        value=True,
                    ),
                ),
            )
        )
        cached = CachedSettingResolver(make_resolver())
        with ambient_context(attributes={"ip": "1.1.1.1"}):
            assert cached.get("promo.eu") is True
        with ambient_context(attributes={"ip": "9.9.9.9"}):
            assert cached.get("promo.eu") is False
            assert cached.inner.get("promo.eu") is False
        with ambient_context(attributes={"ip": "1.1.1.1"}):
            assert cached.get("promo.eu") is True
        assert cached.invalidate("promo.eu") == 2

    @pytest.mark.unit
    def test_mixed_key_scope(
        self, store: InMemorySettingStore, make_resolver: MakeResolver
    ) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        cached = CachedSettingResolver(make_resolver())
        scope = {1: "a", "plan": "pro"}
        assert cached.get("ui.theme", scope=scope) == "light"
        assert cached.get("ui.theme", scope=scope) == "light"
        assert cached.invalidate("ui.theme") == 1

    @pytest.mark.unit
    def test_cache_hit_records_resolution(
        self,
        store: InMemorySettingStore,
        make_resolver: MakeResolver,
        recorder: RecordingEventDispatcher,
    ) -> None:
        store.save(Setting(key="ui.theme", default_value="light"))
        cached = CachedSettingResolver(make_resolver())
        user = Principal("u1")
        cached.get("ui.theme", user=user)
        cached.get("ui.theme", user=user)
        recorded = recorder.of_type(ResolutionRecorded)
        assert len(recorded) == 2
        assert recorded[0].to_dict() == recorded[1].to_dict()
        assert recorded[1].user_id == "u1"
