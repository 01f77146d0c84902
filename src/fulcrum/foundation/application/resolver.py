"""Setting resolution: tenant-aware lookup, rule walk, rollout and fallback.

Implements the resolution chain for one key:

1. Effective tenant: explicit override, else (with multi-tenancy enabled)
   the tenant resolver callback, else the ambient tenant.
2. One store fetch. The store returns the tenant's row or the global row.
3. Rules in ascending priority. Inactive or non-matching rules are skipped
   but still counted. A rollout rule buckets the identifier and returns
   the selected variant; a rollout miss moves on to the next rule. A
   direct-value rule returns its value.
4. No rule produced a value: the setting default.

Every call returns ``(value, trace)``. A missing setting is reported via a
``not_found`` trace rather than an exception; ``require`` turns it into
``SettingNotFoundError`` for callers that need the setting to exist.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from fulcrum.foundation.application.bucketing import Crc32BucketCalculator
from fulcrum.foundation.application.context import EvaluationContext, get_ambient_context
from fulcrum.foundation.application.distribution import WeightDistributionStrategy
from fulcrum.foundation.application.settings import get_fulcrum_settings
from fulcrum.foundation.application.type_handlers import TypeRegistry
from fulcrum.foundation.domain.events import ResolutionRecorded, VariantAssigned
from fulcrum.foundation.domain.exceptions import SettingNotFoundError
from fulcrum.foundation.domain.principal import Principal
from fulcrum.foundation.domain.resolution import ResolutionSource, ResolutionTrace

if TYPE_CHECKING:
    from collections.abc import Callable

    from fulcrum.foundation.application.bucketing import BucketCalculator
    from fulcrum.foundation.application.context import AmbientContext
    from fulcrum.foundation.application.distribution import DistributionStrategy
    from fulcrum.foundation.application.grouped import GroupedSettingResolver
    from fulcrum.foundation.application.rules import RuleEvaluator
    from fulcrum.foundation.application.settings import FulcrumSettings
    from fulcrum.foundation.domain.models import RolloutVariant, Setting, SettingRule
    from fulcrum.foundation.domain.ports import EventDispatcherPort, SettingStorePort

    TenantResolver = Callable[[], str | None]
    IdentifierResolver = Callable[[Any, Any], Any]
    Clock = Callable[[], datetime]

logger = logging.getLogger(__name__)

_SCALARS = (str, int, float, bool)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _scalar_identifier(value: Any) -> str | None:
    if isinstance(value, _SCALARS) and value != "":
        return str(value)
    return None


def _user_identifier(user: Any) -> str | None:
    if user is None:
        return None
    for attribute in ("subject", "id"):
        identifier = _scalar_identifier(getattr(user, attribute, None))
        if identifier is not None:
            return identifier
    return None


class BaseSettingResolver(ABC):
    """Convenience surface shared by every resolver implementation.

    Subclasses implement ``resolve``, the derivation methods and group key
    listing; value lookups, activity checks, required lookups and group
    views are built on top of them.
    """

    @abstractmethod
    def resolve(
        self,
        key: str,
        scope: Any = None,
        *,
        tenant_id: str | None = None,
        user: Any = None,
    ) -> tuple[Any, ResolutionTrace]:
        """Resolve ``key`` for ``scope``, returning the value and its trace."""

    @abstractmethod
    def for_user(self, user: Any) -> BaseSettingResolver:
        """Return a new resolver bound to ``user``."""

    @abstractmethod
    def for_tenant(self, tenant_id: str | None) -> BaseSettingResolver:
        """Return a new resolver bound to ``tenant_id``."""

    @abstractmethod
    def keys_in_group(self, group: str, *, tenant_id: str | None = None) -> list[str]:
        """List setting keys in ``group`` visible to the effective tenant."""

    def get(
        self,
        key: str,
        default: Any = None,
        scope: Any = None,
        *,
        tenant_id: str | None = None,
        user: Any = None,
    ) -> Any:
        """Resolved value, or ``default`` when it is None or the key is unknown."""
        value, _ = self.resolve(key, scope, tenant_id=tenant_id, user=user)
        return default if value is None else value

    def is_active(
        self,
        key: str,
        scope: Any = None,
        *,
        tenant_id: str | None = None,
        user: Any = None,
    ) -> bool:
        """Truthiness of the resolved value. Unknown keys are inactive."""
        value, _ = self.resolve(key, scope, tenant_id=tenant_id, user=user)
        return bool(value)

    def require(
        self,
        key: str,
        scope: Any = None,
        *,
        tenant_id: str | None = None,
        user: Any = None,
    ) -> Any:
        """Resolve a setting that must exist.

        Raises:
            SettingNotFoundError: If neither a tenant nor a global row exists.
        """
        value, trace = self.resolve(key, scope, tenant_id=tenant_id, user=user)
        if not trace.found:
            raise SettingNotFoundError(key, trace.tenant_id)
        return value

    def group(self, name: str) -> GroupedSettingResolver:
        """View of the settings sharing the key prefix ``name``."""
        from fulcrum.foundation.application.grouped import GroupedSettingResolver

        return GroupedSettingResolver(self, name)


class SettingResolver(BaseSettingResolver):
    """Resolve settings against a store.

    Instances are immutable: ``for_user`` and ``for_tenant`` return new,
    fully-constructed resolvers sharing the same collaborators.

    Args:
        store: Setting store honoring tenant-first fallback.
        rules: Rule evaluator (attribute registry plus condition evaluator).
        bucket_calculator: Rollout bucket calculator. Default: CRC32.
        distribution: Rollout distribution strategy. Default: cumulative weight.
        types: Value type registry used to coerce resolved values.
        events: Event dispatcher. None disables events entirely.
        settings: Resolver configuration. Default: loaded from the environment.
        tenant_resolver: Callback returning the current tenant id.
        identifier_resolver: Callback ``(scope, user)`` returning the rollout
            identifier. Takes precedence over the built-in identifier sources.
        clock: Source of the evaluation instant. Default: current UTC time.
        user: Actor bound via ``for_user``.
        tenant_id: Tenant bound via ``for_tenant``.
    """

    def __init__(
        self,
        store: SettingStorePort,
        rules: RuleEvaluator,
        *,
        bucket_calculator: BucketCalculator | None = None,
        distribution: DistributionStrategy | None = None,
        types: TypeRegistry | None = None,
        events: EventDispatcherPort | None = None,
        settings: FulcrumSettings | None = None,
        tenant_resolver: TenantResolver | None = None,
        identifier_resolver: IdentifierResolver | None = None,
        clock: Clock | None = None,
        user: Any = None,
        tenant_id: str | None = None,
    ) -> None:
        self._store = store
        self._rules = rules
        self._buckets = bucket_calculator or Crc32BucketCalculator()
        self._distribution = distribution or WeightDistributionStrategy()
        self._types = types or TypeRegistry()
        self._events = events
        self._settings = settings or get_fulcrum_settings()
        self._tenant_resolver = tenant_resolver
        self._identifier_resolver = identifier_resolver
        self._clock = clock or _utcnow
        self._user = user
        self._tenant_id = tenant_id

    @property
    def settings(self) -> FulcrumSettings:
        return self._settings

    @property
    def user(self) -> Any:
        return self._user

    @property
    def tenant_id(self) -> str | None:
        return self._tenant_id

    def _derive(self, **changes: Any) -> SettingResolver:
        options: dict[str, Any] = {
            "bucket_calculator": self._buckets,
            "distribution": self._distribution,
            "types": self._types,
            "events": self._events,
            "settings": self._settings,
            "tenant_resolver": self._tenant_resolver,
            "identifier_resolver": self._identifier_resolver,
            "clock": self._clock,
            "user": self._user,
            "tenant_id": self._tenant_id,
        }
        options.update(changes)
        return SettingResolver(self._store, self._rules, **options)

    def for_user(self, user: Any) -> SettingResolver:
        return self._derive(user=user)

    def for_tenant(self, tenant_id: str | None) -> SettingResolver:
        return self._derive(tenant_id=tenant_id)

    def keys_in_group(self, group: str, *, tenant_id: str | None = None) -> list[str]:
        effective_tenant = self.effective_tenant_id(tenant_id, get_ambient_context())
        return self._store.keys_in_group(group, effective_tenant)

    def resolve(
        self,
        key: str,
        scope: Any = None,
        *,
        tenant_id: str | None = None,
        user: Any = None,
    ) -> tuple[Any, ResolutionTrace]:
        """Resolve ``key`` for ``scope``.

        Args:
            key: Setting key.
            scope: Attributes conditions are evaluated against (mapping,
                object or scalar). None evaluates against the actor.
            tenant_id: Explicit tenant override for this call.
            user: Explicit actor for this call.

        Returns:
            Tuple of (value, trace). Value is None when the key is unknown.
        """
        started = time.perf_counter()
        ambient = get_ambient_context()
        effective_tenant = self.effective_tenant_id(tenant_id, ambient)
        actor = self.effective_user(user, scope, ambient)
        context = EvaluationContext(
            now=self._clock(),
            tenant_id=effective_tenant,
            user=actor,
            ambient=ambient.attributes,
        )

        setting = self._store.fetch(key, effective_tenant)
        if setting is None:
            trace = ResolutionTrace(
                key=key,
                value=None,
                source=ResolutionSource.NOT_FOUND,
                tenant_id=effective_tenant,
                duration_ms=_elapsed_ms(started),
            )
            self._finish(trace, actor)
            return None, trace

        evaluated = 0
        for rule in setting.ordered_rules():
            evaluated += 1
            if not self._rules.evaluate_rule(rule, scope, context):
                continue

            if rule.has_rollout_variants:
                assignment = self._assign_variant(setting, rule, scope, actor)
                if assignment is None:
                    continue
                variant, identifier, bucket = assignment
                value = self._types.cast(setting.type, variant.value)
                trace = ResolutionTrace(
                    key=key,
                    value=value,
                    source=ResolutionSource.ROLLOUT,
                    tenant_id=effective_tenant,
                    rules_evaluated=evaluated,
                    duration_ms=_elapsed_ms(started),
                    rule_name=rule.name,
                    rule_priority=rule.priority,
                    variant_name=variant.name,
                    bucket=bucket,
                    identifier=identifier,
                )
                self._emit_assignment(setting, rule, variant, value, trace, scope)
                self._finish(trace, actor)
                return value, trace

            value = self._types.cast(setting.type, rule.value)
            trace = ResolutionTrace(
                key=key,
                value=value,
                source=ResolutionSource.RULE,
                tenant_id=effective_tenant,
                rules_evaluated=evaluated,
                duration_ms=_elapsed_ms(started),
                rule_name=rule.name,
                rule_priority=rule.priority,
            )
            self._finish(trace, actor)
            return value, trace

        value = self._types.cast(setting.type, setting.default_value)
        trace = ResolutionTrace(
            key=key,
            value=value,
            source=ResolutionSource.DEFAULT,
            tenant_id=effective_tenant,
            rules_evaluated=evaluated,
            duration_ms=_elapsed_ms(started),
        )
        self._finish(trace, actor)
        return value, trace

    # -- context -----------------------------------------------------------

    def effective_tenant_id(self, override: str | None, ambient: AmbientContext) -> str | None:
        """Tenant a call is scoped to.

        Order: explicit override, tenant bound via ``for_tenant``, then (only
        with multi-tenancy enabled) the tenant resolver callback or the
        ambient tenant.
        """
        if override is not None:
            return override
        if self._tenant_id is not None:
            return self._tenant_id
        if not self._settings.multi_tenancy_enabled:
            return None
        if self._tenant_resolver is not None:
            return self._tenant_resolver()
        return ambient.tenant_id

    def effective_user(self, override: Any, scope: Any, ambient: AmbientContext) -> Any:
        if override is not None:
            return override
        if self._user is not None:
            return self._user
        if isinstance(scope, Principal):
            return scope
        return ambient.user

    @staticmethod
    def user_identifier(user: Any) -> str | None:
        """Scalar ``subject`` or ``id`` of an actor, if it has one."""
        return _user_identifier(user)

    # -- rollout -----------------------------------------------------------

    def _assign_variant(
        self,
        setting: Setting,
        rule: SettingRule,
        scope: Any,
        actor: Any,
    ) -> tuple[RolloutVariant, str, int] | None:
        identifier = self.resolve_identifier(scope, actor)
        if identifier is None:
            logger.debug(
                "rollout_identifier_missing",
                extra={"key": setting.key, "rule": rule.display_name},
            )
            return None

        salt = rule.effective_salt(setting.key)
        precision = self._settings.bucket_precision
        bucket = self._buckets.calculate(identifier, salt, precision)
        variant = self._distribution.select_variant(
            rule,
            bucket,
            salt=salt,
            precision=precision,
        )
        if variant is None:
            logger.debug(
                "rollout_miss",
                extra={
                    "key": setting.key,
                    "rule": rule.display_name,
                    "bucket": bucket,
                    "total_weight": rule.total_weight,
                },
            )
            return None
        return variant, identifier, bucket

    def resolve_identifier(self, scope: Any, user: Any = None) -> str | None:
        """Identifier used for rollout bucketing.

        Order: the identifier resolver callback, the actor's subject or id,
        a scalar scope, ``scope["id"]``, ``scope.id``.
        """
        if self._identifier_resolver is not None:
            custom = self._identifier_resolver(scope, user)
            if custom is not None and not isinstance(custom, list | dict | tuple | set):
                return str(custom)

        identifier = _user_identifier(user)
        if identifier is not None:
            return identifier

        identifier = _scalar_identifier(scope)
        if identifier is not None:
            return identifier
        if isinstance(scope, Mapping):
            return _scalar_identifier(scope.get("id"))
        if scope is not None:
            return _scalar_identifier(getattr(scope, "id", None))
        return None

    # -- observability -----------------------------------------------------

    def _emit_assignment(
        self,
        setting: Setting,
        rule: SettingRule,
        variant: RolloutVariant,
        value: Any,
        trace: ResolutionTrace,
        scope: Any,
    ) -> None:
        if self._events is None or not self._settings.fire_assignment_events:
            return
        context = (
            {str(k): v for k, v in scope.items() if isinstance(k, str)}
            if isinstance(scope, Mapping)
            else {}
        )
        self._events.dispatch(
            VariantAssigned(
                setting_key=setting.key,
                rule_name=rule.display_name,
                variant_name=variant.name,
                value=value,
                identifier=trace.identifier or "unknown",
                bucket=trace.bucket or 0,
                tenant_id=trace.tenant_id,
                context=context,
            )
        )

    def record_resolution(self, trace: ResolutionTrace, user: Any = None) -> None:
        """Log and dispatch ``ResolutionRecorded`` for an already-computed trace.

        Used by ``CachedSettingResolver`` for results served from its cache.
        """
        self._finish(trace, user)

    def _finish(self, trace: ResolutionTrace, actor: Any) -> None:
        logger.debug(
            "setting_resolved",
            extra={
                "key": trace.key,
                "source": trace.source.value,
                "rule": trace.rule_name,
                "variant": trace.variant_name,
                "tenant_id": trace.tenant_id,
                "rules_evaluated": trace.rules_evaluated,
                "duration_ms": round(trace.duration_ms, 2),
            },
        )
        if self._events is None or not self._settings.record_resolutions:
            return
        self._events.dispatch(
            ResolutionRecorded(
                key=trace.key,
                value=trace.value,
                source=trace.source.value,
                rule_name=trace.rule_name,
                rule_priority=trace.rule_priority,
                rules_evaluated=trace.rules_evaluated,
                tenant_id=trace.tenant_id,
                user_id=_user_identifier(actor),
                duration_ms=trace.duration_ms,
            )
        )
