"""FastAPI dependency for setting-based endpoint gating.

Provides ``require_setting()`` factory that creates endpoint dependencies
rejecting requests when a setting resolves to a falsy value.

Usage in endpoint::

    from fulcrum.infra.fastapi.dependencies.settings_gate import require_setting

    @router.get("/checkout/v2")
    async def checkout_v2(
        _: Annotated[None, Depends(require_setting("checkout.v2_enabled"))]
    ):
        # Endpoint only executes if the setting is active for the request
        ...
"""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI dependency injection needs runtime-evaluable type annotations
# on the inner functions (``request: Request``) to resolve parameters.

from collections.abc import Callable

from fastapi import Request
from fulcrum.foundation.application.context import get_ambient_context
from fulcrum.foundation.application.resolver import BaseSettingResolver
from fulcrum.foundation.domain import SettingDisabledError


def get_setting_resolver(request: Request) -> BaseSettingResolver:
    """Retrieve the setting resolver from FastAPI app state.

    Expects ``request.app.state.setting_resolver`` to be set during
    lifespan startup.
    """
    return request.app.state.setting_resolver  # type: ignore[no-any-return]


def require_setting(
    key: str,
    *,
    resolver_getter: Callable[[Request], BaseSettingResolver] | None = None,
) -> Callable[..., None]:
    """Create a FastAPI dependency that gates endpoint access on a setting.

    The setting is resolved without an explicit scope, so conditions see
    the ambient context set by ``EvaluationContextMiddleware`` (tenant,
    client IP, User-Agent).

    Args:
        key: Setting key to check.
        resolver_getter: Optional callable to retrieve the resolver from the
            request. Defaults to ``request.app.state.setting_resolver``.

    Returns:
        FastAPI-compatible sync dependency function (returns None on
        success or raises SettingDisabledError).
    """
    _get_resolver = resolver_getter or get_setting_resolver

    def _check_setting(
        request: Request,
    ) -> None:
        """Evaluate the setting for the current request.

        Raises:
            SettingDisabledError: If the setting is unknown or falsy.
        """
        resolver = _get_resolver(request)
        if not resolver.is_active(key):
            raise SettingDisabledError(key, get_ambient_context().tenant_id)

    _check_setting.__qualname__ = f"require_setting({key!r})._check_setting"

    return _check_setting
