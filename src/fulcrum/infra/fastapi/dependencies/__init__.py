"""FastAPI dependency factories for Fulcrum settings."""

from fulcrum.infra.fastapi.dependencies.settings_gate import (
    get_setting_resolver,
    require_setting,
)

__all__ = [
    "get_setting_resolver",
    "require_setting",
]
