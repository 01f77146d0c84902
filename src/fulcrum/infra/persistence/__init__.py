"""Setting store implementations."""

from fulcrum.infra.persistence.memory import InMemorySettingStore

__all__ = ["InMemorySettingStore"]
