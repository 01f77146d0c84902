"""Value handlers for each declared setting type.

Stored values arrive in whatever shape the store keeps them (often strings).
Each handler converts a stored value into its Python representation
(``get``), back into storage form (``set``), and checks whether a value is
acceptable for the type at all (``validate``).

``None`` is passed through unchanged by ``TypeRegistry.cast`` so that
"no value" stays distinguishable from a falsy value.
"""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from fulcrum.foundation.application.temporal import to_datetime
from fulcrum.foundation.domain.exceptions import InvalidSettingValueError, MissingTypeHandlerError
from fulcrum.foundation.domain.models import SettingType

_INTEGER = re.compile(r"^-?\d+$")
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


@runtime_checkable
class SettingTypeHandler(Protocol):
    """Conversion contract for one setting type."""

    def get(self, value: Any) -> Any:
        """Convert a stored value into its Python representation."""
        ...

    def set(self, value: Any) -> Any:
        """Convert a Python value into storage form."""
        ...

    def validate(self, value: Any) -> bool:
        """Check whether ``value`` is acceptable for this type."""
        ...


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return value.strip().lower() not in {"nan", "inf", "-inf", "+inf", "infinity"}
    return False


class BooleanTypeHandler:
    def get(self, value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        # Integers are true only when exactly 1 (2 is False); floats are true
        # when non-zero (2.0 is True). Stored flags are 0/1 integers.
        if isinstance(value, int):
            return value == 1
        if isinstance(value, float):
            return value != 0.0
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return False

    def set(self, value: Any) -> str:
        return "1" if self.get(value) else "0"

    def validate(self, value: Any) -> bool:
        return not isinstance(value, list | tuple | dict | set)


class IntegerTypeHandler:
    def get(self, value: Any) -> int:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        if _is_numeric(value):
            return int(float(value))
        return 0

    def set(self, value: Any) -> str:
        return str(self.get(value))

    def validate(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return True
        return isinstance(value, str) and _INTEGER.match(value) is not None


class FloatTypeHandler:
    def get(self, value: Any) -> float:
        if isinstance(value, bool):
            return 1.0 if value else 0.0
        if _is_numeric(value):
            return float(value)
        return 0.0

    def set(self, value: Any) -> str:
        return str(self.get(value))

    def validate(self, value: Any) -> bool:
        return _is_numeric(value)


class StringTypeHandler:
    def get(self, value: Any) -> str:
        return value if isinstance(value, str) else str(value)

    def set(self, value: Any) -> str:
        return self.get(value)

    def validate(self, value: Any) -> bool:
        return isinstance(value, str)


class ArrayTypeHandler:
    """Lists and dicts, stored as JSON text."""

    def get(self, value: Any) -> list[Any] | dict[str, Any]:
        if isinstance(value, list | dict):
            return value
        if isinstance(value, tuple):
            return list(value)
        if not isinstance(value, str):
            return []
        try:
            decoded = json.loads(value)
        except ValueError:
            return []
        return decoded if isinstance(decoded, list | dict) else []

    def set(self, value: Any) -> str:
        return json.dumps(value)

    def validate(self, value: Any) -> bool:
        return isinstance(value, list | tuple | dict)


class JsonTypeHandler:
    """Arbitrary JSON documents. Undecodable strings are returned as-is."""

    def get(self, value: Any) -> Any:
        if not isinstance(value, str) or value == "":
            return value
        try:
            return json.loads(value)
        except ValueError:
            return value

    def set(self, value: Any) -> str:
        return json.dumps(value)

    def validate(self, value: Any) -> bool:
        if isinstance(value, list | dict):
            return True
        if not isinstance(value, str):
            return False
        try:
            json.loads(value)
        except ValueError:
            return False
        return True


class DateTimeTypeHandler:
    """Timezone-aware datetimes, stored as ISO-8601 UTC strings."""

    def get(self, value: Any) -> datetime | None:
        if value is None or value == "":
            return None
        return to_datetime(value)

    def set(self, value: Any) -> str | None:
        moment = self.get(value)
        if moment is None:
            return None
        return moment.astimezone(UTC).isoformat()

    def validate(self, value: Any) -> bool:
        if value is None or value == "":
            return True
        if isinstance(value, datetime):
            return True
        return isinstance(value, str) and to_datetime(value) is not None


class TypeRegistry:
    """Registry of setting type handlers.

    Built-in types are registered on construction. Custom types can be
    added with ``register``.

    Example:
        >>> registry = TypeRegistry()
        >>> registry.cast("boolean", "yes")
        True
        >>> registry.cast("integer", "42")
        42
    """

    def __init__(self) -> None:
        self._handlers: dict[str, SettingTypeHandler] = {}
        self.register(SettingType.BOOLEAN, BooleanTypeHandler())
        self.register(SettingType.INTEGER, IntegerTypeHandler())
        self.register(SettingType.FLOAT, FloatTypeHandler())
        self.register(SettingType.STRING, StringTypeHandler())
        self.register(SettingType.ARRAY, ArrayTypeHandler())
        self.register(SettingType.JSON, JsonTypeHandler())
        self.register(SettingType.DATETIME, DateTimeTypeHandler())
        self.register("bool", self._handlers[SettingType.BOOLEAN])
        self.register("int", self._handlers[SettingType.INTEGER])

    def register(self, setting_type: str, handler: SettingTypeHandler) -> None:
        """Register ``handler`` for ``setting_type``, replacing any existing one.

        Raises:
            TypeError: If ``handler`` does not implement get/set/validate.
        """
        if not isinstance(handler, SettingTypeHandler):
            msg = f"Handler for [{setting_type}] must implement get, set and validate"
            raise TypeError(msg)
        self._handlers[str(setting_type)] = handler

    def has(self, setting_type: str) -> bool:
        return str(setting_type) in self._handlers

    def handler(self, setting_type: str) -> SettingTypeHandler:
        """Get the handler for a type.

        Raises:
            MissingTypeHandlerError: If no handler is registered.
        """
        try:
            return self._handlers[str(setting_type)]
        except KeyError:
            raise MissingTypeHandlerError(str(setting_type)) from None

    def cast(self, setting_type: str, value: Any) -> Any:
        """Convert a stored value to the type's Python representation."""
        if value is None:
            return None
        return self.handler(setting_type).get(value)

    def serialize(self, setting_type: str, value: Any) -> Any:
        """Convert a Python value into storage form."""
        if value is None:
            return None
        return self.handler(setting_type).set(value)

    def validate(self, setting_type: str, value: Any, key: str | None = None) -> None:
        """Check a value against its type.

        Raises:
            InvalidSettingValueError: If the handler rejects the value.
            MissingTypeHandlerError: If no handler is registered.
        """
        if value is None:
            return
        if not self.handler(setting_type).validate(value):
            raise InvalidSettingValueError(value, str(setting_type), key=key)
