"""Deterministic bucket assignment for percentage rollouts.

Uses the same consistent-hashing approach as percentage feature flags:
the bucket depends only on ``(identifier, salt, precision)``, so an
identifier stays in its bucket across calls and processes without any
per-identifier storage. Changing the salt re-randomizes every
identifier's bucket at once.
"""

from __future__ import annotations

import zlib
from typing import Protocol, runtime_checkable

from fulcrum.foundation.domain.models import MAX_WEIGHT


@runtime_checkable
class BucketCalculator(Protocol):
    """Map an identifier into ``[0, precision)``."""

    def calculate(self, identifier: str, salt: str, precision: int = MAX_WEIGHT) -> int:
        """Return the identifier's bucket."""
        ...


class Crc32BucketCalculator:
    """CRC32-based bucket calculator.

    Algorithm:
    1. Concatenate ``"{identifier}:{salt}"`` as hash input
    2. CRC32 the input (UTF-8 encoded)
    3. Take the absolute value
    4. Reduce modulo ``precision``

    The default precision of 100000 gives 0.001% granularity.

    Example:
        >>> calculator = Crc32BucketCalculator()
        >>> calculator.calculate("u1", "s") == calculator.calculate("u1", "s")
        True
    """

    def calculate(self, identifier: str, salt: str, precision: int = MAX_WEIGHT) -> int:
        """Compute the bucket for ``identifier`` under ``salt``.

        Args:
            identifier: Rollout subject (user id, session id, ...).
            salt: Rule salt. Changing it re-randomizes assignments.
            precision: Number of buckets.

        Returns:
            Bucket in ``[0, precision)``.

        Raises:
            ValueError: If ``precision`` is not positive.
        """
        if precision <= 0:
            msg = f"precision must be positive, got {precision}"
            raise ValueError(msg)
        checksum = zlib.crc32(f"{identifier}:{salt}".encode())
        return abs(checksum) % precision
