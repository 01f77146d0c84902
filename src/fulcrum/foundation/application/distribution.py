"""Distribution strategies mapping a bucket onto a rollout variant.

Variants occupy consecutive weight ranges in their stored order. A bucket
past the last range selects nothing: weights may total less than 100% to
run a partial rollout, and the resolver then moves on to the next rule.
"""

from __future__ import annotations

import zlib
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from fulcrum.foundation.domain.models import MAX_WEIGHT

if TYPE_CHECKING:
    from fulcrum.foundation.domain.models import RolloutVariant, SettingRule

# Prime above the default precision; the permutation below is a bijection
# whenever it does not divide the precision.
SHUFFLE_PRIME: int = 1_000_003


@runtime_checkable
class DistributionStrategy(Protocol):
    """Select the variant a bucket falls into."""

    def select_variant(
        self,
        rule: SettingRule,
        bucket: int,
        *,
        salt: str = "",
        precision: int = MAX_WEIGHT,
    ) -> RolloutVariant | None:
        """Return the variant for ``bucket``, or None on a rollout miss."""
        ...


def _walk(variants: tuple[RolloutVariant, ...], bucket: int) -> RolloutVariant | None:
    cumulative = 0
    for variant in variants:
        cumulative += variant.weight
        if bucket < cumulative:
            return variant
    return None


class WeightDistributionStrategy:
    """Cumulative weight ranges over the raw bucket.

    Example:
        With variants ``A:30000, B:20000``, buckets 0-29999 select A,
        30000-49999 select B, and 50000 upwards select nothing.
    """

    def select_variant(
        self,
        rule: SettingRule,
        bucket: int,
        *,
        salt: str = "",
        precision: int = MAX_WEIGHT,
    ) -> RolloutVariant | None:
        return _walk(rule.variants, bucket)


class StratifiedDistributionStrategy:
    """Cumulative weight ranges over a salt-seeded permutation of the bucket.

    The permutation ``(bucket * SHUFFLE_PRIME + crc32(salt)) % precision``
    only reorders which buckets land in which range, so each variant still
    owns exactly ``weight`` buckets, while adjacent buckets are spread
    across variants.
    """

    def select_variant(
        self,
        rule: SettingRule,
        bucket: int,
        *,
        salt: str = "",
        precision: int = MAX_WEIGHT,
    ) -> RolloutVariant | None:
        if not rule.variants:
            return None
        seed = zlib.crc32(salt.encode())
        shuffled = (bucket * SHUFFLE_PRIME + seed) % precision
        return _walk(rule.variants, shuffled)
