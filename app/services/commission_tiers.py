"""Partner commission tiers: active referred dancers -> commission rate."""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Any

ZERO_RATE = Decimal("0")
# commission_rate is stored as Numeric(5, 4)
RATE_QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class CommissionTier:
    min_active_dancers: int
    rate: Decimal


# Highest threshold first
DEFAULT_COMMISSION_TIERS: tuple[CommissionTier, ...] = (
    CommissionTier(150, Decimal("0.10")),
    CommissionTier(75, Decimal("0.07")),
    CommissionTier(25, Decimal("0.05")),
    CommissionTier(1, Decimal("0.03")),
)


def resolve_commission_rate(
    active_dancer_count: int,
    tiers: Sequence[CommissionTier] = DEFAULT_COMMISSION_TIERS,
) -> Decimal:
    """Return the commission rate for a partner with ``active_dancer_count`` active dancers.

    Tiers are evaluated highest threshold first; the first threshold the count
    reaches wins. Counts below the lowest threshold earn nothing.
    """
    for tier in tiers:
        if active_dancer_count >= tier.min_active_dancers:
            return tier.rate
    return ZERO_RATE


def commission_cents_for(amount_cents: int, rate: Decimal) -> int:
    """Commission in whole cents, truncated toward zero cents (never rounded up)."""
    return int((Decimal(amount_cents) * rate).to_integral_value(rounding=ROUND_FLOOR))


def parse_commission_tiers(raw: Iterable[Any] | None) -> tuple[CommissionTier, ...]:
    """Build a tier table from its stored JSON form ``[[min_active_dancers, rate], ...]``.

    ``None`` or an empty list yields the default table. Raises ``ValueError``
    when thresholds are not positive and unique, a rate falls outside [0, 1]
    or has more than 4 decimal places (the stored precision),
    or rates decrease as the threshold grows.
    """
    if not raw:
        return DEFAULT_COMMISSION_TIERS

    tiers: list[CommissionTier] = []
    for item in raw:
        if isinstance(item, dict):
            threshold, rate = item.get("min_active_dancers"), item.get("rate")
        else:
            try:
                threshold, rate = item
            except (TypeError, ValueError):
                raise ValueError(f"Invalid commission tier: {item!r}") from None

        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 1:
            raise ValueError(f"Tier threshold must be a positive integer, got {threshold!r}")
        try:
            rate_dec = Decimal(str(rate))
        except ArithmeticError:
            raise ValueError(f"Invalid tier rate: {rate!r}") from None
        if not rate_dec.is_finite() or rate_dec < 0 or rate_dec > 1:
            raise ValueError(f"Tier rate must be within [0, 1], got {rate!r}")
        if rate_dec != rate_dec.quantize(RATE_QUANTUM):
            raise ValueError(f"Tier rate must have at most 4 decimal places, got {rate!r}")
        tiers.append(CommissionTier(threshold, rate_dec))

    tiers.sort(key=lambda t: t.min_active_dancers)
    thresholds = [t.min_active_dancers for t in tiers]
    if len(set(thresholds)) != len(thresholds):
        raise ValueError("Tier thresholds must be unique")
    for lower, upper in zip(tiers, tiers[1:]):
        if upper.rate < lower.rate:
            raise ValueError("Tier rates must not decrease as the threshold grows")

    return tuple(reversed(tiers))


def dump_commission_tiers(tiers: Sequence[CommissionTier]) -> list[list[Any]]:
    """Stored JSON form of a tier table, lowest threshold first."""
    return [[t.min_active_dancers, str(t.rate)] for t in sorted(tiers, key=lambda t: t.min_active_dancers)]
