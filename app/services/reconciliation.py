"""Revenue reconciliation checks.

Revenue events arrive from the reporting feed as decimal dollar amounts; every
other money figure in the system is integer cents. ``to_cents`` and
``from_cents`` are the only conversions between the two.

The checks are audit signals for display. They never raise on a mismatch and
never change stored data.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

from app.models import RevenueEvent

Amount = Union[Decimal, int, float, str]

NET_REVENUE_TOLERANCE = Decimal("0.01")
CENT = Decimal("0.01")


def to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    # str() keeps 80.009 as written instead of its binary expansion
    return Decimal(str(amount))


def to_cents(amount: Amount) -> int:
    """Decimal dollars -> integer cents, half-up to the cent."""
    return int((to_decimal(amount) / CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) * CENT).quantize(CENT)


def is_net_revenue_consistent(gross: Amount, fee: Amount, net: Amount) -> bool:
    """True when ``net`` equals ``gross - fee`` within one cent."""
    expected = to_decimal(gross) - to_decimal(fee)
    return abs(to_decimal(net) - expected) < NET_REVENUE_TOLERANCE


def is_net_revenue_consistent_cents(gross_cents: int, fee_cents: int, net_cents: int) -> bool:
    return net_cents == gross_cents - fee_cents


def annotate_revenue_event(event: RevenueEvent) -> dict[str, Any]:
    """Display row for a revenue event with its ``net_consistent`` flag.

    ``net_exact`` is the cent-exact comparison; ``net_consistent`` allows the
    one-cent tolerance.
    """
    gross_cents = to_cents(event.gross_revenue)
    fee_cents = to_cents(event.platform_fee)
    net_cents = to_cents(event.net_revenue)
    return {
        "id": event.id,
        "track_title": event.track_title,
        "producer_name": event.producer_name,
        "gross_revenue": event.gross_revenue,
        "platform_fee": event.platform_fee,
        "net_revenue": event.net_revenue,
        "producer_amount": event.producer_amount,
        "platform_amount": event.platform_amount,
        "payout_status": event.payout_status,
        "created_at": event.created_at,
        "net_consistent": is_net_revenue_consistent(
            event.gross_revenue, event.platform_fee, event.net_revenue
        ),
        "net_exact": is_net_revenue_consistent_cents(gross_cents, fee_cents, net_cents),
        "expected_net_revenue": from_cents(gross_cents - fee_cents),
        "net_discrepancy_cents": net_cents - (gross_cents - fee_cents),
    }
