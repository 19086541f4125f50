"""Partner commissions earned on dancer payouts.

A commission is a side effect of a completed dancer payout: it is derived once,
from the partner's active referred dancers at that moment, and never
recomputed. Recording it must never fail the payout it is attached to, so
callers go through :func:`record_partner_commission`, which always returns a
:class:`CommissionOutcome` instead of raising.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Partner, PartnerCommission, PartnerReferral, Payout, Submission
from app.services.commission_tiers import (
    commission_cents_for,
    parse_commission_tiers,
    resolve_commission_rate,
)
from app.services.stripe_transfers import StripeTransferClient
from core.config import get_settings

logger = logging.getLogger(__name__)


class CommissionError(Exception):
    """Domain error for commission failures."""


class CommissionNotFound(CommissionError):
    pass


class CommissionAlreadyPaid(CommissionError):
    """Commission is already in the terminal ``paid`` state."""


class CommissionAlreadyRecorded(CommissionError):
    """A commission already exists for the payout."""


class PayoutDestinationNotVerified(CommissionError):
    """Partner has no onboarded Stripe account to receive the transfer."""


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def activity_window_start(now: Optional[datetime] = None) -> datetime:
    """Inclusive lower bound of the trailing activity window."""
    days = get_settings().commission_activity_window_days
    return (now or utcnow()) - timedelta(days=days)


async def referred_dancer_ids(session: AsyncSession, partner_id: int) -> set[int]:
    """All dancers ever referred by the partner."""
    res = await session.execute(
        select(PartnerReferral.dancer_id).where(PartnerReferral.partner_id == partner_id)
    )
    return set(res.scalars().all())


async def active_dancer_ids(
    session: AsyncSession, dancer_ids: Iterable[int], since: datetime
) -> set[int]:
    """Dancers from ``dancer_ids`` with an approved submission at or after ``since``."""
    res = await session.execute(
        select(Submission.dancer_id)
        .where(
            Submission.dancer_id.in_(list(dancer_ids)),
            Submission.review_status == "approved",
            Submission.submitted_at >= since,
        )
        .distinct()
    )
    return set(res.scalars().all())


async def count_active_dancers(
    session: AsyncSession,
    partner_id: int,
    payout_dancer_id: int,
    now: Optional[datetime] = None,
) -> int:
    """Count the partner's active referred dancers for one payout.

    The dancer whose payout triggered the calculation always counts, even when
    their own approval is not visible to the activity query yet.
    """
    referred = await referred_dancer_ids(session, partner_id)
    if not referred:
        return 0

    active = await active_dancer_ids(session, referred, activity_window_start(now))
    active.add(payout_dancer_id)
    return len(active)


async def create_commission(
    session: AsyncSession,
    payout: Payout,
    now: Optional[datetime] = None,
) -> PartnerCommission | None:
    """Derive and store the commission for a completed payout.

    Returns None when the dancer has no referring partner or the commission
    would be zero.

    Raises:
        CommissionAlreadyRecorded: a commission for this payout already exists.
        Any database error from the lookups or the insert.
    """
    payout_id = payout.id
    dancer_id = payout.dancer_id
    amount_cents = payout.amount_cents

    referral = (
        await session.execute(select(PartnerReferral).where(PartnerReferral.dancer_id == dancer_id))
    ).scalars().first()
    if not referral:
        return None
    partner_id = referral.partner_id

    partner = await session.get(Partner, partner_id)
    tiers = parse_commission_tiers(partner.commission_tiers if partner else None)

    active_count = await count_active_dancers(session, partner_id, dancer_id, now)
    rate = resolve_commission_rate(active_count, tiers)
    commission_cents = commission_cents_for(amount_cents, rate)
    if rate == 0 or commission_cents == 0:
        logger.info(
            "No commission for payout",
            extra={"partner_id": partner_id, "payout_id": payout_id, "active_count": active_count, "rate": rate},
        )
        return None

    commission = PartnerCommission(
        partner_id=partner_id,
        payout_id=payout_id,
        dancer_id=dancer_id,
        dancer_payout_cents=amount_cents,
        commission_rate=rate,
        commission_cents=commission_cents,
        status="pending",
    )
    session.add(commission)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise CommissionAlreadyRecorded(f"Commission already recorded for payout {payout_id}") from e
    await session.refresh(commission)

    logger.info(
        "Partner commission recorded",
        extra={
            "partner_id": partner_id,
            "payout_id": payout_id,
            "dancer_id": dancer_id,
            "active_count": active_count,
            "rate": rate,
            "commission_cents": commission_cents,
        },
    )
    return commission


@dataclass
class CommissionOutcome:
    """Result of the commission step attached to a payout."""

    status: str  # created | skipped | duplicate | failed | queued
    commission: PartnerCommission | None = None
    reason: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "commission_id": self.commission.id if self.commission else None,
            "commission_cents": self.commission.commission_cents if self.commission else None,
            "reason": self.reason,
        }


async def record_partner_commission(
    session: AsyncSession,
    payout: Payout,
    now: Optional[datetime] = None,
) -> CommissionOutcome:
    """Commission step of a payout. Never raises; failures are logged and reported."""
    payout_id = payout.id
    dancer_id = payout.dancer_id
    try:
        commission = await create_commission(session, payout, now)
    except CommissionAlreadyRecorded as e:
        logger.warning("Commission already recorded", extra={"payout_id": payout_id, "outcome": "duplicate"})
        return CommissionOutcome("duplicate", reason=str(e))
    except Exception as e:
        logger.exception(
            "Partner commission calculation failed, payout unaffected",
            extra={"payout_id": payout_id, "dancer_id": dancer_id, "outcome": "failed", "error": str(e)},
        )
        try:
            await session.rollback()
        except Exception:
            logger.exception("Rollback after commission failure failed", extra={"payout_id": payout_id})
        return CommissionOutcome("failed", reason=str(e))

    if commission is None:
        return CommissionOutcome("skipped")
    return CommissionOutcome("created", commission=commission)


async def create_commission_if_applicable(
    session: AsyncSession,
    payout: Payout,
    now: Optional[datetime] = None,
) -> PartnerCommission | None:
    """Best-effort commission for a payout: the commission, or None (including on failure)."""
    outcome = await record_partner_commission(session, payout, now)
    return outcome.commission


async def pay_partner_commission(
    session: AsyncSession,
    commission_id: int,
    transfers: StripeTransferClient,
    now: Optional[datetime] = None,
) -> PartnerCommission:
    """Transfer a pending commission to the partner and mark it paid.

    Raises:
        CommissionNotFound: no such commission.
        CommissionAlreadyPaid: the commission is already paid; nothing changes.
        PayoutDestinationNotVerified: partner has no onboarded Stripe account.
        TransferError: Stripe failed; the commission stays pending.
    """
    row = (
        await session.execute(
            select(PartnerCommission, Partner)
            .join(Partner, Partner.id == PartnerCommission.partner_id)
            .where(PartnerCommission.id == commission_id)
            .with_for_update(of=PartnerCommission)
        )
    ).first()
    if not row:
        raise CommissionNotFound("Commission not found")
    commission, partner = row

    if commission.status == "paid":
        raise CommissionAlreadyPaid("Commission already paid")
    if not partner.has_verified_payout_destination:
        raise PayoutDestinationNotVerified("Partner has not completed Stripe onboarding")

    transfer_id = await transfers.create_transfer(
        commission.commission_cents,
        partner.stripe_account_id,
        metadata={
            "commission_id": commission.id,
            "partner_id": commission.partner_id,
            "dancer_id": commission.dancer_id,
            "payout_id": commission.payout_id,
        },
        # A retry after a lost commit reuses the original transfer
        idempotency_key=f"commission-{commission.id}",
    )

    commission.status = "paid"
    commission.stripe_transfer_id = transfer_id
    commission.paid_at = now or utcnow()
    await session.commit()
    await session.refresh(commission)

    logger.info(
        "Partner commission paid",
        extra={
            "commission_id": commission.id,
            "partner_id": commission.partner_id,
            "transfer_id": transfer_id,
            "commission_cents": commission.commission_cents,
        },
    )
    return commission


async def list_commissions(
    session: AsyncSession,
    status: Optional[str] = None,
    partner_id: Optional[int] = None,
) -> list[PartnerCommission]:
    stmt = select(PartnerCommission).order_by(PartnerCommission.created_at.desc(), PartnerCommission.id.desc())
    if status:
        stmt = stmt.where(PartnerCommission.status == status)
    if partner_id:
        stmt = stmt.where(PartnerCommission.partner_id == partner_id)
    res = await session.execute(stmt)
    return list(res.scalars().all())


def rate_percent(rate: Decimal) -> str:
    """Display form of a rate, e.g. Decimal('0.07') -> '7%'."""
    return f"{(rate * 100).normalize():f}%"
