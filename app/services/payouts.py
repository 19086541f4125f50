"""Dancer payouts for approved submissions."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Payout, Submission, User
from app.services.commissions import CommissionOutcome, record_partner_commission, utcnow
from app.services.stripe_transfers import StripeTransferClient
from core.config import get_settings

logger = logging.getLogger(__name__)


class PayoutError(Exception):
    """Domain error for payout failures."""


class InvalidPayoutAmount(PayoutError):
    pass


class SubmissionNotFound(PayoutError):
    pass


class SubmissionNotApproved(PayoutError):
    pass


class PayoutAlreadyExists(PayoutError):
    pass


class DancerNotOnboarded(PayoutError):
    pass


@dataclass
class PayoutResult:
    payout: Payout
    commission: CommissionOutcome


async def create_dancer_payout(
    session: AsyncSession,
    submission_id: int,
    amount_cents: int,
    transfers: StripeTransferClient,
    now: Optional[datetime] = None,
) -> PayoutResult:
    """Pay a dancer for an approved submission, then record the partner commission.

    The commission step runs after the payout is committed and cannot change
    its outcome.

    Raises:
        InvalidPayoutAmount, SubmissionNotFound, SubmissionNotApproved,
        PayoutAlreadyExists, DancerNotOnboarded: nothing is transferred.
        TransferError: Stripe failed; no payout is stored.
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise InvalidPayoutAmount("Payout amount must be a positive number of cents")

    submission = (
        await session.execute(select(Submission).where(Submission.id == submission_id))
    ).scalars().first()
    if not submission:
        raise SubmissionNotFound("Submission not found")
    if submission.review_status != "approved":
        raise SubmissionNotApproved("Submission is not approved")

    existing = (
        await session.execute(select(Payout.id).where(Payout.submission_id == submission_id))
    ).scalars().first()
    if existing:
        raise PayoutAlreadyExists("Payout already exists for this submission")

    dancer = await session.get(User, submission.dancer_id)
    if not dancer or not dancer.stripe_account_id or not dancer.stripe_onboarded:
        raise DancerNotOnboarded("Dancer has not completed Stripe onboarding")

    # One submission maps to one Stripe transfer, even across concurrent requests
    transfer_id = await transfers.create_transfer(
        amount_cents,
        dancer.stripe_account_id,
        metadata={
            "submission_id": submission.id,
            "dancer_id": dancer.id,
            "campaign_id": submission.campaign_id,
        },
        idempotency_key=f"payout-submission-{submission.id}",
    )

    payout = Payout(
        submission_id=submission.id,
        dancer_id=dancer.id,
        amount_cents=amount_cents,
        status="completed",
        stripe_transfer_id=transfer_id,
        completed_at=now or utcnow(),
    )
    session.add(payout)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.warning(
            "Payout stored concurrently, transfer was deduplicated",
            extra={"submission_id": submission_id, "transfer_id": transfer_id},
        )
        raise PayoutAlreadyExists("Payout already exists for this submission") from e
    await session.refresh(payout)

    logger.info(
        "Dancer payout completed",
        extra={
            "payout_id": payout.id,
            "dancer_id": payout.dancer_id,
            "submission_id": payout.submission_id,
            "amount_cents": amount_cents,
            "transfer_id": transfer_id,
        },
    )

    # Detached, the committed payout survives a commission rollback without reloading
    session.expunge(payout)

    if get_settings().commission_async:
        outcome = dispatch_partner_commission(payout.id)
    else:
        outcome = await record_partner_commission(session, payout, now)

    return PayoutResult(payout=payout, commission=outcome)


def dispatch_partner_commission(payout_id: int) -> CommissionOutcome:
    """Queue the commission step on Celery. Never raises."""
    from app.tasks import record_partner_commission_task

    try:
        record_partner_commission_task.delay(payout_id=payout_id)
    except Exception as e:
        logger.exception(
            "Failed to queue partner commission",
            extra={"payout_id": payout_id, "outcome": "failed", "error": str(e)},
        )
        return CommissionOutcome("failed", reason=str(e))
    return CommissionOutcome("queued")


async def list_payouts(
    session: AsyncSession,
    dancer_id: Optional[int] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Payout]:
    stmt = select(Payout)
    if dancer_id:
        stmt = stmt.where(Payout.dancer_id == dancer_id)
    if status:
        stmt = stmt.where(Payout.status == status)
    stmt = stmt.order_by(Payout.created_at.desc(), Payout.id.desc()).offset(skip).limit(limit)
    res = await session.execute(stmt)
    return list(res.scalars().all())
