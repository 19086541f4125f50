"""Partner management, referral linking and partner overview figures."""
from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Partner, PartnerCommission, PartnerReferral, Submission, User
from app.services.commission_tiers import (
    dump_commission_tiers,
    parse_commission_tiers,
    resolve_commission_rate,
)
from app.services.commissions import activity_window_start

logger = logging.getLogger(__name__)


class PartnerError(Exception):
    """Domain error for partner and referral failures."""


class PartnerNotFound(PartnerError):
    pass


class PartnerExists(PartnerError):
    pass


class ReferralExists(PartnerError):
    pass


class PartnerSuspended(PartnerError):
    pass


class DancerNotFound(PartnerError):
    pass


def generate_referral_code() -> str:
    return f"DV{secrets.token_hex(4).upper()}"


async def create_partner(
    session: AsyncSession,
    name: str,
    email: str,
    referral_code: Optional[str] = None,
) -> Partner:
    partner = Partner(
        name=name.strip(),
        email=email.strip().lower(),
        referral_code=referral_code or generate_referral_code(),
        status="active",
    )
    session.add(partner)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise PartnerExists("Partner with this email or referral code already exists") from e
    await session.refresh(partner)
    logger.info("Partner created", extra={"partner_id": partner.id})
    return partner


async def update_partner(
    session: AsyncSession,
    partner_id: int,
    *,
    status: Optional[str] = None,
    stripe_account_id: Optional[str] = None,
    commission_tiers: Optional[list[Any]] = None,
) -> Partner:
    """Update partner status, payout destination or tier table.

    An empty ``stripe_account_id`` clears the destination; a non-empty one
    marks the partner onboarded. ``commission_tiers=[]`` restores the default
    tiers. Raises ``ValueError`` for an invalid tier table.
    """
    partner = await session.get(Partner, partner_id)
    if not partner:
        raise PartnerNotFound("Partner not found")

    if status is not None:
        partner.status = status
    if stripe_account_id is not None:
        account = stripe_account_id.strip()
        partner.stripe_account_id = account or None
        partner.stripe_onboarded = bool(account)
    if commission_tiers is not None:
        tiers = parse_commission_tiers(commission_tiers)
        partner.commission_tiers = dump_commission_tiers(tiers) if commission_tiers else None

    await session.commit()
    await session.refresh(partner)
    logger.info("Partner updated", extra={"partner_id": partner.id, "status": partner.status})
    return partner


async def link_referral(session: AsyncSession, referral_code: str, dancer_id: int) -> PartnerReferral:
    """Attach a dancer to the partner owning ``referral_code``. Referrals are permanent."""
    partner = (
        await session.execute(select(Partner).where(Partner.referral_code == referral_code.strip()))
    ).scalars().first()
    if not partner:
        raise PartnerNotFound("Unknown referral code")
    if partner.status != "active":
        raise PartnerSuspended("Partner is not accepting referrals")

    dancer = await session.get(User, dancer_id)
    if not dancer or dancer.role != "dancer":
        raise DancerNotFound("Dancer not found")

    existing = (
        await session.execute(select(PartnerReferral.id).where(PartnerReferral.dancer_id == dancer_id))
    ).scalars().first()
    if existing:
        raise ReferralExists("Dancer is already referred by a partner")

    referral = PartnerReferral(partner_id=partner.id, dancer_id=dancer_id)
    session.add(referral)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ReferralExists("Dancer is already referred by a partner") from e
    await session.refresh(referral)
    logger.info("Referral linked", extra={"partner_id": partner.id, "dancer_id": dancer_id})
    return referral


async def partner_overviews(
    session: AsyncSession,
    partners: list[Partner],
    now: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    """Dashboard figures for a page of partners, in three grouped queries.

    ``active_dancer_count`` here is plain activity (no triggering dancer), so
    ``current_rate`` is the rate the next payout from an already active dancer
    would earn.
    """
    ids = [p.id for p in partners]
    if not ids:
        return []

    dancer_counts = dict(
        (
            await session.execute(
                select(PartnerReferral.partner_id, func.count(PartnerReferral.id))
                .where(PartnerReferral.partner_id.in_(ids))
                .group_by(PartnerReferral.partner_id)
            )
        ).all()
    )

    active_counts = dict(
        (
            await session.execute(
                select(PartnerReferral.partner_id, func.count(func.distinct(Submission.dancer_id)))
                .join(Submission, Submission.dancer_id == PartnerReferral.dancer_id)
                .where(
                    PartnerReferral.partner_id.in_(ids),
                    Submission.review_status == "approved",
                    Submission.submitted_at >= activity_window_start(now),
                )
                .group_by(PartnerReferral.partner_id)
            )
        ).all()
    )

    sums: dict[int, dict[str, int]] = {}
    rows = await session.execute(
        select(
            PartnerCommission.partner_id,
            PartnerCommission.status,
            func.coalesce(func.sum(PartnerCommission.commission_cents), 0),
        )
        .where(PartnerCommission.partner_id.in_(ids))
        .group_by(PartnerCommission.partner_id, PartnerCommission.status)
    )
    for partner_id, status, total in rows.all():
        sums.setdefault(partner_id, {})[status] = int(total)

    overviews = []
    for partner in partners:
        tiers = parse_commission_tiers(partner.commission_tiers)
        active = active_counts.get(partner.id, 0)
        by_status = sums.get(partner.id, {})
        overviews.append(
            {
                "id": partner.id,
                "name": partner.name,
                "email": partner.email,
                "referral_code": partner.referral_code,
                "status": partner.status,
                "stripe_account_id": partner.stripe_account_id,
                "stripe_onboarded": partner.stripe_onboarded,
                "commission_tiers": dump_commission_tiers(tiers),
                "dancer_count": dancer_counts.get(partner.id, 0),
                "active_dancer_count": active,
                "current_rate": resolve_commission_rate(active, tiers),
                "pending_commission_cents": by_status.get("pending", 0),
                "paid_commission_cents": by_status.get("paid", 0),
                "created_at": partner.created_at,
            }
        )
    return overviews


async def partner_overview(
    session: AsyncSession,
    partner: Partner,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Dashboard figures for one partner."""
    (overview,) = await partner_overviews(session, [partner], now)
    return overview


async def list_partner_overviews(
    session: AsyncSession,
    skip: int = 0,
    limit: int = 50,
    now: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    res = await session.execute(select(Partner).order_by(Partner.id.desc()).offset(skip).limit(limit))
    return await partner_overviews(session, list(res.scalars().all()), now)
