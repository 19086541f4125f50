import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from admin.app.auth import get_current_admin
from admin.app.schemas import (
    CommissionResponse,
    CommissionStatus,
    PartnerCreate,
    PartnerResponse,
    PartnerUpdate,
    ReferralCreate,
    ReferralResponse,
)
from app.models import Partner
from app.services.commissions import (
    CommissionAlreadyPaid,
    CommissionNotFound,
    PayoutDestinationNotVerified,
    list_commissions,
    pay_partner_commission,
    rate_percent,
)
from app.services.partners import (
    DancerNotFound,
    PartnerExists,
    PartnerNotFound,
    PartnerSuspended,
    ReferralExists,
    create_partner,
    link_referral,
    list_partner_overviews,
    partner_overview,
    update_partner,
)
from app.services.stripe_transfers import StripeTransferClient, TransferError, get_transfer_client
from core.db import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


def _commission_response(commission) -> CommissionResponse:
    resp = CommissionResponse.model_validate(commission)
    resp.rate_label = rate_percent(commission.commission_rate)
    return resp


@router.get("/api", response_model=list[PartnerResponse])
async def list_partners(
    skip: int = 0,
    limit: int = Query(default=50, le=200),
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    """Partners with referral, activity and commission figures."""
    return await list_partner_overviews(db, skip=skip, limit=limit)


@router.post("/api", response_model=PartnerResponse, status_code=status.HTTP_201_CREATED)
async def create_partner_endpoint(
    payload: PartnerCreate,
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    try:
        partner = await create_partner(db, payload.name, payload.email, payload.referral_code)
    except PartnerExists as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return await partner_overview(db, partner)


@router.put("/api/{partner_id}", response_model=PartnerResponse)
async def update_partner_endpoint(
    partner_id: int,
    payload: PartnerUpdate,
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    """Suspend/reinstate a partner, set its Stripe account or its tier table."""
    try:
        partner: Partner = await update_partner(
            db,
            partner_id,
            status=payload.status.value if payload.status else None,
            stripe_account_id=payload.stripe_account_id,
            commission_tiers=payload.commission_tiers,
        )
    except PartnerNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return await partner_overview(db, partner)


@router.post("/api/referrals", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED)
async def link_referral_endpoint(
    payload: ReferralCreate,
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    try:
        return await link_referral(db, payload.referral_code, payload.dancer_id)
    except (PartnerNotFound, DancerNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PartnerSuspended as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReferralExists as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/api/commissions", response_model=list[CommissionResponse])
async def list_commissions_endpoint(
    status: Optional[CommissionStatus] = None,
    partner_id: Optional[int] = None,
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    commissions = await list_commissions(db, status=status.value if status else None, partner_id=partner_id)
    return [_commission_response(c) for c in commissions]


@router.post("/api/commissions/{commission_id}/pay", response_model=CommissionResponse)
async def pay_commission_endpoint(
    commission_id: int,
    db: AsyncSession = Depends(get_session),
    transfers: StripeTransferClient = Depends(get_transfer_client),
    current_admin=Depends(get_current_admin),
):
    """Transfer a pending commission to the partner's Stripe account."""
    try:
        commission = await pay_partner_commission(db, commission_id, transfers)
    except CommissionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CommissionAlreadyPaid as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PayoutDestinationNotVerified as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransferError as e:
        logger.error("Commission transfer failed", extra={"commission_id": commission_id, "error": str(e)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Transfer failed: {e}")
    return _commission_response(commission)
