import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from admin.app.auth import get_current_admin
from admin.app.schemas import (
    CommissionOutcomeResponse,
    PayoutCreate,
    PayoutCreateResponse,
    PayoutResponse,
    PayoutStatus,
)
from app.services.payouts import (
    DancerNotOnboarded,
    InvalidPayoutAmount,
    PayoutAlreadyExists,
    SubmissionNotApproved,
    SubmissionNotFound,
    create_dancer_payout,
    list_payouts,
)
from app.services.stripe_transfers import StripeTransferClient, TransferError, get_transfer_client
from core.db import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api", response_model=list[PayoutResponse])
async def get_payouts(
    skip: int = 0,
    limit: int = Query(default=50, le=200),
    dancer_id: Optional[int] = None,
    status: Optional[PayoutStatus] = None,
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    """List dancer payouts, newest first"""
    return await list_payouts(
        db, dancer_id=dancer_id, status=status.value if status else None, skip=skip, limit=limit
    )


@router.post("/api", response_model=PayoutCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_payout(
    payload: PayoutCreate,
    db: AsyncSession = Depends(get_session),
    transfers: StripeTransferClient = Depends(get_transfer_client),
    current_admin=Depends(get_current_admin),
):
    """Pay a dancer for an approved submission.

    The partner commission outcome is reported alongside the payout; a failed
    commission never fails the request.
    """
    try:
        result = await create_dancer_payout(db, payload.submission_id, payload.amount_cents, transfers)
    except SubmissionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidPayoutAmount, SubmissionNotApproved, DancerNotOnboarded) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PayoutAlreadyExists as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TransferError as e:
        logger.error("Dancer transfer failed", extra={"submission_id": payload.submission_id, "error": str(e)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Transfer failed: {e}")

    return PayoutCreateResponse(
        payout=PayoutResponse.model_validate(result.payout),
        commission=CommissionOutcomeResponse(**result.commission.as_dict()),
    )
