from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from admin.app.auth import get_current_admin
from admin.app.schemas import CommissionRateResponse, RevenueEventResponse, RevenueListResponse
from app.models import RevenueEvent
from app.services.commission_tiers import resolve_commission_rate
from app.services.commissions import rate_percent
from app.services.reconciliation import annotate_revenue_event
from core.db import get_session

router = APIRouter()


@router.get("/api", response_model=RevenueListResponse)
async def list_revenue_events(
    skip: int = 0,
    limit: int = Query(default=100, le=500),
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    """Revenue events, read-only. Rows whose net does not match gross - fee are flagged, not corrected."""
    res = await db.execute(
        select(RevenueEvent)
        .order_by(RevenueEvent.created_at.desc(), RevenueEvent.id.desc())
        .offset(skip)
        .limit(limit)
    )
    events = [RevenueEventResponse(**annotate_revenue_event(e)) for e in res.scalars().all()]
    return RevenueListResponse(events=events, flagged_count=sum(1 for e in events if not e.net_consistent))


@router.get("/api/commission-rate", response_model=CommissionRateResponse)
async def commission_rate(
    active_dancers: int = Query(..., ge=0),
    current_admin=Depends(get_current_admin),
):
    """Default tier lookup for a given number of active referred dancers."""
    rate = resolve_commission_rate(active_dancers)
    return CommissionRateResponse(active_dancers=active_dancers, rate=rate, rate_label=rate_percent(rate))
