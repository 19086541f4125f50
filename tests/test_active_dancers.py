from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.commissions import count_active_dancers


@pytest.mark.asyncio
async def test_partner_without_referrals_returns_zero_without_activity_query():
    result = MagicMock()
    result.scalars.return_value.all.return_value = []
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock(return_value=result)

    count = await count_active_dancers(session, partner_id=1, payout_dancer_id=42)

    assert count == 0
    # Only the referral lookup was issued
    assert session.execute.await_count == 1


@pytest.mark.asyncio
async def test_triggering_dancer_counts_without_activity_record(test_session, factory):
    partner = await factory.partner()
    dancer = (await factory.referred_dancers(partner, 1))[0]

    assert await count_active_dancers(test_session, partner.id, dancer.id) == 1


@pytest.mark.asyncio
async def test_counts_distinct_dancers_with_recent_approved_submissions(test_session, factory, now):
    partner = await factory.partner()
    active1, active2, rejected, stale, idle, trigger = await factory.referred_dancers(partner, 6)

    await factory.submission(active1, submitted_at=now - timedelta(days=2))
    await factory.submission(active1, submitted_at=now - timedelta(days=3))
    await factory.submission(active2, submitted_at=now - timedelta(days=29))
    await factory.submission(rejected, review_status="rejected", submitted_at=now - timedelta(days=1))
    await factory.submission(stale, submitted_at=now - timedelta(days=31))
    await factory.submission(idle, review_status="pending", submitted_at=now - timedelta(days=1))

    count = await count_active_dancers(test_session, partner.id, trigger.id, now=now)

    # active1, active2 and the triggering dancer
    assert count == 3


@pytest.mark.asyncio
async def test_window_lower_bound_is_inclusive(test_session, factory, now):
    partner = await factory.partner()
    edge, trigger = await factory.referred_dancers(partner, 2)
    await factory.submission(edge, submitted_at=now - timedelta(days=30))

    assert await count_active_dancers(test_session, partner.id, trigger.id, now=now) == 2


@pytest.mark.asyncio
async def test_triggering_dancer_already_active_is_not_double_counted(test_session, factory, now):
    partner = await factory.partner()
    dancer, other = await factory.referred_dancers(partner, 2)
    await factory.submission(dancer, submitted_at=now - timedelta(days=1))
    await factory.submission(other, submitted_at=now - timedelta(days=1))

    assert await count_active_dancers(test_session, partner.id, dancer.id, now=now) == 2


@pytest.mark.asyncio
async def test_other_partners_dancers_are_ignored(test_session, factory, now):
    partner = await factory.partner()
    other_partner = await factory.partner()
    (trigger,) = await factory.referred_dancers(partner, 1)
    for dancer in await factory.referred_dancers(other_partner, 3):
        await factory.submission(dancer, submitted_at=now - timedelta(days=1))
    unreferred = await factory.dancer()
    await factory.submission(unreferred, submitted_at=now - timedelta(days=1))

    assert await count_active_dancers(test_session, partner.id, trigger.id, now=now) == 1
