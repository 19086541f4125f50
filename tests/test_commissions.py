from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from app.models import PartnerCommission, Payout
from app.services.commissions import (
    CommissionAlreadyPaid,
    CommissionNotFound,
    PayoutDestinationNotVerified,
    create_commission_if_applicable,
    list_commissions,
    pay_partner_commission,
    rate_percent,
    record_partner_commission,
)
from app.services.stripe_transfers import TransferError


async def _commission_count(session) -> int:
    return (await session.execute(select(func.count(PartnerCommission.id)))).scalar_one()


@pytest.mark.asyncio
async def test_first_active_dancer_earns_lowest_tier(test_session, factory, now):
    """24 inactive referrals, dancer #25 just approved and paid $50.00."""
    partner = await factory.partner()
    dancers = await factory.referred_dancers(partner, 25)
    for dancer in dancers[:24]:
        await factory.submission(dancer, submitted_at=now - timedelta(days=45))
    payout = await factory.payout(dancers[24], amount_cents=5000)

    commission = await create_commission_if_applicable(test_session, payout, now=now)

    assert commission is not None
    assert commission.partner_id == partner.id
    assert commission.payout_id == payout.id
    assert commission.dancer_id == dancers[24].id
    assert commission.dancer_payout_cents == 5000
    assert commission.commission_rate == Decimal("0.03")
    assert commission.commission_cents == 150
    assert commission.status == "pending"


@pytest.mark.asyncio
async def test_rate_follows_active_dancer_count(test_session, factory, now):
    partner = await factory.partner()
    dancers = await factory.referred_dancers(partner, 25)
    for dancer in dancers[:24]:
        await factory.submission(dancer, submitted_at=now - timedelta(days=5))
    payout = await factory.payout(dancers[24], amount_cents=999)

    commission = await create_commission_if_applicable(test_session, payout, now=now)

    assert commission.commission_rate == Decimal("0.05")
    # 999 * 0.05 = 49.95 -> 49
    assert commission.commission_cents == 49


@pytest.mark.asyncio
async def test_partner_custom_tiers_are_used(test_session, factory, now):
    partner = await factory.partner(commission_tiers=[[1, "0.12"]])
    (dancer,) = await factory.referred_dancers(partner, 1)
    payout = await factory.payout(dancer, amount_cents=1000)

    commission = await create_commission_if_applicable(test_session, payout, now=now)

    assert commission.commission_rate == Decimal("0.12")
    assert commission.commission_cents == 120


@pytest.mark.asyncio
async def test_no_commission_without_referring_partner(test_session, factory):
    dancer = await factory.dancer()
    payout = await factory.payout(dancer, amount_cents=5000)

    outcome = await record_partner_commission(test_session, payout)

    assert outcome.status == "skipped"
    assert outcome.commission is None
    assert await _commission_count(test_session) == 0


@pytest.mark.asyncio
async def test_no_zero_amount_commission(test_session, factory):
    partner = await factory.partner()
    (dancer,) = await factory.referred_dancers(partner, 1)
    payout = await factory.payout(dancer, amount_cents=20)  # 20 * 0.03 = 0.6 -> 0

    assert await create_commission_if_applicable(test_session, payout) is None
    assert await _commission_count(test_session) == 0


@pytest.mark.asyncio
async def test_no_commission_when_partner_tiers_give_zero_rate(test_session, factory):
    partner = await factory.partner(commission_tiers=[[5, "0.05"]])
    (dancer,) = await factory.referred_dancers(partner, 1)
    payout = await factory.payout(dancer, amount_cents=5000)

    assert await create_commission_if_applicable(test_session, payout) is None
    assert await _commission_count(test_session) == 0


@pytest.mark.asyncio
async def test_at_most_one_commission_per_payout(test_session, factory):
    partner = await factory.partner()
    (dancer,) = await factory.referred_dancers(partner, 1)
    payout = await factory.payout(dancer, amount_cents=5000)

    first = await record_partner_commission(test_session, payout)
    second = await record_partner_commission(test_session, payout)

    assert first.status == "created"
    assert second.status == "duplicate"
    assert second.commission is None
    assert await _commission_count(test_session) == 1


@pytest.mark.asyncio
async def test_lookup_failure_is_isolated_from_payout(test_session, factory):
    partner = await factory.partner()
    (dancer,) = await factory.referred_dancers(partner, 1)
    payout = await factory.payout(dancer, amount_cents=5000)

    with patch(
        "app.services.commissions.count_active_dancers",
        AsyncMock(side_effect=RuntimeError("activity query failed")),
    ):
        outcome = await record_partner_commission(test_session, payout)
        await test_session.refresh(payout)
        commission = await create_commission_if_applicable(test_session, payout)

    assert outcome.status == "failed"
    assert "activity query failed" in outcome.reason
    assert commission is None
    assert await _commission_count(test_session) == 0

    stored = (await test_session.execute(select(Payout).where(Payout.id == payout.id))).scalar_one()
    assert stored.status == "completed"
    assert stored.amount_cents == 5000


@pytest.mark.asyncio
async def test_commission_is_not_recomputed_when_activity_changes(test_session, factory, now):
    partner = await factory.partner()
    dancers = await factory.referred_dancers(partner, 30)
    payout = await factory.payout(dancers[0], amount_cents=10_000)
    first = await create_commission_if_applicable(test_session, payout, now=now)

    for dancer in dancers:
        await factory.submission(dancer, submitted_at=now - timedelta(days=1))
    second_payout = await factory.payout(dancers[1], amount_cents=10_000)
    outcome = await record_partner_commission(test_session, payout, now=now)

    assert outcome.status == "duplicate"
    await test_session.refresh(first)
    assert first.commission_rate == Decimal("0.03")
    assert first.commission_cents == 300

    # The next payout sees the higher tier
    await test_session.refresh(second_payout)
    second = await create_commission_if_applicable(test_session, second_payout, now=now)
    assert second.commission_rate == Decimal("0.05")
    assert second.commission_cents == 500


async def _pending_commission(factory, test_session, onboarded=True):
    partner = await factory.partner(onboarded=onboarded)
    (dancer,) = await factory.referred_dancers(partner, 1)
    payout = await factory.payout(dancer, amount_cents=5000)
    commission = await create_commission_if_applicable(test_session, payout)
    return partner, commission


@pytest.mark.asyncio
async def test_pay_commission_transfers_and_marks_paid(test_session, factory):
    partner, commission = await _pending_commission(factory, test_session)
    transfers = AsyncMock()
    transfers.create_transfer.return_value = "tr_commission_1"

    paid = await pay_partner_commission(test_session, commission.id, transfers)

    assert paid.status == "paid"
    assert paid.stripe_transfer_id == "tr_commission_1"
    assert paid.paid_at is not None
    transfers.create_transfer.assert_awaited_once()
    args, kwargs = transfers.create_transfer.call_args
    assert args == (150, partner.stripe_account_id)
    assert kwargs["metadata"]["commission_id"] == commission.id
    assert kwargs["metadata"]["payout_id"] == commission.payout_id
    assert kwargs["idempotency_key"] == f"commission-{commission.id}"


@pytest.mark.asyncio
async def test_paying_a_paid_commission_is_a_conflict(test_session, factory):
    _, commission = await _pending_commission(factory, test_session)
    transfers = AsyncMock()
    transfers.create_transfer.return_value = "tr_first"
    await pay_partner_commission(test_session, commission.id, transfers)
    transfers.reset_mock()

    with pytest.raises(CommissionAlreadyPaid):
        await pay_partner_commission(test_session, commission.id, transfers)

    transfers.create_transfer.assert_not_awaited()
    await test_session.refresh(commission)
    assert commission.status == "paid"
    assert commission.stripe_transfer_id == "tr_first"


@pytest.mark.asyncio
async def test_pay_requires_verified_payout_destination(test_session, factory):
    _, commission = await _pending_commission(factory, test_session, onboarded=False)
    transfers = AsyncMock()

    with pytest.raises(PayoutDestinationNotVerified):
        await pay_partner_commission(test_session, commission.id, transfers)

    transfers.create_transfer.assert_not_awaited()
    await test_session.refresh(commission)
    assert commission.status == "pending"


@pytest.mark.asyncio
async def test_failed_transfer_leaves_commission_pending_for_retry(test_session, factory):
    _, commission = await _pending_commission(factory, test_session)
    transfers = AsyncMock()
    transfers.create_transfer.side_effect = TransferError("insufficient funds")

    with pytest.raises(TransferError):
        await pay_partner_commission(test_session, commission.id, transfers)
    await test_session.rollback()

    await test_session.refresh(commission)
    assert commission.status == "pending"
    assert commission.stripe_transfer_id is None

    # Explicit retry against the same pending record
    transfers.create_transfer.side_effect = None
    transfers.create_transfer.return_value = "tr_retry"
    paid = await pay_partner_commission(test_session, commission.id, transfers)
    assert paid.status == "paid"
    assert paid.stripe_transfer_id == "tr_retry"


@pytest.mark.asyncio
async def test_pay_unknown_commission(test_session):
    with pytest.raises(CommissionNotFound):
        await pay_partner_commission(test_session, 987654, AsyncMock())


@pytest.mark.asyncio
async def test_list_commissions_filters_by_status(test_session, factory):
    _, first = await _pending_commission(factory, test_session)
    _, second = await _pending_commission(factory, test_session)
    transfers = AsyncMock()
    transfers.create_transfer.return_value = "tr_x"
    await pay_partner_commission(test_session, first.id, transfers)

    pending = await list_commissions(test_session, status="pending")
    paid = await list_commissions(test_session, status="paid")

    assert [c.id for c in pending] == [second.id]
    assert [c.id for c in paid] == [first.id]
    assert len(await list_commissions(test_session)) == 2


def test_rate_percent_labels():
    assert rate_percent(Decimal("0.03")) == "3%"
    assert rate_percent(Decimal("0.0700")) == "7%"
    assert rate_percent(Decimal("0.10")) == "10%"
    assert rate_percent(Decimal("0")) == "0%"
