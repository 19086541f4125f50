from unittest.mock import patch

import pytest

from app.tasks import _record_commission


@pytest.mark.asyncio
async def test_background_task_records_commission(test_db_session, factory):
    partner = await factory.partner()
    (dancer,) = await factory.referred_dancers(partner, 1)
    payout = await factory.payout(dancer, amount_cents=5000)

    with patch("app.tasks.standalone_session", test_db_session):
        result = await _record_commission(payout.id)
        again = await _record_commission(payout.id)

    assert result["status"] == "created"
    assert result["commission_cents"] == 150
    assert result["payout_id"] == payout.id
    assert again["status"] == "duplicate"


@pytest.mark.asyncio
async def test_background_task_for_unknown_payout(test_db_session):
    with patch("app.tasks.standalone_session", test_db_session):
        result = await _record_commission(555)

    assert result["status"] == "failed"
    assert result["reason"] == "payout not found"
