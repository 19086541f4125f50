import asyncio
import logging
from typing import Any

from celery import shared_task

from app.celery_app import celery_app  # noqa: F401  (registers the app for shared_task)
from app.models import Payout
from app.services.commissions import record_partner_commission
from core.db import standalone_session

logger = logging.getLogger(__name__)


async def _record_commission(payout_id: int) -> dict[str, Any]:
    async with standalone_session() as session:
        payout = await session.get(Payout, payout_id)
        if payout is None:
            logger.warning("Payout not found for commission task", extra={"payout_id": payout_id})
            return {"status": "failed", "reason": "payout not found", "payout_id": payout_id}
        outcome = await record_partner_commission(session, payout)
        return {**outcome.as_dict(), "payout_id": payout_id}


@shared_task(bind=True, name="record_partner_commission")
def record_partner_commission_task(self, payout_id: int) -> dict[str, Any]:
    """
    Record the partner commission for a completed payout in the background.

    Failures are reported in the result, never retried; a missing commission
    can be recorded again by re-queuing the task for the same payout.
    """
    logger.info("Recording partner commission", extra={"payout_id": payout_id})
    return asyncio.run(_record_commission(payout_id))
