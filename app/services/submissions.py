"""Services for reviewing dancer submissions."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Submission
from app.services.commissions import utcnow


class SubmissionError(Exception):
    """Domain error for submission review failures."""


class SubmissionNotFound(SubmissionError):
    pass


class SubmissionAlreadyReviewed(SubmissionError):
    pass


async def review_submission(
    session: AsyncSession,
    submission_id: int,
    approve: bool,
    now: Optional[datetime] = None,
) -> Submission:
    """Approve or reject a pending submission.

    Raises:
        SubmissionNotFound: no such submission.
        SubmissionAlreadyReviewed: submission is no longer pending.
    """
    submission = (
        await session.execute(select(Submission).where(Submission.id == submission_id))
    ).scalars().first()
    if not submission:
        raise SubmissionNotFound("Submission not found")

    # Only pending submissions can be reviewed
    if submission.review_status != "pending":
        raise SubmissionAlreadyReviewed("Submission has already been reviewed")

    submission.review_status = "approved" if approve else "rejected"
    submission.reviewed_at = now or utcnow()

    await session.commit()
    await session.refresh(submission)
    return submission
