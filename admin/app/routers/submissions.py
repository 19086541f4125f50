from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from admin.app.auth import get_current_admin
from admin.app.schemas import SubmissionResponse
from app.services.submissions import SubmissionAlreadyReviewed, SubmissionNotFound, review_submission
from core.db import get_session

router = APIRouter()


async def _review(db: AsyncSession, submission_id: int, approve: bool):
    try:
        return await review_submission(db, submission_id, approve)
    except SubmissionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubmissionAlreadyReviewed as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/api/{submission_id}/approve", response_model=SubmissionResponse)
async def approve_submission(
    submission_id: int,
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    return await _review(db, submission_id, approve=True)


@router.post("/api/{submission_id}/reject", response_model=SubmissionResponse)
async def reject_submission(
    submission_id: int,
    db: AsyncSession = Depends(get_session),
    current_admin=Depends(get_current_admin),
):
    return await _review(db, submission_id, approve=False)
