from fastapi import APIRouter

from .partners import router as partners_router
from .payouts import router as payouts_router
from .revenue import router as revenue_router
from .submissions import router as submissions_router

# Root router
api_router = APIRouter()

api_router.include_router(partners_router, prefix="/partners", tags=["partners"])
api_router.include_router(payouts_router, prefix="/payouts", tags=["payouts"])
api_router.include_router(submissions_router, prefix="/submissions", tags=["submissions"])
api_router.include_router(revenue_router, prefix="/revenue", tags=["revenue"])
