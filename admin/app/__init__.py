"""
Dance-Verse admin API.

`create_app()` builds the FastAPI application with all admin routers and the
token endpoint. Every router requires an authenticated admin.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from admin.app.auth import authenticate_user, create_access_token
from admin.app.routers import api_router
from admin.app.schemas import Token
from core.config import get_settings
from core.db import get_session
from core.logging_setup import configure_logging


def create_app() -> FastAPI:
    """Create and configure the FastAPI admin application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Dance-Verse Admin API",
        description="Partners, commissions, dancer payouts and revenue monitoring",
        version="1.0.0",
    )

    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "timestamp": datetime.now().isoformat()}

    @app.post("/token", response_model=Token)
    async def login_for_access_token(
        form_data: OAuth2PasswordRequestForm = Depends(),
        db: AsyncSession = Depends(get_session),
    ):
        user = await authenticate_user(form_data.username, form_data.password, db)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect username or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        access_token = create_access_token(
            data={"sub": user.username, "scopes": ["admin"]},
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        )
        return {"access_token": access_token, "token_type": "bearer"}

    return app
