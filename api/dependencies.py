"""
API Dependencies.

FastAPI dependencies for database sessions and services.
Everything is read from ``app.state``, which the lifespan populates.
"""

from typing import AsyncGenerator

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from services.auth_service import AuthService
from utils.auth.jwt_handler import JWTHandler
from utils.email.email_service import EmailService
from middleware.rbac import get_jwt_handler


# ============================================================================
# Application state
# ============================================================================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session for one request.

    Usage:
        @router.get("/")
        async def handler(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with request.app.state.database.session() as session:
        yield session


def get_auth_service(
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    jwt_handler: JWTHandler = Depends(get_jwt_handler),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    """AuthService whose notifications run after the response is sent."""
    return AuthService(
        session=session,
        jwt_handler=jwt_handler,
        email_service=email_service,
        schedule=background_tasks.add_task,
        settings=settings,
    )


__all__ = [
    "get_settings",
    "get_email_service",
    "get_session",
    "get_auth_service",
]
