"""Health Check Router - System status endpoints."""

import time

from fastapi import APIRouter, Request

from api.models import HealthResponse

router = APIRouter(prefix="", tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns process uptime in seconds and whether the database answers.
    """
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    database = getattr(request.app.state, "database", None)
    database_ok = database is not None and await database.check_connection()

    return HealthResponse(
        status="ok" if database_ok else "degraded",
        uptime=round(time.monotonic() - started_at, 3),
        database="connected" if database_ok else "unavailable",
    )
