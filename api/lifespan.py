"""
Application lifespan management.

Builds the per-application collaborators (database, JWT handler, email
service) on startup and stores them on ``app.state`` for the dependencies in
``api.dependencies`` and ``middleware.rbac``.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from database.core import Database, init_database
from utils.auth.jwt_handler import JWTHandler
from utils.email.email_service import EmailService
from utils.monitoring import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown of the Trench API."""
    settings = app.state.settings
    logger.info("🚀 Starting Trench API")

    for issue in settings.validate_production_config():
        logger.warning(f"⚠️  Configuration: {issue}")

    # =========================================================================
    # Database
    # =========================================================================
    database: Database = getattr(app.state, "database", None) or Database.from_settings(settings)
    await init_database(settings, database)
    if await database.check_connection():
        logger.info("✅ Database connection established")
    else:
        logger.warning("⚠️  Database connection check failed")
    app.state.database = database

    # =========================================================================
    # Auth & notifications
    # =========================================================================
    if getattr(app.state, "jwt_handler", None) is None:
        app.state.jwt_handler = JWTHandler.from_settings(settings)
    if getattr(app.state, "email_service", None) is None:
        app.state.email_service = EmailService(settings)

    app.state.started_at = time.monotonic()
    logger.info("✅ Trench API ready")

    yield

    # =========================================================================
    # Cleanup
    # =========================================================================
    logger.info("🛑 Shutting down Trench API")
    try:
        await database.dispose()
        logger.info("✅ Database connections closed")
    except Exception as e:
        logger.warning(f"Database cleanup warning: {e}")

    logger.info("✅ Shutdown complete")
