"""
Trench FastAPI Application.

Academic administration API with:
- Password authentication and JWT sessions
- Password reset by email
- Role-based access control (STUDENT, FACULTY, ADMIN)
- Student, faculty, admin, college and department management
"""

import time
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.lifespan import lifespan
from api.routers import (
    health_router,
    auth_router,
    users_router,
    students_router,
    faculty_router,
    admins_router,
    colleges_router,
    departments_router,
)
from config import Settings, settings as default_settings
from utils.errors import BaseApplicationError, get_error_handler
from utils.monitoring import (
    get_logger,
    setup_logging,
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _error_body(error: str, message: str, **extra) -> dict:
    body = {"success": False, "error": error, "message": message}
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Translate exceptions into the ``{success, error, message}`` envelope."""

    @app.exception_handler(BaseApplicationError)
    async def application_error_handler(request: Request, exc: BaseApplicationError):
        """Handle application errors."""
        get_error_handler().log_error(exc, context={
            "path": request.url.path,
            "method": request.method,
            "correlation_id": get_correlation_id(),
        })
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle request body/query validation failures."""
        errors = [
            {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
             "message": err.get("msg")}
            for err in exc.errors()
        ]
        message = errors[0]["message"] if errors else "Invalid request"
        return JSONResponse(
            status_code=422,
            content=_error_body("VALIDATION_ERROR", message, details=errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Handle framework HTTP errors (unknown route, wrong method)."""
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("HTTP_ERROR", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors."""
        get_error_handler().log_error(exc, context={
            "path": request.url.path,
            "method": request.method,
            "correlation_id": get_correlation_id(),
        })
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "INTERNAL_ERROR",
                "Internal server error",
                correlation_id=get_correlation_id(),
            ),
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Collaborators (database, JWT handler, email service) are created by the
    lifespan from ``settings``; tests may pre-seed them on ``app.state``.
    """
    settings = settings or default_settings
    setup_logging(settings)

    app = FastAPI(
        title="Trench API",
        description="Academic administration API: users, students, faculty, admins, colleges and departments.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        redirect_slashes=False,
    )
    app.state.settings = settings

    # ========================================================================
    # Middleware Stack
    # ========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", CORRELATION_HEADER],
        expose_headers=[CORRELATION_HEADER],
        max_age=600,
    )

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        """Tag each request with a correlation ID and log its outcome."""
        correlation_id = request.headers.get(CORRELATION_HEADER)
        if correlation_id:
            set_correlation_id(correlation_id)
        else:
            clear_correlation_id()
            correlation_id = get_correlation_id()

        start = time.perf_counter()
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        logger.request_end(
            request.method,
            request.url.path,
            response.status_code,
            int((time.perf_counter() - start) * 1000),
        )
        return response

    register_exception_handlers(app)

    # ========================================================================
    # Routers
    # ========================================================================

    prefix = settings.api_prefix
    app.include_router(health_router, prefix=prefix)
    app.include_router(auth_router, prefix=prefix)
    app.include_router(users_router, prefix=prefix)
    app.include_router(students_router, prefix=prefix)
    app.include_router(faculty_router, prefix=prefix)
    app.include_router(admins_router, prefix=prefix)
    app.include_router(colleges_router, prefix=prefix)
    app.include_router(departments_router, prefix=prefix)

    @app.get("/", include_in_schema=False)
    async def root():
        """API root endpoint with welcome message."""
        return {
            "message": "Trench API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": f"{prefix}/health",
        }

    return app


app = create_app()


# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.app:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=default_settings.api_reload,
        log_level=default_settings.log_level.lower()
    )
