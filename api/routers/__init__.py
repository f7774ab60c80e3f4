"""API Routers."""

from .health import router as health_router
from .auth import router as auth_router
from .users import router as users_router
from .students import router as students_router
from .faculty import router as faculty_router
from .admins import router as admins_router
from .colleges import router as colleges_router
from .departments import router as departments_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "students_router",
    "faculty_router",
    "admins_router",
    "colleges_router",
    "departments_router",
]
