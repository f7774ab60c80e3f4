"""Error taxonomy and handling."""

from .exceptions import (
    BaseApplicationError,
    DatabaseError,
    AuthenticationError,
    ForbiddenError,
    ValidationError,
    NotFoundError,
    ConflictError,
)
from .handlers import (
    ErrorHandler,
    get_error_handler,
    handle_errors,
)

__all__ = [
    # Exceptions
    "BaseApplicationError",
    "DatabaseError",
    "AuthenticationError",
    "ForbiddenError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    # Handlers
    "ErrorHandler",
    "get_error_handler",
    "handle_errors",
]
