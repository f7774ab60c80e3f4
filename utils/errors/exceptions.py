"""Custom exception classes with detailed error information."""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class BaseApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize base error.

        Args:
            message: Error message
            error_code: Machine-readable error code
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to the API error envelope."""
        body = {
            "success": False,
            "error": self.error_code,
            "message": self.message,
        }
        details = {k: v for k, v in self.details.items() if v is not None}
        if details:
            body["details"] = details
        return body


class DatabaseError(BaseApplicationError):
    """Database operation error."""

    def __init__(
        self,
        message: str = "Internal server error",
        operation: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, error_code="DATABASE_ERROR", **kwargs)
        self.details["operation"] = operation


class AuthenticationError(BaseApplicationError):
    """Missing, invalid or rejected credentials."""

    def __init__(
        self,
        message: str = "Unauthorized",
        **kwargs
    ):
        super().__init__(
            message,
            error_code="UNAUTHORIZED",
            status_code=401,
            **kwargs
        )


class ForbiddenError(BaseApplicationError):
    """Authenticated caller lacks the required role."""

    def __init__(
        self,
        message: str = "Forbidden",
        required_roles: Optional[list] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="FORBIDDEN",
            status_code=403,
            **kwargs
        )
        self.details["required_roles"] = required_roles


class ValidationError(BaseApplicationError):
    """Request validation or business rule error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="BAD_REQUEST",
            status_code=400,
            **kwargs
        )
        self.details["field"] = field


class NotFoundError(BaseApplicationError):
    """Requested resource does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        resource: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="NOT_FOUND",
            status_code=404,
            **kwargs
        )
        self.details["resource"] = resource


class ConflictError(BaseApplicationError):
    """Unique key already taken."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="CONFLICT",
            status_code=409,
            **kwargs
        )
        self.details["field"] = field
