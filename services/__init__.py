"""Application services."""

from .auth_service import AuthService, INVALID_CREDENTIALS_MESSAGE

__all__ = ["AuthService", "INVALID_CREDENTIALS_MESSAGE"]
