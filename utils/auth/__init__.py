"""Authentication utilities."""

from .jwt_handler import JWTHandler, TokenPayload
from .password import (
    hash_password,
    verify_password,
    hash_password_sync,
    verify_password_sync,
    needs_rehash,
)

__all__ = [
    "JWTHandler",
    "TokenPayload",
    "hash_password",
    "verify_password",
    "hash_password_sync",
    "verify_password_sync",
    "needs_rehash",
]
