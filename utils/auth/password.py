"""
Password hashing utilities.

Salted bcrypt hashing with a configurable work factor. The async functions
run bcrypt in a thread pool so hashing never blocks the event loop.
"""

import re
import logging
from typing import Optional

import bcrypt
from fastapi.concurrency import run_in_threadpool

from config import settings

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of input
BCRYPT_MAX_BYTES = 72

_COST_PATTERN = re.compile(r"^\$2[abxy]?\$(\d{2})\$")


def _encode(password: str) -> bytes:
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


# ============================================================================
# Synchronous implementations (scripts and tests)
# ============================================================================

def hash_password_sync(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password with bcrypt, blocking the calling thread.

    Args:
        password: Plain text password
        rounds: Work factor override (defaults to settings.bcrypt_rounds)

    Returns:
        Hashed password string
    """
    try:
        salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
        return bcrypt.hashpw(_encode(password), salt).decode('utf-8')
    except Exception as e:
        logger.error(f"❌ Error hashing password: {e}")
        raise


def verify_password_sync(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash, blocking the calling thread.

    Returns False for a mismatch and for a malformed hash.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode('utf-8'))
    except (ValueError, TypeError):
        return False


# ============================================================================
# Async API
# ============================================================================

async def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password using bcrypt in a thread pool to avoid blocking.

    Args:
        password: Plain text password
        rounds: Work factor override (defaults to settings.bcrypt_rounds)

    Returns:
        Hashed password string
    """
    return await run_in_threadpool(hash_password_sync, password, rounds)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash in a thread pool.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return await run_in_threadpool(verify_password_sync, plain_password, hashed_password)


def get_hash_rounds(hashed_password: str) -> Optional[int]:
    """Read the work factor out of a bcrypt hash, or None if it is not one."""
    match = _COST_PATTERN.match(hashed_password or "")
    if not match:
        return None
    return int(match.group(1))


def needs_rehash(hashed_password: str, rounds: Optional[int] = None) -> bool:
    """
    Check if a password hash needs to be updated.

    True when the stored work factor differs from the configured one, or when
    the value is not a bcrypt hash at all.
    """
    return get_hash_rounds(hashed_password) != (rounds or settings.bcrypt_rounds)


__all__ = [
    "hash_password",
    "verify_password",
    "hash_password_sync",
    "verify_password_sync",
    "get_hash_rounds",
    "needs_rehash",
]
