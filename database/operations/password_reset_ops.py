"""
Password Reset Token Operations

Issue, look up, redeem and purge single-use password reset tokens.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_, or_
from typing import Optional
import secrets
import logging
from datetime import datetime, timedelta

from database.models.base import utcnow
from database.models.password_reset_token import PasswordResetToken
from database.models.user import User
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

# 32 random bytes, 64 hex characters
RESET_TOKEN_BYTES = 32

INVALID_RESET_TOKEN_MESSAGE = "Invalid or expired reset token"


def generate_reset_token() -> str:
    """
    Generate a secure random token for password reset.

    Returns:
        256-bit random token as 64 hex characters
    """
    return secrets.token_hex(RESET_TOKEN_BYTES)


async def revoke_user_tokens(
    session: AsyncSession,
    user_id: str,
    now: Optional[datetime] = None
) -> int:
    """
    Mark every unused token of a user as used, without committing.

    Returns:
        Number of tokens revoked
    """
    now = now or utcnow()
    result = await session.execute(
        update(PasswordResetToken)
        .where(
            and_(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.used.is_(False),
            )
        )
        .values(used=True, used_at=now)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount:
        logger.info(f"🔒 Revoked {result.rowcount} outstanding reset token(s) for user {user_id}")
    return result.rowcount or 0


async def create_reset_token(
    session: AsyncSession,
    user_id: str,
    now: Optional[datetime] = None,
    expires_in: timedelta = timedelta(hours=1),
    revoke_previous: bool = True
) -> PasswordResetToken:
    """
    Create a new password reset token.

    Args:
        session: Database session
        user_id: Owning user
        now: Issuance time (defaults to the current UTC time)
        expires_in: Token lifetime
        revoke_previous: Invalidate the user's other unused tokens first

    Returns:
        Created PasswordResetToken
    """
    now = now or utcnow()
    try:
        if revoke_previous:
            await revoke_user_tokens(session, user_id, now)

        reset_token = PasswordResetToken(
            token=generate_reset_token(),
            user_id=user_id,
            used=False,
            created_at=now,
            expires_at=now + expires_in,
        )

        session.add(reset_token)
        await session.commit()
        await session.refresh(reset_token)

        logger.info(f"✅ Password reset token created for user {user_id}")
        return reset_token

    except Exception as e:
        await session.rollback()
        logger.error(f"❌ Error creating reset token for user {user_id}: {e}")
        raise


async def get_reset_token(
    session: AsyncSession,
    token: str
) -> Optional[PasswordResetToken]:
    """
    Look up a reset token by value, whatever its state.

    Returns:
        PasswordResetToken or None if unknown
    """
    if not token:
        return None
    result = await session.execute(
        select(PasswordResetToken)
        .where(PasswordResetToken.token == token)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


def is_token_redeemable(
    reset_token: Optional[PasswordResetToken],
    now: Optional[datetime] = None
) -> bool:
    """True iff the token exists, is unused and ``expires_at > now``."""
    if reset_token is None:
        return False
    return reset_token.is_redeemable(now or utcnow())


async def mark_token_as_used(
    session: AsyncSession,
    reset_token: PasswordResetToken,
    now: Optional[datetime] = None,
    commit: bool = True
) -> PasswordResetToken:
    """
    Mark a reset token as used.

    Args:
        session: Database session
        reset_token: Token to consume
        now: Consumption time
        commit: Commit immediately; pass False to join a larger transaction
    """
    reset_token.mark_used(now)
    if commit:
        await session.commit()
    logger.info(f"✅ Reset token marked as used: {reset_token.id}")
    return reset_token


async def redeem_reset_token(
    session: AsyncSession,
    token: str,
    new_password_hash: str,
    now: Optional[datetime] = None
) -> User:
    """
    Consume a token and set its owner's password in one transaction.

    Either both the password change and the ``used`` flag are committed, or
    neither is. The token is consumed with a conditional UPDATE, so of two
    concurrent redemptions only one matches the unused row.

    Raises:
        ValidationError: Token unknown, used, expired, or its user is deleted
    """
    now = now or utcnow()
    try:
        consumed = await session.execute(
            update(PasswordResetToken)
            .where(
                and_(
                    PasswordResetToken.token == token,
                    PasswordResetToken.used.is_(False),
                    PasswordResetToken.expires_at > now,
                )
            )
            .values(used=True, used_at=now)
            .execution_options(synchronize_session=False)
        )
        if consumed.rowcount != 1:
            logger.warning("⚠️ Rejected unusable password reset token")
            raise ValidationError(INVALID_RESET_TOKEN_MESSAGE, field="token")

        reset_token = await get_reset_token(session, token)
        result = await session.execute(
            select(User).where(
                and_(User.id == reset_token.user_id, User.is_deleted.is_(False))
            )
        )
        user = result.scalars().first()
        if user is None:
            logger.warning(f"⚠️ Reset token belongs to missing or deleted user {reset_token.user_id}")
            raise ValidationError(INVALID_RESET_TOKEN_MESSAGE, field="token")

        user.password_hash = new_password_hash
        user.updated_at = now

        await session.commit()
        logger.info(f"✅ Password reset completed for user {user.id}")
        return user

    except Exception:
        await session.rollback()
        raise


async def delete_expired_tokens(
    session: AsyncSession,
    now: Optional[datetime] = None
) -> int:
    """
    Delete all expired or used reset tokens (cleanup).

    Returns:
        Number of deleted tokens
    """
    now = now or utcnow()
    try:
        result = await session.execute(
            delete(PasswordResetToken)
            .where(
                or_(
                    PasswordResetToken.expires_at <= now,
                    PasswordResetToken.used.is_(True),
                )
            )
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        count = result.rowcount or 0
        logger.info(f"✅ Deleted {count} expired/used reset tokens")
        return count

    except Exception as e:
        await session.rollback()
        logger.error(f"❌ Error deleting expired tokens: {e}")
        raise


__all__ = [
    'INVALID_RESET_TOKEN_MESSAGE',
    'generate_reset_token',
    'revoke_user_tokens',
    'create_reset_token',
    'get_reset_token',
    'is_token_redeemable',
    'mark_token_as_used',
    'redeem_reset_token',
    'delete_expired_tokens',
]
