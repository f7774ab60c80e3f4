"""
User Database Operations

Account lifecycle for the credential store: create (or revive), lookup,
update, soft delete and restore.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from typing import Optional, List, Tuple
import logging
from datetime import datetime

from database.models.base import utcnow
from database.models.user import User, UserRole
from utils.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "User with this email already exists"


async def get_user_by_email(
    session: AsyncSession,
    email: str,
    include_deleted: bool = False
) -> Optional[User]:
    """
    Get user by email.

    Args:
        session: Database session
        email: User email (matched exactly as stored)
        include_deleted: Also return a soft-deleted user

    Returns:
        User or None if not found
    """
    query = select(User).where(User.email == email)
    if not include_deleted:
        query = query.where(User.is_deleted.is_(False))
    result = await session.execute(query)
    return result.scalars().first()


async def get_user_by_id(
    session: AsyncSession,
    user_id: str,
    include_deleted: bool = False
) -> Optional[User]:
    """
    Get user by id.

    Args:
        session: Database session
        user_id: User ID
        include_deleted: Also return a soft-deleted user

    Returns:
        User or None if not found
    """
    query = select(User).where(User.id == user_id)
    if not include_deleted:
        query = query.where(User.is_deleted.is_(False))
    result = await session.execute(query)
    return result.scalars().first()


async def is_email_available(session: AsyncSession, email: str) -> bool:
    """True when no live user holds the email."""
    return await get_user_by_email(session, email) is None


async def create_user(
    session: AsyncSession,
    email: str,
    name: str,
    password_hash: str,
    role: UserRole = UserRole.STUDENT,
    commit: bool = True
) -> User:
    """
    Create a new user, or revive the soft-deleted user holding the email.

    Revival keeps the row, its id and its role; name and password hash are
    replaced.

    Args:
        session: Database session
        email: User email
        name: Display name
        password_hash: Bcrypt hash of the password
        role: Role for a brand new user
        commit: Commit immediately; pass False to join a larger transaction

    Raises:
        ConflictError: A live user already holds the email
    """
    try:
        existing = await get_user_by_email(session, email, include_deleted=True)

        if existing is not None and not existing.is_deleted:
            raise ConflictError(EMAIL_TAKEN_MESSAGE, field="email")

        if existing is not None:
            existing.revive(name=name, password_hash=password_hash)
            user = existing
            logger.info(f"♻️ Revived soft-deleted user: {email}")
        else:
            user = User(
                email=email,
                name=name,
                password_hash=password_hash,
                role=role,
                is_deleted=False,
            )
            session.add(user)

        if commit:
            await session.commit()
            await session.refresh(user)
        else:
            await session.flush()

        logger.info(f"✅ User created: {email} ({user.role.value})")
        return user

    except IntegrityError as e:
        await session.rollback()
        logger.warning(f"⚠️ User creation failed (duplicate): {email}")
        raise ConflictError(EMAIL_TAKEN_MESSAGE, field="email") from e
    except ConflictError:
        await session.rollback()
        raise


async def update_user(
    session: AsyncSession,
    user_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None
) -> User:
    """
    Update a live user's name and/or email.

    An email held by a soft-deleted account stays reserved for its revival,
    so moving onto it is a conflict like any live collision.

    Raises:
        NotFoundError: No live user with this id
        ConflictError: The new email belongs to another account
    """
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User not found", resource="user")

    try:
        if email is not None and email != user.email:
            holder = await get_user_by_email(session, email, include_deleted=True)
            if holder is not None:
                raise ConflictError("Email is already taken", field="email")
            user.email = email
        if name is not None:
            user.name = name

        await session.commit()
        await session.refresh(user)
        logger.info(f"✅ User updated: {user.id}")
        return user

    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("Email is already taken", field="email") from e


async def update_password_hash(
    session: AsyncSession,
    user: User,
    password_hash: str
) -> User:
    """Replace a user's password hash."""
    user.password_hash = password_hash
    await session.commit()
    await session.refresh(user)
    logger.info(f"🔐 Password hash updated for user {user.id}")
    return user


async def soft_delete_user(
    session: AsyncSession,
    user_id: str,
    now: Optional[datetime] = None
) -> User:
    """
    Soft delete a live user.

    Raises:
        NotFoundError: No live user with this id
    """
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User not found", resource="user")

    user.soft_delete(now or utcnow())
    await session.commit()
    await session.refresh(user)
    logger.info(f"🗑️ User soft-deleted: {user.id}")
    return user


async def restore_user(session: AsyncSession, user_id: str) -> User:
    """
    Restore a soft-deleted user.

    Raises:
        NotFoundError: No user with this id
        ValidationError: The user is not deleted
        ConflictError: A live account took over the email meanwhile
    """
    user = await get_user_by_id(session, user_id, include_deleted=True)
    if user is None:
        raise NotFoundError("User not found", resource="user")
    if not user.is_deleted:
        raise ValidationError("User is not deleted")

    try:
        user.restore()
        await session.commit()
        await session.refresh(user)
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(EMAIL_TAKEN_MESSAGE, field="email") from e

    logger.info(f"✅ User restored: {user.id}")
    return user


async def list_users(
    session: AsyncSession,
    page: int = 1,
    limit: int = 10,
    role: Optional[UserRole] = None,
    include_deleted: bool = False
) -> Tuple[List[User], int]:
    """
    List users, newest first.

    Returns:
        (users on the requested page, total matching users)
    """
    query = select(User)
    count_query = select(func.count()).select_from(User)
    if not include_deleted:
        query = query.where(User.is_deleted.is_(False))
        count_query = count_query.where(User.is_deleted.is_(False))
    if role is not None:
        query = query.where(User.role == role)
        count_query = count_query.where(User.role == role)

    total = (await session.execute(count_query)).scalar_one()
    result = await session.execute(
        query.order_by(User.created_at.desc(), User.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


__all__ = [
    'EMAIL_TAKEN_MESSAGE',
    'get_user_by_email',
    'get_user_by_id',
    'is_email_available',
    'create_user',
    'update_user',
    'update_password_hash',
    'soft_delete_user',
    'restore_user',
    'list_users',
]
