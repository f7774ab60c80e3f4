"""User Router - own profile plus admin account management."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_auth_service, get_session
from api.models import (
    UpdateProfileRequest,
    UserEnvelope,
    UserResponse,
    Page,
    Pagination,
)
from database.models.user import UserRole
from database.operations import user_ops
from middleware.rbac import require_admin, require_any_role
from services.auth_service import AuthService
from utils.auth.jwt_handler import TokenPayload

router = APIRouter(prefix="/user", tags=["Users"])


@router.get("/profile", response_model=UserEnvelope)
async def get_profile(
    identity: TokenPayload = Depends(require_any_role),
    auth_service: AuthService = Depends(get_auth_service),
):
    user = await auth_service.get_profile(identity.user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    body: UpdateProfileRequest,
    identity: TokenPayload = Depends(require_any_role),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Update name and/or email.

    **Errors:** 409 if the new email belongs to another account.
    """
    user = await auth_service.update_profile(
        identity.user_id,
        name=body.name,
        email=body.email,
    )
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.get("", response_model=Page[UserResponse])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[UserRole] = Query(None),
    include_deleted: bool = Query(False),
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    users, total = await user_ops.list_users(
        session,
        page=page,
        limit=limit,
        role=role,
        include_deleted=include_deleted,
    )
    return Page[UserResponse](
        data=[UserResponse.model_validate(user) for user in users],
        pagination=Pagination.build(page, limit, total),
    )


@router.delete("/{user_id}", response_model=UserEnvelope)
async def delete_user(
    user_id: str,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Soft delete an account. The user can no longer log in."""
    user = await user_ops.soft_delete_user(session, user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("/{user_id}/restore", response_model=UserEnvelope)
async def restore_user(
    user_id: str,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """
    Undo a soft delete.

    **Errors:** 404 for an unknown id, 400 if the user is not deleted.
    """
    user = await user_ops.restore_user(session, user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))
