"""Admins Router - admin accounts and the dashboard. Admin only."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session, get_settings
from api.models import (
    AdminCreateRequest,
    AdminUpdateRequest,
    AdminResponse,
    DashboardStats,
    DataEnvelope,
    MessageResponse,
    Page,
    Pagination,
)
from config import Settings
from database.operations import academic_ops
from middleware.rbac import require_admin
from utils.auth.jwt_handler import TokenPayload
from utils.auth.password import hash_password

router = APIRouter(prefix="/admins", tags=["Admins"])


@router.get("/dashboard/stats", response_model=DataEnvelope[DashboardStats])
async def dashboard_stats(
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Live account counts per role plus colleges and departments."""
    stats = await academic_ops.get_dashboard_stats(session)
    return DataEnvelope[DashboardStats](data=DashboardStats(**stats))


@router.post("", response_model=DataEnvelope[AdminResponse], status_code=status.HTTP_201_CREATED)
async def create_admin(
    body: AdminCreateRequest,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    password_hash = await hash_password(body.password, settings.bcrypt_rounds)
    admin = await academic_ops.create_admin(
        session,
        email=body.email,
        name=body.name,
        password_hash=password_hash,
        department_id=body.department_id,
    )
    return DataEnvelope[AdminResponse](data=AdminResponse.model_validate(admin))


@router.get("", response_model=Page[AdminResponse])
async def list_admins(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    department_id: Optional[str] = Query(None),
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    admins, total = await academic_ops.list_admins(
        session, page=page, limit=limit, department_id=department_id
    )
    return Page[AdminResponse](
        data=[AdminResponse.model_validate(a) for a in admins],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{user_id}", response_model=DataEnvelope[AdminResponse])
async def get_admin(
    user_id: str,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    admin = await academic_ops.get_admin(session, user_id)
    return DataEnvelope[AdminResponse](data=AdminResponse.model_validate(admin))


@router.put("/{user_id}", response_model=DataEnvelope[AdminResponse])
async def update_admin(
    user_id: str,
    body: AdminUpdateRequest,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    admin = await academic_ops.update_admin(
        session, user_id, **body.model_dump(exclude_unset=True)
    )
    return DataEnvelope[AdminResponse](data=AdminResponse.model_validate(admin))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_admin(
    user_id: str,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await academic_ops.delete_admin(session, user_id)
    return MessageResponse(message="Admin deleted successfully")
