"""Faculty Router - faculty accounts and profiles."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session, get_settings
from api.models import (
    FacultyCreateRequest,
    FacultyUpdateRequest,
    FacultyResponse,
    DataEnvelope,
    MessageResponse,
    Page,
    Pagination,
)
from config import Settings
from database.operations import academic_ops
from middleware.rbac import require_admin, require_any_role, require_faculty_or_admin
from utils.auth.jwt_handler import TokenPayload
from utils.auth.password import hash_password

router = APIRouter(prefix="/faculty", tags=["Faculty"])


@router.post("", response_model=DataEnvelope[FacultyResponse], status_code=status.HTTP_201_CREATED)
async def create_faculty(
    body: FacultyCreateRequest,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """
    Create a faculty account with its profile.

    **Errors:** 409 for a taken email or employee ID.
    """
    password_hash = await hash_password(body.password, settings.bcrypt_rounds)
    faculty = await academic_ops.create_faculty(
        session,
        email=body.email,
        name=body.name,
        password_hash=password_hash,
        **body.model_dump(exclude={"email", "name", "password"}),
    )
    return DataEnvelope[FacultyResponse](data=FacultyResponse.model_validate(faculty))


@router.get("", response_model=Page[FacultyResponse])
async def list_faculty(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    department_id: Optional[str] = Query(None),
    designation: Optional[str] = Query(None),
    _: TokenPayload = Depends(require_faculty_or_admin),
    session: AsyncSession = Depends(get_session),
):
    members, total = await academic_ops.list_faculty(
        session,
        page=page,
        limit=limit,
        department_id=department_id,
        designation=designation,
    )
    return Page[FacultyResponse](
        data=[FacultyResponse.model_validate(m) for m in members],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{user_id}", response_model=DataEnvelope[FacultyResponse])
async def get_faculty(
    user_id: str,
    _: TokenPayload = Depends(require_any_role),
    session: AsyncSession = Depends(get_session),
):
    faculty = await academic_ops.get_faculty(session, user_id)
    return DataEnvelope[FacultyResponse](data=FacultyResponse.model_validate(faculty))


@router.put("/{user_id}", response_model=DataEnvelope[FacultyResponse])
async def update_faculty(
    user_id: str,
    body: FacultyUpdateRequest,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    faculty = await academic_ops.update_faculty(
        session, user_id, **body.model_dump(exclude_unset=True)
    )
    return DataEnvelope[FacultyResponse](data=FacultyResponse.model_validate(faculty))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_faculty(
    user_id: str,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await academic_ops.delete_faculty(session, user_id)
    return MessageResponse(message="Faculty deleted successfully")
