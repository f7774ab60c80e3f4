"""Students Router - student accounts and profiles."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session, get_settings
from api.models import (
    StudentCreateRequest,
    StudentUpdateRequest,
    StudentResponse,
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

router = APIRouter(prefix="/students", tags=["Students"])


@router.post("", response_model=DataEnvelope[StudentResponse], status_code=status.HTTP_201_CREATED)
async def create_student(
    body: StudentCreateRequest,
    _: TokenPayload = Depends(require_faculty_or_admin),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """
    Create a student account with its profile.

    **Errors:** 409 for a taken email, roll number or PRN; 400 for an unknown department.
    """
    password_hash = await hash_password(body.password, settings.bcrypt_rounds)
    student = await academic_ops.create_student(
        session,
        email=body.email,
        name=body.name,
        password_hash=password_hash,
        **body.model_dump(exclude={"email", "name", "password"}),
    )
    return DataEnvelope[StudentResponse](data=StudentResponse.model_validate(student))


@router.get("", response_model=Page[StudentResponse])
async def list_students(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    department_id: Optional[str] = Query(None),
    year: Optional[int] = Query(None, ge=1, le=10),
    division: Optional[str] = Query(None),
    _: TokenPayload = Depends(require_faculty_or_admin),
    session: AsyncSession = Depends(get_session),
):
    students, total = await academic_ops.list_students(
        session,
        page=page,
        limit=limit,
        department_id=department_id,
        year=year,
        division=division,
    )
    return Page[StudentResponse](
        data=[StudentResponse.model_validate(s) for s in students],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{user_id}", response_model=DataEnvelope[StudentResponse])
async def get_student(
    user_id: str,
    _: TokenPayload = Depends(require_any_role),
    session: AsyncSession = Depends(get_session),
):
    student = await academic_ops.get_student(session, user_id)
    return DataEnvelope[StudentResponse](data=StudentResponse.model_validate(student))


@router.put("/{user_id}", response_model=DataEnvelope[StudentResponse])
async def update_student(
    user_id: str,
    body: StudentUpdateRequest,
    _: TokenPayload = Depends(require_faculty_or_admin),
    session: AsyncSession = Depends(get_session),
):
    student = await academic_ops.update_student(
        session, user_id, **body.model_dump(exclude_unset=True)
    )
    return DataEnvelope[StudentResponse](data=StudentResponse.model_validate(student))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_student(
    user_id: str,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Soft delete the student's account."""
    await academic_ops.delete_student(session, user_id)
    return MessageResponse(message="Student deleted successfully")
