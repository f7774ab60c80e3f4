"""Departments Router - readable by any role, writable by admins."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session
from api.models import (
    DepartmentCreateRequest,
    DepartmentUpdateRequest,
    DepartmentResponse,
    DataEnvelope,
    MessageResponse,
    Page,
    Pagination,
)
from database.operations import academic_ops
from middleware.rbac import require_admin, require_any_role
from utils.auth.jwt_handler import TokenPayload

router = APIRouter(prefix="/departments", tags=["Departments"])


@router.post("", response_model=DataEnvelope[DepartmentResponse], status_code=status.HTTP_201_CREATED)
async def create_department(
    body: DepartmentCreateRequest,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    department = await academic_ops.create_department(
        session, name=body.name, college_id=body.college_id
    )
    return DataEnvelope[DepartmentResponse](data=DepartmentResponse.model_validate(department))


@router.get("", response_model=Page[DepartmentResponse])
async def list_departments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    college_id: Optional[str] = Query(None),
    _: TokenPayload = Depends(require_any_role),
    session: AsyncSession = Depends(get_session),
):
    departments, total = await academic_ops.list_departments(
        session, page=page, limit=limit, college_id=college_id
    )
    return Page[DepartmentResponse](
        data=[DepartmentResponse.model_validate(d) for d in departments],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{department_id}", response_model=DataEnvelope[DepartmentResponse])
async def get_department(
    department_id: str,
    _: TokenPayload = Depends(require_any_role),
    session: AsyncSession = Depends(get_session),
):
    department = await academic_ops.get_department(session, department_id)
    return DataEnvelope[DepartmentResponse](data=DepartmentResponse.model_validate(department))


@router.put("/{department_id}", response_model=DataEnvelope[DepartmentResponse])
async def update_department(
    department_id: str,
    body: DepartmentUpdateRequest,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    department = await academic_ops.update_department(
        session, department_id, name=body.name, college_id=body.college_id
    )
    return DataEnvelope[DepartmentResponse](data=DepartmentResponse.model_validate(department))


@router.delete("/{department_id}", response_model=MessageResponse)
async def delete_department(
    department_id: str,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Profiles in the department are detached, not deleted."""
    await academic_ops.delete_department(session, department_id)
    return MessageResponse(message="Department deleted successfully")
