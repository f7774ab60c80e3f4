"""Colleges Router - readable by any role, writable by admins."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session
from api.models import (
    CollegeCreateRequest,
    CollegeUpdateRequest,
    CollegeResponse,
    DataEnvelope,
    MessageResponse,
    Page,
    Pagination,
)
from database.operations import academic_ops
from middleware.rbac import require_admin, require_any_role
from utils.auth.jwt_handler import TokenPayload

router = APIRouter(prefix="/colleges", tags=["Colleges"])


@router.post("", response_model=DataEnvelope[CollegeResponse], status_code=status.HTTP_201_CREATED)
async def create_college(
    body: CollegeCreateRequest,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    college = await academic_ops.create_college(session, **body.model_dump())
    return DataEnvelope[CollegeResponse](data=CollegeResponse.model_validate(college))


@router.get("", response_model=Page[CollegeResponse])
async def list_colleges(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    _: TokenPayload = Depends(require_any_role),
    session: AsyncSession = Depends(get_session),
):
    colleges, total = await academic_ops.list_colleges(
        session, page=page, limit=limit, search=search
    )
    return Page[CollegeResponse](
        data=[CollegeResponse.model_validate(c) for c in colleges],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{college_id}", response_model=DataEnvelope[CollegeResponse])
async def get_college(
    college_id: str,
    _: TokenPayload = Depends(require_any_role),
    session: AsyncSession = Depends(get_session),
):
    college = await academic_ops.get_college(session, college_id)
    return DataEnvelope[CollegeResponse](data=CollegeResponse.model_validate(college))


@router.put("/{college_id}", response_model=DataEnvelope[CollegeResponse])
async def update_college(
    college_id: str,
    body: CollegeUpdateRequest,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    college = await academic_ops.update_college(
        session, college_id, **body.model_dump(exclude_unset=True, exclude_none=True)
    )
    return DataEnvelope[CollegeResponse](data=CollegeResponse.model_validate(college))


@router.delete("/{college_id}", response_model=MessageResponse)
async def delete_college(
    college_id: str,
    _: TokenPayload = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """**Errors:** 409 while the college still has departments."""
    await academic_ops.delete_college(session, college_id)
    return MessageResponse(message="College deleted successfully")
