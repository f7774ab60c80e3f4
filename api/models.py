"""
API Request/Response Models.

Pydantic models for API request validation and response serialization.
Password hashes never appear in any response model.
"""

import math
from typing import Annotated, Optional, List, Generic, TypeVar
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, EmailStr, Field, AliasChoices, AfterValidator

from database.models.user import UserRole

T = TypeVar("T")

PASSWORD_MIN_LENGTH = 6
NAME_MIN_LENGTH = 2


def _strip_name(v: str) -> str:
    v = v.strip()
    if len(v) < NAME_MIN_LENGTH:
        raise ValueError(f"Name must be at least {NAME_MIN_LENGTH} characters")
    return v


Name = Annotated[str, Field(max_length=255), AfterValidator(_strip_name)]


# ============================================================================
# Auth Requests
# ============================================================================

class RegisterRequest(BaseModel):
    """Registration request body."""

    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    name: Name = Field(..., description="Display name")
    role: Optional[UserRole] = Field(
        default=None,
        description="Only STUDENT may be requested through public registration",
    )


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    remember_me: bool = Field(
        default=False,
        validation_alias=AliasChoices("remember_me", "rememberMe"),
        description="Issue a long-lived session token",
    )


class ForgotPasswordRequest(BaseModel):
    """Password reset request body."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Password reset confirmation body."""

    token: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=128,
        validation_alias=AliasChoices("new_password", "newPassword", "password"),
    )


class ChangePasswordRequest(BaseModel):
    """Change password body."""

    current_password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        validation_alias=AliasChoices("current_password", "currentPassword"),
    )
    new_password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=128,
        validation_alias=AliasChoices("new_password", "newPassword"),
    )


class UpdateProfileRequest(BaseModel):
    """Profile update body."""

    name: Optional[Name] = None
    email: Optional[EmailStr] = None


# ============================================================================
# Auth Responses
# ============================================================================

class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: UserRole
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    """Generic success message."""

    success: bool = True
    message: str


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserResponse


class LoginResponse(BaseModel):
    """Login response with session token."""

    success: bool = True
    user: UserResponse
    token: str
    expires_at: datetime


# ============================================================================
# Pagination
# ============================================================================

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class Page(BaseModel, Generic[T]):
    """One page of a list endpoint."""

    success: bool = True
    data: List[T]
    pagination: Pagination


class DataEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


# ============================================================================
# Colleges & Departments
# ============================================================================

class CollegeCreateRequest(BaseModel):
    name: Name
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=500)


class CollegeUpdateRequest(BaseModel):
    name: Optional[Name] = None
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=500)


class CollegeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DepartmentCreateRequest(BaseModel):
    name: Name
    college_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("college_id", "collegeId"),
    )


class DepartmentUpdateRequest(BaseModel):
    name: Optional[Name] = None
    college_id: Optional[str] = Field(
        None,
        min_length=1,
        validation_alias=AliasChoices("college_id", "collegeId"),
    )


class DepartmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    college_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# Role profiles
# ============================================================================

class AccountFields(BaseModel):
    """Credentials for the account created along with a profile."""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    name: Name


class StudentCreateRequest(AccountFields):
    roll_number: str = Field(..., min_length=1, max_length=50)
    year: int = Field(..., ge=1, le=10)
    department_id: Optional[str] = None
    division: Optional[str] = Field(None, max_length=20)
    academic_year: Optional[str] = Field(None, max_length=20)
    prn: Optional[str] = Field(None, min_length=1, max_length=50)


class StudentUpdateRequest(BaseModel):
    name: Optional[Name] = None
    roll_number: Optional[str] = Field(None, min_length=1, max_length=50)
    year: Optional[int] = Field(None, ge=1, le=10)
    department_id: Optional[str] = None
    division: Optional[str] = Field(None, max_length=20)
    academic_year: Optional[str] = Field(None, max_length=20)
    prn: Optional[str] = Field(None, min_length=1, max_length=50)


class StudentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    user: UserResponse
    roll_number: str
    prn: Optional[str] = None
    department_id: Optional[str] = None
    year: int
    division: Optional[str] = None
    academic_year: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FacultyCreateRequest(AccountFields):
    employee_id: str = Field(..., min_length=1, max_length=50)
    department_id: Optional[str] = None
    designation: Optional[str] = Field(None, max_length=100)
    specialization: Optional[str] = Field(None, max_length=255)


class FacultyUpdateRequest(BaseModel):
    name: Optional[Name] = None
    employee_id: Optional[str] = Field(None, min_length=1, max_length=50)
    department_id: Optional[str] = None
    designation: Optional[str] = Field(None, max_length=100)
    specialization: Optional[str] = Field(None, max_length=255)


class FacultyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    user: UserResponse
    employee_id: str
    department_id: Optional[str] = None
    designation: Optional[str] = None
    specialization: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdminCreateRequest(AccountFields):
    department_id: Optional[str] = None


class AdminUpdateRequest(BaseModel):
    name: Optional[Name] = None
    department_id: Optional[str] = None


class AdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    user: UserResponse
    department_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    total_users: int
    deleted_users: int
    total_students: int
    total_faculty: int
    total_admins: int
    total_colleges: int
    total_departments: int


# ============================================================================
# Health
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    uptime: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    database: Optional[str] = None
