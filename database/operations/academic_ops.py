"""
Academic Record Operations

CRUD for colleges, departments and the role-specific profiles (student,
faculty, admin). Creating a profile creates its user account in the same
transaction; deleting a profile soft-deletes the account.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import contains_eager
from typing import Optional, List, Tuple, Dict, Any, Type
import logging

from database.models.base import Base, utcnow
from database.models.user import User, UserRole
from database.models.academic import College, Department, Student, Faculty, Admin
from database.operations.user_ops import create_user, get_user_by_email, soft_delete_user
from utils.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Natural keys that must be globally unique, per profile type
PROFILE_UNIQUE_FIELDS = {
    Student: {"roll_number": "Roll number", "prn": "PRN"},
    Faculty: {"employee_id": "Employee ID"},
    Admin: {},
}

PROFILE_ROLES = {
    Student: UserRole.STUDENT,
    Faculty: UserRole.FACULTY,
    Admin: UserRole.ADMIN,
}

PROFILE_NAMES = {
    Student: "Student",
    Faculty: "Faculty",
    Admin: "Admin",
}


# ============================================================================
# Colleges
# ============================================================================

async def _ensure_unique_college_name(
    session: AsyncSession,
    name: str,
    exclude_id: Optional[str] = None
) -> None:
    query = select(College.id).where(College.name == name)
    if exclude_id:
        query = query.where(College.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise ConflictError("College with this name already exists", field="name")


async def create_college(session: AsyncSession, name: str, **fields) -> College:
    """Create a college."""
    await _ensure_unique_college_name(session, name)
    college = College(name=name, **fields)
    session.add(college)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("College with this name already exists", field="name") from e
    await session.refresh(college)
    logger.info(f"✅ College created: {college.name}")
    return college


async def get_college(session: AsyncSession, college_id: str) -> College:
    """Get a college or raise NotFoundError."""
    college = await session.get(College, college_id)
    if college is None:
        raise NotFoundError("College not found", resource="college")
    return college


async def list_colleges(
    session: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None
) -> Tuple[List[College], int]:
    """List colleges ordered by name."""
    query = select(College)
    count_query = select(func.count()).select_from(College)
    if search:
        pattern = f"%{search}%"
        query = query.where(College.name.ilike(pattern))
        count_query = count_query.where(College.name.ilike(pattern))

    total = (await session.execute(count_query)).scalar_one()
    result = await session.execute(
        query.order_by(College.name).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars().all()), total


async def update_college(session: AsyncSession, college_id: str, **fields) -> College:
    """Update a college's attributes."""
    college = await get_college(session, college_id)
    if fields.get("name") and fields["name"] != college.name:
        await _ensure_unique_college_name(session, fields["name"], exclude_id=college_id)
    for key, value in fields.items():
        setattr(college, key, value)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("College with this name already exists", field="name") from e
    await session.refresh(college)
    logger.info(f"✅ College updated: {college.id}")
    return college


async def delete_college(session: AsyncSession, college_id: str) -> None:
    """
    Delete a college.

    Raises:
        ConflictError: The college still has departments
    """
    college = await get_college(session, college_id)
    department_count = (await session.execute(
        select(func.count()).select_from(Department).where(Department.college_id == college_id)
    )).scalar_one()
    if department_count:
        raise ConflictError("College still has departments", field="college_id")

    await session.delete(college)
    await session.commit()
    logger.info(f"🗑️ College deleted: {college_id}")


# ============================================================================
# Departments
# ============================================================================

async def _ensure_unique_department_name(
    session: AsyncSession,
    college_id: str,
    name: str,
    exclude_id: Optional[str] = None
) -> None:
    query = select(Department.id).where(
        Department.college_id == college_id,
        Department.name == name,
    )
    if exclude_id:
        query = query.where(Department.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise ConflictError("Department with this name already exists in the college", field="name")


async def create_department(session: AsyncSession, name: str, college_id: str) -> Department:
    """Create a department in an existing college."""
    if await session.get(College, college_id) is None:
        raise ValidationError("College does not exist", field="college_id")
    await _ensure_unique_department_name(session, college_id, name)

    department = Department(name=name, college_id=college_id)
    session.add(department)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("Department with this name already exists in the college", field="name") from e
    await session.refresh(department)
    logger.info(f"✅ Department created: {department.name} ({college_id})")
    return department


async def get_department(session: AsyncSession, department_id: str) -> Department:
    """Get a department or raise NotFoundError."""
    department = await session.get(Department, department_id)
    if department is None:
        raise NotFoundError("Department not found", resource="department")
    return department


async def list_departments(
    session: AsyncSession,
    page: int = 1,
    limit: int = 10,
    college_id: Optional[str] = None
) -> Tuple[List[Department], int]:
    """List departments, optionally within one college."""
    query = select(Department)
    count_query = select(func.count()).select_from(Department)
    if college_id:
        query = query.where(Department.college_id == college_id)
        count_query = count_query.where(Department.college_id == college_id)

    total = (await session.execute(count_query)).scalar_one()
    result = await session.execute(
        query.order_by(Department.name).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars().all()), total


async def update_department(
    session: AsyncSession,
    department_id: str,
    name: Optional[str] = None,
    college_id: Optional[str] = None
) -> Department:
    """Rename a department or move it to another college."""
    department = await get_department(session, department_id)
    target_college = college_id or department.college_id
    target_name = name or department.name

    if college_id and await session.get(College, college_id) is None:
        raise ValidationError("College does not exist", field="college_id")
    if (target_college, target_name) != (department.college_id, department.name):
        await _ensure_unique_department_name(session, target_college, target_name, exclude_id=department_id)

    department.name = target_name
    department.college_id = target_college
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("Department with this name already exists in the college", field="name") from e
    await session.refresh(department)
    logger.info(f"✅ Department updated: {department.id}")
    return department


async def delete_department(session: AsyncSession, department_id: str) -> None:
    """Delete a department; profiles that referenced it are detached."""
    department = await get_department(session, department_id)
    for model in (Student, Faculty, Admin):
        await session.execute(
            update(model)
            .where(model.department_id == department_id)
            .values(department_id=None)
            .execution_options(synchronize_session="fetch")
        )
    await session.delete(department)
    await session.commit()
    logger.info(f"🗑️ Department deleted: {department_id}")


async def _ensure_department_exists(session: AsyncSession, department_id: Optional[str]) -> None:
    if department_id and await session.get(Department, department_id) is None:
        raise ValidationError("Department does not exist", field="department_id")


# ============================================================================
# Role profiles (shared implementation)
# ============================================================================

async def _ensure_unique_profile_fields(
    session: AsyncSession,
    model: Type[Base],
    fields: Dict[str, Any],
    exclude_user_id: Optional[str] = None
) -> None:
    for field, label in PROFILE_UNIQUE_FIELDS[model].items():
        value = fields.get(field)
        if value is None:
            continue
        query = select(model.user_id).where(getattr(model, field) == value)
        if exclude_user_id:
            query = query.where(model.user_id != exclude_user_id)
        if (await session.execute(query)).first() is not None:
            raise ConflictError(f"{label} already exists", field=field)


def _live_profiles(model: Type[Base]):
    return (
        select(model)
        .join(model.user)
        .where(User.is_deleted.is_(False))
        .options(contains_eager(model.user))
    )


async def _get_profile(session: AsyncSession, model: Type[Base], user_id: str):
    result = await session.execute(
        _live_profiles(model)
        .where(model.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    profile = result.scalars().first()
    if profile is None:
        raise NotFoundError(f"{PROFILE_NAMES[model]} not found", resource=PROFILE_NAMES[model].lower())
    return profile


async def _create_profile(
    session: AsyncSession,
    model: Type[Base],
    email: str,
    name: str,
    password_hash: str,
    **fields
):
    role = PROFILE_ROLES[model]
    label = PROFILE_NAMES[model]
    try:
        await _ensure_department_exists(session, fields.get("department_id"))

        # A revived account keeps its own dormant profile's natural keys
        target = await get_user_by_email(session, email, include_deleted=True)
        if target is not None and target.is_deleted and target.role != role:
            raise ConflictError(
                f"Email belongs to a deleted {target.role.value.lower()} account",
                field="email",
            )
        await _ensure_unique_profile_fields(
            session, model, fields, exclude_user_id=target.id if target is not None else None
        )

        user = await create_user(
            session,
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
            commit=False,
        )

        profile = await session.get(model, user.id)
        if profile is None:
            profile = model(user_id=user.id, **fields)
            session.add(profile)
        else:
            for key, value in fields.items():
                setattr(profile, key, value)

        await session.commit()

    except IntegrityError as e:
        await session.rollback()
        logger.warning(f"⚠️ {label} creation failed (duplicate): {email}")
        raise ConflictError(f"{label} with these details already exists") from e
    except (ConflictError, ValidationError):
        await session.rollback()
        raise

    logger.info(f"✅ {label} created: {email}")
    return await _get_profile(session, model, user.id)


async def _list_profiles(
    session: AsyncSession,
    model: Type[Base],
    page: int,
    limit: int,
    **filters
):
    query = _live_profiles(model)
    count_query = (
        select(func.count())
        .select_from(model)
        .join(model.user)
        .where(User.is_deleted.is_(False))
    )
    for field, value in filters.items():
        if value is None:
            continue
        query = query.where(getattr(model, field) == value)
        count_query = count_query.where(getattr(model, field) == value)

    total = (await session.execute(count_query)).scalar_one()
    result = await session.execute(
        query.order_by(model.created_at.desc(), model.user_id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def _update_profile(
    session: AsyncSession,
    model: Type[Base],
    user_id: str,
    name: Optional[str] = None,
    **fields
):
    profile = await _get_profile(session, model, user_id)
    if "department_id" in fields:
        await _ensure_department_exists(session, fields["department_id"])
    await _ensure_unique_profile_fields(session, model, fields, exclude_user_id=user_id)

    for key, value in fields.items():
        setattr(profile, key, value)
    if name is not None:
        profile.user.name = name
        profile.user.updated_at = utcnow()

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(f"{PROFILE_NAMES[model]} with these details already exists") from e

    logger.info(f"✅ {PROFILE_NAMES[model]} updated: {user_id}")
    return await _get_profile(session, model, user_id)


async def _delete_profile(session: AsyncSession, model: Type[Base], user_id: str) -> None:
    await _get_profile(session, model, user_id)
    await soft_delete_user(session, user_id)
    logger.info(f"🗑️ {PROFILE_NAMES[model]} deleted: {user_id}")


# ============================================================================
# Students
# ============================================================================

async def create_student(
    session: AsyncSession,
    email: str,
    name: str,
    password_hash: str,
    roll_number: str,
    year: int,
    department_id: Optional[str] = None,
    division: Optional[str] = None,
    academic_year: Optional[str] = None,
    prn: Optional[str] = None
) -> Student:
    """Create a student account and profile."""
    return await _create_profile(
        session,
        Student,
        email=email,
        name=name,
        password_hash=password_hash,
        roll_number=roll_number,
        year=year,
        department_id=department_id,
        division=division,
        academic_year=academic_year,
        prn=prn,
    )


async def get_student(session: AsyncSession, user_id: str) -> Student:
    return await _get_profile(session, Student, user_id)


async def list_students(
    session: AsyncSession,
    page: int = 1,
    limit: int = 10,
    department_id: Optional[str] = None,
    year: Optional[int] = None,
    division: Optional[str] = None
) -> Tuple[List[Student], int]:
    return await _list_profiles(
        session, Student, page, limit,
        department_id=department_id, year=year, division=division,
    )


async def update_student(session: AsyncSession, user_id: str, **fields) -> Student:
    return await _update_profile(session, Student, user_id, **fields)


async def delete_student(session: AsyncSession, user_id: str) -> None:
    await _delete_profile(session, Student, user_id)


# ============================================================================
# Faculty
# ============================================================================

async def create_faculty(
    session: AsyncSession,
    email: str,
    name: str,
    password_hash: str,
    employee_id: str,
    department_id: Optional[str] = None,
    designation: Optional[str] = None,
    specialization: Optional[str] = None
) -> Faculty:
    """Create a faculty account and profile."""
    return await _create_profile(
        session,
        Faculty,
        email=email,
        name=name,
        password_hash=password_hash,
        employee_id=employee_id,
        department_id=department_id,
        designation=designation,
        specialization=specialization,
    )


async def get_faculty(session: AsyncSession, user_id: str) -> Faculty:
    return await _get_profile(session, Faculty, user_id)


async def list_faculty(
    session: AsyncSession,
    page: int = 1,
    limit: int = 10,
    department_id: Optional[str] = None,
    designation: Optional[str] = None
) -> Tuple[List[Faculty], int]:
    return await _list_profiles(
        session, Faculty, page, limit,
        department_id=department_id, designation=designation,
    )


async def update_faculty(session: AsyncSession, user_id: str, **fields) -> Faculty:
    return await _update_profile(session, Faculty, user_id, **fields)


async def delete_faculty(session: AsyncSession, user_id: str) -> None:
    await _delete_profile(session, Faculty, user_id)


# ============================================================================
# Admins
# ============================================================================

async def create_admin(
    session: AsyncSession,
    email: str,
    name: str,
    password_hash: str,
    department_id: Optional[str] = None
) -> Admin:
    """Create an admin account and profile."""
    return await _create_profile(
        session,
        Admin,
        email=email,
        name=name,
        password_hash=password_hash,
        department_id=department_id,
    )


async def get_admin(session: AsyncSession, user_id: str) -> Admin:
    return await _get_profile(session, Admin, user_id)


async def list_admins(
    session: AsyncSession,
    page: int = 1,
    limit: int = 10,
    department_id: Optional[str] = None
) -> Tuple[List[Admin], int]:
    return await _list_profiles(session, Admin, page, limit, department_id=department_id)


async def update_admin(session: AsyncSession, user_id: str, **fields) -> Admin:
    return await _update_profile(session, Admin, user_id, **fields)


async def delete_admin(session: AsyncSession, user_id: str) -> None:
    await _delete_profile(session, Admin, user_id)


async def get_dashboard_stats(session: AsyncSession) -> Dict[str, int]:
    """Counts of live accounts per role plus colleges and departments."""
    async def _count_live(model) -> int:
        return (await session.execute(
            select(func.count())
            .select_from(model)
            .join(model.user)
            .where(User.is_deleted.is_(False))
        )).scalar_one()

    total_users = (await session.execute(
        select(func.count()).select_from(User).where(User.is_deleted.is_(False))
    )).scalar_one()
    deleted_users = (await session.execute(
        select(func.count()).select_from(User).where(User.is_deleted.is_(True))
    )).scalar_one()

    return {
        "total_users": total_users,
        "deleted_users": deleted_users,
        "total_students": await _count_live(Student),
        "total_faculty": await _count_live(Faculty),
        "total_admins": await _count_live(Admin),
        "total_colleges": (await session.execute(select(func.count()).select_from(College))).scalar_one(),
        "total_departments": (await session.execute(select(func.count()).select_from(Department))).scalar_one(),
    }


__all__ = [
    'create_college',
    'get_college',
    'list_colleges',
    'update_college',
    'delete_college',
    'create_department',
    'get_department',
    'list_departments',
    'update_department',
    'delete_department',
    'create_student',
    'get_student',
    'list_students',
    'update_student',
    'delete_student',
    'create_faculty',
    'get_faculty',
    'list_faculty',
    'update_faculty',
    'delete_faculty',
    'create_admin',
    'get_admin',
    'list_admins',
    'update_admin',
    'delete_admin',
    'get_dashboard_stats',
]
