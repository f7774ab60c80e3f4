"""
Database Models Package

Organized by purpose:
- base: Shared SQLAlchemy base and helpers
- user: User accounts and roles
- password_reset_token: Single-use reset tokens
- academic: Colleges, departments and role profiles
"""

from .base import Base, utcnow, as_utc, new_id

from .user import User, UserRole
from .password_reset_token import PasswordResetToken
from .academic import College, Department, Student, Faculty, Admin


__all__ = [
    # Base
    'Base',
    'utcnow',
    'as_utc',
    'new_id',

    # Accounts
    'User',
    'UserRole',
    'PasswordResetToken',

    # Academic records
    'College',
    'Department',
    'Student',
    'Faculty',
    'Admin',
]
