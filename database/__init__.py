"""
Database Package

Organized by purpose:
- core: Engine and session management
- models: SQLAlchemy models (users, reset tokens, academic records)
- operations: High-level database operations
"""

from .core import Database, init_database

from .models import (
    Base,
    User,
    UserRole,
    PasswordResetToken,
    College,
    Department,
    Student,
    Faculty,
    Admin,
)

__all__ = [
    'Database',
    'init_database',
    'Base',
    'User',
    'UserRole',
    'PasswordResetToken',
    'College',
    'Department',
    'Student',
    'Faculty',
    'Admin',
]
