"""User account model."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, DateTime, Boolean, Enum, Index

from .base import Base, utcnow, new_id


class UserRole(str, enum.Enum):
    """User role enum."""
    STUDENT = "STUDENT"
    FACULTY = "FACULTY"
    ADMIN = "ADMIN"


class User(Base):
    """
    User account with soft-delete lifecycle.

    A user is either Active or Deleted. ``soft_delete``, ``restore`` and
    ``revive`` are the only transitions between the two states. There is one
    physical row per email: registering a deleted user's email revives that row.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)

    # Bcrypt hash, never serialized
    password_hash = Column(String(255), nullable=False)

    role = Column(
        Enum(UserRole, values_callable=lambda x: [e.value for e in x], name="user_role"),
        nullable=False,
        default=UserRole.STUDENT,
    )

    # Soft delete
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_users_role_deleted', 'role', 'is_deleted'),
    )

    @property
    def is_active(self) -> bool:
        return not self.is_deleted

    def soft_delete(self, now: Optional[datetime] = None) -> None:
        """Active -> Deleted."""
        if self.is_deleted:
            raise ValueError("User is already deleted")
        self.is_deleted = True
        self.deleted_at = now or utcnow()

    def restore(self) -> None:
        """Deleted -> Active."""
        if not self.is_deleted:
            raise ValueError("User is not deleted")
        self.is_deleted = False
        self.deleted_at = None

    def revive(self, name: str, password_hash: str) -> None:
        """Deleted -> Active for a re-registration: same row and role, fresh credentials."""
        self.restore()
        self.name = name
        self.password_hash = password_hash

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role}, is_deleted={self.is_deleted})>"
