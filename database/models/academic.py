"""
Academic records: colleges, departments and role-specific user profiles.

Profiles extend a User 1:1 and share its primary key. They have no lifecycle
of their own and are only visible while the owning user is not deleted.
"""

from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow, new_id


class College(Base):
    """College (tenant) record."""

    __tablename__ = "colleges"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), unique=True, nullable=False)
    address = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<College(id={self.id}, name={self.name})>"


class Department(Base):
    """Department within a college."""

    __tablename__ = "departments"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    college_id = Column(String(36), ForeignKey("colleges.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('college_id', 'name', name='uq_department_college_name'),
    )

    def __repr__(self):
        return f"<Department(id={self.id}, name={self.name}, college_id={self.college_id})>"


class Student(Base):
    """Student profile."""

    __tablename__ = "students"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    roll_number = Column(String(50), unique=True, nullable=False)
    prn = Column(String(50), unique=True, nullable=True)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    year = Column(Integer, nullable=False)
    division = Column(String(20), nullable=True)
    academic_year = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User")

    __table_args__ = (
        Index('idx_students_department_year', 'department_id', 'year'),
    )

    def __repr__(self):
        return f"<Student(user_id={self.user_id}, roll_number={self.roll_number})>"


class Faculty(Base):
    """Faculty profile."""

    __tablename__ = "faculty"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    employee_id = Column(String(50), unique=True, nullable=False)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    designation = Column(String(100), nullable=True)
    specialization = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User")

    def __repr__(self):
        return f"<Faculty(user_id={self.user_id}, employee_id={self.employee_id})>"


class Admin(Base):
    """Admin profile."""

    __tablename__ = "admins"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User")

    def __repr__(self):
        return f"<Admin(user_id={self.user_id})>"
