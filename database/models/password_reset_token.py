"""
Password Reset Token Model

Stores password reset tokens for email-based password reset flow.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Index

from database.models.base import Base, utcnow, new_id, as_utc


class PasswordResetToken(Base):
    """Single-use password reset token."""

    __tablename__ = "password_reset_tokens"

    id = Column(String(36), primary_key=True, default=new_id)
    token = Column(String(128), unique=True, nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    # Indexes for performance
    __table_args__ = (
        Index('idx_reset_user_used', 'user_id', 'used'),
        Index('idx_reset_expires', 'expires_at'),
    )

    def is_redeemable(self, now: Optional[datetime] = None) -> bool:
        """Unused and not yet expired at ``now``."""
        now = now or utcnow()
        return not self.used and as_utc(self.expires_at) > now

    def mark_used(self, now: Optional[datetime] = None) -> None:
        """One-way transition to used."""
        self.used = True
        self.used_at = now or utcnow()

    def __repr__(self):
        return f"<PasswordResetToken(user_id={self.user_id}, used={self.used})>"
