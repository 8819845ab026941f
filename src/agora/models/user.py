"""SQLAlchemy models for community members."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agora.db.session import Base
from agora.db.time import utcnow


class UserRole(StrEnum):
    """Roles granting progressively more permissions."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class UserStatus(StrEnum):
    """Account lifecycle states; only active accounts may authenticate."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class User(Base):
    """A registered community member."""

    __tablename__ = "user_account"
    __table_args__ = (
        CheckConstraint("reputation >= 0", name="ck_user_reputation_non_negative"),
        CheckConstraint("role IN ('user', 'moderator', 'admin')", name="ck_user_role"),
        CheckConstraint("status IN ('active', 'suspended', 'banned')", name="ck_user_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    reputation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=UserRole.USER)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=UserStatus.ACTIVE)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def is_active(self) -> bool:
        """Return True if the account may authenticate."""
        return self.status == UserStatus.ACTIVE

    @property
    def is_staff(self) -> bool:
        """Return True for moderators and admins."""
        return self.role in (UserRole.MODERATOR, UserRole.ADMIN)
