"""In-app notification model."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from agora.db.session import Base
from agora.db.time import utcnow


class NotificationType(StrEnum):
    ANSWER_RECEIVED = "answer_received"
    ANSWER_ACCEPTED = "answer_accepted"
    QUESTION_UPVOTED = "question_upvoted"
    ANSWER_UPVOTED = "answer_upvoted"
    SYSTEM_ANNOUNCEMENT = "system_announcement"


class NotificationStatus(StrEnum):
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"


class Notification(Base):
    """Notification delivered to a single recipient.

    ``payload`` holds the per-type fields; its shape is validated by
    :data:`agora.schemas.notification.NotificationPayload` on write and read.
    """

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_recipient_status", "recipient_id", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_id: Mapped[int] = mapped_column(
        ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int | None] = mapped_column(
        ForeignKey("user_account.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=NotificationStatus.UNREAD
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
