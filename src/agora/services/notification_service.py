"""Notification emission and inbox management."""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from agora.core.errors import NotFoundError
from agora.db.time import utcnow
from agora.models import Notification, NotificationStatus, NotificationType
from agora.schemas.notification import (
    AnswerAcceptedPayload,
    AnswerReceivedPayload,
    AnswerUpvotedPayload,
    NotificationPayload,
    QuestionUpvotedPayload,
    SystemAnnouncementPayload,
    payload_adapter,
)

from .transactions import transaction

logger = logging.getLogger(__name__)

_TITLES: dict[str, str] = {
    NotificationType.ANSWER_RECEIVED: "New answer to your question",
    NotificationType.ANSWER_ACCEPTED: "Your answer was accepted",
    NotificationType.QUESTION_UPVOTED: "Your question was upvoted",
    NotificationType.ANSWER_UPVOTED: "Your answer was upvoted",
    NotificationType.SYSTEM_ANNOUNCEMENT: "Announcement",
}


def _message_for(payload: NotificationPayload, sender_name: str | None) -> str:
    actor = sender_name or "Someone"
    match payload:
        case AnswerReceivedPayload():
            return f"{actor} answered your question."
        case AnswerAcceptedPayload():
            return f"{actor} accepted your answer."
        case QuestionUpvotedPayload():
            return f"{actor} upvoted your question."
        case AnswerUpvotedPayload():
            return f"{actor} upvoted your answer."
        case SystemAnnouncementPayload(body=body):
            return body
    raise ValueError(f"Unsupported notification payload: {payload!r}")  # pragma: no cover


class NotificationService:
    """Writes and reads notifications for a single database session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def emit(
        self,
        *,
        recipient_id: int,
        payload: NotificationPayload,
        sender_id: int | None = None,
        sender_name: str | None = None,
    ) -> Notification | None:
        """Stage a notification in the caller's transaction.

        Nothing is written when the sender would notify themselves.
        """
        if sender_id is not None and sender_id == recipient_id:
            return None
        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=payload.type,
            title=_TITLES[payload.type],
            message=_message_for(payload, sender_name),
            payload=payload_adapter.dump_python(payload, mode="json"),
            status=NotificationStatus.UNREAD,
        )
        self.db.add(notification)
        logger.debug("Queued %s notification for user %s", payload.type, recipient_id)
        return notification

    def list_for(
        self,
        recipient_id: int,
        *,
        status: NotificationStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Notification], int]:
        """Return one page of the recipient's notifications, newest first, and the total."""
        stmt = select(Notification).where(Notification.recipient_id == recipient_id)
        if status is not None:
            stmt = stmt.where(Notification.status == status)
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(
            stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return list(rows), total

    def unread_count(self, recipient_id: int) -> int:
        return self.db.scalar(
            select(func.count()).where(
                Notification.recipient_id == recipient_id,
                Notification.status == NotificationStatus.UNREAD,
            )
        ) or 0

    def _get_owned(self, notification_id: int, recipient_id: int) -> Notification:
        notification = self.db.scalar(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == recipient_id,
            )
        )
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    def mark_read(self, notification_id: int, recipient_id: int) -> Notification:
        with transaction(self.db):
            notification = self._get_owned(notification_id, recipient_id)
            if notification.status == NotificationStatus.UNREAD:
                notification.status = NotificationStatus.READ
                notification.read_at = utcnow()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, recipient_id: int) -> int:
        """Mark every unread notification as read and return how many changed."""
        with transaction(self.db):
            result = self.db.execute(
                update(Notification)
                .where(
                    Notification.recipient_id == recipient_id,
                    Notification.status == NotificationStatus.UNREAD,
                )
                .values(status=NotificationStatus.READ, read_at=utcnow())
            )
        return result.rowcount or 0

    def delete(self, notification_id: int, recipient_id: int) -> None:
        with transaction(self.db):
            self.db.delete(self._get_owned(notification_id, recipient_id))
