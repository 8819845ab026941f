"""Notification schemas.

Each notification type carries its own payload model; the ``type`` field is
the discriminator so stored payloads round-trip into the right variant.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from .common import CamelModel, Pagination


class AnswerReceivedPayload(CamelModel):
    type: Literal["answer_received"] = "answer_received"
    question_id: int
    answer_id: int


class AnswerAcceptedPayload(CamelModel):
    type: Literal["answer_accepted"] = "answer_accepted"
    question_id: int
    answer_id: int


class QuestionUpvotedPayload(CamelModel):
    type: Literal["question_upvoted"] = "question_upvoted"
    question_id: int


class AnswerUpvotedPayload(CamelModel):
    type: Literal["answer_upvoted"] = "answer_upvoted"
    question_id: int
    answer_id: int


class SystemAnnouncementPayload(CamelModel):
    type: Literal["system_announcement"] = "system_announcement"
    body: str = Field(..., max_length=1000)


NotificationPayload = Annotated[
    AnswerReceivedPayload
    | AnswerAcceptedPayload
    | QuestionUpvotedPayload
    | AnswerUpvotedPayload
    | SystemAnnouncementPayload,
    Field(discriminator="type"),
]

payload_adapter: TypeAdapter[NotificationPayload] = TypeAdapter(NotificationPayload)


class NotificationResponse(CamelModel):
    id: int
    sender_id: int | None = None
    type: str
    title: str
    message: str
    payload: NotificationPayload
    status: str
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(CamelModel):
    notifications: list[NotificationResponse]
    pagination: Pagination


class UnreadCountResponse(BaseModel):
    count: int
