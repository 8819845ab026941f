"""Answer and comment Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from .common import CamelModel
from .user import UserSummary


class AnswerCreate(BaseModel):
    """Schema for posting an answer."""

    question: int = Field(..., description="Identifier of the question being answered")
    content: str = Field(..., min_length=20, max_length=15000)


class AnswerUpdate(BaseModel):
    content: str = Field(..., min_length=20, max_length=15000)


class AnswerMetrics(CamelModel):
    upvotes: int
    downvotes: int
    score: int
    comment_count: int


class AnswerResponse(CamelModel):
    """Schema for answer information returned by the API."""

    id: int
    content: str
    author: UserSummary
    question: int
    metrics: AnswerMetrics
    is_accepted: bool
    accepted_at: datetime | None = None
    status: str
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _collect_metrics(cls, data: object) -> object:
        if isinstance(data, dict):
            return data
        return {
            "id": data.id,
            "content": data.content,
            "author": data.author,
            "question": data.question_id,
            "metrics": {
                "upvotes": data.upvotes,
                "downvotes": data.downvotes,
                "score": data.score,
                "comment_count": data.comment_count,
            },
            "is_accepted": data.is_accepted,
            "accepted_at": data.accepted_at,
            "status": data.status,
            "created_at": data.created_at,
            "updated_at": data.updated_at,
        }


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(CamelModel):
    id: int
    answer_id: int
    author: UserSummary
    content: str
    upvotes: int
    downvotes: int
    score: int
    created_at: datetime
