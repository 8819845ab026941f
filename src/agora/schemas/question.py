"""Question-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from agora.models import Difficulty

from .common import CamelModel, Pagination
from .tag import TagSummary
from .user import UserSummary

MIN_TAGS = 1
MAX_TAGS = 5


def _clean_tags(tags: list[str]) -> list[str]:
    cleaned = [tag.strip() for tag in tags]
    if any(not tag for tag in cleaned):
        raise ValueError("Tag names cannot be blank")
    return cleaned


class QuestionCreate(BaseModel):
    """Schema for asking a new question."""

    title: str = Field(..., min_length=10, max_length=200)
    description: str = Field(..., min_length=20, max_length=10000)
    tags: list[str] = Field(..., min_length=MIN_TAGS, max_length=MAX_TAGS)
    difficulty: Difficulty = Difficulty.INTERMEDIATE

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        return value.strip()

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value)


class QuestionUpdate(BaseModel):
    """Partial question update; only the author may apply it."""

    title: str | None = Field(None, min_length=10, max_length=200)
    description: str | None = Field(None, min_length=20, max_length=10000)
    tags: list[str] | None = Field(None, min_length=MIN_TAGS, max_length=MAX_TAGS)
    difficulty: Difficulty | None = None

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_tags(value) if value is not None else None


class QuestionMetrics(CamelModel):
    views: int
    upvotes: int
    downvotes: int
    score: int
    answer_count: int


class QuestionResponse(CamelModel):
    """Schema for question information returned by the API."""

    id: int
    title: str
    slug: str
    description: str
    author: UserSummary
    tags: list[TagSummary]
    difficulty: Difficulty
    accepted_answer: int | None = None
    metrics: QuestionMetrics
    status: str
    created_at: datetime
    updated_at: datetime
    last_activity_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _collect_metrics(cls, data: object) -> object:
        if isinstance(data, dict):
            return data
        return {
            "id": data.id,
            "title": data.title,
            "slug": data.slug,
            "description": data.description,
            "author": data.author,
            "tags": list(data.tags),
            "difficulty": data.difficulty,
            "accepted_answer": data.accepted_answer_id,
            "metrics": {
                "views": data.views,
                "upvotes": data.upvotes,
                "downvotes": data.downvotes,
                "score": data.score,
                "answer_count": data.answer_count,
            },
            "status": data.status,
            "created_at": data.created_at,
            "updated_at": data.updated_at,
            "last_activity_at": data.last_activity_at,
        }


class QuestionListResponse(CamelModel):
    questions: list[QuestionResponse]
    pagination: Pagination
