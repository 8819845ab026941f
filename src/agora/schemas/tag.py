"""Tag-related Pydantic schemas."""

from datetime import datetime

from .common import CamelModel, Pagination


class TagSummary(CamelModel):
    id: int
    name: str
    slug: str


class TagResponse(TagSummary):
    """Full tag details."""

    description: str | None = None
    question_count: int
    status: str
    created_at: datetime


class TagListResponse(CamelModel):
    tags: list[TagResponse]
    pagination: Pagination
