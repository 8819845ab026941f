"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exchanging camelCase keys with clients.

    Field names stay snake_case in Python; ``populate_by_name`` lets services
    and tests build instances with either spelling.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by mutation endpoints."""

    message: str


class Pagination(BaseModel):
    """Offset pagination block attached to list responses."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> Pagination:
        """Compute the page count for ``total`` rows."""
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
