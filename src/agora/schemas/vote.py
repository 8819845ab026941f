"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field

from agora.models import VoteTargetType, VoteType

from .common import CamelModel


class VoteCreate(CamelModel):
    """Schema for casting or switching a vote."""

    target: int = Field(..., description="Identifier of the question, answer or comment")
    target_type: VoteTargetType
    vote_type: VoteType


class VoteRevoke(BaseModel):
    """Moderator request to stop a vote from counting."""

    reason: str = Field(..., min_length=1, max_length=200)


class MyVoteResponse(CamelModel):
    """The caller's current vote on a target, if any."""

    vote_type: VoteType | None = None
