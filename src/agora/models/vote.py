"""Vote ledger model."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from agora.db.session import Base
from agora.db.time import utcnow


class VoteTargetType(StrEnum):
    """Entities that can receive votes; values match the public API."""

    QUESTION = "Question"
    ANSWER = "Answer"
    COMMENT = "Comment"


class VoteType(StrEnum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class Vote(Base):
    """One row per (user, target, target type).

    Switching between upvote and downvote updates the row in place; removing a
    vote deletes it. Moderators may revoke a vote instead, which keeps the
    row for auditing but excludes it from score aggregation.
    """

    __tablename__ = "vote"
    __table_args__ = (
        # The store, not the application, guarantees one vote per user and target.
        UniqueConstraint("user_id", "target_id", "target_type", name="uq_vote_user_target"),
        CheckConstraint("vote_type IN ('upvote', 'downvote')", name="ck_vote_type"),
        CheckConstraint(
            "target_type IN ('Question', 'Answer', 'Comment')",
            name="ck_vote_target_type",
        ),
        CheckConstraint("weight BETWEEN 1 AND 10", name="ck_vote_weight"),
        Index("ix_vote_target", "target_id", "target_type", "vote_type"),
        Index("ix_vote_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    # Polymorphic reference; target_type selects the table.
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    target_type: Mapped[str] = mapped_column(String(16), nullable=False)
    vote_type: Mapped[str] = mapped_column(String(16), nullable=False)

    # Stored for future reputation models; aggregation counts rows.
    weight: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
