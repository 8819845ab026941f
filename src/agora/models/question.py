"""SQLAlchemy models for questions and their tag links."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agora.db.session import Base
from agora.db.time import utcnow

if TYPE_CHECKING:
    from .tag import Tag
    from .user import User


class QuestionStatus(StrEnum):
    """Question lifecycle; only ``active`` questions appear in listings."""

    ACTIVE = "active"
    CLOSED = "closed"
    DELETED = "deleted"
    DUPLICATE = "duplicate"


class Difficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


question_tag = Table(
    "question_tag",
    Base.metadata,
    Column("question_id", ForeignKey("question.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tag.id", ondelete="CASCADE"), primary_key=True),
)


class Question(Base):
    """A question asked by a user.

    ``upvotes``/``downvotes``/``score`` are written only by the vote
    aggregator and ``answer_count`` only by the answer service; none of them
    are accepted from clients.
    """

    __tablename__ = "question"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'closed', 'deleted', 'duplicate')",
            name="ck_question_status",
        ),
        CheckConstraint("answer_count >= 0", name="ck_question_answer_count"),
        Index("ix_question_status_activity", "status", "last_activity_at"),
        Index("ix_question_score", "score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(
        ForeignKey("user_account.id"), nullable=False, index=True
    )
    difficulty: Mapped[str] = mapped_column(
        String(16), nullable=False, default=Difficulty.INTERMEDIATE
    )
    accepted_answer_id: Mapped[int | None] = mapped_column(
        ForeignKey("answer.id", use_alter=True, name="fk_question_accepted_answer"),
        nullable=True,
    )
    duplicate_of_id: Mapped[int | None] = mapped_column(
        ForeignKey("question.id"), nullable=True
    )

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=QuestionStatus.ACTIVE)
    # Optimistic concurrency counter; every UPDATE checks and bumps it.
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    author: Mapped[User] = relationship("User", lazy="joined")
    tags: Mapped[list[Tag]] = relationship("Tag", secondary=question_tag, lazy="selectin")

    __mapper_args__ = {"version_id_col": version}
