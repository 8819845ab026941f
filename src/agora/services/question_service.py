"""Question lifecycle: asking, reading, editing and soft deletion."""

from __future__ import annotations

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from agora.core.errors import NotAuthorizedError, NotFoundError, ValidationError
from agora.db.time import utcnow
from agora.models import Question, QuestionStatus, Tag, User
from agora.schemas.question import QuestionCreate, QuestionUpdate

from .tag_service import TagService, normalize_tag_name
from .transactions import retry_on_conflict, transaction

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 100

QUESTION_SORTS = {
    "newest": (Question.created_at.desc(), Question.id.desc()),
    "oldest": (Question.created_at, Question.id),
    "score": (Question.score.desc(), Question.created_at.desc()),
    "views": (Question.views.desc(), Question.created_at.desc()),
    "answers": (Question.answer_count.desc(), Question.created_at.desc()),
    "activity": (Question.last_activity_at.desc(), Question.id.desc()),
}

_READABLE_STATUSES = (QuestionStatus.ACTIVE, QuestionStatus.CLOSED)


def slugify(title: str) -> str:
    """Derive a URL slug from a question title."""
    slug = title.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug[:SLUG_MAX_LENGTH].strip("-") or "question"


class QuestionService:
    """Question operations bound to one database session."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.tags = TagService(db)

    # --- Reads ------------------------------------------------------------------------
    def list_questions(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        sort: str = "newest",
        tag: str | None = None,
    ) -> tuple[list[Question], int]:
        """Return one page of active questions and the total number of matches."""
        order_by = QUESTION_SORTS.get(sort)
        if order_by is None:
            raise ValidationError(f"Unsupported sort '{sort}'")
        stmt = select(Question).where(Question.status == QuestionStatus.ACTIVE)
        if tag:
            stmt = stmt.where(Question.tags.any(Tag.name == normalize_tag_name(tag)))
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(*order_by).offset((page - 1) * limit).limit(limit))
        return list(rows.unique()), total

    def get_question(self, question_id: int, *, count_view: bool = False) -> Question:
        """Load a readable question, optionally recording a view."""
        if not count_view:
            return self._get_readable(question_id)

        def _view() -> Question:
            with transaction(self.db):
                question = self._get_readable(question_id)
                question.views += 1
            self.db.refresh(question)
            return question

        return retry_on_conflict(_view)

    # --- Writes -----------------------------------------------------------------------
    def create_question(self, data: QuestionCreate, author: User) -> Question:
        """Ask a question, creating any tags that do not exist yet."""
        with transaction(self.db):
            tags = self.tags.find_or_create_tags(data.tags)
            question = Question(
                title=data.title,
                slug=self._unique_slug(data.title),
                description=data.description,
                difficulty=data.difficulty,
                author_id=author.id,
                tags=tags,
            )
            self.db.add(question)
            TagService.adjust_question_counts(tags, +1)
        self.db.refresh(question)
        logger.info("User %s asked question %s", author.id, question.id)
        return question

    def update_question(self, question_id: int, data: QuestionUpdate, user: User) -> Question:
        def _update() -> Question:
            with transaction(self.db):
                question = self._get_readable(question_id)
                if question.author_id != user.id:
                    raise NotAuthorizedError("Not authorized to update this question")
                if data.title is not None and data.title != question.title:
                    question.title = data.title
                    question.slug = self._unique_slug(data.title, exclude_id=question.id)
                if data.description is not None:
                    question.description = data.description
                if data.difficulty is not None:
                    question.difficulty = data.difficulty
                if data.tags is not None:
                    new_tags = self.tags.find_or_create_tags(data.tags)
                    TagService.adjust_question_counts(question.tags, -1)
                    TagService.adjust_question_counts(new_tags, +1)
                    question.tags = new_tags
                question.last_activity_at = utcnow()
            self.db.refresh(question)
            return question

        return retry_on_conflict(_update)

    def delete_question(self, question_id: int, user: User) -> None:
        """Soft-delete a question (author or staff)."""

        def _delete() -> None:
            with transaction(self.db):
                question = self._get_readable(question_id)
                if question.author_id != user.id and not user.is_staff:
                    raise NotAuthorizedError("Not authorized to delete this question")
                question.status = QuestionStatus.DELETED
                TagService.adjust_question_counts(question.tags, -1)

        retry_on_conflict(_delete)

    def close_question(self, question_id: int, user: User) -> Question:
        """Close a question to new answers (staff only)."""
        if not user.is_staff:
            raise NotAuthorizedError("Moderator privileges required")

        def _close() -> Question:
            with transaction(self.db):
                question = self._get_readable(question_id)
                question.status = QuestionStatus.CLOSED
            self.db.refresh(question)
            return question

        return retry_on_conflict(_close)

    # --- Helpers ----------------------------------------------------------------------
    def _get_readable(self, question_id: int) -> Question:
        question = self.db.get(Question, question_id)
        if question is None or question.status not in _READABLE_STATUSES:
            raise NotFoundError("Question not found")
        return question

    def _unique_slug(self, title: str, *, exclude_id: int | None = None) -> str:
        base = slugify(title)
        slug = base
        counter = 1
        while True:
            stmt = select(Question.id).where(Question.slug == slug)
            if exclude_id is not None:
                stmt = stmt.where(Question.id != exclude_id)
            if self.db.scalar(stmt) is None:
                return slug
            slug = f"{base}-{counter}"
            counter += 1
