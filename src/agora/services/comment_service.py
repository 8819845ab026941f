"""Comments on answers."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from agora.core.errors import NotAuthorizedError, NotFoundError
from agora.models import Answer, AnswerStatus, Comment, User
from agora.schemas.answer import CommentCreate

from .transactions import transaction


def _get_active_answer(db: Session, answer_id: int) -> Answer:
    answer = db.get(Answer, answer_id)
    if answer is None or answer.status != AnswerStatus.ACTIVE:
        raise NotFoundError("Answer not found")
    return answer


def list_comments(db: Session, answer_id: int) -> list[Comment]:
    """Return visible comments on an answer in posting order."""
    _get_active_answer(db, answer_id)
    return list(
        db.scalars(
            select(Comment)
            .where(Comment.answer_id == answer_id, Comment.is_deleted.is_(False))
            .order_by(Comment.created_at, Comment.id)
        )
    )


def create_comment(db: Session, answer_id: int, data: CommentCreate, author: User) -> Comment:
    """Attach a comment to an answer and bump its comment count."""
    with transaction(db):
        answer = _get_active_answer(db, answer_id)
        comment = Comment(answer_id=answer.id, author_id=author.id, content=data.content)
        db.add(comment)
        answer.comment_count += 1
    db.refresh(comment)
    return comment


def delete_comment(db: Session, comment_id: int, user: User) -> None:
    """Hide a comment; only its author or staff may do so."""
    with transaction(db):
        comment = db.get(Comment, comment_id)
        if comment is None or comment.is_deleted:
            raise NotFoundError("Comment not found")
        if comment.author_id != user.id and not user.is_staff:
            raise NotAuthorizedError("Not authorized to delete this comment")
        comment.is_deleted = True
        answer = db.get(Answer, comment.answer_id)
        if answer is not None:
            answer.comment_count = max(answer.comment_count - 1, 0)
