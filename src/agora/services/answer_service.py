"""Answers, answer acceptance and answer-count maintenance."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from agora.core.errors import NotAuthorizedError, NotFoundError, ValidationError
from agora.db.time import utcnow
from agora.models import Answer, AnswerStatus, Question, QuestionStatus, User
from agora.schemas.answer import AnswerCreate, AnswerUpdate
from agora.schemas.notification import AnswerAcceptedPayload, AnswerReceivedPayload

from .notification_service import NotificationService
from .transactions import retry_on_conflict, transaction

logger = logging.getLogger(__name__)


class AnswerService:
    """Answer operations bound to one database session."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.notifications = NotificationService(db)

    # --- Reads ------------------------------------------------------------------------
    def get_answer(self, answer_id: int) -> Answer:
        answer = self.db.get(Answer, answer_id)
        if answer is None or answer.status != AnswerStatus.ACTIVE:
            raise NotFoundError("Answer not found")
        return answer

    def list_for_question(self, question_id: int) -> list[Answer]:
        """Return active answers, the accepted one first, then by score."""
        return list(
            self.db.scalars(
                select(Answer)
                .where(Answer.question_id == question_id, Answer.status == AnswerStatus.ACTIVE)
                .order_by(Answer.is_accepted.desc(), Answer.score.desc(), Answer.created_at)
            )
        )

    # --- Writes -----------------------------------------------------------------------
    def create_answer(self, data: AnswerCreate, author: User) -> Answer:
        """Post an answer and bump the question's answer count in one transaction."""

        def _create() -> Answer:
            with transaction(self.db):
                question = self._get_question(data.question)
                if question.status == QuestionStatus.CLOSED:
                    raise ValidationError("Question is closed to new answers")
                answer = Answer(
                    content=data.content,
                    author_id=author.id,
                    question_id=question.id,
                )
                self.db.add(answer)
                question.answer_count += 1
                question.last_activity_at = utcnow()
                self.db.flush()
                self.notifications.emit(
                    recipient_id=question.author_id,
                    sender_id=author.id,
                    sender_name=author.username,
                    payload=AnswerReceivedPayload(question_id=question.id, answer_id=answer.id),
                )
            self.db.refresh(answer)
            return answer

        return retry_on_conflict(_create)

    def update_answer(self, answer_id: int, data: AnswerUpdate, user: User) -> Answer:
        with transaction(self.db):
            answer = self.get_answer(answer_id)
            if answer.author_id != user.id:
                raise NotAuthorizedError("Not authorized to update this answer")
            answer.content = data.content
        self.db.refresh(answer)
        return answer

    def delete_answer(self, answer_id: int, user: User) -> None:
        """Soft-delete an answer and decrement the question's answer count.

        Deleting the accepted answer also clears the question's acceptance.
        """

        def _delete() -> None:
            with transaction(self.db):
                answer = self.get_answer(answer_id)
                if answer.author_id != user.id and not user.is_staff:
                    raise NotAuthorizedError("Not authorized to delete this answer")
                question = self.db.get(Question, answer.question_id)
                answer.status = AnswerStatus.DELETED
                if question is not None:
                    question.answer_count = max(question.answer_count - 1, 0)
                    if answer.is_accepted or question.accepted_answer_id == answer.id:
                        question.accepted_answer_id = None
                answer.is_accepted = False
                answer.accepted_at = None

        retry_on_conflict(_delete)

    # --- Acceptance -------------------------------------------------------------------
    def accept_answer(self, answer_id: int, requester: User) -> dict[str, str]:
        """Mark ``answer_id`` as the question's single accepted answer.

        Clearing the previous acceptance, flagging the new answer and
        pointing the question at it commit together. The question's
        version column makes a concurrent acceptance of another answer
        fail with :class:`ConflictError`; the operation is retried once
        before the conflict reaches the caller.

        Raises:
            NotFoundError: If the answer or its question is missing.
            NotAuthorizedError: If ``requester`` did not ask the question.
        """
        return retry_on_conflict(lambda: self._accept(answer_id, requester))

    def _accept(self, answer_id: int, requester: User) -> dict[str, str]:
        with transaction(self.db):
            answer = self.get_answer(answer_id)
            question = self._get_question(answer.question_id)
            if question.author_id != requester.id:
                raise NotAuthorizedError("Only question author can accept answers")

            if answer.is_accepted and question.accepted_answer_id == answer.id:
                return {"message": "Answer accepted successfully"}

            self.db.execute(
                update(Answer)
                .where(Answer.question_id == question.id, Answer.id != answer.id)
                .values(is_accepted=False, accepted_at=None)
                .execution_options(synchronize_session="fetch")
            )
            answer.is_accepted = True
            answer.accepted_at = utcnow()
            question.accepted_answer_id = answer.id
            question.last_activity_at = utcnow()
            self.notifications.emit(
                recipient_id=answer.author_id,
                sender_id=requester.id,
                sender_name=requester.username,
                payload=AnswerAcceptedPayload(question_id=question.id, answer_id=answer.id),
            )
            logger.info("Answer %s accepted for question %s", answer.id, question.id)
        return {"message": "Answer accepted successfully"}

    def unaccept_answer(self, answer_id: int, requester: User) -> dict[str, str]:
        """Withdraw acceptance so the question has no accepted answer."""

        def _unaccept() -> dict[str, str]:
            with transaction(self.db):
                answer = self.get_answer(answer_id)
                question = self._get_question(answer.question_id)
                if question.author_id != requester.id:
                    raise NotAuthorizedError("Only question author can unaccept answers")
                if not answer.is_accepted:
                    raise ValidationError("Answer is not accepted")
                answer.is_accepted = False
                answer.accepted_at = None
                question.accepted_answer_id = None
            return {"message": "Answer unaccepted successfully"}

        return retry_on_conflict(_unaccept)

    def _get_question(self, question_id: int) -> Question:
        question = self.db.get(Question, question_id)
        if question is None or question.status not in (
            QuestionStatus.ACTIVE,
            QuestionStatus.CLOSED,
        ):
            raise NotFoundError("Question not found")
        return question
