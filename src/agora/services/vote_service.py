"""Vote ledger and score aggregation.

The ledger holds one row per (user, target, target type). After every
ledger mutation the target's counters are rebuilt from scratch by counting
active votes, and the ledger write and the recount commit in the same
transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora.core.errors import DuplicateVoteError, NotAuthorizedError, NotFoundError, VoteNotFoundError
from agora.db.time import utcnow
from agora.models import (
    Answer,
    AnswerStatus,
    Comment,
    Question,
    QuestionStatus,
    User,
    Vote,
    VoteTargetType,
    VoteType,
)
from agora.schemas.notification import AnswerUpvotedPayload, QuestionUpvotedPayload

from .notification_service import NotificationService
from .transactions import retry_on_conflict, transaction

logger = logging.getLogger(__name__)

VoteTarget = Question | Answer | Comment

TARGET_MODELS: dict[VoteTargetType, type[VoteTarget]] = {
    VoteTargetType.QUESTION: Question,
    VoteTargetType.ANSWER: Answer,
    VoteTargetType.COMMENT: Comment,
}


@dataclass(frozen=True)
class VoteTally:
    """Counters written onto a target by :meth:`VoteService.recompute`."""

    upvotes: int
    downvotes: int

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


def _is_votable(target: VoteTarget) -> bool:
    if isinstance(target, Question):
        return target.status in (QuestionStatus.ACTIVE, QuestionStatus.CLOSED)
    if isinstance(target, Answer):
        return target.status == AnswerStatus.ACTIVE
    return not target.is_deleted


class VoteService:
    """Vote ledger operations bound to one database session."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.notifications = NotificationService(db)

    # --- Ledger -----------------------------------------------------------------------
    def cast_vote(
        self,
        user: User,
        target_id: int,
        target_type: VoteTargetType | str,
        vote_type: VoteType | str,
    ) -> dict[str, str]:
        """Record ``user``'s vote, switching its type if one already exists.

        Raises:
            NotFoundError: If the target does not exist or is not visible.
            DuplicateVoteError: If the user already voted the same way.
        """
        target_type = VoteTargetType(target_type)
        vote_type = VoteType(vote_type)
        return retry_on_conflict(
            lambda: self._cast_vote(user, target_id, target_type, vote_type)
        )

    def _cast_vote(
        self,
        user: User,
        target_id: int,
        target_type: VoteTargetType,
        vote_type: VoteType,
    ) -> dict[str, str]:
        with transaction(self.db):
            target = self._get_target(target_type, target_id)
            vote = self.find_vote(user.id, target_id, target_type)
            created = False
            if vote is None:
                vote, created = self._insert_vote(user.id, target_id, target_type, vote_type)

            previous = None if created else vote.vote_type
            if not created:
                if previous == vote_type:
                    raise DuplicateVoteError()
                vote.vote_type = vote_type
                logger.info(
                    "User %s switched vote on %s %s from %s to %s",
                    user.id, target_type, target_id, previous, vote_type,
                )

            self.recompute(target_type, target_id)
            if vote_type == VoteType.UPVOTE:
                self._notify_upvote(user, target)
        return {"message": "Vote recorded successfully"}

    def remove_vote(
        self,
        user: User,
        target_id: int,
        target_type: VoteTargetType | str,
    ) -> dict[str, str]:
        """Delete ``user``'s vote on the target and recount its metrics.

        Raises:
            VoteNotFoundError: If the user has no active vote on the target.
                Revoked votes are kept so that a moderator's decision holds.
        """
        target_type = VoteTargetType(target_type)

        def _remove() -> dict[str, str]:
            with transaction(self.db):
                vote = self.find_vote(user.id, target_id, target_type)
                if vote is None or not vote.is_active:
                    raise VoteNotFoundError()
                self.db.delete(vote)
                self.recompute(target_type, target_id)
            return {"message": "Vote removed successfully"}

        return retry_on_conflict(_remove)

    def revoke_vote(self, vote_id: int, moderator: User, reason: str) -> dict[str, str]:
        """Stop a vote from counting without deleting it (moderators only)."""
        if not moderator.is_staff:
            raise NotAuthorizedError("Moderator privileges required")

        def _revoke() -> dict[str, str]:
            with transaction(self.db):
                vote = self.db.get(Vote, vote_id)
                if vote is None:
                    raise VoteNotFoundError()
                if vote.is_active:
                    vote.is_active = False
                    vote.revoked_at = utcnow()
                    vote.revoked_reason = reason
                    self.recompute(VoteTargetType(vote.target_type), vote.target_id)
                    logger.info("Moderator %s revoked vote %s: %s", moderator.id, vote_id, reason)
            return {"message": "Vote revoked successfully"}

        return retry_on_conflict(_revoke)

    def find_vote(
        self,
        user_id: int,
        target_id: int,
        target_type: VoteTargetType,
    ) -> Vote | None:
        return self.db.scalar(
            select(Vote).where(
                Vote.user_id == user_id,
                Vote.target_id == target_id,
                Vote.target_type == target_type,
            )
        )

    def get_user_vote(
        self,
        user_id: int,
        target_id: int,
        target_type: VoteTargetType | str,
    ) -> VoteType | None:
        """Return the active vote type the user holds on a target, if any."""
        vote = self.find_vote(user_id, target_id, VoteTargetType(target_type))
        if vote is None or not vote.is_active:
            return None
        return VoteType(vote.vote_type)

    # --- Aggregation ------------------------------------------------------------------
    def recompute(self, target_type: VoteTargetType | str, target_id: int) -> VoteTally:
        """Rewrite a target's counters from the active rows of the ledger.

        Idempotent: with no intervening ledger change, repeated calls write
        the same values. The target row is locked before counting so that
        concurrent recounts of one target serialize.
        """
        target_type = VoteTargetType(target_type)
        self.db.flush()
        target = self._lock_target(target_type, target_id)
        rows = self.db.execute(
            select(Vote.vote_type, func.count())
            .where(
                Vote.target_id == target_id,
                Vote.target_type == target_type,
                Vote.is_active.is_(True),
            )
            .group_by(Vote.vote_type)
        ).all()
        counts = {vote_type: count for vote_type, count in rows}
        tally = VoteTally(
            upvotes=counts.get(VoteType.UPVOTE, 0),
            downvotes=counts.get(VoteType.DOWNVOTE, 0),
        )

        target.upvotes = tally.upvotes
        target.downvotes = tally.downvotes
        target.score = tally.score
        return tally

    # --- Helpers ----------------------------------------------------------------------
    def _lock_target(self, target_type: VoteTargetType, target_id: int) -> VoteTarget:
        target = self.db.get(
            TARGET_MODELS[target_type],
            target_id,
            with_for_update=True,
            populate_existing=True,
        )
        if target is None:
            raise NotFoundError(f"{target_type} not found")
        return target

    def _get_target(self, target_type: VoteTargetType, target_id: int) -> VoteTarget:
        target = self.db.get(TARGET_MODELS[target_type], target_id)
        if target is None or not _is_votable(target):
            raise NotFoundError(f"{target_type} not found")
        return target

    def _insert_vote(
        self,
        user_id: int,
        target_id: int,
        target_type: VoteTargetType,
        vote_type: VoteType,
    ) -> tuple[Vote, bool]:
        """Insert a ledger row, deferring to the unique index on a race.

        Returns the row and whether this call created it. When a concurrent
        request inserted the same (user, target, target type) first, the
        savepoint is rolled back and the winning row is returned instead.
        """
        vote = Vote(
            user_id=user_id,
            target_id=target_id,
            target_type=target_type,
            vote_type=vote_type,
        )
        try:
            with self.db.begin_nested():
                self.db.add(vote)
        except IntegrityError:
            existing = self.find_vote(user_id, target_id, target_type)
            if existing is None:
                raise
            logger.info("Concurrent vote by user %s on %s %s", user_id, target_type, target_id)
            return existing, False
        return vote, True

    def _notify_upvote(self, voter: User, target: VoteTarget) -> None:
        if isinstance(target, Question):
            self.notifications.emit(
                recipient_id=target.author_id,
                sender_id=voter.id,
                sender_name=voter.username,
                payload=QuestionUpvotedPayload(question_id=target.id),
            )
        elif isinstance(target, Answer):
            self.notifications.emit(
                recipient_id=target.author_id,
                sender_id=voter.id,
                sender_name=voter.username,
                payload=AnswerUpvotedPayload(question_id=target.question_id, answer_id=target.id),
            )
