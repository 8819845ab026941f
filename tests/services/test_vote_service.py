# mypy: ignore-errors
# tests/services/test_vote_service.py
"""Service-level tests for the vote ledger and score aggregation."""

import random

import pytest
from sqlalchemy import func, select

from agora.core.errors import DuplicateVoteError, NotFoundError, VoteNotFoundError
from agora.models import Vote, VoteTargetType, VoteType
from agora.services.vote_service import VoteService, VoteTally


def _assert_counters_match_ledger(db_session, target, target_type) -> None:
    def _count(vote_type):
        return db_session.scalar(
            select(func.count()).where(
                Vote.target_id == target.id,
                Vote.target_type == target_type,
                Vote.vote_type == vote_type,
                Vote.is_active.is_(True),
            )
        )

    db_session.refresh(target)
    assert target.upvotes == _count(VoteType.UPVOTE)
    assert target.downvotes == _count(VoteType.DOWNVOTE)
    assert target.score == target.upvotes - target.downvotes


def test_counters_track_ledger_through_random_operations(db_session, test_question, make_user) -> None:
    """After any sequence of casts, switches and removals the counters equal the ledger."""
    service = VoteService(db_session)
    voters = [make_user() for _ in range(5)]
    rng = random.Random(1234)

    for _ in range(40):
        voter = rng.choice(voters)
        action = rng.choice(["upvote", "downvote", "remove"])
        try:
            if action == "remove":
                service.remove_vote(voter, test_question.id, VoteTargetType.QUESTION)
            else:
                service.cast_vote(voter, test_question.id, VoteTargetType.QUESTION, action)
        except (DuplicateVoteError, VoteNotFoundError):
            pass
        _assert_counters_match_ledger(db_session, test_question, VoteTargetType.QUESTION)


def test_one_row_per_user_and_target(db_session, test_question, other_user) -> None:
    service = VoteService(db_session)
    service.cast_vote(other_user, test_question.id, "Question", "upvote")
    service.cast_vote(other_user, test_question.id, "Question", "downvote")
    service.cast_vote(other_user, test_question.id, "Question", "upvote")

    rows = db_session.scalar(select(func.count()).select_from(Vote).where(Vote.user_id == other_user.id))
    assert rows == 1


def test_duplicate_vote_leaves_state_unchanged(db_session, test_question, other_user) -> None:
    service = VoteService(db_session)
    service.cast_vote(other_user, test_question.id, "Question", "upvote")

    with pytest.raises(DuplicateVoteError):
        service.cast_vote(other_user, test_question.id, "Question", "upvote")

    db_session.refresh(test_question)
    assert (test_question.upvotes, test_question.score) == (1, 1)


def test_recompute_is_idempotent(db_session, test_answer, other_user, third_user) -> None:
    service = VoteService(db_session)
    service.cast_vote(other_user, test_answer.id, "Answer", "upvote")
    service.cast_vote(third_user, test_answer.id, "Answer", "downvote")

    first = service.recompute("Answer", test_answer.id)
    second = service.recompute("Answer", test_answer.id)
    assert first == second == VoteTally(upvotes=1, downvotes=1)
    assert first.score == 0


def test_recompute_repairs_tampered_counters(db_session, test_question, other_user) -> None:
    service = VoteService(db_session)
    service.cast_vote(other_user, test_question.id, "Question", "upvote")

    test_question.upvotes = 99
    test_question.score = -5
    db_session.commit()

    service.recompute(VoteTargetType.QUESTION, test_question.id)
    db_session.commit()
    db_session.refresh(test_question)
    assert (test_question.upvotes, test_question.downvotes, test_question.score) == (1, 0, 1)


def test_concurrent_insert_defers_to_existing_row(db_session, test_question, other_user) -> None:
    """A unique-index collision returns the row that won the race."""
    winner = Vote(
        user_id=other_user.id,
        target_id=test_question.id,
        target_type=VoteTargetType.QUESTION,
        vote_type=VoteType.DOWNVOTE,
    )
    db_session.add(winner)
    db_session.commit()

    vote, created = VoteService(db_session)._insert_vote(
        other_user.id, test_question.id, VoteTargetType.QUESTION, VoteType.UPVOTE
    )
    assert created is False
    assert vote.id == winner.id
    assert vote.vote_type == VoteType.DOWNVOTE


def test_cast_vote_on_deleted_answer(db_session, test_answer, other_user, third_user) -> None:
    from agora.services.answer_service import AnswerService

    AnswerService(db_session).delete_answer(test_answer.id, other_user)
    with pytest.raises(NotFoundError):
        VoteService(db_session).cast_vote(third_user, test_answer.id, "Answer", "upvote")


def test_get_user_vote(db_session, test_question, other_user) -> None:
    service = VoteService(db_session)
    assert service.get_user_vote(other_user.id, test_question.id, "Question") is None
    service.cast_vote(other_user, test_question.id, "Question", "downvote")
    assert service.get_user_vote(other_user.id, test_question.id, "Question") == VoteType.DOWNVOTE


def test_revoked_vote_cannot_be_removed_or_recast(db_session, test_answer, third_user, moderator) -> None:
    service = VoteService(db_session)
    service.cast_vote(third_user, test_answer.id, "Answer", "upvote")
    vote = service.find_vote(third_user.id, test_answer.id, VoteTargetType.ANSWER)
    service.revoke_vote(vote.id, moderator, "Sock puppet")
    db_session.refresh(test_answer)
    assert test_answer.score == 0

    with pytest.raises(VoteNotFoundError):
        service.remove_vote(third_user, test_answer.id, "Answer")
    with pytest.raises(DuplicateVoteError):
        service.cast_vote(third_user, test_answer.id, "Answer", "upvote")

    db_session.refresh(test_answer)
    assert test_answer.score == 0
    assert db_session.get(Vote, vote.id).is_active is False


def test_switching_a_revoked_vote_keeps_it_inactive(db_session, test_answer, third_user, moderator) -> None:
    service = VoteService(db_session)
    service.cast_vote(third_user, test_answer.id, "Answer", "upvote")
    vote = service.find_vote(third_user.id, test_answer.id, VoteTargetType.ANSWER)
    service.revoke_vote(vote.id, moderator, "Sock puppet")

    service.cast_vote(third_user, test_answer.id, "Answer", "downvote")
    db_session.refresh(test_answer)
    assert (test_answer.upvotes, test_answer.downvotes, test_answer.score) == (0, 0, 0)
    assert service.get_user_vote(third_user.id, test_answer.id, "Answer") is None


@pytest.mark.parametrize("target_type", ["Question", "Answer", "Comment"])
def test_recount_locks_the_target_row(
    db_session, mocker, test_answer, third_user, target_type
) -> None:
    from agora.schemas.answer import CommentCreate
    from agora.services import comment_service
    from agora.services.vote_service import TARGET_MODELS

    targets = {
        "Question": test_answer.question,
        "Answer": test_answer,
        "Comment": comment_service.create_comment(
            db_session, test_answer.id, CommentCreate(content="Worth a closer look."), third_user
        ),
    }
    target = targets[target_type]
    spy = mocker.spy(db_session, "get")

    VoteService(db_session).cast_vote(third_user, target.id, target_type, "upvote")

    model = TARGET_MODELS[VoteTargetType(target_type)]
    spy.assert_any_call(model, target.id, with_for_update=True, populate_existing=True)
    db_session.refresh(target)
    assert target.upvotes == 1
