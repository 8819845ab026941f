# mypy: ignore-errors
# tests/services/test_transactions.py
"""Tests for commit/rollback handling and optimistic-concurrency retries."""

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.orm.exc import StaleDataError

from agora.core.errors import ConflictError, NotFoundError
from agora.models import Question, Tag
from agora.services.answer_service import AnswerService
from agora.services.transactions import retry_on_conflict, transaction


def _bump_version_behind_session(db_session, question) -> None:
    """Simulate another writer committing a change to ``question``."""
    db_session.refresh(question)
    table = Question.__table__
    db_session.execute(
        update(table).where(table.c.id == question.id).values(version=table.c.version + 1)
    )


def test_stale_version_becomes_conflict(db_session) -> None:
    with pytest.raises(ConflictError):
        with transaction(db_session):
            db_session.add(Tag(name="orphan", slug="orphan"))
            db_session.flush()
            raise StaleDataError("question version changed")

    assert db_session.scalar(select(func.count()).select_from(Tag).where(Tag.name == "orphan")) == 0


def test_other_errors_roll_back_and_propagate(db_session) -> None:
    with pytest.raises(NotFoundError):
        with transaction(db_session):
            db_session.add(Tag(name="orphan", slug="orphan"))
            db_session.flush()
            raise NotFoundError("Question not found")

    assert db_session.scalar(select(func.count()).select_from(Tag).where(Tag.name == "orphan")) == 0


def test_retry_runs_once_more_after_conflict(mocker) -> None:
    operation = mocker.Mock(side_effect=[ConflictError(), "done"])
    assert retry_on_conflict(operation) == "done"
    assert operation.call_count == 2


def test_retry_gives_up_after_second_conflict(mocker) -> None:
    operation = mocker.Mock(side_effect=ConflictError())
    with pytest.raises(ConflictError):
        retry_on_conflict(operation)
    assert operation.call_count == 2


def test_retry_does_not_repeat_other_errors(mocker) -> None:
    operation = mocker.Mock(side_effect=NotFoundError())
    with pytest.raises(NotFoundError):
        retry_on_conflict(operation)
    assert operation.call_count == 1


def test_acceptance_retries_after_concurrent_question_update(
    db_session, mocker, test_user, test_question, test_answer
) -> None:
    """A stale question version fails the first attempt; the retry succeeds."""
    service = AnswerService(db_session)
    spy = mocker.spy(service, "_accept")
    _bump_version_behind_session(db_session, test_question)

    assert service.accept_answer(test_answer.id, test_user) == {"message": "Answer accepted successfully"}
    assert spy.call_count == 2

    db_session.refresh(test_question)
    db_session.refresh(test_answer)
    assert test_question.accepted_answer_id == test_answer.id
    assert test_answer.is_accepted is True
