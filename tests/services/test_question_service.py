# mypy: ignore-errors
# tests/services/test_question_service.py
"""Service-level tests for questions."""

import pytest

from agora.core.errors import NotAuthorizedError, NotFoundError
from agora.schemas.question import QuestionUpdate
from agora.services.question_service import QuestionService, slugify


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("How do I use asyncio.gather()?", "how-do-i-use-asynciogather"),
        ("  Spaces   and --- dashes  ", "spaces-and-dashes"),
        ("!!!", "question"),
    ],
)
def test_slugify(title, expected) -> None:
    assert slugify(title) == expected


def test_slug_is_capped() -> None:
    slug = slugify("word " * 60)
    assert len(slug) <= 100
    assert not slug.endswith("-")


def test_get_question_without_view(db_session, test_question) -> None:
    question = QuestionService(db_session).get_question(test_question.id)
    assert question.views == 0


def test_deleted_question_is_hidden(db_session, test_user, test_question) -> None:
    service = QuestionService(db_session)
    service.delete_question(test_question.id, test_user)

    with pytest.raises(NotFoundError):
        service.get_question(test_question.id)
    questions, total = service.list_questions()
    assert (questions, total) == ([], 0)


def test_only_author_updates(db_session, other_user, test_question) -> None:
    with pytest.raises(NotAuthorizedError):
        QuestionService(db_session).update_question(
            test_question.id,
            QuestionUpdate(description="A replacement description that is long enough."),
            other_user,
        )


def test_moderator_deletes_any_question(db_session, moderator, test_question) -> None:
    QuestionService(db_session).delete_question(test_question.id, moderator)
    db_session.refresh(test_question)
    assert test_question.status == "deleted"


def test_version_increases_with_each_write(db_session, test_user, test_question, make_answer, other_user) -> None:
    start = test_question.version
    make_answer(test_question, other_user)
    db_session.refresh(test_question)
    assert test_question.version > start
