# mypy: ignore-errors
# tests/v1/test_questions.py
"""Tests for question endpoints."""

from fastapi import status

from agora.models import Tag

QUESTION_PAYLOAD = {
    "title": "How do I stream rows with SQLAlchemy?",
    "description": "I have a very large table and want to iterate without loading it all.",
    "tags": ["Python", "sqlalchemy", "python"],
}


def test_create_question(client, db_session, auth_token, test_user) -> None:
    """Creating a question normalizes tags and generates a slug."""
    response = client.post("/api/v1/questions", json=QUESTION_PAYLOAD, headers=auth_token)
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["slug"] == "how-do-i-stream-rows-with-sqlalchemy"
    assert sorted(tag["name"] for tag in body["tags"]) == ["python", "sqlalchemy"]
    assert body["author"]["id"] == test_user.id
    assert body["acceptedAnswer"] is None
    assert body["difficulty"] == "intermediate"
    assert body["metrics"] == {
        "views": 0,
        "upvotes": 0,
        "downvotes": 0,
        "score": 0,
        "answerCount": 0,
    }

    tags = {tag.name: tag.question_count for tag in db_session.query(Tag).all()}
    assert tags == {"python": 1, "sqlalchemy": 1}


def test_duplicate_titles_get_unique_slugs(client, auth_token) -> None:
    first = client.post("/api/v1/questions", json=QUESTION_PAYLOAD, headers=auth_token).json()
    second = client.post("/api/v1/questions", json=QUESTION_PAYLOAD, headers=auth_token).json()
    assert first["slug"] == "how-do-i-stream-rows-with-sqlalchemy"
    assert second["slug"] == "how-do-i-stream-rows-with-sqlalchemy-1"


def test_create_question_requires_tags(client, auth_token) -> None:
    payload = {**QUESTION_PAYLOAD, "tags": []}
    response = client.post("/api/v1/questions", json=payload, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_question_rejects_bad_tag(client, auth_token) -> None:
    payload = {**QUESTION_PAYLOAD, "tags": ["c++"]}
    response = client.post("/api/v1/questions", json=payload, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["field"] == "tags"


def test_create_question_requires_auth(client) -> None:
    response = client.post("/api/v1/questions", json=QUESTION_PAYLOAD)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_get_question_counts_views(client, test_question) -> None:
    first = client.get(f"/api/v1/questions/{test_question.id}")
    second = client.get(f"/api/v1/questions/{test_question.id}")
    assert first.status_code == status.HTTP_200_OK
    assert first.json()["metrics"]["views"] == 1
    assert second.json()["metrics"]["views"] == 2


def test_author_views_are_not_counted(client, test_question, auth_token, other_auth_token) -> None:
    own = client.get(f"/api/v1/questions/{test_question.id}", headers=auth_token)
    assert own.json()["metrics"]["views"] == 0

    other = client.get(f"/api/v1/questions/{test_question.id}", headers=other_auth_token)
    assert other.json()["metrics"]["views"] == 1


def test_get_missing_question(client) -> None:
    response = client.get("/api/v1/questions/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"success": False, "message": "Question not found"}


def test_list_questions_paginates(client, make_question, test_user) -> None:
    for _ in range(3):
        make_question(test_user)

    response = client.get("/api/v1/questions", params={"page": 1, "limit": 2})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert len(body["questions"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}


def test_list_questions_filters_by_tag(client, make_question, test_user) -> None:
    tagged = make_question(test_user, tags=["fastapi"])
    make_question(test_user, tags=["django"])

    response = client.get("/api/v1/questions", params={"tag": "FastAPI"})
    assert [q["id"] for q in response.json()["questions"]] == [tagged.id]


def test_list_questions_sorted_by_score(client, make_question, test_user, other_auth_token) -> None:
    low = make_question(test_user)
    high = make_question(test_user)
    client.post(
        "/api/v1/votes",
        json={"target": high.id, "targetType": "Question", "voteType": "upvote"},
        headers=other_auth_token,
    )

    response = client.get("/api/v1/questions", params={"sort": "score"})
    assert [q["id"] for q in response.json()["questions"]] == [high.id, low.id]


def test_list_questions_rejects_unknown_sort(client) -> None:
    response = client.get("/api/v1/questions", params={"sort": "random"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_question(client, db_session, auth_token, test_question) -> None:
    response = client.put(
        f"/api/v1/questions/{test_question.id}",
        json={"title": "A better title for this question", "tags": ["python", "asyncio"]},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["slug"] == "a-better-title-for-this-question"
    assert sorted(tag["name"] for tag in body["tags"]) == ["asyncio", "python"]

    counts = {tag.name: tag.question_count for tag in db_session.query(Tag).all()}
    assert counts == {"python": 1, "sqlalchemy": 0, "asyncio": 1}


def test_update_question_by_other_user(client, other_auth_token, test_question) -> None:
    response = client.put(
        f"/api/v1/questions/{test_question.id}",
        json={"title": "Someone else's new title here"},
        headers=other_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_delete_question(client, db_session, auth_token, test_question) -> None:
    """Deleted questions disappear and release their tags."""
    response = client.delete(f"/api/v1/questions/{test_question.id}", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK

    assert client.get(f"/api/v1/questions/{test_question.id}").status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/v1/questions").json()["pagination"]["total"] == 0
    counts = {tag.name: tag.question_count for tag in db_session.query(Tag).all()}
    assert counts == {"python": 0, "sqlalchemy": 0}


def test_delete_question_forbidden(client, other_auth_token, test_question) -> None:
    response = client.delete(f"/api/v1/questions/{test_question.id}", headers=other_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_close_question_requires_moderator(client, auth_token, moderator_token, test_question) -> None:
    forbidden = client.post(f"/api/v1/questions/{test_question.id}/close", headers=auth_token)
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    closed = client.post(f"/api/v1/questions/{test_question.id}/close", headers=moderator_token)
    assert closed.status_code == status.HTTP_200_OK
    assert closed.json()["status"] == "closed"
