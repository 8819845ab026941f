# mypy: ignore-errors
# tests/v1/test_tags.py
"""Tests for tag endpoints."""

from fastapi import status


def test_list_tags_by_popularity(client, make_question, test_user) -> None:
    make_question(test_user, tags=["python", "redis"])
    make_question(test_user, tags=["python"])

    response = client.get("/api/v1/tags")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [tag["name"] for tag in body["tags"]] == ["python", "redis"]
    assert body["tags"][0]["questionCount"] == 2
    assert body["pagination"]["total"] == 2


def test_list_tags_by_name(client, make_question, test_user) -> None:
    make_question(test_user, tags=["zeromq", "alembic"])
    response = client.get("/api/v1/tags", params={"sort": "name"})
    assert [tag["name"] for tag in response.json()["tags"]] == ["alembic", "zeromq"]


def test_get_tag_by_slug_and_id(client, make_question, test_user) -> None:
    make_question(test_user, tags=["pydantic"])
    by_slug = client.get("/api/v1/tags/pydantic")
    assert by_slug.status_code == status.HTTP_200_OK

    by_id = client.get(f"/api/v1/tags/{by_slug.json()['id']}")
    assert by_id.json()["name"] == "pydantic"


def test_get_missing_tag(client) -> None:
    response = client.get("/api/v1/tags/does-not-exist")
    assert response.status_code == status.HTTP_404_NOT_FOUND
