# tests/test_health.py
from typing import Any


def test_health(client: Any) -> None:
    """Verify that the health endpoint reports the service as up."""
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_root_responds(client: Any) -> None:
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["docs"] == "/docs"


def test_unknown_route_uses_error_envelope(client: Any) -> None:
    r = client.get("/api/v1/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Not Found"}


def test_startup_creates_tables_when_enabled(app: Any, mocker: Any) -> None:
    from fastapi.testclient import TestClient

    from agora.core.settings import settings

    mocker.patch.object(settings, "auto_create_tables", True)
    create_tables = mocker.patch("agora.main.create_tables")
    with TestClient(app):
        pass
    create_tables.assert_called_once_with()


def test_startup_skips_tables_by_default(app: Any, mocker: Any) -> None:
    from fastapi.testclient import TestClient

    create_tables = mocker.patch("agora.main.create_tables")
    with TestClient(app):
        pass
    create_tables.assert_not_called()
