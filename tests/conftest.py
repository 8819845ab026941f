# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from agora.api.v1.dependencies import get_rate_limit_service_dep
from agora.core.security import create_token, hash_password
from agora.db.session import Base, enable_sqlite_savepoints
from agora.db.session import get_db as app_get_session
from agora.main import app as fastapi_app
from agora.models import Answer, Question, User, UserRole
from agora.schemas.answer import AnswerCreate
from agora.schemas.question import QuestionCreate
from agora.services.answer_service import AnswerService
from agora.services.question_service import QuestionService
from agora.services.rate_limit import RateLimitService, clear_local_counters

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct-horse-battery"

_USER_COUNTER = count(1)
_QUESTION_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session whose commits and rollbacks only touch a savepoint of the test transaction."""
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        autoflush=False,
        join_transaction_mode="create_savepoint",
    )

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def local_rate_limits(app: FastAPI) -> Iterator[None]:
    """Keep rate-limit counters in process and start every test with none."""
    clear_local_counters()
    app.dependency_overrides[get_rate_limit_service_dep] = lambda: RateLimitService(use_redis=False)
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_rate_limit_service_dep, None)
        clear_local_counters()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users with a known password."""

    def _make_user(
        username: str | None = None,
        *,
        role: UserRole = UserRole.USER,
        reputation: int = 0,
    ) -> User:
        number = next(_USER_COUNTER)
        username = username or f"user{number}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            role=role,
            reputation=reputation,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return the primary test user (question author)."""
    return make_user("asker")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second user (answer author)."""
    return make_user("answerer")


@pytest.fixture()
def third_user(make_user: Callable[..., User]) -> User:
    return make_user("bystander")


@pytest.fixture()
def moderator(make_user: Callable[..., User]) -> User:
    return make_user("moderator", role=UserRole.MODERATOR)


@pytest.fixture()
def admin_user(make_user: Callable[..., User]) -> User:
    return make_user("admin", role=UserRole.ADMIN)


def auth_headers(user: User) -> dict[str, str]:
    """Return authorization headers carrying an access token for ``user``."""
    token = create_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers(other_user)


@pytest.fixture()
def third_auth_token(third_user: User) -> dict[str, str]:
    return auth_headers(third_user)


@pytest.fixture()
def moderator_token(moderator: User) -> dict[str, str]:
    return auth_headers(moderator)


@pytest.fixture()
def admin_token(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture()
def make_question(db_session: Session) -> Callable[..., Question]:
    """Return a factory that asks questions through the service layer."""

    def _make_question(author: User, *, tags: list[str] | None = None, title: str | None = None) -> Question:
        number = next(_QUESTION_COUNTER)
        data = QuestionCreate(
            title=title or f"How do I configure thing number {number}?",
            description="A sufficiently long question description for validation.",
            tags=tags or ["python", "sqlalchemy"],
        )
        return QuestionService(db_session).create_question(data, author)

    return _make_question


@pytest.fixture()
def make_answer(db_session: Session) -> Callable[..., Answer]:
    """Return a factory that posts answers through the service layer."""

    def _make_answer(question: Question, author: User, content: str | None = None) -> Answer:
        data = AnswerCreate(
            question=question.id,
            content=content or "Here is a detailed answer that is long enough.",
        )
        return AnswerService(db_session).create_answer(data, author)

    return _make_answer


@pytest.fixture()
def test_question(make_question: Callable[..., Question], test_user: User) -> Question:
    """A question asked by ``test_user``."""
    return make_question(test_user)


@pytest.fixture()
def test_answer(make_answer: Callable[..., Answer], test_question: Question, other_user: User) -> Answer:
    """An answer to ``test_question`` written by ``other_user``."""
    return make_answer(test_question, other_user)


@pytest.fixture()
def auth_for() -> Callable[[User], dict[str, str]]:
    """Return a helper building authorization headers for any user."""
    return auth_headers


@pytest.fixture()
def user_password() -> str:
    """Plain-text password of every user built by ``make_user``."""
    return TEST_PASSWORD
