"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    answers_router,
    auth_router,
    comments_router,
    notifications_router,
    questions_router,
    stats_router,
    tags_router,
    users_router,
    votes_router,
)

__all__ = [
    "auth_router",
    "users_router",
    "questions_router",
    "answers_router",
    "comments_router",
    "votes_router",
    "tags_router",
    "notifications_router",
    "stats_router",
    "admin_router",
]
