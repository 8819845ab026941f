"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .answers import router as answers_router
from .auth import router as auth_router
from .comments import router as comments_router
from .notifications import router as notifications_router
from .questions import router as questions_router
from .stats import router as stats_router
from .tags import router as tags_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "admin_router",
    "answers_router",
    "auth_router",
    "comments_router",
    "notifications_router",
    "questions_router",
    "stats_router",
    "tags_router",
    "users_router",
    "votes_router",
]
