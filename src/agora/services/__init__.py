"""Service layer: every business rule and every write lives here."""

from .answer_service import AnswerService
from .notification_service import NotificationService
from .question_service import QuestionService
from .rate_limit import RateLimitService, get_rate_limit_service
from .reconcile import ReconcileReport, reconcile_counters
from .tag_service import TagService
from .vote_service import VoteService

__all__ = [
    "AnswerService",
    "NotificationService",
    "QuestionService",
    "RateLimitService",
    "ReconcileReport",
    "TagService",
    "VoteService",
    "get_rate_limit_service",
    "reconcile_counters",
]
