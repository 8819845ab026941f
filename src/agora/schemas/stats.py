"""Statistics schemas."""

from .common import CamelModel


class CommunityStats(CamelModel):
    total_questions: int
    total_answers: int
    total_users: int
    active_users: int
    questions_today: int
    answers_today: int


class DashboardStats(CamelModel):
    questions_asked: int
    answers_given: int
    total_score: int
    accepted_answers: int
