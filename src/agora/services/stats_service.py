"""Aggregate counts for the community overview and personal dashboard."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from agora.core.settings import settings
from agora.db.time import days_ago, start_of_day, utcnow
from agora.models import Answer, AnswerStatus, Question, QuestionStatus, User, UserStatus
from agora.schemas.stats import CommunityStats, DashboardStats

_VISIBLE_QUESTIONS = (QuestionStatus.ACTIVE, QuestionStatus.CLOSED)


def _count(db: Session, stmt) -> int:  # type: ignore[no-untyped-def]
    return db.scalar(stmt) or 0


def community_stats(db: Session) -> CommunityStats:
    now = utcnow()
    today = start_of_day(now)
    active_since = days_ago(settings.active_user_window_days, now=now)

    questions = select(func.count(Question.id)).where(Question.status.in_(_VISIBLE_QUESTIONS))
    answers = select(func.count(Answer.id)).where(Answer.status == AnswerStatus.ACTIVE)
    users = select(func.count(User.id)).where(User.status == UserStatus.ACTIVE)

    return CommunityStats(
        total_questions=_count(db, questions),
        total_answers=_count(db, answers),
        total_users=_count(db, users),
        active_users=_count(db, users.where(User.last_seen_at >= active_since)),
        questions_today=_count(db, questions.where(Question.created_at >= today)),
        answers_today=_count(db, answers.where(Answer.created_at >= today)),
    )


def dashboard_stats(db: Session, user: User) -> DashboardStats:
    """Summarize the caller's own activity."""
    questions_asked = _count(
        db,
        select(func.count(Question.id)).where(
            Question.author_id == user.id,
            Question.status.in_(_VISIBLE_QUESTIONS),
        ),
    )
    own_answers = select(Answer).where(
        Answer.author_id == user.id,
        Answer.status == AnswerStatus.ACTIVE,
    ).subquery()
    answers_given = _count(db, select(func.count()).select_from(own_answers))
    accepted = _count(
        db,
        select(func.count()).select_from(own_answers).where(own_answers.c.is_accepted.is_(True)),
    )
    question_score = _count(
        db,
        select(func.sum(Question.score)).where(
            Question.author_id == user.id,
            Question.status.in_(_VISIBLE_QUESTIONS),
        ),
    )
    answer_score = _count(db, select(func.sum(own_answers.c.score)))
    return DashboardStats(
        questions_asked=questions_asked,
        answers_given=answers_given,
        total_score=question_score + answer_score,
        accepted_answers=accepted,
    )
