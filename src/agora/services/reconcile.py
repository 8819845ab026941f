"""Recount denormalized counters from their source rows.

Counters such as ``Question.answer_count`` or ``Answer.score`` are kept in
step with their source rows by the service layer. :func:`reconcile_counters`
recomputes each of them from scratch, rewrites the rows that drifted and
reports what it changed. Running it twice in a row reports nothing the
second time.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from agora.models import (
    Answer,
    AnswerStatus,
    Comment,
    Question,
    QuestionStatus,
    Tag,
    Vote,
    VoteType,
    question_tag,
)

from .transactions import transaction
from .vote_service import TARGET_MODELS

logger = logging.getLogger(__name__)

_COUNTED_QUESTIONS = (QuestionStatus.ACTIVE, QuestionStatus.CLOSED)


@dataclass(frozen=True)
class CounterFix:
    """One counter that did not match its source rows."""

    entity: str
    entity_id: int
    field: str
    stored: int | bool | None
    expected: int | bool | None


@dataclass
class ReconcileReport:
    dry_run: bool
    fixes: list[CounterFix] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.fixes)

    def as_dict(self) -> dict[str, object]:
        return {
            "dryRun": self.dry_run,
            "fixed": len(self.fixes),
            "fixes": [
                {
                    "entity": fix.entity,
                    "id": fix.entity_id,
                    "field": fix.field,
                    "stored": fix.stored,
                    "expected": fix.expected,
                }
                for fix in self.fixes
            ],
        }


class _Reconciler:
    def __init__(self, db: Session, report: ReconcileReport) -> None:
        self.db = db
        self.report = report

    def _apply(self, row: object, entity: str, name: str, expected: object) -> None:
        stored = getattr(row, name)
        if stored == expected:
            return
        self.report.fixes.append(
            CounterFix(entity=entity, entity_id=row.id, field=name, stored=stored, expected=expected)  # type: ignore[attr-defined]
        )
        setattr(row, name, expected)

    def answer_counts(self) -> None:
        counts = dict(
            self.db.execute(
                select(Answer.question_id, func.count())
                .where(Answer.status == AnswerStatus.ACTIVE)
                .group_by(Answer.question_id)
            ).all()
        )
        for question in self.db.scalars(select(Question)):
            self._apply(question, "Question", "answer_count", counts.get(question.id, 0))

    def comment_counts(self) -> None:
        counts = dict(
            self.db.execute(
                select(Comment.answer_id, func.count())
                .where(Comment.is_deleted.is_(False))
                .group_by(Comment.answer_id)
            ).all()
        )
        for answer in self.db.scalars(select(Answer)):
            self._apply(answer, "Answer", "comment_count", counts.get(answer.id, 0))

    def vote_metrics(self) -> None:
        tallies: dict[tuple[str, int], dict[str, int]] = defaultdict(dict)
        rows = self.db.execute(
            select(Vote.target_type, Vote.target_id, Vote.vote_type, func.count())
            .where(Vote.is_active.is_(True))
            .group_by(Vote.target_type, Vote.target_id, Vote.vote_type)
        ).all()
        for target_type, target_id, vote_type, count in rows:
            tallies[(target_type, target_id)][vote_type] = count

        for target_type, model in TARGET_MODELS.items():
            for target in self.db.scalars(select(model)):
                counts = tallies.get((target_type, target.id), {})
                upvotes = counts.get(VoteType.UPVOTE, 0)
                downvotes = counts.get(VoteType.DOWNVOTE, 0)
                self._apply(target, target_type, "upvotes", upvotes)
                self._apply(target, target_type, "downvotes", downvotes)
                self._apply(target, target_type, "score", upvotes - downvotes)

    def tag_counts(self) -> None:
        counts = dict(
            self.db.execute(
                select(question_tag.c.tag_id, func.count())
                .join(Question, Question.id == question_tag.c.question_id)
                .where(Question.status.in_(_COUNTED_QUESTIONS))
                .group_by(question_tag.c.tag_id)
            ).all()
        )
        for tag in self.db.scalars(select(Tag)):
            self._apply(tag, "Tag", "question_count", counts.get(tag.id, 0))

    def acceptance(self) -> None:
        questions = {question.id: question for question in self.db.scalars(select(Question))}
        answers = list(self.db.scalars(select(Answer)))
        active_ids = {answer.id for answer in answers if answer.status == AnswerStatus.ACTIVE}

        for question in questions.values():
            if question.accepted_answer_id is not None and question.accepted_answer_id not in active_ids:
                self._apply(question, "Question", "accepted_answer_id", None)

        for answer in answers:
            question = questions.get(answer.question_id)
            expected = question is not None and question.accepted_answer_id == answer.id
            self._apply(answer, "Answer", "is_accepted", expected)
            if not expected and answer.accepted_at is not None:
                answer.accepted_at = None


def reconcile_counters(db: Session, dry_run: bool = False) -> ReconcileReport:
    """Recount every denormalized counter and repair drifted rows.

    With ``dry_run`` the drift is reported and nothing is written.
    """
    report = ReconcileReport(dry_run=dry_run)
    reconciler = _Reconciler(db, report)
    with transaction(db):
        with db.no_autoflush:
            reconciler.answer_counts()
            reconciler.comment_counts()
            reconciler.vote_metrics()
            reconciler.tag_counts()
            reconciler.acceptance()
        if dry_run:
            db.expire_all()

    for fix in report.fixes:
        logger.info(
            "%s %s %s.%s: stored=%r expected=%r",
            "Drift in" if dry_run else "Repaired",
            fix.entity, fix.entity_id, fix.field, fix.stored, fix.expected,
        )
    logger.info("Reconciliation finished with %d counter(s) out of step", len(report.fixes))
    return report
