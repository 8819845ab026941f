"""initial schema

Revision ID: 5b1e0c7d9a42
Revises:
Create Date: 2026-10-12 09:14:03.512811

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1e0c7d9a42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def _vote_counters() -> list[sa.Column]:
    return [
        sa.Column("upvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("downvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("score", sa.Integer(), nullable=False, server_default="0"),
    ]


def upgrade() -> None:
    """Create the questions, answers, votes and notifications schema."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("reputation", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="user"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("bio", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("last_seen_at"),
        sa.CheckConstraint("reputation >= 0", name="ck_user_reputation_non_negative"),
        sa.CheckConstraint("role IN ('user', 'moderator', 'admin')", name="ck_user_role"),
        sa.CheckConstraint(
            "status IN ('active', 'suspended', 'banned')", name="ck_user_status"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "tag",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("slug", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("question_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "question",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=220), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column(
            "difficulty", sa.String(length=16), nullable=False, server_default="intermediate"
        ),
        sa.Column("accepted_answer_id", sa.Integer(), nullable=True),
        sa.Column("duplicate_of_id", sa.Integer(), nullable=True),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        *_vote_counters(),
        sa.Column("answer_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_activity_at"),
        sa.CheckConstraint(
            "status IN ('active', 'closed', 'deleted', 'duplicate')",
            name="ck_question_status",
        ),
        sa.CheckConstraint("answer_count >= 0", name="ck_question_answer_count"),
        sa.ForeignKeyConstraint(["author_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["duplicate_of_id"], ["question.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_question_author_id", "question", ["author_id"])
    op.create_index("ix_question_status_activity", "question", ["status", "last_activity_at"])
    op.create_index("ix_question_score", "question", ["score"])

    op.create_table(
        "question_tag",
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["question_id"], ["question.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tag.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("question_id", "tag_id"),
    )

    op.create_table(
        "answer",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        *_vote_counters(),
        sa.Column("comment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("accepted_at", nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status IN ('active', 'deleted', 'hidden')", name="ck_answer_status"
        ),
        sa.ForeignKeyConstraint(["author_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["question_id"], ["question.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_answer_question_score", "answer", ["question_id", "score"])
    op.create_index("ix_answer_author", "answer", ["author_id", "created_at"])

    with op.batch_alter_table("question") as batch_op:
        batch_op.create_foreign_key(
            "fk_question_accepted_answer", "answer", ["accepted_answer_id"], ["id"]
        )

    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("answer_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.String(length=1000), nullable=False),
        *_vote_counters(),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["answer_id"], ["answer.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comment_answer_id", "comment", ["answer_id"])

    op.create_table(
        "vote",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("target_type", sa.String(length=16), nullable=False),
        sa.Column("vote_type", sa.String(length=16), nullable=False),
        sa.Column("weight", sa.SmallInteger(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("revoked_at", nullable=True),
        sa.Column("revoked_reason", sa.String(length=200), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("vote_type IN ('upvote', 'downvote')", name="ck_vote_type"),
        sa.CheckConstraint(
            "target_type IN ('Question', 'Answer', 'Comment')", name="ck_vote_target_type"
        ),
        sa.CheckConstraint("weight BETWEEN 1 AND 10", name="ck_vote_weight"),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "target_id", "target_type", name="uq_vote_user_target"),
    )
    op.create_index("ix_vote_target", "vote", ["target_id", "target_type", "vote_type"])
    op.create_index("ix_vote_user_created", "vote", ["user_id", "created_at"])

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.String(length=1000), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="unread"),
        _timestamp("read_at", nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["recipient_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["user_account.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notification_recipient_status",
        "notification",
        ["recipient_id", "status", "created_at"],
    )


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    op.drop_index("ix_notification_recipient_status", table_name="notification")
    op.drop_table("notification")
    op.drop_index("ix_vote_user_created", table_name="vote")
    op.drop_index("ix_vote_target", table_name="vote")
    op.drop_table("vote")
    op.drop_index("ix_comment_answer_id", table_name="comment")
    op.drop_table("comment")
    with op.batch_alter_table("question") as batch_op:
        batch_op.drop_constraint("fk_question_accepted_answer", type_="foreignkey")
    op.drop_index("ix_answer_author", table_name="answer")
    op.drop_index("ix_answer_question_score", table_name="answer")
    op.drop_table("answer")
    op.drop_table("question_tag")
    op.drop_index("ix_question_score", table_name="question")
    op.drop_index("ix_question_status_activity", table_name="question")
    op.drop_index("ix_question_author_id", table_name="question")
    op.drop_table("question")
    op.drop_table("tag")
    op.drop_table("user_account")
