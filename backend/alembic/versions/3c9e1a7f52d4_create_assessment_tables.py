"""create assessment tables

Revision ID: 3c9e1a7f52d4
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c9e1a7f52d4"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

assessment_kind = sa.Enum("INTERVIEW", "QUIZ", name="assessmentkind")
difficulty_level = sa.Enum("EASY", "MEDIUM", "HARD", name="difficultylevel")
input_type = sa.Enum("TEXT", "VOICE", name="inputtype")
grading_status = sa.Enum("GRADED", "FALLBACK", "SKIPPED", name="gradingstatus")


def upgrade() -> None:
    """Create users, questions, sessions, assignments and answers."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("kind", assessment_kind, nullable=False),
        sa.Column("difficulty", difficulty_level, nullable=False),
        sa.Column("subject", sa.String(length=100), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("correct_option", sa.String(length=500), nullable=True),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_id", "questions", ["id"])
    op.create_index("ix_questions_is_active", "questions", ["is_active"])
    # Sampling lookup
    op.create_index(
        "ix_questions_kind_difficulty_subject",
        "questions",
        ["kind", "difficulty", "subject"],
    )

    op.create_table(
        "assessment_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("kind", assessment_kind, nullable=False),
        sa.Column("difficulty", difficulty_level, nullable=False),
        sa.Column("subject", sa.String(length=100), nullable=False),
        sa.Column("requested_question_count", sa.Integer(), nullable=False),
        sa.Column("time_limit_seconds", sa.Integer(), nullable=True),
        sa.Column("input_type", input_type, nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_score", sa.Float(), nullable=True),
        sa.Column("correct_count", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assessment_sessions_id", "assessment_sessions", ["id"])
    op.create_index(
        "ix_assessment_sessions_user_id", "assessment_sessions", ["user_id"]
    )
    op.create_index(
        "ix_assessment_sessions_user_kind", "assessment_sessions", ["user_id", "kind"]
    )

    op.create_table(
        "session_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["session_id"], ["assessment_sessions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "session_id", "question_id", name="uq_session_question_assignment"
        ),
        sa.UniqueConstraint(
            "session_id", "position", name="uq_session_question_position"
        ),
    )
    op.create_index("ix_session_questions_id", "session_questions", ["id"])
    op.create_index(
        "ix_session_questions_session_id", "session_questions", ["session_id"]
    )

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("answer_text", sa.Text(), nullable=False),
        sa.Column("selected_option", sa.String(length=500), nullable=True),
        sa.Column("is_skipped", sa.Boolean(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("reference_answer", sa.Text(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=True),
        sa.Column("grading_status", grading_status, nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["session_id"], ["assessment_sessions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        # One recorded answer per question per session
        sa.UniqueConstraint(
            "session_id", "question_id", name="uq_answer_session_question"
        ),
    )
    op.create_index("ix_answers_id", "answers", ["id"])
    op.create_index("ix_answers_session_id", "answers", ["session_id"])
    op.create_index("ix_answers_question_id", "answers", ["question_id"])


def downgrade() -> None:
    """Drop all assessment tables and enum types."""
    op.drop_index("ix_answers_question_id", table_name="answers")
    op.drop_index("ix_answers_session_id", table_name="answers")
    op.drop_index("ix_answers_id", table_name="answers")
    op.drop_table("answers")

    op.drop_index("ix_session_questions_session_id", table_name="session_questions")
    op.drop_index("ix_session_questions_id", table_name="session_questions")
    op.drop_table("session_questions")

    op.drop_index("ix_assessment_sessions_user_kind", table_name="assessment_sessions")
    op.drop_index("ix_assessment_sessions_user_id", table_name="assessment_sessions")
    op.drop_index("ix_assessment_sessions_id", table_name="assessment_sessions")
    op.drop_table("assessment_sessions")

    op.drop_index("ix_questions_kind_difficulty_subject", table_name="questions")
    op.drop_index("ix_questions_is_active", table_name="questions")
    op.drop_index("ix_questions_id", table_name="questions")
    op.drop_table("questions")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (grading_status, input_type, difficulty_level, assessment_kind):
        enum_type.drop(bind, checkfirst=True)
