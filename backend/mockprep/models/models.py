"""
Database models for assessment sessions.
"""
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    Enum,
    Float,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from .base import Base


class AssessmentKind(str, enum.Enum):
    """Kind of assessment a question or session belongs to."""

    INTERVIEW = "interview"
    QUIZ = "quiz"


class DifficultyLevel(str, enum.Enum):
    """Difficulty level enumeration."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class InputType(str, enum.Enum):
    """How the candidate enters interview answers."""

    TEXT = "text"
    VOICE = "voice"


class GradingStatus(str, enum.Enum):
    """How an answer's score was produced."""

    GRADED = "graded"
    FALLBACK = "fallback"  # Grading service unavailable, neutral score applied
    SKIPPED = "skipped"


class User(Base):
    """User model. Accounts are provisioned by the auth service."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100))
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    sessions = relationship(
        "AssessmentSession", back_populates="user", cascade="all, delete-orphan"
    )


class Question(Base):
    """Question catalog entry. Never mutated by the session engine."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    kind = Column(Enum(AssessmentKind), nullable=False)
    difficulty = Column(Enum(DifficultyLevel), nullable=False)
    subject = Column(String(100), nullable=False)
    # Quiz only: list of choices or letter-keyed mapping
    options = Column(JSON, nullable=True)
    correct_option = Column(String(500), nullable=True)
    explanation = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_questions_kind_difficulty_subject", "kind", "difficulty", "subject"),
    )


class AssessmentSession(Base):
    """One assessment attempt owned by a single user."""

    __tablename__ = "assessment_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind = Column(Enum(AssessmentKind), nullable=False)
    difficulty = Column(Enum(DifficultyLevel), nullable=False)
    subject = Column(String(100), nullable=False)
    requested_question_count = Column(Integer, nullable=False)
    time_limit_seconds = Column(Integer, nullable=True)  # NULL means unlimited
    input_type = Column(Enum(InputType), nullable=True)  # Interview sessions only
    started_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    finished_at = Column(DateTime(timezone=True), nullable=True)
    final_score = Column(Float, nullable=True)
    correct_count = Column(Integer, nullable=True)  # Quiz sessions only

    user = relationship("User", back_populates="sessions")
    questions = relationship(
        "SessionQuestion",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionQuestion.position",
    )
    answers = relationship(
        "Answer", back_populates="session", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_assessment_sessions_user_kind", "user_id", "kind"),)


class SessionQuestion(Base):
    """Ordered assignment of a question to a session, fixed at creation."""

    __tablename__ = "session_questions"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer,
        ForeignKey("assessment_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, nullable=False)

    session = relationship("AssessmentSession", back_populates="questions")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint(
            "session_id", "question_id", name="uq_session_question_assignment"
        ),
        UniqueConstraint("session_id", "position", name="uq_session_question_position"),
    )


class Answer(Base):
    """Graded answer for one question of one session.

    Rows are inserted once, already graded, and never updated.
    """

    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer,
        ForeignKey("assessment_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    answer_text = Column(Text, nullable=False, default="")
    selected_option = Column(String(500), nullable=True)  # Quiz only, may be "skipped"
    is_skipped = Column(Boolean, default=False, nullable=False)
    score = Column(Float, nullable=False)
    feedback = Column(Text, nullable=True)
    reference_answer = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=True)
    grading_status = Column(Enum(GradingStatus), nullable=False)
    submitted_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    session = relationship("AssessmentSession", back_populates="answers")
    question = relationship("Question")

    # Storage-level guard against concurrent duplicate submissions
    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_answer_session_question"),
    )
