"""
Models package for the MockPrep backend.
"""
from .base import Base, async_engine, AsyncSessionLocal, get_db
from .models import (
    User,
    Question,
    AssessmentSession,
    SessionQuestion,
    Answer,
    AssessmentKind,
    DifficultyLevel,
    InputType,
    GradingStatus,
)

__all__ = [
    "Base",
    "async_engine",
    "AsyncSessionLocal",
    "get_db",
    "User",
    "Question",
    "AssessmentSession",
    "SessionQuestion",
    "Answer",
    "AssessmentKind",
    "DifficultyLevel",
    "InputType",
    "GradingStatus",
]
