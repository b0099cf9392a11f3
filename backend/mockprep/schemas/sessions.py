"""
Pydantic schemas for assessment session endpoints.
"""
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from mockprep.schemas.questions import QuestionResponse


class SessionCreateRequest(BaseModel):
    """Schema for creating an assessment session.

    Values are validated and normalized by the session setup layer, which
    also resolves subject shorthands and difficulty aliases.
    """

    kind: str = Field(..., description="Assessment kind (interview or quiz)")
    difficulty: str = Field(..., description="Difficulty (easy, medium, hard)")
    subject: str = Field(..., description="Subject name or shorthand (e.g. 'ds')")
    question_count: int = Field(
        ..., description="Number of questions (interview 5-25, quiz 5-15)"
    )
    time_limit: Union[int, str, None] = Field(
        "nolimit",
        description=(
            "Per-question time limit: 'nolimit', '30sec', '45sec', '1min', '2min' "
            "for interviews; 15, 30, 45 or 60 seconds for quizzes"
        ),
    )
    input_type: Optional[str] = Field(
        None, description="Interview answer input (text or voice), defaults to text"
    )


class SessionResponse(BaseModel):
    """Schema for an assessment session."""

    id: int = Field(..., description="Session ID")
    kind: str = Field(..., description="Assessment kind")
    difficulty: str = Field(..., description="Difficulty level")
    subject: str = Field(..., description="Canonical subject name")
    requested_question_count: int = Field(..., description="Number of questions")
    time_limit_seconds: Optional[int] = Field(
        None, description="Per-question time limit in seconds (null means unlimited)"
    )
    input_type: Optional[str] = Field(None, description="Interview input type")
    started_at: datetime = Field(..., description="Session start timestamp")
    finished_at: Optional[datetime] = Field(
        None, description="Session finish timestamp"
    )
    final_score: Optional[float] = Field(
        None, description="Stored final score, set when the session is finished"
    )


class SessionCreateResponse(BaseModel):
    """Schema returned when a session is created."""

    session: SessionResponse = Field(..., description="Created session")
    questions: List[QuestionResponse] = Field(
        ..., description="Assigned questions in presentation order"
    )
    total_questions: int = Field(..., description="Number of assigned questions")


class SessionDetailResponse(BaseModel):
    """Schema for fetching an existing session."""

    session: SessionResponse = Field(..., description="Session details")
    questions: List[QuestionResponse] = Field(
        ..., description="Assigned questions in presentation order"
    )
    answered_question_ids: List[int] = Field(
        default_factory=list, description="Questions that already have an answer"
    )


class FinishSessionResponse(BaseModel):
    """Schema returned when a session is finished."""

    session_id: int = Field(..., description="Session ID")
    final_score: float = Field(..., description="Mean of all answer scores")
    correct_count: Optional[int] = Field(
        None, description="Correct answers (quiz sessions only)"
    )
    total_questions: int = Field(..., description="Number of assigned questions")
    answered_count: int = Field(..., description="Number of recorded answers")
    finished_at: datetime = Field(..., description="Session finish timestamp")
