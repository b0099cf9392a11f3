"""
Pydantic schemas for answer submission and per-question results.
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class AnswerSubmitRequest(BaseModel):
    """Schema for submitting one answer.

    Interview questions use answer_text, quiz questions selected_option
    (a letter, digit index or option value). An empty answer or skip=true
    records the question as skipped.
    """

    question_id: int = Field(..., description="Question being answered")
    answer_text: Optional[str] = Field(
        None, max_length=20000, description="Free-text answer (interview)"
    )
    selected_option: Optional[str] = Field(
        None, max_length=500, description="Selected option (quiz)"
    )
    skip: bool = Field(False, description="Explicitly skip the question")


class AnswerResponse(BaseModel):
    """Schema for a recorded, graded answer."""

    question_id: int = Field(..., description="Question ID")
    score: float = Field(..., description="Score (interview 0-10, quiz 0 or 100)")
    grading_status: str = Field(
        ..., description="How the score was produced (graded, fallback, skipped)"
    )
    is_skipped: bool = Field(..., description="Whether the question was skipped")
    answer_text: str = Field("", description="Recorded answer text")
    selected_option: Optional[str] = Field(
        None, description="Canonical selected option, or 'skipped' (quiz)"
    )
    is_correct: Optional[bool] = Field(None, description="Correctness (quiz)")
    correct_option: Optional[str] = Field(None, description="Correct option (quiz)")
    explanation: Optional[str] = Field(None, description="Explanation (quiz)")
    feedback: Optional[str] = Field(None, description="Grader feedback (interview)")
    reference_answer: Optional[str] = Field(
        None, description="Ideal answer to study (interview)"
    )
    submitted_at: datetime = Field(..., description="Submission timestamp")


class SubmitAnswerResponse(AnswerResponse):
    """Recorded answer plus the session's running average."""

    average_score: float = Field(
        ..., description="Mean score over all answers recorded so far"
    )


class UnansweredQuestionResult(BaseModel):
    """Result entry for a question with no recorded answer."""

    status: Literal["unanswered"] = "unanswered"
    question_id: int
    position: int
    content: str
    correct_option: Optional[str] = None
    explanation: Optional[str] = None


class GradedQuestionResult(AnswerResponse):
    """Result entry for an answered question."""

    status: Literal["graded"] = "graded"
    position: int
    content: str


QuestionResult = Annotated[
    Union[UnansweredQuestionResult, GradedQuestionResult],
    Field(discriminator="status"),
]


class SessionResultsResponse(BaseModel):
    """Schema for session results."""

    session_id: int = Field(..., description="Session ID")
    kind: str = Field(..., description="Assessment kind")
    final_score: float = Field(
        ..., description="Mean of all answer scores, recomputed on every read"
    )
    correct_count: Optional[int] = Field(
        None, description="Correct answers (quiz sessions only)"
    )
    total_questions: int = Field(..., description="Number of assigned questions")
    answered_count: int = Field(..., description="Number of recorded answers")
    finished_at: Optional[datetime] = Field(
        None, description="Session finish timestamp"
    )
    per_question: List[QuestionResult] = Field(
        ..., description="Per-question results in presentation order"
    )
