"""
Client-side question state.

Each question moves PENDING -> SUBMITTING -> SETTLED. Its answer is one of
three explicit variants so consumers never probe for optional fields:

- Unanswered: nothing submitted yet (or a failed submission was reset)
- PendingSubmission: exactly one request is in flight
- Graded: the server recorded the answer
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class QuestionState(str, Enum):
    PENDING = "pending"
    SUBMITTING = "submitting"
    SETTLED = "settled"


@dataclass(frozen=True)
class Unanswered:
    pass


@dataclass(frozen=True)
class PendingSubmission:
    text: str
    skip: bool = False


@dataclass(frozen=True)
class Graded:
    """A recorded answer.

    already_recorded is True when the server reported a duplicate and the
    stored answer could not be fetched; score and feedback are then None.
    """

    text: str
    score: Optional[float]
    feedback: Optional[str] = None
    reference_answer: Optional[str] = None
    is_correct: Optional[bool] = None
    is_skipped: bool = False
    already_recorded: bool = False

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "Graded":
        text = data.get("answer_text") or data.get("selected_option") or ""
        return cls(
            text=text,
            score=data.get("score"),
            feedback=data.get("feedback"),
            reference_answer=data.get("reference_answer"),
            is_correct=data.get("is_correct"),
            is_skipped=bool(data.get("is_skipped", False)),
        )


AnswerState = Union[Unanswered, PendingSubmission, Graded]


@dataclass
class QuestionSlot:
    """Mutable per-question state owned by one coordinator."""

    question_id: int
    content: str
    options: Any = None
    state: QuestionState = QuestionState.PENDING
    answer: AnswerState = field(default_factory=Unanswered)
    draft_text: str = ""
    selected_option: Optional[str] = None
    expired: bool = False
    last_error: Optional[Exception] = None


class SessionListener:
    """Receives coordinator events. All hooks are optional no-ops."""

    def on_question_started(
        self, index: int, slot: QuestionSlot, time_limit: Optional[int]
    ) -> None:
        pass

    def on_tick(self, question_id: int, remaining: int) -> None:
        pass

    def on_time_warning(self, question_id: int, remaining: int) -> None:
        pass

    def on_settled(self, question_id: int, answer: Graded) -> None:
        pass

    def on_submission_failed(self, question_id: int, error: Exception) -> None:
        pass

    def on_finished(self, results: Dict[str, Any]) -> None:
        pass

    def on_finish_failed(self, error: Exception) -> None:
        pass
