"""
Async client for taking a timed session: API wrapper, countdown timer and
the per-question submission coordinator.
"""
from mockprep.client.api import (
    ApiError,
    ClientConfig,
    DuplicateSubmissionError,
    SessionApiClient,
    SubmissionTransportError,
)
from mockprep.client.coordinator import SubmissionCoordinator
from mockprep.client.state import (
    AnswerState,
    Graded,
    PendingSubmission,
    QuestionSlot,
    QuestionState,
    SessionListener,
    Unanswered,
)
from mockprep.client.timer import CountdownTimer

__all__ = [
    "ApiError",
    "AnswerState",
    "ClientConfig",
    "CountdownTimer",
    "DuplicateSubmissionError",
    "Graded",
    "PendingSubmission",
    "QuestionSlot",
    "QuestionState",
    "SessionApiClient",
    "SessionListener",
    "SubmissionCoordinator",
    "SubmissionTransportError",
    "Unanswered",
]
