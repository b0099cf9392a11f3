"""
Domain exceptions raised by the session engine.

Every error carries an HTTP status and a stable machine-readable code; the
exception handler registered in mockprep.main turns them into JSON bodies of
the form {"detail": ..., "code": ..., **extra}.
"""
from typing import Any, Dict, Optional

from fastapi import status

from mockprep.core.error_responses import ErrorMessages


class AssessmentError(Exception):
    """Base class for session engine errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "assessment_error"

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.extra}


class InvalidParameters(AssessmentError):
    """Bad or missing request parameters. Never retried."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "invalid_parameters"


class SessionNotFound(AssessmentError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "session_not_found"

    def __init__(self, message: str = ErrorMessages.SESSION_NOT_FOUND):
        super().__init__(message)


class QuestionNotFound(AssessmentError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "question_not_found"

    def __init__(self, message: str = ErrorMessages.QUESTION_NOT_IN_SESSION):
        super().__init__(message)


class Forbidden(AssessmentError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"

    def __init__(self, message: str = ErrorMessages.SESSION_ACCESS_DENIED):
        super().__init__(message)


class InsufficientQuestions(AssessmentError):
    """The catalog holds fewer matching questions than requested."""

    status_code = status.HTTP_409_CONFLICT
    code = "insufficient_questions"

    def __init__(self, available: int, requested: int):
        super().__init__(
            ErrorMessages.insufficient_questions(available, requested),
            extra={"available": available, "requested": requested},
        )
        self.available = available
        self.requested = requested


class DuplicateSubmission(AssessmentError):
    """An answer already exists for this (session, question) pair.

    Clients should treat this as "already settled", not as a failure.
    """

    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_submission"

    def __init__(self, question_id: Optional[int] = None):
        if question_id is None:
            message = ErrorMessages.ANSWER_ALREADY_RECORDED
            extra: Dict[str, Any] = {}
        else:
            message = ErrorMessages.duplicate_answer(question_id)
            extra = {"question_id": question_id}
        super().__init__(message, extra=extra)
        self.question_id = question_id


class SessionAlreadyFinished(AssessmentError):
    status_code = status.HTTP_409_CONFLICT
    code = "session_finished"

    def __init__(self, message: str = ErrorMessages.SESSION_ALREADY_FINISHED):
        super().__init__(message)


class GradingUnavailable(Exception):
    """The grading service failed or returned unusable output.

    Recovered inside grading; never surfaced to API callers.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
