"""
Standardized user-facing error messages.

Message format guidelines:
- Sentence case, ending with a period
- Include relevant IDs in parentheses when helpful: "(ID: 123)"
- Never leak implementation details

Usage:
    from mockprep.core.error_responses import ErrorMessages, raise_unauthorized

    raise SessionNotFound(ErrorMessages.SESSION_NOT_FOUND)
    raise InsufficientQuestions(available=12, requested=20)
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates.

    Constants use SCREAMING_SNAKE_CASE, templates use snake_case methods.
    """

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."
    USER_NOT_FOUND_AUTH = "User not found."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    SESSION_ACCESS_DENIED = "Not authorized to modify this assessment session."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    SESSION_NOT_FOUND = "Assessment session not found."
    QUESTION_NOT_IN_SESSION = "Question is not part of this assessment session."

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    # Used when the database constraint catches a concurrent duplicate; the
    # transaction was rolled back so the original answer is not reloaded.
    ANSWER_ALREADY_RECORDED = "An answer has already been recorded for this question."
    SESSION_ALREADY_FINISHED = "This assessment session has already been finished."

    # ==========================================================================
    # Validation Errors (422)
    # ==========================================================================
    SUBJECT_REQUIRED = "Subject is required."

    # ==========================================================================
    # Grading Messages (shown to candidates, not errors)
    # ==========================================================================
    SKIPPED_FEEDBACK = "You need to answer the question first to get AI Feedback."
    GRADING_UNAVAILABLE_FEEDBACK = (
        "Automated feedback is unavailable right now. "
        "The answer has been recorded for manual review."
    )
    MISSING_FEEDBACK = "No specific feedback available."
    REFERENCE_ANSWER_UNAVAILABLE = "Unable to generate ideal answer at this time."
    IRRELEVANT_ANSWER_FEEDBACK = (
        "This answer is not relevant to the question, hence the score is 0."
    )

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def insufficient_questions(available: int, requested: int) -> str:
        """Message for when the catalog cannot fill a session."""
        return (
            f"Only {available} questions available for the selected criteria, "
            f"but {requested} were requested. "
            "Please choose fewer questions or a different subject or difficulty."
        )

    @staticmethod
    def question_count_out_of_range(minimum: int, maximum: int) -> str:
        """Message for a question count outside the allowed bounds."""
        return f"Question count must be between {minimum} and {maximum}."

    @staticmethod
    def invalid_choice(field: str, value: object, allowed: list) -> str:
        """Message for a parameter outside its allowed values."""
        allowed_str = ", ".join(str(a) for a in allowed)
        return f"Invalid {field} '{value}'. Allowed values: {allowed_str}."

    @staticmethod
    def duplicate_answer(question_id: int) -> str:
        """Message for an app-level duplicate submission."""
        return (
            f"An answer has already been recorded for this question "
            f"(ID: {question_id})."
        )


def raise_unauthorized(message: str) -> NoReturn:
    """Raise a 401 with the bearer challenge header."""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )
