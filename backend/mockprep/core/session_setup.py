"""
Session setup: parameter validation, question sampling and atomic assignment.

A session always has exactly the requested number of questions. If the
catalog cannot supply them, nothing is written and InsufficientQuestions
reports how many are available.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from mockprep.core.config import settings
from mockprep.core.db_error_handling import rollback_on_error
from mockprep.core.error_responses import ErrorMessages
from mockprep.core.exceptions import InsufficientQuestions, InvalidParameters
from mockprep.core.question_store import (
    parse_difficulty,
    resolve_subject,
    sample_questions,
)
from mockprep.models import (
    AssessmentKind,
    AssessmentSession,
    DifficultyLevel,
    InputType,
    Question,
    SessionQuestion,
)

logger = logging.getLogger(__name__)

NO_LIMIT = "nolimit"

TimeLimit = Union[str, int, None]


@dataclass(frozen=True)
class SessionParameters:
    """Validated, normalized session setup parameters."""

    kind: AssessmentKind
    difficulty: DifficultyLevel
    subject: str
    question_count: int
    time_limit_seconds: Optional[int]
    input_type: Optional[InputType]


@dataclass
class SessionSetupResult:
    session: AssessmentSession
    questions: List[Question]


def _parse_kind(kind: Union[str, AssessmentKind]) -> AssessmentKind:
    if isinstance(kind, AssessmentKind):
        return kind
    try:
        return AssessmentKind(str(kind).strip().lower())
    except ValueError:
        raise InvalidParameters(
            ErrorMessages.invalid_choice("kind", kind, [k.value for k in AssessmentKind])
        )


def _parse_interview_time_limit(time_limit: TimeLimit) -> Optional[int]:
    limits = settings.INTERVIEW_TIME_LIMITS
    if time_limit is None:
        return None
    if isinstance(time_limit, str):
        label = time_limit.strip().lower()
        if label in limits:
            return limits[label]
        if label.isdigit():
            time_limit = int(label)
    if isinstance(time_limit, int) and time_limit in limits.values():
        return time_limit
    raise InvalidParameters(
        ErrorMessages.invalid_choice("time limit", time_limit, list(limits.keys()))
    )


def _parse_quiz_time_limit(time_limit: TimeLimit) -> Optional[int]:
    allowed = settings.QUIZ_TIME_LIMITS
    if time_limit is None:
        return None
    if isinstance(time_limit, str):
        label = time_limit.strip().lower()
        if label == NO_LIMIT:
            return None
        if label.isdigit():
            time_limit = int(label)
    if isinstance(time_limit, int) and time_limit in allowed:
        return time_limit
    raise InvalidParameters(
        ErrorMessages.invalid_choice("time limit", time_limit, [NO_LIMIT, *allowed])
    )


def _parse_input_type(input_type: Union[str, InputType, None]) -> InputType:
    if input_type is None:
        return InputType.TEXT
    if isinstance(input_type, InputType):
        return input_type
    try:
        return InputType(input_type.strip().lower())
    except ValueError:
        raise InvalidParameters(
            ErrorMessages.invalid_choice(
                "input type", input_type, [t.value for t in InputType]
            )
        )


def validate_setup(
    kind: Union[str, AssessmentKind],
    difficulty: Union[str, DifficultyLevel],
    subject: Optional[str],
    question_count: int,
    time_limit: TimeLimit = NO_LIMIT,
    input_type: Union[str, InputType, None] = None,
) -> SessionParameters:
    """
    Validate and normalize raw setup parameters.

    Interview sessions take 5-25 questions and a time limit label
    ("nolimit", "30sec", "45sec", "1min", "2min"); quiz sessions take 5-15
    questions and a limit of 15, 30, 45 or 60 seconds. Bounds come from
    settings.

    Raises:
        InvalidParameters: On any missing or out-of-range value
    """
    parsed_kind = _parse_kind(kind)
    parsed_difficulty = parse_difficulty(difficulty)
    canonical_subject = resolve_subject(subject)

    if parsed_kind == AssessmentKind.INTERVIEW:
        minimum, maximum = settings.INTERVIEW_MIN_QUESTIONS, settings.INTERVIEW_MAX_QUESTIONS
        time_limit_seconds = _parse_interview_time_limit(time_limit)
        parsed_input_type: Optional[InputType] = _parse_input_type(input_type)
    else:
        minimum, maximum = settings.QUIZ_MIN_QUESTIONS, settings.QUIZ_MAX_QUESTIONS
        time_limit_seconds = _parse_quiz_time_limit(time_limit)
        parsed_input_type = None

    if not isinstance(question_count, int) or not minimum <= question_count <= maximum:
        raise InvalidParameters(
            ErrorMessages.question_count_out_of_range(minimum, maximum),
            extra={"minimum": minimum, "maximum": maximum},
        )

    return SessionParameters(
        kind=parsed_kind,
        difficulty=parsed_difficulty,
        subject=canonical_subject,
        question_count=question_count,
        time_limit_seconds=time_limit_seconds,
        input_type=parsed_input_type,
    )


async def create_session(
    db: AsyncSession, user_id: int, params: SessionParameters
) -> SessionSetupResult:
    """
    Sample questions and persist the session with its assignment.

    The session row and every SessionQuestion row are written in one
    transaction; any failure rolls back all of them.

    Raises:
        InsufficientQuestions: If fewer than question_count questions match
        DatabaseOperationError: If the write fails
    """
    questions = await sample_questions(
        db, params.kind, params.subject, params.difficulty, params.question_count
    )
    if len(questions) < params.question_count:
        logger.info(
            f"Insufficient questions for {params.kind.value} session "
            f"(subject={params.subject}, difficulty={params.difficulty.value}, "
            f"available={len(questions)}, requested={params.question_count})"
        )
        raise InsufficientQuestions(
            available=len(questions), requested=params.question_count
        )

    async with rollback_on_error(db, "create assessment session"):
        session = AssessmentSession(
            user_id=user_id,
            kind=params.kind,
            difficulty=params.difficulty,
            subject=params.subject,
            requested_question_count=params.question_count,
            time_limit_seconds=params.time_limit_seconds,
            input_type=params.input_type,
        )
        db.add(session)
        await db.flush()

        db.add_all(
            SessionQuestion(
                session_id=session.id, question_id=question.id, position=position
            )
            for position, question in enumerate(questions)
        )
        await db.commit()

    logger.info(
        f"Created {params.kind.value} session {session.id} for user {user_id} "
        f"with {len(questions)} questions",
        extra={"session_id": session.id},
    )
    return SessionSetupResult(session=session, questions=questions)
