"""
Question catalog lookups used by session setup.
"""
import logging
from typing import List, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mockprep.core.config import settings
from mockprep.core.error_responses import ErrorMessages
from mockprep.core.exceptions import InvalidParameters
from mockprep.models import AssessmentKind, DifficultyLevel, Question

logger = logging.getLogger(__name__)

_DIFFICULTY_ALIASES = {"difficult": DifficultyLevel.HARD}


def parse_difficulty(value: Union[str, DifficultyLevel]) -> DifficultyLevel:
    """
    Parse a difficulty name case-insensitively.

    Accepts "easy", "medium", "hard" and the alias "difficult".

    Raises:
        InvalidParameters: If the value is not a known difficulty
    """
    if isinstance(value, DifficultyLevel):
        return value
    normalized = str(value).strip().lower()
    if normalized in _DIFFICULTY_ALIASES:
        return _DIFFICULTY_ALIASES[normalized]
    try:
        return DifficultyLevel(normalized)
    except ValueError:
        raise InvalidParameters(
            ErrorMessages.invalid_choice(
                "difficulty", value, [d.value for d in DifficultyLevel]
            )
        )


def resolve_subject(value: Optional[str]) -> str:
    """
    Expand a subject shorthand ("ds", "os", ...) to its catalog name.

    Unknown subjects are returned trimmed but otherwise unchanged.

    Raises:
        InvalidParameters: If the subject is empty
    """
    if value is None or not value.strip():
        raise InvalidParameters(ErrorMessages.SUBJECT_REQUIRED)
    subject = value.strip()
    return settings.SUBJECT_ALIASES.get(subject.lower(), subject)


async def sample_questions(
    db: AsyncSession,
    kind: AssessmentKind,
    subject: str,
    difficulty: DifficultyLevel,
    n: int,
) -> List[Question]:
    """
    Draw up to n distinct active questions at random.

    Subject matching is case-insensitive. Fewer than n questions are returned
    only when fewer than n match; callers decide whether that is an error.
    """
    stmt = (
        select(Question)
        .where(
            Question.is_active == True,  # noqa: E712
            Question.kind == kind,
            Question.difficulty == difficulty,
            func.lower(Question.subject) == subject.lower(),
        )
        .order_by(func.random())
        .limit(n)
    )
    result = await db.execute(stmt)
    questions = list(result.scalars().all())

    logger.debug(
        f"Sampled {len(questions)}/{n} {kind.value} questions "
        f"(subject={subject}, difficulty={difficulty.value})"
    )
    return questions
