"""
Answer grading for quiz and interview questions.

Quiz answers are checked locally against the stored correct option.
Interview answers go to the grading service; every failure degrades to a
documented fallback so an answer can always be recorded:

- skipped or empty answer: score 0, canned feedback, reference answer still
  requested
- service failure or unusable output: neutral fallback score and an
  "automated feedback unavailable" message
- partial output: each missing field is filled independently (missing score
  takes the fallback score, missing feedback a placeholder, missing reference
  answer a separate reference request)
"""
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from mockprep.core.config import settings
from mockprep.core.error_responses import ErrorMessages
from mockprep.core.exceptions import GradingUnavailable
from mockprep.core.graceful_failure import graceful_failure
from mockprep.models import GradingStatus
from mockprep.services.grading_service import GradingService

logger = logging.getLogger(__name__)

SKIPPED_OPTION = "skipped"

MIN_INTERVIEW_SCORE = 0.0
MAX_INTERVIEW_SCORE = 10.0

# Per-answer quiz scores; the session mean is then the percentage correct
QUIZ_CORRECT_SCORE = 100.0
QUIZ_INCORRECT_SCORE = 0.0


@dataclass
class GradeOutcome:
    """Everything needed to insert a fully graded answer."""

    score: float
    grading_status: GradingStatus
    answer_text: str = ""
    selected_option: Optional[str] = None
    is_skipped: bool = False
    is_correct: Optional[bool] = None
    feedback: Optional[str] = None
    reference_answer: Optional[str] = None


def _option_values(options: Any) -> List[str]:
    if isinstance(options, dict):
        return [str(v) for v in options.values()]
    if isinstance(options, (list, tuple)):
        return [str(v) for v in options]
    return []


def canonical_option(options: Any, value: Optional[str]) -> Optional[str]:
    """
    Map a selected option onto the option's canonical value.

    Resolution order: exact option value (case-insensitive), option key for
    letter-keyed mappings, letter position ("A" is the first option), digit
    position ("0" is the first option). Anything else is returned unchanged
    so it simply compares unequal. Empty values and the "skipped" sentinel
    map to None.

    >>> canonical_option(["x", "y"], "B")
    'y'
    >>> canonical_option({"A": "x", "B": "y"}, "a")
    'x'
    """
    if value is None:
        return None
    raw = str(value).strip()
    if not raw or raw.lower() == SKIPPED_OPTION:
        return None

    values = _option_values(options)
    for option in values:
        if option.strip().lower() == raw.lower():
            return option

    if isinstance(options, dict):
        for key, option in options.items():
            if str(key).strip().lower() == raw.lower():
                return str(option)

    if len(raw) == 1 and raw.isalpha():
        index = ord(raw.upper()) - ord("A")
        if 0 <= index < len(values):
            return values[index]

    if raw.isdigit():
        index = int(raw)
        if 0 <= index < len(values):
            return values[index]

    return raw


def grade_quiz(
    options: Any,
    correct_option: Optional[str],
    selected_option: Optional[str],
    skip: bool = False,
) -> GradeOutcome:
    """Grade a multiple-choice answer locally."""
    selected = None if skip else canonical_option(options, selected_option)
    if selected is None:
        return GradeOutcome(
            score=QUIZ_INCORRECT_SCORE,
            grading_status=GradingStatus.SKIPPED,
            selected_option=SKIPPED_OPTION,
            is_skipped=True,
            is_correct=False,
        )

    is_correct = selected == canonical_option(options, correct_option)
    return GradeOutcome(
        score=QUIZ_CORRECT_SCORE if is_correct else QUIZ_INCORRECT_SCORE,
        grading_status=GradingStatus.GRADED,
        selected_option=selected,
        is_correct=is_correct,
    )


def clamp_score(score: float) -> float:
    return max(MIN_INTERVIEW_SCORE, min(MAX_INTERVIEW_SCORE, float(score)))


async def _reference_or_default(
    grader: GradingService, question: str, difficulty: str
) -> str:
    reference: Optional[str] = None
    with graceful_failure("generate reference answer", logger):
        reference = await grader.reference_answer(question, difficulty)
    return reference or ErrorMessages.REFERENCE_ANSWER_UNAVAILABLE


async def grade_interview(
    grader: GradingService,
    question: str,
    answer_text: Optional[str],
    difficulty: str,
    skip: bool = False,
) -> GradeOutcome:
    """
    Grade a free-text answer, degrading instead of failing.

    Never raises: any grading failure yields the fallback outcome so the
    answer can still be recorded.
    """
    text = (answer_text or "").strip()
    if skip or not text:
        return GradeOutcome(
            score=MIN_INTERVIEW_SCORE,
            grading_status=GradingStatus.SKIPPED,
            is_skipped=True,
            feedback=ErrorMessages.SKIPPED_FEEDBACK,
            reference_answer=await _reference_or_default(grader, question, difficulty),
        )

    try:
        result = await grader.grade(question, text, difficulty)
    except Exception as e:
        if isinstance(e, GradingUnavailable):
            logger.warning(
                f"Grading unavailable, applying fallback score: {e}",
                extra={"grading_status": GradingStatus.FALLBACK.value},
            )
        else:
            logger.error(
                f"Unexpected grading error, applying fallback score: {e!r}",
                exc_info=True,
                extra={"grading_status": GradingStatus.FALLBACK.value},
            )
        return GradeOutcome(
            score=settings.GRADING_FALLBACK_SCORE,
            grading_status=GradingStatus.FALLBACK,
            answer_text=text,
            feedback=ErrorMessages.GRADING_UNAVAILABLE_FEEDBACK,
            reference_answer=await _reference_or_default(grader, question, difficulty),
        )

    if not result.relevant:
        score = MIN_INTERVIEW_SCORE
        feedback: Optional[str] = ErrorMessages.IRRELEVANT_ANSWER_FEEDBACK
        status = GradingStatus.GRADED
    elif result.score is None:
        logger.warning("Grading response had no score, applying fallback score")
        score = settings.GRADING_FALLBACK_SCORE
        feedback = result.feedback
        status = GradingStatus.FALLBACK
    else:
        score = clamp_score(result.score)
        feedback = result.feedback
        status = GradingStatus.GRADED

    reference = result.reference_answer
    if reference is None:
        reference = await _reference_or_default(grader, question, difficulty)

    return GradeOutcome(
        score=score,
        grading_status=status,
        answer_text=text,
        feedback=feedback or ErrorMessages.MISSING_FEEDBACK,
        reference_answer=reference,
    )
