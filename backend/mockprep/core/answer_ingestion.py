"""
Idempotent answer ingestion.

At most one answer exists per (session, question). Two checks enforce it:

1. An app-level lookup rejects sequential duplicates before any grading work
   is done and can name the question in the error.
2. The uq_answer_session_question constraint rejects concurrent duplicates
   that both passed the lookup; the loser's IntegrityError is rolled back and
   reported as the same DuplicateSubmission.

Answers are inserted fully graded in a single commit. No transaction is held
open while the grading service is called; the insert transaction re-checks
under the session row lock that the session was not finished meanwhile.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mockprep.core.db_error_handling import rollback_on_error
from mockprep.core.exceptions import (
    DuplicateSubmission,
    QuestionNotFound,
    SessionAlreadyFinished,
)
from mockprep.core.grading import GradeOutcome, grade_interview, grade_quiz
from mockprep.core.scoring import calculate_average_score
from mockprep.core.session_repository import (
    find_answer,
    get_assigned_question,
    get_owned_session,
    lock_session_if_open,
)
from mockprep.models import Answer, AssessmentKind, Question
from mockprep.services.grading_service import GradingService

logger = logging.getLogger(__name__)


@dataclass
class AnswerSubmission:
    question_id: int
    answer_text: Optional[str] = None
    selected_option: Optional[str] = None
    skip: bool = False


@dataclass
class IngestionResult:
    answer: Answer
    question: Question
    kind: AssessmentKind
    average_score: float


async def _grade(
    grader: GradingService,
    kind: AssessmentKind,
    question: Question,
    submission: AnswerSubmission,
) -> GradeOutcome:
    if kind == AssessmentKind.QUIZ:
        return grade_quiz(
            question.options,
            question.correct_option,
            submission.selected_option,
            skip=submission.skip,
        )
    return await grade_interview(
        grader,
        question.content,
        submission.answer_text,
        question.difficulty.value,
        skip=submission.skip,
    )


async def submit_answer(
    db: AsyncSession,
    grader: GradingService,
    session_id: int,
    user_id: int,
    submission: AnswerSubmission,
) -> IngestionResult:
    """
    Validate, grade and persist one answer.

    Raises:
        SessionNotFound: If the session does not exist
        Forbidden: If the session belongs to another user
        QuestionNotFound: If the question is not assigned to the session
        SessionAlreadyFinished: If the session was already finished
        DuplicateSubmission: If an answer is already recorded
    """
    session = await get_owned_session(db, session_id, user_id)

    question = await get_assigned_question(db, session_id, submission.question_id)
    if question is None:
        raise QuestionNotFound()

    if session.finished_at is not None:
        raise SessionAlreadyFinished()

    existing = await find_answer(db, session_id, submission.question_id)
    if existing is not None:
        logger.info(
            f"Rejected duplicate answer for question {submission.question_id} "
            f"in session {session_id}",
            extra={"session_id": session_id, "question_id": submission.question_id},
        )
        raise DuplicateSubmission(submission.question_id)

    kind = session.kind
    # End the read transaction; grading may take seconds
    await db.commit()

    outcome = await _grade(grader, kind, question, submission)

    answer = Answer(
        session_id=session_id,
        question_id=submission.question_id,
        answer_text=outcome.answer_text,
        selected_option=outcome.selected_option,
        is_skipped=outcome.is_skipped,
        score=outcome.score,
        feedback=outcome.feedback,
        reference_answer=outcome.reference_answer,
        is_correct=outcome.is_correct,
        grading_status=outcome.grading_status,
    )
    try:
        async with rollback_on_error(db, "record answer"):
            # The session may have been finished while grading ran
            if not await lock_session_if_open(db, session_id):
                logger.info(
                    f"Session {session_id} finished during grading, discarding "
                    f"answer for question {submission.question_id}",
                    extra={"session_id": session_id, "question_id": submission.question_id},
                )
                raise SessionAlreadyFinished()
            db.add(answer)
            await db.commit()
    except IntegrityError:
        logger.info(
            f"Concurrent duplicate answer for question {submission.question_id} "
            f"in session {session_id} lost the race",
            extra={"session_id": session_id, "question_id": submission.question_id},
        )
        raise DuplicateSubmission()

    logger.info(
        f"Recorded answer for question {submission.question_id} in session "
        f"{session_id} (score={outcome.score}, status={outcome.grading_status.value})",
        extra={
            "session_id": session_id,
            "question_id": submission.question_id,
            "grading_status": outcome.grading_status.value,
        },
    )
    return IngestionResult(
        answer=answer,
        question=question,
        kind=kind,
        average_score=await calculate_average_score(db, session_id),
    )
