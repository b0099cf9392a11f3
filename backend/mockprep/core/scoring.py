"""
Session score aggregation.

Scores are always derived from persisted answers. Finishing a session
stores the result once; finishing again returns the stored result.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mockprep.core.datetime_utils import ensure_timezone_aware, utc_now
from mockprep.core.db_error_handling import rollback_on_error
from mockprep.core.session_repository import (
    count_assigned_questions,
    lock_session_if_open,
)
from mockprep.models import Answer, AssessmentKind, AssessmentSession

logger = logging.getLogger(__name__)

SCORE_PRECISION = 2


@dataclass
class SessionScore:
    """Aggregated result for a session.

    Attributes:
        final_score: Mean of persisted answer scores (0.0 with no answers)
        answered_count: Number of persisted answers
        total_questions: Number of assigned questions
        correct_count: Correct quiz answers; None for interview sessions
        finished_at: When the session was finished, if it has been
    """

    final_score: float
    answered_count: int
    total_questions: int
    correct_count: Optional[int] = None
    finished_at: Optional[datetime] = None


async def calculate_average_score(db: AsyncSession, session_id: int) -> float:
    """Mean of all persisted answer scores for the session."""
    result = await db.execute(
        select(func.avg(Answer.score)).where(Answer.session_id == session_id)
    )
    average = result.scalar_one_or_none()
    if average is None:
        return 0.0
    return round(float(average), SCORE_PRECISION)


async def compute_session_score(
    db: AsyncSession, session: AssessmentSession
) -> SessionScore:
    """Recompute the session score from its answers."""
    result = await db.execute(
        select(
            func.avg(Answer.score),
            func.count(Answer.id),
            func.sum(case((Answer.is_correct == True, 1), else_=0)),  # noqa: E712
        ).where(Answer.session_id == session.id)
    )
    average, answered_count, correct_sum = result.one()

    correct_count: Optional[int] = None
    if session.kind == AssessmentKind.QUIZ:
        correct_count = int(correct_sum or 0)

    return SessionScore(
        final_score=round(float(average), SCORE_PRECISION) if average is not None else 0.0,
        answered_count=int(answered_count or 0),
        total_questions=await count_assigned_questions(db, session.id),
        correct_count=correct_count,
        finished_at=ensure_timezone_aware(session.finished_at),
    )


async def finish_session(db: AsyncSession, session: AssessmentSession) -> SessionScore:
    """
    Mark the session finished and store its final score.

    The score is computed under the session row lock that answer inserts
    also take, so no answer can land between the computation and the
    update. The update only applies while finished_at is still NULL, so
    concurrent or repeated finishes store the score exactly once and later
    calls return the stored values.
    """
    if session.finished_at is None:
        async with rollback_on_error(db, "finish session"):
            if await lock_session_if_open(db, session.id):
                score = await compute_session_score(db, session)
                result = await db.execute(
                    update(AssessmentSession)
                    .where(
                        AssessmentSession.id == session.id,
                        AssessmentSession.finished_at.is_(None),
                    )
                    .values(
                        finished_at=utc_now(),
                        final_score=score.final_score,
                        correct_count=score.correct_count,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount:
                    logger.info(
                        f"Finished session {session.id} with final score "
                        f"{score.final_score}",
                        extra={"session_id": session.id},
                    )
            await db.commit()
        await db.refresh(session)

    answered = await db.execute(
        select(func.count(Answer.id)).where(Answer.session_id == session.id)
    )
    return SessionScore(
        final_score=session.final_score if session.final_score is not None else 0.0,
        answered_count=answered.scalar_one(),
        total_questions=await count_assigned_questions(db, session.id),
        correct_count=session.correct_count,
        finished_at=ensure_timezone_aware(session.finished_at),
    )
