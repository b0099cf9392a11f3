"""
Lookups for assessment sessions, their assignments and answers.
"""
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mockprep.core.exceptions import Forbidden, SessionNotFound
from mockprep.models import Answer, AssessmentSession, Question, SessionQuestion


async def get_session_or_404(db: AsyncSession, session_id: int) -> AssessmentSession:
    """
    Fetch a session by id.

    Raises:
        SessionNotFound: If no such session exists
    """
    result = await db.execute(
        select(AssessmentSession).where(AssessmentSession.id == session_id)
    )
    session = result.scalar_one_or_none()
    if session is None:
        raise SessionNotFound()
    return session


async def get_visible_session(
    db: AsyncSession, session_id: int, user_id: int
) -> AssessmentSession:
    """
    Fetch a session for a read operation.

    Sessions owned by someone else are reported as missing so their
    existence is not disclosed.
    """
    session = await get_session_or_404(db, session_id)
    if session.user_id != user_id:
        raise SessionNotFound()
    return session


async def get_owned_session(
    db: AsyncSession, session_id: int, user_id: int
) -> AssessmentSession:
    """
    Fetch a session for a write operation.

    Raises:
        SessionNotFound: If the session does not exist
        Forbidden: If it belongs to another user
    """
    session = await get_session_or_404(db, session_id)
    if session.user_id != user_id:
        raise Forbidden()
    return session


async def lock_session_if_open(db: AsyncSession, session_id: int) -> bool:
    """
    Lock the session row until the current transaction ends.

    Answer inserts and finishing both take this lock first, so an answer
    is either counted in the stored final score or rejected.

    Returns:
        True if the session is still unfinished, False otherwise
    """
    result = await db.execute(
        select(AssessmentSession.finished_at)
        .where(AssessmentSession.id == session_id)
        .with_for_update()
    )
    return result.scalar_one() is None


async def get_assigned_questions(db: AsyncSession, session_id: int) -> List[Question]:
    """Return the session's questions in presentation order."""
    result = await db.execute(
        select(Question)
        .join(SessionQuestion, SessionQuestion.question_id == Question.id)
        .where(SessionQuestion.session_id == session_id)
        .order_by(SessionQuestion.position)
    )
    return list(result.scalars().all())


async def get_assigned_question(
    db: AsyncSession, session_id: int, question_id: int
) -> Optional[Question]:
    """Return the question if it belongs to the session's assignment."""
    result = await db.execute(
        select(Question)
        .join(SessionQuestion, SessionQuestion.question_id == Question.id)
        .where(
            SessionQuestion.session_id == session_id,
            SessionQuestion.question_id == question_id,
        )
    )
    return result.scalar_one_or_none()


async def count_assigned_questions(db: AsyncSession, session_id: int) -> int:
    result = await db.execute(
        select(func.count(SessionQuestion.id)).where(
            SessionQuestion.session_id == session_id
        )
    )
    return result.scalar_one()


async def find_answer(
    db: AsyncSession, session_id: int, question_id: int
) -> Optional[Answer]:
    result = await db.execute(
        select(Answer).where(
            Answer.session_id == session_id, Answer.question_id == question_id
        )
    )
    return result.scalar_one_or_none()


async def get_answers_by_question(
    db: AsyncSession, session_id: int
) -> Dict[int, Answer]:
    """Map question_id to answer for every answer recorded in the session."""
    result = await db.execute(
        select(Answer)
        .where(Answer.session_id == session_id)
        .order_by(Answer.submitted_at, Answer.id)
    )
    return {answer.question_id: answer for answer in result.scalars().all()}
