"""
Assessment session endpoints: setup, answer submission, finishing and results.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mockprep.core.answer_ingestion import AnswerSubmission, submit_answer
from mockprep.core.auth import get_current_user
from mockprep.core.datetime_utils import ensure_timezone_aware
from mockprep.core.scoring import compute_session_score, finish_session
from mockprep.core.session_repository import (
    get_answers_by_question,
    get_assigned_questions,
    get_owned_session,
    get_visible_session,
)
from mockprep.core.session_setup import create_session, validate_setup
from mockprep.models import (
    Answer,
    AssessmentKind,
    AssessmentSession,
    Question,
    User,
    get_db,
)
from mockprep.schemas.answers import (
    AnswerSubmitRequest,
    GradedQuestionResult,
    QuestionResult,
    SessionResultsResponse,
    SubmitAnswerResponse,
    UnansweredQuestionResult,
)
from mockprep.schemas.questions import QuestionResponse
from mockprep.schemas.sessions import (
    FinishSessionResponse,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionDetailResponse,
    SessionResponse,
)
from mockprep.services.grading_service import GradingService, get_grading_service

router = APIRouter()


def session_to_response(session: AssessmentSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        kind=session.kind.value,
        difficulty=session.difficulty.value,
        subject=session.subject,
        requested_question_count=session.requested_question_count,
        time_limit_seconds=session.time_limit_seconds,
        input_type=session.input_type.value if session.input_type else None,
        started_at=ensure_timezone_aware(session.started_at),
        finished_at=ensure_timezone_aware(session.finished_at),
        final_score=session.final_score,
    )


def _questions_to_response(
    session: AssessmentSession, questions: List[Question]
) -> List[QuestionResponse]:
    responses = [QuestionResponse.model_validate(q) for q in questions]
    if session.kind != AssessmentKind.QUIZ:
        for response in responses:
            response.options = None
    return responses


def _answer_fields(
    answer: Answer, question: Question, kind: AssessmentKind
) -> dict:
    """Shared fields of submit responses and graded result entries.

    The correct option is only revealed for a question that has been
    answered, which is always the case here.
    """
    fields = {
        "question_id": answer.question_id,
        "score": answer.score,
        "grading_status": answer.grading_status.value,
        "is_skipped": answer.is_skipped,
        "answer_text": answer.answer_text or "",
        "submitted_at": ensure_timezone_aware(answer.submitted_at),
    }
    if kind == AssessmentKind.QUIZ:
        fields.update(
            selected_option=answer.selected_option,
            is_correct=answer.is_correct,
            correct_option=question.correct_option,
            explanation=question.explanation,
        )
    else:
        fields.update(
            feedback=answer.feedback,
            reference_answer=answer.reference_answer,
        )
    return fields


@router.post(
    "",
    response_model=SessionCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assessment_session(
    request: SessionCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a session with a fixed, ordered set of questions.

    Fails with 409 insufficient_questions (including the available count)
    when the catalog cannot fill the session; nothing is created in that case.
    """
    params = validate_setup(
        kind=request.kind,
        difficulty=request.difficulty,
        subject=request.subject,
        question_count=request.question_count,
        time_limit=request.time_limit,
        input_type=request.input_type,
    )
    result = await create_session(db, current_user.id, params)

    return SessionCreateResponse(
        session=session_to_response(result.session),
        questions=_questions_to_response(result.session, result.questions),
        total_questions=len(result.questions),
    )


@router.get("/{session_id}", response_model=SessionDetailResponse)
async def get_assessment_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get a session and its questions in presentation order.

    Sessions owned by other users are reported as not found.
    """
    session = await get_visible_session(db, session_id, current_user.id)
    questions = await get_assigned_questions(db, session_id)
    answers = await get_answers_by_question(db, session_id)

    return SessionDetailResponse(
        session=session_to_response(session),
        questions=_questions_to_response(session, questions),
        answered_question_ids=[q.id for q in questions if q.id in answers],
    )


@router.post(
    "/{session_id}/answers",
    response_model=SubmitAnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_session_answer(
    session_id: int,
    request: AnswerSubmitRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    grader: GradingService = Depends(get_grading_service),
):
    """
    Record and grade the answer to one question.

    Each question accepts exactly one answer; later submissions return 409
    duplicate_submission and leave the recorded answer untouched.
    """
    result = await submit_answer(
        db,
        grader,
        session_id,
        current_user.id,
        AnswerSubmission(
            question_id=request.question_id,
            answer_text=request.answer_text,
            selected_option=request.selected_option,
            skip=request.skip,
        ),
    )
    return SubmitAnswerResponse(
        **_answer_fields(result.answer, result.question, result.kind),
        average_score=result.average_score,
    )


@router.post("/{session_id}/finish", response_model=FinishSessionResponse)
async def finish_assessment_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Finish a session and store its final score.

    Finishing again returns the stored result.
    """
    session = await get_owned_session(db, session_id, current_user.id)
    score = await finish_session(db, session)

    return FinishSessionResponse(
        session_id=session_id,
        final_score=score.final_score,
        correct_count=score.correct_count,
        total_questions=score.total_questions,
        answered_count=score.answered_count,
        finished_at=score.finished_at,
    )


@router.get("/{session_id}/results", response_model=SessionResultsResponse)
async def get_session_results(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get per-question results in presentation order.

    The session score is recomputed from recorded answers on every call.
    Quiz correct options are revealed for answered questions, and for all
    questions once the session is finished.
    """
    session = await get_visible_session(db, session_id, current_user.id)
    questions = await get_assigned_questions(db, session_id)
    answers = await get_answers_by_question(db, session_id)
    score = await compute_session_score(db, session)
    reveal_all = session.finished_at is not None and session.kind == AssessmentKind.QUIZ

    per_question: List[QuestionResult] = []
    for position, question in enumerate(questions):
        answer: Optional[Answer] = answers.get(question.id)
        if answer is None:
            per_question.append(
                UnansweredQuestionResult(
                    question_id=question.id,
                    position=position,
                    content=question.content,
                    correct_option=question.correct_option if reveal_all else None,
                    explanation=question.explanation if reveal_all else None,
                )
            )
        else:
            per_question.append(
                GradedQuestionResult(
                    **_answer_fields(answer, question, session.kind),
                    position=position,
                    content=question.content,
                )
            )

    return SessionResultsResponse(
        session_id=session.id,
        kind=session.kind.value,
        final_score=score.final_score,
        correct_count=score.correct_count,
        total_questions=score.total_questions,
        answered_count=score.answered_count,
        finished_at=score.finished_at,
        per_question=per_question,
    )
