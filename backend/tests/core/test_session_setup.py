"""
Tests for session setup: parameter validation and atomic question assignment.
"""
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from mockprep.core.db_error_handling import DatabaseOperationError
from mockprep.core.exceptions import InsufficientQuestions, InvalidParameters
from mockprep.core.session_setup import create_session, validate_setup
from mockprep.models import (
    AssessmentKind,
    AssessmentSession,
    DifficultyLevel,
    InputType,
    SessionQuestion,
)


class TestValidateSetup:
    def test_interview_defaults(self):
        params = validate_setup(
            kind="interview", difficulty="easy", subject="ds", question_count=5
        )

        assert params.kind == AssessmentKind.INTERVIEW
        assert params.difficulty == DifficultyLevel.EASY
        assert params.subject == "Data Structures"
        assert params.time_limit_seconds is None
        assert params.input_type == InputType.TEXT

    @pytest.mark.parametrize(
        "label,seconds",
        [("nolimit", None), ("30sec", 30), ("45sec", 45), ("1min", 60), ("2min", 120)],
    )
    def test_interview_time_limit_labels(self, label, seconds):
        params = validate_setup(
            kind="interview",
            difficulty="medium",
            subject="OOPs",
            question_count=10,
            time_limit=label,
        )
        assert params.time_limit_seconds == seconds

    def test_interview_accepts_voice_input(self):
        params = validate_setup(
            kind="interview",
            difficulty="hard",
            subject="DBMS",
            question_count=5,
            input_type="voice",
        )
        assert params.input_type == InputType.VOICE

    def test_quiz_time_limits_and_no_input_type(self):
        params = validate_setup(
            kind="quiz",
            difficulty="easy",
            subject="cn",
            question_count=15,
            time_limit=45,
            input_type="voice",
        )

        assert params.time_limit_seconds == 45
        assert params.input_type is None

    def test_quiz_accepts_numeric_string(self):
        params = validate_setup(
            kind="quiz", difficulty="easy", subject="cn", question_count=5, time_limit="30"
        )
        assert params.time_limit_seconds == 30

    @pytest.mark.parametrize(
        "kind,count",
        [("interview", 4), ("interview", 26), ("quiz", 4), ("quiz", 16)],
    )
    def test_question_count_out_of_range(self, kind, count):
        with pytest.raises(InvalidParameters) as exc_info:
            validate_setup(
                kind=kind, difficulty="easy", subject="ds", question_count=count
            )
        assert "minimum" in exc_info.value.extra

    @pytest.mark.parametrize(
        "overrides",
        [
            {"kind": "exam"},
            {"difficulty": "trivial"},
            {"subject": ""},
            {"time_limit": "3min"},
            {"input_type": "telepathy"},
        ],
    )
    def test_invalid_interview_parameters(self, overrides):
        kwargs = dict(
            kind="interview", difficulty="easy", subject="ds", question_count=5
        )
        kwargs.update(overrides)
        with pytest.raises(InvalidParameters):
            validate_setup(**kwargs)

    def test_quiz_rejects_interview_labels(self):
        with pytest.raises(InvalidParameters):
            validate_setup(
                kind="quiz",
                difficulty="easy",
                subject="ds",
                question_count=5,
                time_limit="30sec",
            )


class TestCreateSession:
    async def test_assigns_exactly_requested_questions_in_order(
        self, async_db_session, test_user, interview_questions
    ):
        params = validate_setup(
            kind="interview", difficulty="easy", subject="ds", question_count=5
        )

        result = await create_session(async_db_session, test_user.id, params)

        assert len(result.questions) == 5
        assert result.session.requested_question_count == 5
        assignments = (
            await async_db_session.execute(
                select(SessionQuestion)
                .where(SessionQuestion.session_id == result.session.id)
                .order_by(SessionQuestion.position)
            )
        ).scalars().all()
        assert [a.position for a in assignments] == [0, 1, 2, 3, 4]
        assert [a.question_id for a in assignments] == [q.id for q in result.questions]

    async def test_insufficient_questions_creates_nothing(
        self, async_db_session, test_user, make_questions
    ):
        await make_questions(AssessmentKind.INTERVIEW, 12)
        user_id = test_user.id
        params = validate_setup(
            kind="interview", difficulty="easy", subject="ds", question_count=20
        )

        with pytest.raises(InsufficientQuestions) as exc_info:
            await create_session(async_db_session, user_id, params)

        assert exc_info.value.available == 12
        assert exc_info.value.to_dict()["available"] == 12
        session_count = (
            await async_db_session.execute(select(func.count(AssessmentSession.id)))
        ).scalar_one()
        assignment_count = (
            await async_db_session.execute(select(func.count(SessionQuestion.id)))
        ).scalar_one()
        assert session_count == 0
        assert assignment_count == 0

    async def test_failed_assignment_write_rolls_back_session(
        self, async_db_session, test_user, interview_questions
    ):
        """A failure after the session row is flushed leaves no rows behind."""
        user_id = test_user.id
        params = validate_setup(
            kind="interview", difficulty="easy", subject="ds", question_count=5
        )
        failing_commit = AsyncMock(side_effect=SQLAlchemyError("disk I/O error"))

        with patch.object(async_db_session, "commit", failing_commit):
            with pytest.raises(DatabaseOperationError) as exc_info:
                await create_session(async_db_session, user_id, params)

        failing_commit.assert_awaited_once()
        assert exc_info.value.operation_name == "create assessment session"
        session_count = (
            await async_db_session.execute(select(func.count(AssessmentSession.id)))
        ).scalar_one()
        assignment_count = (
            await async_db_session.execute(select(func.count(SessionQuestion.id)))
        ).scalar_one()
        assert session_count == 0
        assert assignment_count == 0

    async def test_stores_time_limit_and_kind(
        self, async_db_session, test_user, quiz_questions
    ):
        params = validate_setup(
            kind="quiz", difficulty="easy", subject="ds", question_count=5, time_limit=15
        )

        result = await create_session(async_db_session, test_user.id, params)

        assert result.session.kind == AssessmentKind.QUIZ
        assert result.session.time_limit_seconds == 15
        assert result.session.finished_at is None
        assert result.session.final_score is None
