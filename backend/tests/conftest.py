"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Settings and the engine are built at import time, so configure the
# environment before anything from mockprep is imported.
_TEST_DB = Path(__file__).parent / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB}"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ["ENV"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["SENTRY_DSN"] = ""

from contextlib import asynccontextmanager  # noqa: E402
from typing import AsyncGenerator, List, Optional  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mockprep.core.exceptions import GradingUnavailable  # noqa: E402
from mockprep.core.security import create_access_token  # noqa: E402
from mockprep.main import app  # noqa: E402
from mockprep.models import (  # noqa: E402
    AssessmentKind,
    Base,
    DifficultyLevel,
    Question,
    User,
    get_db,
)
from mockprep.services.grading_service import (  # noqa: E402
    GradingResult,
    GradingService,
    get_grading_service,
)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests. Skips Sentry initialization."""
    yield


app.router.lifespan_context = _test_lifespan


ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)


class FakeGradingService(GradingService):
    """In-memory grading service.

    Returns `result` from grade() unless `grade_error` is set, and
    `reference` from reference_answer() unless `reference_error` is set.
    Every call is recorded.
    """

    def __init__(
        self,
        result: Optional[GradingResult] = None,
        reference: str = "A reference answer.",
    ):
        self.result = result or GradingResult(
            score=7.5,
            feedback="Clear and mostly complete.",
            reference_answer="An ideal answer.",
        )
        self.reference = reference
        self.grade_error: Optional[Exception] = None
        self.reference_error: Optional[Exception] = None
        self.grade_calls: List[tuple] = []
        self.reference_calls: List[tuple] = []

    async def grade(self, question: str, answer: str, difficulty: str) -> GradingResult:
        self.grade_calls.append((question, answer, difficulty))
        if self.grade_error is not None:
            raise self.grade_error
        return self.result

    async def reference_answer(self, question: str, difficulty: str) -> str:
        self.reference_calls.append((question, difficulty))
        if self.reference_error is not None:
            raise self.reference_error
        return self.reference

    def fail(self) -> None:
        """Make every call raise GradingUnavailable."""
        self.grade_error = GradingUnavailable("grading backend down")
        self.reference_error = GradingUnavailable("grading backend down")


@pytest.fixture(scope="function")
async def async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh async database session for each test.
    """
    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncTestingSessionLocal() as session:
        yield session

    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory():
    """Expose the session factory for tests that need independent sessions."""
    return AsyncTestingSessionLocal


@pytest.fixture
def fake_grader() -> FakeGradingService:
    return FakeGradingService()


@pytest.fixture(scope="function")
async def async_client(
    async_db_session: AsyncSession, fake_grader: FakeGradingService
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client with database and grading overrides.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_grading_service] = lambda: fake_grader
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_grading_service, None)


async def _create_user(db: AsyncSession, email: str) -> User:
    user = User(email=email, display_name=email.split("@")[0])
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def test_user(async_db_session):
    """Create a test user in the async database."""
    return await _create_user(async_db_session, "candidate@example.com")


@pytest.fixture
async def other_user(async_db_session):
    return await _create_user(async_db_session, "someone-else@example.com")


def _auth_headers(user_id: int) -> dict:
    access_token = create_access_token({"user_id": user_id})
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def auth_headers(test_user):
    """Create authentication headers for the test user."""
    return _auth_headers(test_user.id)


@pytest.fixture
def other_auth_headers(other_user):
    return _auth_headers(other_user.id)


@pytest.fixture
def make_questions(async_db_session):
    """
    Factory fixture inserting catalog questions.

    Quiz questions get letter-keyed options with "A" as the correct one.
    """

    async def _make(
        kind: AssessmentKind,
        count: int,
        subject: str = "Data Structures",
        difficulty: DifficultyLevel = DifficultyLevel.EASY,
        is_active: bool = True,
    ) -> List[Question]:
        questions = []
        for i in range(count):
            if kind == AssessmentKind.QUIZ:
                question = Question(
                    content=f"{subject} quiz question {i + 1}?",
                    kind=kind,
                    difficulty=difficulty,
                    subject=subject,
                    options={"A": f"right {i}", "B": f"wrong {i}", "C": "neither"},
                    correct_option="A",
                    explanation=f"Option A is right for question {i + 1}.",
                    is_active=is_active,
                )
            else:
                question = Question(
                    content=f"Explain {subject} concept number {i + 1}.",
                    kind=kind,
                    difficulty=difficulty,
                    subject=subject,
                    is_active=is_active,
                )
            questions.append(question)
        async_db_session.add_all(questions)
        await async_db_session.commit()
        return questions

    return _make


@pytest.fixture
async def interview_questions(make_questions):
    """Six easy Data Structures interview questions."""
    return await make_questions(AssessmentKind.INTERVIEW, 6)


@pytest.fixture
async def quiz_questions(make_questions):
    """Six easy Data Structures quiz questions."""
    return await make_questions(AssessmentKind.QUIZ, 6)
