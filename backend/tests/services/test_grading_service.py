"""
Tests for the OpenAI grading client and response parsing.

The OpenAI client is mocked; no network calls are made.
"""
import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from mockprep.core.config import settings
from mockprep.core.error_responses import ErrorMessages
from mockprep.core.exceptions import GradingUnavailable
from mockprep.core.grading import grade_interview
from mockprep.models import GradingStatus
from mockprep.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from mockprep.services.grading_service import (
    OpenAIGradingService,
    UnavailableGradingService,
    get_grading_service,
    parse_grading_response,
)


def _completion(content: str):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def _service(create: AsyncMock, **kwargs) -> OpenAIGradingService:
    client = MagicMock()
    client.chat.completions.create = create
    kwargs.setdefault(
        "circuit_breaker",
        CircuitBreaker("grading-test", CircuitBreakerConfig(failure_threshold=2)),
    )
    return OpenAIGradingService(api_key="sk-test", client=client, **kwargs)


class TestParseGradingResponse:
    def test_full_response(self):
        result = parse_grading_response(
            {
                "relevant": True,
                "score": "8",
                "feedback": {
                    "strengths": ["Correct definition"],
                    "mistakes": "Missed complexity",
                    "improvements": [],
                },
                "reference_answer": "  A heap is a complete binary tree.  ",
            }
        )

        assert result.score == 8.0
        assert result.relevant is True
        assert "Strengths:\n- Correct definition" in result.feedback
        assert "Mistakes / Gaps:\nMissed complexity" in result.feedback
        assert "Improvements" not in result.feedback
        assert result.reference_answer == "A heap is a complete binary tree."

    @pytest.mark.parametrize("score", [None, "high", True, float("nan")])
    def test_unusable_score_becomes_none(self, score):
        result = parse_grading_response({"score": score, "feedback": "ok"})
        assert result.score is None
        assert result.feedback == "ok"

    def test_irrelevant_answer(self):
        result = parse_grading_response({"relevant": False})
        assert result.relevant is False

    @pytest.mark.parametrize("payload", [[], "text", {"unexpected": 1}, {}])
    def test_unusable_payload_raises(self, payload):
        with pytest.raises(GradingUnavailable):
            parse_grading_response(payload)


class TestOpenAIGradingService:
    async def test_grade_parses_json_response(self):
        create = AsyncMock(
            return_value=_completion(
                json.dumps(
                    {"score": 6.5, "feedback": "Decent", "reference_answer": "Ideal"}
                )
            )
        )
        service = _service(create, model="gpt-test", grading_temperature=0.2)

        result = await service.grade("What is a trie?", "A tree of prefixes.", "easy")

        assert result.score == 6.5
        assert result.feedback == "Decent"
        assert result.reference_answer == "Ideal"
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["temperature"] == 0.2
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "A tree of prefixes." in kwargs["messages"][1]["content"]
        assert "What is a trie?" in kwargs["messages"][1]["content"]

    async def test_reference_answer(self):
        create = AsyncMock(
            return_value=_completion(json.dumps({"reference_answer": "Ideal"}))
        )
        service = _service(create, reference_temperature=0.9)

        assert await service.reference_answer("Q?", "hard") == "Ideal"
        assert create.call_args.kwargs["temperature"] == 0.9

    async def test_reference_answer_missing_raises(self):
        create = AsyncMock(return_value=_completion(json.dumps({"score": 3})))
        service = _service(create)

        with pytest.raises(GradingUnavailable):
            await service.reference_answer("Q?", "hard")

    async def test_invalid_json_raises_grading_unavailable(self):
        service = _service(AsyncMock(return_value=_completion("not json")))

        with pytest.raises(GradingUnavailable) as exc_info:
            await service.grade("Q?", "A", "easy")
        assert isinstance(exc_info.value.cause, json.JSONDecodeError)

    @pytest.mark.parametrize(
        "completion",
        [
            SimpleNamespace(choices=[]),
            SimpleNamespace(choices=[SimpleNamespace()]),
            SimpleNamespace(choices=None),
        ],
    )
    async def test_malformed_completion_raises_grading_unavailable(self, completion):
        service = _service(AsyncMock(return_value=completion))

        with pytest.raises(GradingUnavailable) as exc_info:
            await service.grade("Q?", "A", "easy")
        assert isinstance(exc_info.value.cause, (IndexError, AttributeError, TypeError))

    async def test_empty_choices_fall_back_when_grading_an_answer(self):
        """A completion with no choices still produces a recordable grade."""
        service = _service(AsyncMock(return_value=SimpleNamespace(choices=[])))

        outcome = await grade_interview(service, "Q?", "some answer", "easy")

        assert outcome.grading_status == GradingStatus.FALLBACK
        assert outcome.score == settings.GRADING_FALLBACK_SCORE
        assert outcome.answer_text == "some answer"
        assert outcome.reference_answer == ErrorMessages.REFERENCE_ANSWER_UNAVAILABLE

    async def test_api_error_raises_grading_unavailable(self):
        error = openai.APIConnectionError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        )
        service = _service(AsyncMock(side_effect=error))

        with pytest.raises(GradingUnavailable) as exc_info:
            await service.grade("Q?", "A", "easy")
        assert exc_info.value.cause is error

    async def test_timeout_raises_grading_unavailable(self):
        async def slow(**kwargs):
            await asyncio.sleep(1)

        service = _service(AsyncMock(side_effect=slow), timeout=0.01)

        with pytest.raises(GradingUnavailable):
            await service.grade("Q?", "A", "easy")

    async def test_open_circuit_skips_the_call(self):
        create = AsyncMock(side_effect=openai.APIConnectionError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        ))
        service = _service(create)

        for _ in range(2):
            with pytest.raises(GradingUnavailable):
                await service.grade("Q?", "A", "easy")
        assert service.circuit_breaker.state == CircuitState.OPEN

        with pytest.raises(GradingUnavailable):
            await service.grade("Q?", "A", "easy")
        assert create.await_count == 2


class TestGetGradingService:
    def test_without_api_key_returns_unavailable_service(self):
        get_grading_service.cache_clear()
        try:
            with patch("mockprep.services.grading_service.settings") as mock_settings:
                mock_settings.OPENAI_API_KEY = ""
                service = get_grading_service()
        finally:
            get_grading_service.cache_clear()

        assert isinstance(service, UnavailableGradingService)

    async def test_unavailable_service_always_raises(self):
        service = UnavailableGradingService()

        with pytest.raises(GradingUnavailable):
            await service.grade("Q?", "A", "easy")
        with pytest.raises(GradingUnavailable):
            await service.reference_answer("Q?", "easy")
