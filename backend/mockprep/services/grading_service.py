"""Grading service clients for free-text interview answers.

The session engine depends only on the GradingService interface. Every
failure mode (network error, timeout, open circuit, malformed output) is
raised as GradingUnavailable; callers decide how to degrade.
"""

import asyncio
import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional

import openai
from openai import AsyncOpenAI

from mockprep.core.config import settings
from mockprep.core.exceptions import GradingUnavailable
from mockprep.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerOpen,
)
from mockprep.services.prompts import (
    FEEDBACK_SECTION_TITLES,
    GRADING_SYSTEM_PROMPT,
    build_grading_prompt,
    build_reference_prompt,
)

logger = logging.getLogger(__name__)


@dataclass
class GradingResult:
    """Parsed grading output.

    Any field may be None when the service omitted it or returned an
    unusable value; callers fill the gaps.
    """

    score: Optional[float]
    feedback: Optional[str]
    reference_answer: Optional[str]
    relevant: bool = True


class GradingService(ABC):
    """Grades free-text answers and produces reference answers."""

    @abstractmethod
    async def grade(self, question: str, answer: str, difficulty: str) -> GradingResult:
        """Grade an answer.

        Raises:
            GradingUnavailable: If no usable result could be obtained
        """

    @abstractmethod
    async def reference_answer(self, question: str, difficulty: str) -> str:
        """Produce an ideal answer for the question.

        Raises:
            GradingUnavailable: If no usable answer could be obtained
        """


class UnavailableGradingService(GradingService):
    """Stand-in used when no grading backend is configured."""

    async def grade(self, question: str, answer: str, difficulty: str) -> GradingResult:
        raise GradingUnavailable("No grading backend configured")

    async def reference_answer(self, question: str, difficulty: str) -> str:
        raise GradingUnavailable("No grading backend configured")


def _parse_score(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(score):
        return None
    return score


def _format_feedback(value: Any) -> Optional[str]:
    """Flatten structured feedback into readable sections."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        sections = []
        for key, title in FEEDBACK_SECTION_TITLES.items():
            text = value.get(key)
            if isinstance(text, list):
                text = "\n".join(f"- {item}" for item in text if item)
            if text:
                sections.append(f"{title}:\n{str(text).strip()}")
        return "\n\n".join(sections) or None
    return None


def _parse_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_grading_response(payload: Any) -> GradingResult:
    """Parse the JSON object returned by the grading model.

    Raises:
        GradingUnavailable: If the payload is not an object or carries none
            of the expected fields
    """
    if not isinstance(payload, dict):
        raise GradingUnavailable(
            f"Grading response is not a JSON object: {type(payload).__name__}"
        )

    result = GradingResult(
        score=_parse_score(payload.get("score")),
        feedback=_format_feedback(payload.get("feedback")),
        reference_answer=_parse_text(payload.get("reference_answer")),
        relevant=payload.get("relevant", True) is not False,
    )
    if (
        result.score is None
        and result.feedback is None
        and result.reference_answer is None
        and result.relevant
    ):
        raise GradingUnavailable(
            f"Grading response has no usable fields: {sorted(payload.keys())}"
        )
    return result


class OpenAIGradingService(GradingService):
    """Grades answers with an OpenAI chat model in JSON mode.

    Calls are bounded by a semaphore, a per-call timeout and a circuit
    breaker, so a slow or failing backend degrades quickly instead of
    holding requests open.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        grading_temperature: float = 0.6,
        reference_temperature: float = 0.7,
        max_tokens: int = 1200,
        timeout: float = 30.0,
        max_concurrent: int = 5,
        circuit_breaker: Optional[CircuitBreaker] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.grading_temperature = grading_temperature
        self.reference_temperature = reference_temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.client = client or AsyncOpenAI(api_key=api_key)
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            "grading-openai", CircuitBreakerConfig.from_settings()
        )

    async def _request_json(self, prompt: str, temperature: float) -> Dict[str, Any]:
        async with self._semaphore:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": GRADING_SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=temperature,
                    max_tokens=self.max_tokens,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout,
            )
        content = response.choices[0].message.content or ""
        return json.loads(content)

    async def _complete_json(self, prompt: str, temperature: float, operation: str) -> Any:
        try:
            return await self.circuit_breaker.execute_async(
                self._request_json, prompt, temperature
            )
        except CircuitBreakerOpen as e:
            logger.warning(f"Skipping {operation}: {e}")
            raise GradingUnavailable(str(e), cause=e) from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout during {operation} after {self.timeout}s")
            raise GradingUnavailable(f"{operation} timed out", cause=e) from e
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse {operation} response as JSON: {e}")
            raise GradingUnavailable(f"{operation} returned invalid JSON", cause=e) from e
        except (IndexError, AttributeError, TypeError) as e:
            logger.error(f"Malformed {operation} completion: {e!r}")
            raise GradingUnavailable(
                f"{operation} returned a malformed completion", cause=e
            ) from e
        except openai.OpenAIError as e:
            logger.error(f"OpenAI error during {operation}: {e}")
            raise GradingUnavailable(f"{operation} failed: {e}", cause=e) from e

    async def grade(self, question: str, answer: str, difficulty: str) -> GradingResult:
        payload = await self._complete_json(
            build_grading_prompt(question, answer, difficulty),
            self.grading_temperature,
            "answer grading",
        )
        return parse_grading_response(payload)

    async def reference_answer(self, question: str, difficulty: str) -> str:
        payload = await self._complete_json(
            build_reference_prompt(question, difficulty),
            self.reference_temperature,
            "reference answer generation",
        )
        reference = (
            _parse_text(payload.get("reference_answer"))
            if isinstance(payload, dict)
            else None
        )
        if reference is None:
            raise GradingUnavailable("Reference answer missing from response")
        return reference


@lru_cache(maxsize=1)
def get_grading_service() -> GradingService:
    """FastAPI dependency returning the process-wide grading service."""
    if not settings.OPENAI_API_KEY:
        logger.warning(
            "OPENAI_API_KEY is not set; interview answers will receive fallback grades"
        )
        return UnavailableGradingService()
    return OpenAIGradingService(
        api_key=settings.OPENAI_API_KEY,
        model=settings.GRADING_MODEL,
        grading_temperature=settings.GRADING_TEMPERATURE,
        reference_temperature=settings.REFERENCE_ANSWER_TEMPERATURE,
        max_tokens=settings.GRADING_MAX_TOKENS,
        timeout=settings.GRADING_TIMEOUT_SECONDS,
        max_concurrent=settings.GRADING_MAX_CONCURRENT,
    )
