"""
Async HTTP client for the session API.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import httpx

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    """Settings for the API client and submission coordinator.

    Attributes:
        base_url: Server root, e.g. "https://api.example.com"
        token: Bearer access token
        api_prefix: Versioned API prefix
        timeout: Per-request timeout in seconds
        submit_attempts: Total attempts for one submission before giving up
        retry_backoff: Seconds to wait before retry n, multiplied by n
        warning_seconds: Remaining seconds at which the time warning fires
        tick_interval: Seconds per timer tick
    """

    base_url: str
    token: str
    api_prefix: str = "/v1"
    timeout: float = 30.0
    submit_attempts: int = 3
    retry_backoff: float = 0.5
    warning_seconds: int = 5
    tick_interval: float = 1.0


class ApiError(Exception):
    """The server rejected a request (4xx)."""

    def __init__(self, status_code: int, detail: Any, code: Optional[str] = None):
        super().__init__(f"{status_code} {code or 'error'}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.code = code


class DuplicateSubmissionError(ApiError):
    """The question already has a recorded answer. Treat as settled."""


class SubmissionTransportError(Exception):
    """Network failure, timeout or server error. Safe to retry."""


class SessionApiClient:
    """Thin wrapper over httpx.AsyncClient for the session endpoints."""

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"Authorization": f"Bearer {config.token}"},
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SessionApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _path(self, suffix: str) -> str:
        return f"{self.config.api_prefix}/sessions{suffix}"

    async def _request(
        self, method: str, path: str, json: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise SubmissionTransportError(str(e) or e.__class__.__name__) from e

        if response.status_code >= 500:
            raise SubmissionTransportError(
                f"{method} {path} returned {response.status_code}"
            )
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {"detail": response.text}
            code = body.get("code") if isinstance(body, dict) else None
            detail = body.get("detail") if isinstance(body, dict) else body
            if code == "duplicate_submission":
                raise DuplicateSubmissionError(response.status_code, detail, code)
            raise ApiError(response.status_code, detail, code)

        return response.json()

    async def create_session(
        self,
        kind: str,
        difficulty: str,
        subject: str,
        question_count: int,
        time_limit: Union[int, str, None] = "nolimit",
        input_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "kind": kind,
            "difficulty": difficulty,
            "subject": subject,
            "question_count": question_count,
            "time_limit": time_limit,
        }
        if input_type is not None:
            payload["input_type"] = input_type
        return await self._request("POST", self._path(""), json=payload)

    async def get_session(self, session_id: int) -> Dict[str, Any]:
        return await self._request("GET", self._path(f"/{session_id}"))

    async def submit_answer(
        self,
        session_id: int,
        question_id: int,
        *,
        answer_text: Optional[str] = None,
        selected_option: Optional[str] = None,
        skip: bool = False,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"question_id": question_id, "skip": skip}
        if answer_text is not None:
            payload["answer_text"] = answer_text
        if selected_option is not None:
            payload["selected_option"] = selected_option
        return await self._request(
            "POST", self._path(f"/{session_id}/answers"), json=payload
        )

    async def finish_session(self, session_id: int) -> Dict[str, Any]:
        return await self._request("POST", self._path(f"/{session_id}/finish"))

    async def get_results(self, session_id: int) -> Dict[str, Any]:
        return await self._request("GET", self._path(f"/{session_id}/results"))
