"""
Tests for the async session API client, using httpx.MockTransport.
"""
import json

import httpx
import pytest

from mockprep.client.api import (
    ApiError,
    ClientConfig,
    DuplicateSubmissionError,
    SessionApiClient,
    SubmissionTransportError,
)


def _client(handler) -> SessionApiClient:
    config = ClientConfig(base_url="http://api.test", token="secret-token")
    return SessionApiClient(config, transport=httpx.MockTransport(handler))


class TestSessionApiClient:
    async def test_create_session_sends_payload_and_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"session": {"id": 3}, "questions": []})

        async with _client(handler) as client:
            data = await client.create_session(
                "interview", "easy", "ds", 5, time_limit="1min", input_type="voice"
            )

        assert data["session"]["id"] == 3
        assert seen["method"] == "POST"
        assert seen["path"] == "/v1/sessions"
        assert seen["auth"] == "Bearer secret-token"
        assert seen["body"] == {
            "kind": "interview",
            "difficulty": "easy",
            "subject": "ds",
            "question_count": 5,
            "time_limit": "1min",
            "input_type": "voice",
        }

    async def test_submit_answer_omits_unset_fields(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"score": 0.0})

        async with _client(handler) as client:
            await client.submit_answer(9, 4, skip=True)

        assert seen["path"] == "/v1/sessions/9/answers"
        assert seen["body"] == {"question_id": 4, "skip": True}

    @pytest.mark.parametrize(
        "method,args,path",
        [
            ("get_session", (9,), "/v1/sessions/9"),
            ("finish_session", (9,), "/v1/sessions/9/finish"),
            ("get_results", (9,), "/v1/sessions/9/results"),
        ],
    )
    async def test_session_paths(self, method, args, path):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            return httpx.Response(200, json={})

        async with _client(handler) as client:
            await getattr(client, method)(*args)

        assert seen["path"] == path

    async def test_duplicate_submission_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                409,
                json={
                    "detail": "Already answered",
                    "code": "duplicate_submission",
                    "question_id": 4,
                },
            )

        async with _client(handler) as client:
            with pytest.raises(DuplicateSubmissionError) as exc_info:
                await client.submit_answer(9, 4, answer_text="x")

        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "duplicate_submission"

    async def test_client_errors_raise_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                409, json={"detail": "Not enough", "code": "insufficient_questions"}
            )

        async with _client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.create_session("quiz", "easy", "ds", 15)

        assert not isinstance(exc_info.value, DuplicateSubmissionError)
        assert exc_info.value.code == "insufficient_questions"
        assert exc_info.value.detail == "Not enough"

    async def test_non_json_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not found")

        async with _client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_session(1)

        assert exc_info.value.detail == "not found"
        assert exc_info.value.code is None

    async def test_server_errors_are_retryable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"detail": "unavailable"})

        async with _client(handler) as client:
            with pytest.raises(SubmissionTransportError):
                await client.submit_answer(9, 4, answer_text="x")

    async def test_network_errors_are_retryable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(SubmissionTransportError):
                await client.submit_answer(9, 4, answer_text="x")
