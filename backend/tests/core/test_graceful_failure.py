"""
Tests for the graceful_failure context manager and decorator.
"""
import logging
from unittest.mock import MagicMock

import pytest

from mockprep.core.graceful_failure import (
    GracefulFailureDecorator,
    graceful_failure,
    graceful_failure_decorator,
)


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


class TestGracefulFailureContextManager:
    def test_success_case_no_exception(self, mock_logger):
        result = []

        with graceful_failure("test operation", mock_logger):
            result.append("executed")

        assert result == ["executed"]
        mock_logger.log.assert_not_called()

    def test_exception_is_logged_at_warning(self, mock_logger):
        with graceful_failure("generate reference answer", mock_logger):
            raise ValueError("backend down")

        mock_logger.log.assert_called_once()
        level, message = mock_logger.log.call_args[0]
        assert level == logging.WARNING
        assert message == "Failed to generate reference answer: backend down"
        assert mock_logger.log.call_args[1]["exc_info"] is False

    def test_context_in_log_message(self, mock_logger):
        with graceful_failure(
            "record metric", mock_logger, context={"session_id": 12, "question_id": 3}
        ):
            raise RuntimeError("boom")

        message = mock_logger.log.call_args[0][1]
        assert "(session_id=12, question_id=3)" in message

    def test_custom_level_and_exc_info(self, mock_logger):
        with graceful_failure(
            "op", mock_logger, log_level=logging.ERROR, exc_info=True
        ):
            raise KeyError("k")

        assert mock_logger.log.call_args[0][0] == logging.ERROR
        assert mock_logger.log.call_args[1]["exc_info"] is True

    def test_variables_not_set_on_early_exception(self, mock_logger):
        value = None

        with graceful_failure("op", mock_logger):
            raise ValueError("early")
            value = "set"  # noqa: F841

        assert value is None


class TestGracefulFailureDecorator:
    def test_decorator_success(self):
        @graceful_failure_decorator("add")
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_decorator_returns_default_on_error(self, mock_logger):
        @GracefulFailureDecorator("divide", logger=mock_logger, default=-1)
        def divide(a, b):
            return a / b

        assert divide(1, 0) == -1
        mock_logger.log.assert_called_once()

    async def test_async_decorator_returns_default_on_error(self, mock_logger):
        @GracefulFailureDecorator("fetch", logger=mock_logger, default="fallback")
        async def fetch():
            raise ConnectionError("unreachable")

        assert await fetch() == "fallback"
        assert "Failed to fetch" in mock_logger.log.call_args[0][1]

    async def test_async_decorator_success(self):
        @graceful_failure_decorator("fetch")
        async def fetch():
            return "ok"

        assert await fetch() == "ok"

    def test_decorator_preserves_function_metadata(self):
        @graceful_failure_decorator("documented")
        def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."
