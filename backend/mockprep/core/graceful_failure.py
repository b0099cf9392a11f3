"""
Graceful failure utilities.

Reusable helpers for non-critical operations that must not block the main
flow: attempt the operation, log any exception with context, continue.

Usage:
    from mockprep.core.graceful_failure import graceful_failure

    with graceful_failure("fetch reference answer", logger):
        reference = await grader.reference_answer(question, difficulty)

    @graceful_failure_decorator("report grading outage", default=False)
    async def report_outage(...):
        ...
"""

import asyncio
import logging
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, Optional, TypeVar


T = TypeVar("T")


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    On exception the error is logged as "Failed to {operation_name}: {error}"
    (with optional key=value context) and execution continues after the block.
    Nothing is rolled back and no HTTP error is raised.

    Args:
        operation_name: Human-readable name of the operation for logging.
        logger: The logger instance to use.
        log_level: Logging level for the failure message. Defaults to WARNING.
        exc_info: Whether to include the traceback. Defaults to False.
        context: Extra values to include, e.g. {"session_id": 12}.
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)


class GracefulFailureDecorator:
    """Decorator alternative to the context manager.

    Works on plain and async functions; returns `default` when the wrapped
    call raises.
    """

    def __init__(
        self,
        operation_name: str,
        *,
        logger: Optional[logging.Logger] = None,
        log_level: int = logging.WARNING,
        exc_info: bool = False,
        default: Any = None,
    ):
        self.operation_name = operation_name
        self._logger = logger
        self.log_level = log_level
        self.exc_info = exc_info
        self.default = default

    def __call__(self, func: Callable[..., T]) -> Callable[..., Any]:
        """Decorate the function with graceful failure handling."""

        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                logger = self._logger or logging.getLogger(func.__module__)
                with graceful_failure(
                    self.operation_name,
                    logger,
                    log_level=self.log_level,
                    exc_info=self.exc_info,
                ):
                    return await func(*args, **kwargs)
                return self.default

            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Optional[T]:
            logger = self._logger or logging.getLogger(func.__module__)
            with graceful_failure(
                self.operation_name,
                logger,
                log_level=self.log_level,
                exc_info=self.exc_info,
            ):
                return func(*args, **kwargs)

            # Only reached when the exception was swallowed
            return self.default

        return wrapper


graceful_failure_decorator = GracefulFailureDecorator
