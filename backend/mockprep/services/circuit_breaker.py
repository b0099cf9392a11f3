"""Circuit breaker for the grading service.

States:
- CLOSED: calls pass through; consecutive failures are counted
- OPEN: calls are rejected immediately until the recovery timeout elapses
- HALF_OPEN: trial calls pass; enough successes close the circuit, any
  failure reopens it

All calls happen on one event loop, so state changes need no locking.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker thresholds.

    Attributes:
        failure_threshold: Consecutive failures that open the circuit
        recovery_timeout: Seconds to stay OPEN before allowing a trial call
        success_threshold: Successes in HALF_OPEN needed to close the circuit
        enabled: When False every call passes straight through
    """

    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    success_threshold: int = 2
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if self.recovery_timeout <= 0:
            raise ValueError("recovery_timeout must be positive")
        if self.success_threshold < 1:
            raise ValueError("success_threshold must be at least 1")

    @classmethod
    def from_settings(cls) -> "CircuitBreakerConfig":
        from mockprep.core.config import settings

        return cls(
            failure_threshold=settings.GRADING_CIRCUIT_FAILURE_THRESHOLD,
            recovery_timeout=settings.GRADING_CIRCUIT_RECOVERY_SECONDS,
            success_threshold=settings.GRADING_CIRCUIT_SUCCESS_THRESHOLD,
        )


class CircuitBreakerOpen(Exception):
    """Raised instead of calling through while the circuit is open."""

    def __init__(self, name: str, time_until_retry: float):
        self.name = name
        self.time_until_retry = time_until_retry
        super().__init__(
            f"Circuit breaker is OPEN for '{name}'. Retry in {time_until_retry:.1f}s"
        )


class CircuitBreaker:
    """Tracks call outcomes for one downstream dependency."""

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._consecutive_successes = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        self._check_recovery()
        return self._state

    @property
    def is_available(self) -> bool:
        if not self.config.enabled:
            return True
        return self.state != CircuitState.OPEN

    def _time_until_retry(self) -> float:
        if self._opened_at is None:
            return 0.0
        elapsed = self._clock() - self._opened_at
        return max(0.0, self.config.recovery_timeout - elapsed)

    def _check_recovery(self) -> None:
        if self._state == CircuitState.OPEN and self._time_until_retry() == 0.0:
            self._transition_to(
                CircuitState.HALF_OPEN,
                f"Recovery timeout ({self.config.recovery_timeout}s) elapsed",
            )

    def _transition_to(self, new_state: CircuitState, reason: str) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        logger.info(
            f"Circuit breaker [{self.name}]: "
            f"{old_state.value} -> {new_state.value} ({reason})"
        )
        self._state = new_state
        if new_state == CircuitState.OPEN:
            self._opened_at = self._clock()
        elif new_state == CircuitState.HALF_OPEN:
            self._consecutive_successes = 0
        elif new_state == CircuitState.CLOSED:
            self._consecutive_failures = 0
            self._opened_at = None

    def record_success(self) -> None:
        if not self.config.enabled:
            return
        self._consecutive_failures = 0
        self._consecutive_successes += 1
        if (
            self._state == CircuitState.HALF_OPEN
            and self._consecutive_successes >= self.config.success_threshold
        ):
            self._transition_to(
                CircuitState.CLOSED,
                f"Success threshold ({self.config.success_threshold}) met in HALF_OPEN",
            )

    def record_failure(self) -> None:
        if not self.config.enabled:
            return
        self._consecutive_successes = 0
        self._consecutive_failures += 1
        if self._state == CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.OPEN, "Failure during HALF_OPEN testing")
        elif (
            self._state == CircuitState.CLOSED
            and self._consecutive_failures >= self.config.failure_threshold
        ):
            self._transition_to(
                CircuitState.OPEN,
                f"Failure threshold exceeded (consecutive={self._consecutive_failures})",
            )

    async def execute_async(
        self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any
    ) -> T:
        """Await func with circuit breaker protection.

        Raises:
            CircuitBreakerOpen: If the circuit is open
            Exception: Whatever func raises, after recording the failure
        """
        if not self.config.enabled:
            return await func(*args, **kwargs)

        if self.state == CircuitState.OPEN:
            raise CircuitBreakerOpen(self.name, self._time_until_retry())

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result
