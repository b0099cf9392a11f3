"""Error tracking via Sentry.

Everything here is a no-op until init() succeeds, so callers never need to
check whether a DSN is configured.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from mockprep.core.graceful_failure import graceful_failure_decorator

logger = logging.getLogger(__name__)


def _serialize_value(value: Any) -> Any:
    """Convert a context value to something JSON-compatible."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize_value(item) for item in value]
    return str(value)


class Observability:
    """Thin facade over the Sentry SDK."""

    def __init__(self) -> None:
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(
        self,
        dsn: str,
        environment: str,
        release: Optional[str] = None,
        traces_sample_rate: float = 0.1,
    ) -> bool:
        """Initialize Sentry with logging and FastAPI integrations.

        Returns:
            True if Sentry is active, False if skipped (no DSN) or failed.
        """
        if not dsn:
            logger.debug("Sentry initialization skipped (DSN not configured)")
            return False

        try:
            sentry_sdk.init(
                dsn=dsn,
                environment=environment,
                release=release,
                traces_sample_rate=traces_sample_rate,
                integrations=[
                    # Errors are captured explicitly, not from log records
                    LoggingIntegration(level=None, event_level=None),
                    StarletteIntegration(transaction_style="endpoint"),
                    FastApiIntegration(transaction_style="endpoint"),
                ],
                send_default_pii=False,
            )
        except Exception as e:
            logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
            return False

        self._initialized = True
        logger.info(
            f"Sentry initialized for environment '{environment}' "
            f"with {traces_sample_rate * 100:.0f}% trace sampling"
        )
        return True

    @graceful_failure_decorator("capture error to Sentry", logger=logger)
    def capture_error(
        self,
        exception: BaseException,
        *,
        context: Optional[Dict[str, Any]] = None,
        tags: Optional[Dict[str, str]] = None,
        level: str = "error",
    ) -> Optional[str]:
        """Send an exception to Sentry.

        Returns:
            The Sentry event id, or None when Sentry is not initialized.
        """
        if not self._initialized:
            return None

        with sentry_sdk.new_scope() as scope:
            if context:
                scope.set_context("additional", _serialize_value(context))
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            scope.level = level
            return sentry_sdk.capture_exception(exception)

    def shutdown(self) -> None:
        """Flush pending events."""
        if not self._initialized:
            return
        client = sentry_sdk.get_client()
        client.flush(timeout=2.0)
        self._initialized = False


observability = Observability()
