"""
Per-question countdown timer.
"""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CountdownTimer:
    """Counts down whole ticks on the running event loop.

    Callbacks are plain functions invoked from the timer task; they must not
    block. on_warning fires at most once, the first time the remaining time
    is at or below warning_at. on_expire fires once when the count reaches
    zero, unless the timer was cancelled first.
    """

    def __init__(
        self,
        duration: int,
        on_expire: Callable[[], None],
        *,
        on_tick: Optional[Callable[[int], None]] = None,
        on_warning: Optional[Callable[[int], None]] = None,
        warning_at: int = 5,
        tick_interval: float = 1.0,
    ):
        if duration <= 0:
            raise ValueError("duration must be positive")
        self.duration = duration
        self.remaining = duration
        self.warning_at = warning_at
        self.tick_interval = tick_interval
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._on_warning = on_warning
        self._warned = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self.remaining == 0

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Timer already started")
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.tick_interval)
            self.remaining -= 1
            if self._on_tick is not None:
                self._on_tick(self.remaining)
            if (
                not self._warned
                and 0 < self.remaining <= self.warning_at
                and self._on_warning is not None
            ):
                self._warned = True
                self._on_warning(self.remaining)

        logger.debug("Countdown expired")
        self._on_expire()
