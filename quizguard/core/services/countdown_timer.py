"""Per-session countdown clock driven by the running asyncio loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from quizguard.constants.quiz_constants import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class CountdownTimer:
    """Ticks once per interval and fires an expiry callback exactly once.

    The timer owns a single asyncio task. ``stop()`` cancels it and may be
    called at any time, including from inside ``on_tick`` or ``on_expire``.
    """

    def __init__(self, sleep: Sleep = asyncio.sleep, interval: float = TICK_INTERVAL_SECONDS) -> None:
        self._sleep = sleep
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._remaining: int = 0
        self._running: bool = False
        self._expired: bool = False

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    def is_running(self) -> bool:
        return self._running

    def has_expired(self) -> bool:
        return self._expired

    def start(
        self,
        total_seconds: int,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
    ) -> None:
        if self._task is not None:
            raise RuntimeError("Countdown timer has already been started.")
        self._remaining = max(0, int(total_seconds))
        self._running = True
        self._task = asyncio.get_running_loop().create_task(
            self._run(on_tick, on_expire), name="CountdownTimer"
        )
        self._task.add_done_callback(self._log_failure)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self, on_tick: Callable[[int], None], on_expire: Callable[[], None]) -> None:
        while self._running and self._remaining > 0:
            await self._sleep(self._interval)
            if not self._running:
                return
            self._remaining -= 1
            on_tick(self._remaining)
        if self._running:
            self._running = False
            self._expired = True
            logger.info("Countdown expired")
            on_expire()

    @staticmethod
    def _log_failure(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Countdown timer stopped by an unhandled error", exc_info=exc)
