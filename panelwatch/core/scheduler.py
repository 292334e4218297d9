"""Fixed-interval timer that drives polling runs."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Callable, Coroutine

from panelwatch.config import TimerConfig
from panelwatch.utils.logging import get_logger

log = get_logger(__name__)

Job = Callable[[], Coroutine[Any, Any, Any]]


class IntervalTimer:
    """Awaits *job* every ``interval_seconds``.

    The next sleep only starts once the current run has returned, so two runs
    never overlap. A failing run is logged and retried on the next tick.
    """

    def __init__(self, config: TimerConfig, job: Job) -> None:
        self._config = config
        self._job = job
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self.last_run: datetime | None = None
        self.last_error: str | None = None
        self.runs = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="poll-timer")
        log.info(
            "timer_started",
            interval_seconds=self._config.interval_seconds,
            run_on_start=self._config.run_on_start,
        )

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        log.info("timer_stopped", runs=self.runs, failures=self.failures)

    async def fire(self) -> bool:
        """Run the job once. Returns False if it raised."""
        started = time.monotonic()
        self.last_run = datetime.now(timezone.utc)
        self.runs += 1
        try:
            await self._job()
        except Exception as e:
            self.failures += 1
            self.last_error = str(e)
            log.exception("poll_failed", run=self.runs)
            return False
        self.last_error = None
        log.debug("poll_completed", run=self.runs, duration=round(time.monotonic() - started, 3))
        return True

    async def _loop(self) -> None:
        # Startup run doubles as the sample-event run after a deploy
        if not self._config.run_on_start:
            await asyncio.sleep(self._config.interval_seconds)
        while self._running:
            await self.fire()
            await asyncio.sleep(self._config.interval_seconds)
