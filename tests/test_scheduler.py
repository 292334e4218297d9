"""Tests for the interval timer."""

import asyncio

from panelwatch.config import TimerConfig
from panelwatch.core.scheduler import IntervalTimer


class TestIntervalTimer:
    async def test_runs_on_start(self):
        calls = []

        async def job():
            calls.append(1)

        timer = IntervalTimer(TimerConfig(interval_seconds=10, run_on_start=True), job)
        await timer.start()
        await asyncio.sleep(0.05)
        await timer.stop()

        assert len(calls) == 1
        assert timer.runs == 1
        assert timer.last_run is not None

    async def test_waits_first_interval_without_run_on_start(self):
        calls = []

        async def job():
            calls.append(1)

        timer = IntervalTimer(TimerConfig(interval_seconds=10, run_on_start=False), job)
        await timer.start()
        await asyncio.sleep(0.05)
        await timer.stop()

        assert calls == []

    async def test_repeats_every_interval(self):
        calls = []

        async def job():
            calls.append(1)

        timer = IntervalTimer(TimerConfig(interval_seconds=0.02), job)
        await timer.start()
        await asyncio.sleep(0.15)
        await timer.stop()

        assert len(calls) >= 3

    async def test_runs_never_overlap(self):
        active = 0
        peak = 0

        async def slow_job():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.03)
            active -= 1

        timer = IntervalTimer(TimerConfig(interval_seconds=0.01), slow_job)
        await timer.start()
        await asyncio.sleep(0.2)
        await timer.stop()

        assert peak == 1

    async def test_failure_is_logged_and_retried(self):
        calls = []

        async def failing_job():
            calls.append(1)
            raise RuntimeError("zoom is down")

        timer = IntervalTimer(TimerConfig(interval_seconds=0.02), failing_job)
        await timer.start()
        await asyncio.sleep(0.12)
        await timer.stop()

        assert len(calls) >= 2
        assert timer.failures == timer.runs
        assert timer.last_error == "zoom is down"

    async def test_fire_reports_outcome(self):
        outcomes = iter([RuntimeError("nope"), None])

        async def job():
            exc = next(outcomes)
            if exc:
                raise exc

        timer = IntervalTimer(TimerConfig(), job)
        assert await timer.fire() is False
        assert timer.last_error == "nope"
        assert await timer.fire() is True
        assert timer.last_error is None
        assert timer.runs == 2
        assert timer.failures == 1

    async def test_stop_without_start(self):
        async def job():
            pass

        timer = IntervalTimer(TimerConfig(), job)
        await timer.stop()
        assert timer.running is False
