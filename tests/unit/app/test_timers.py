"""Tests for screen-scoped timers."""

from __future__ import annotations

import asyncio

import pytest

from relaycode.app.tasks import TaskRunner
from relaycode.app.timers import AsyncioScheduler, TimerScope
from tests.fixtures.scheduler import FakeScheduler


class TestTimerScope:
    """Tests for TimerScope."""

    def test_call_later_fires_once(self, scheduler: FakeScheduler) -> None:
        fired: list[str] = []
        timers = TimerScope(scheduler, name="test")

        timers.call_later(1.0, lambda: fired.append("x"))
        scheduler.advance(5.0)

        assert fired == ["x"]
        assert timers.active == 0

    def test_call_every_repeats(self, scheduler: FakeScheduler) -> None:
        ticks: list[float] = []
        timers = TimerScope(scheduler)

        timers.call_every(1.0, lambda: ticks.append(scheduler.now))
        scheduler.advance(3.5)

        assert ticks == [1.0, 2.0, 3.0]

    def test_close_disarms_every_timer(self, scheduler: FakeScheduler) -> None:
        fired: list[str] = []
        timers = TimerScope(scheduler)
        timers.call_later(1.0, lambda: fired.append("once"))
        timers.call_every(1.0, lambda: fired.append("tick"))

        timers.close()
        scheduler.advance(10.0)

        assert fired == []
        assert timers.closed
        assert scheduler.pending == 0

    def test_closed_scope_refuses_new_timers(self, scheduler: FakeScheduler) -> None:
        timers = TimerScope(scheduler)
        timers.close()

        assert timers.call_later(1.0, lambda: None) is None
        assert timers.call_every(1.0, lambda: None) is None

    def test_cancel_single_timer(self, scheduler: FakeScheduler) -> None:
        fired: list[str] = []
        with TimerScope(scheduler) as timers:
            handle = timers.call_later(1.0, lambda: fired.append("a"))
            timers.call_later(2.0, lambda: fired.append("b"))
            timers.cancel(handle)
            scheduler.advance(3.0)

        assert fired == ["b"]

    @pytest.mark.slow
    @pytest.mark.asyncio
    async def test_asyncio_scheduler(self) -> None:
        fired = asyncio.Event()
        timers = TimerScope(AsyncioScheduler())

        timers.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1.0)


class TestTaskRunner:
    """Tests for TaskRunner."""

    @pytest.mark.asyncio
    async def test_drain_waits_for_spawned_tasks(self) -> None:
        runner = TaskRunner()
        done: list[str] = []

        async def work() -> None:
            await asyncio.sleep(0)
            done.append("work")

        runner.spawn(work(), name="work")
        await runner.drain()

        assert done == ["work"]
        assert runner.pending == 0

    @pytest.mark.asyncio
    async def test_failed_task_does_not_propagate(self) -> None:
        runner = TaskRunner()

        async def boom() -> None:
            raise RuntimeError("boom")

        runner.spawn(boom(), name="boom")
        await runner.drain()

        assert runner.pending == 0

    @pytest.mark.asyncio
    async def test_cancel_all(self) -> None:
        runner = TaskRunner()
        task = runner.spawn(asyncio.Event().wait(), name="forever")

        runner.cancel_all()
        await runner.drain()

        assert task.cancelled()
