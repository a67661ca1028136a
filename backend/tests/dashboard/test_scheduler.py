"""Tests for PriceTicker and TaskTracker."""

import asyncio
import logging
from unittest.mock import AsyncMock, patch

import pytest

from app.dashboard.events import PriceUpdate
from app.dashboard.scheduler import PriceTicker, TaskTracker


@pytest.mark.asyncio
class TestPriceTicker:
    """Integration tests for the periodic ticker."""

    async def test_prices_update_over_time(self, store, record):
        """Ticks fire repeatedly once data is loaded."""
        await store.load_initial_data()
        recorder = record(PriceUpdate)
        ticker = PriceTicker(store, interval=0.02)
        await ticker.start()

        await asyncio.sleep(0.15)
        await ticker.stop()

        assert len(recorder.events) >= 3
        assert len(store.current_snapshot().price_history) == 30

    async def test_first_tick_waits_one_interval(self, store, record):
        """Nothing happens before the first interval elapses."""
        await store.load_initial_data()
        recorder = record(PriceUpdate)
        ticker = PriceTicker(store, interval=10.0)
        await ticker.start()

        await asyncio.sleep(0.05)
        assert recorder.events == []

        await ticker.stop()

    async def test_ticks_before_load_are_harmless(self, store, record):
        """Without a snapshot the ticker keeps running and publishes nothing."""
        recorder = record(PriceUpdate)
        ticker = PriceTicker(store, interval=0.01)
        await ticker.start()

        await asyncio.sleep(0.05)

        assert ticker.running
        assert recorder.events == []
        await ticker.stop()

    async def test_exception_resilience(self, store):
        """A failing tick is logged and the loop keeps going."""
        ticker = PriceTicker(store, interval=0.01)
        with patch.object(store, "tick", new=AsyncMock(side_effect=RuntimeError("boom"))) as tick:
            await ticker.start()
            await asyncio.sleep(0.08)

            assert tick.await_count >= 2
            assert ticker.running

        await ticker.stop()

    async def test_start_twice_keeps_one_task(self, store):
        """A second start() does not spawn another loop."""
        ticker = PriceTicker(store, interval=0.1)
        await ticker.start()
        task = ticker._task
        await ticker.start()

        assert ticker._task is task
        await ticker.stop()

    async def test_stop_is_clean(self, store):
        """stop() is clean and idempotent."""
        ticker = PriceTicker(store, interval=0.1)
        await ticker.start()
        await ticker.stop()
        assert not ticker.running
        # Double stop should not raise
        await ticker.stop()


@pytest.mark.asyncio
class TestTaskTracker:
    """Tests for detached task tracking."""

    async def test_spawn_and_drain(self):
        """Spawned tasks are tracked until they finish."""
        tracker = TaskTracker()
        done = []

        async def work():
            await asyncio.sleep(0.01)
            done.append(True)

        task = tracker.spawn(work(), name="work")
        assert tracker.pending == 1
        assert task.get_name() == "work"

        await tracker.drain()

        assert done == [True]
        assert tracker.pending == 0

    async def test_failure_is_logged_not_raised(self, caplog):
        """A failing task is logged and drain() does not raise."""
        tracker = TaskTracker()

        async def fail():
            raise RuntimeError("lost connection")

        with caplog.at_level(logging.WARNING, logger="app.dashboard.scheduler"):
            tracker.spawn(fail(), name="failing")
            await tracker.drain()

        assert tracker.pending == 0
        assert "lost connection" in caplog.text

    async def test_drain_waits_for_tasks_spawned_while_draining(self):
        """Tasks spawned by tracked tasks are drained too."""
        tracker = TaskTracker()
        done = []

        async def child():
            done.append("child")

        async def parent():
            tracker.spawn(child())
            done.append("parent")

        tracker.spawn(parent())
        await tracker.drain()

        assert sorted(done) == ["child", "parent"]
        assert tracker.pending == 0

    async def test_drain_with_nothing_pending(self):
        """drain() returns immediately when idle."""
        await TaskTracker().drain()

    async def test_cancelled_task_is_forgotten(self):
        """Cancelled tasks are removed without logging an error."""
        tracker = TaskTracker()
        task = tracker.spawn(asyncio.sleep(10))
        task.cancel()
        await tracker.drain()
        assert tracker.pending == 0
