"""Background drivers: the periodic price ticker and detached task tracking."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from .defaults import TICK_INTERVAL
from .state import StateStore

logger = logging.getLogger(__name__)


class PriceTicker:
    """Calls StateStore.tick() every `interval` seconds for the app lifetime.

    The first tick fires one interval after start(). Ticks never overlap in
    practice because a tick is far cheaper than the interval; this is not
    guarded explicitly.
    """

    def __init__(self, store: StateStore, interval: float = TICK_INTERVAL) -> None:
        self._store = store
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="price-ticker")
        logger.info("Price ticker started: %.1fs interval", self._interval)

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Price ticker stopped")

    async def _run_loop(self) -> None:
        """Core loop: sleep, then tick."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._store.tick()
            except Exception:
                logger.exception("Price tick failed")


class TaskTracker:
    """Owns fire-and-forget tasks so shutdown can wait for them.

    Request handlers and WebSocket commands spawn store mutations here
    instead of awaiting them. Failures are logged when the task finishes;
    nothing is re-raised to the spawner.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def drain(self) -> None:
        """Wait for every pending task to finish. Exceptions are not raised."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background task %s failed: %s", task.get_name(), exc)
