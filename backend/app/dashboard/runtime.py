"""Wiring for one independent dashboard instance."""

from __future__ import annotations

import logging

import numpy as np

from .broadcaster import Broadcaster
from .defaults import TICK_INTERVAL
from .events import EventBus
from .factory import create_prediction_source
from .interface import PredictionSource
from .scheduler import PriceTicker, TaskTracker
from .state import StateStore

logger = logging.getLogger(__name__)


class DashboardRuntime:
    """Constructs and owns the bus, store, broadcaster and background drivers.

    Nothing here is global: tests can build as many runtimes as they need.

    Lifecycle:
        runtime = DashboardRuntime()
        await runtime.start()   # initial load, then periodic ticks
        # ... serve api/stream routers built from runtime.store/broadcaster ...
        await runtime.stop()
    """

    def __init__(
        self,
        prediction_source: PredictionSource | None = None,
        tick_interval: float = TICK_INTERVAL,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.bus = EventBus()
        self.tasks = TaskTracker()
        self.prediction_source = prediction_source or create_prediction_source()
        self.store = StateStore(self.bus, self.prediction_source, rng=rng)
        self.broadcaster = Broadcaster(self.bus, self.store, self.tasks)
        self.ticker = PriceTicker(self.store, interval=tick_interval)

    async def start(self) -> None:
        await self.store.load_initial_data()
        await self.ticker.start()
        logger.info("Dashboard runtime started")

    async def stop(self) -> None:
        await self.ticker.stop()
        await self.tasks.drain()
        self.broadcaster.close()
        await self.prediction_source.close()
        logger.info("Dashboard runtime stopped")
