"""Authoritative in-memory dashboard state."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta

import numpy as np

from .defaults import (
    BASE_PRICE,
    DATA_POINT_COUNT,
    FEATURE_COUNT,
    HISTORY_CENTER_PRICE,
    HISTORY_JITTER,
    HISTORY_LENGTH,
    INITIAL_PRICE_CHANGE,
    INITIAL_PRICE_CHANGE_PERCENT,
    MODEL_METRICS,
    TICK_JITTER,
)
from .events import (
    ChartUpdate,
    DataLoaded,
    ErrorOccurred,
    EventBus,
    PredictionComplete,
    PredictionStarted,
    PriceUpdate,
)
from .exceptions import LoadError, PredictionError
from .interface import PredictionSource
from .models import ModelMetrics, ModelName, PricePoint, Prediction, Snapshot, utc_now

logger = logging.getLogger(__name__)


class StateStore:
    """Owner of the current Snapshot, the last Prediction and the busy flag.

    Writers: PriceTicker (tick), REST gateway and WebSocket commands
    (load_initial_data, start_prediction).
    Readers: REST gateway, Broadcaster (initial replay on connect).

    Every mutation replaces the stored Snapshot with a new immutable one and
    publishes an event on the bus. Readers only ever get those immutable
    instances.

    The busy flag is checked and set with no await in between, which makes
    it atomic on a single event loop. It is not thread-safe.
    """

    def __init__(
        self,
        bus: EventBus,
        prediction_source: PredictionSource,
        rng: np.random.Generator | None = None,
        base_price: float = BASE_PRICE,
        history_length: int = HISTORY_LENGTH,
    ) -> None:
        self._bus = bus
        self._source = prediction_source
        self._rng = rng if rng is not None else np.random.default_rng()
        self._base_price = base_price
        self._history_length = history_length
        self._snapshot: Snapshot | None = None
        self._last_prediction: Prediction | None = None
        self._busy = False

    # --- Reads ---

    def current_snapshot(self) -> Snapshot | None:
        return self._snapshot

    def current_prediction(self) -> Prediction | None:
        return self._last_prediction

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def prediction_source(self) -> PredictionSource:
        return self._source

    # --- Mutations ---

    async def load_initial_data(self) -> Snapshot | None:
        """Build a fresh snapshot, store it and publish DataLoaded.

        No-op while a load or prediction is in flight: returns the current
        snapshot (None if nothing was loaded yet).
        Raises LoadError if building the snapshot fails.
        """
        if self._busy:
            logger.debug("Load skipped: store is busy")
            return self._snapshot

        self._busy = True
        try:
            snapshot = self._build_initial_snapshot()
            self._snapshot = snapshot
            await self._bus.publish(DataLoaded(snapshot))
            logger.info(
                "Dashboard data loaded: price %.2f, %d history points",
                snapshot.current_price,
                len(snapshot.price_history),
            )
            return snapshot
        except Exception as e:
            logger.error("Loading dashboard data failed: %s", e)
            await self._bus.publish(ErrorOccurred("Failed to load data"))
            raise LoadError("Failed to load dashboard data", context={"error": str(e)}) from e
        finally:
            self._busy = False

    async def start_prediction(self) -> Prediction | None:
        """Run one prediction cycle and publish its result.

        Returns None without doing anything (and without publishing
        PredictionStarted) if a load or prediction is already in flight.
        Raises PredictionError if the prediction source fails.
        """
        if self._busy:
            logger.debug("Prediction skipped: store is busy")
            return None

        self._busy = True
        try:
            await self._bus.publish(PredictionStarted())
            prediction = await self._source.predict(self._snapshot)
            self._last_prediction = prediction
            await self._bus.publish(PredictionComplete(prediction))
            logger.info(
                "Prediction complete: %s with %d%% confidence (%s)",
                prediction.direction.value,
                prediction.confidence,
                prediction.model.value,
            )
            return prediction
        except Exception as e:
            logger.error("Prediction failed: %s", e)
            await self._bus.publish(ErrorOccurred("Prediction failed"))
            if isinstance(e, PredictionError):
                raise
            raise PredictionError("Prediction failed", context={"error": str(e)}) from e
        finally:
            self._busy = False

    async def tick(self) -> Snapshot | None:
        """Move the price by a small random step and publish the change.

        No-op (returns None) until the first snapshot has been loaded.
        Publishes PriceUpdate followed by ChartUpdate.
        """
        snapshot = self._snapshot
        if snapshot is None:
            return None

        previous_price = snapshot.current_price
        step = float(self._rng.uniform(-TICK_JITTER, TICK_JITTER))
        new_price = round(previous_price + step, 2)
        change = round(new_price - previous_price, 2)
        change_percent = round(change / previous_price * 100, 2) if previous_price else 0.0

        history = (*snapshot.price_history, PricePoint(price=new_price))
        if len(history) > self._history_length:
            history = history[-self._history_length :]

        snapshot = replace(
            snapshot,
            current_price=new_price,
            price_change=change,
            price_change_percent=change_percent,
            price_history=history,
        )
        self._snapshot = snapshot

        await self._bus.publish(PriceUpdate(new_price, change, change_percent))
        await self._bus.publish(ChartUpdate(snapshot.price_history))
        logger.debug("Tick: %.2f (%+.2f, %+.2f%%)", new_price, change, change_percent)
        return snapshot

    # --- Internals ---

    def _build_initial_snapshot(self) -> Snapshot:
        return Snapshot(
            current_price=self._base_price,
            price_change=INITIAL_PRICE_CHANGE,
            price_change_percent=INITIAL_PRICE_CHANGE_PERCENT,
            data_point_count=DATA_POINT_COUNT,
            feature_count=FEATURE_COUNT,
            price_history=self._generate_history(),
            models={
                ModelName(name): ModelMetrics(*scores) for name, scores in MODEL_METRICS.items()
            },
        )

    def _generate_history(self) -> tuple[PricePoint, ...]:
        """One point per day ending today, jittered around the center price."""
        n = self._history_length
        today = utc_now()
        jitter = self._rng.uniform(-HISTORY_JITTER, HISTORY_JITTER, size=n)
        return tuple(
            PricePoint(
                price=round(HISTORY_CENTER_PRICE + float(jitter[i]), 2),
                timestamp=today - timedelta(days=n - 1 - i),
            )
            for i in range(n)
        )
