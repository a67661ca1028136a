"""Randomized stand-in for the scoring service."""

from __future__ import annotations

import asyncio
import logging

import numpy as np

from .defaults import CONFIDENCE_MAX, CONFIDENCE_MIN, PREDICTION_LATENCY
from .interface import PredictionSource
from .models import Direction, ModelName, Prediction, Snapshot

logger = logging.getLogger(__name__)

_MODELS = list(ModelName)


class SimulatedPredictionSource(PredictionSource):
    """PredictionSource that waits a fixed latency and returns random output.

    Probabilities come from two independent uniform draws normalized to
    100 with one decimal place; `down` is derived from `up` so the pair
    always sums to exactly 100.0.
    """

    def __init__(
        self,
        latency: float = PREDICTION_LATENCY,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._latency = latency
        self._rng = rng if rng is not None else np.random.default_rng()

    async def predict(self, snapshot: Snapshot | None) -> Prediction:
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        prediction = self.generate()
        logger.debug(
            "Simulated prediction: %s (%d%%, %s)",
            prediction.direction.value,
            prediction.confidence,
            prediction.model.value,
        )
        return prediction

    def generate(self) -> Prediction:
        """Draw one prediction immediately, without the latency."""
        rng = self._rng
        direction = Direction.UP if rng.random() > 0.5 else Direction.DOWN
        confidence = int(rng.integers(CONFIDENCE_MIN, CONFIDENCE_MAX))

        raw_up = rng.random() * 100
        raw_down = rng.random() * 100
        total = raw_up + raw_down
        up = round(raw_up / total * 100, 1) if total > 0 else 50.0

        return Prediction(
            direction=direction,
            confidence=confidence,
            probability_up=up,
            probability_down=round(100.0 - up, 1),
            model=_MODELS[int(rng.integers(len(_MODELS)))],
        )
