"""Factory for creating prediction sources."""

from __future__ import annotations

import logging
import os

from .interface import PredictionSource

logger = logging.getLogger(__name__)


def create_prediction_source() -> PredictionSource:
    """Create the appropriate prediction source based on environment variables.

    - SCORING_SERVICE_URL set and non-empty -> RemoteScoringSource
    - Otherwise -> SimulatedPredictionSource (random output, 2s latency)
    """
    base_url = os.environ.get("SCORING_SERVICE_URL", "").strip()

    if base_url:
        from .scoring_client import RemoteScoringSource

        logger.info("Prediction source: remote scoring service at %s", base_url)
        return RemoteScoringSource(base_url=base_url)
    else:
        from .predictor import SimulatedPredictionSource

        logger.info("Prediction source: simulated")
        return SimulatedPredictionSource()
