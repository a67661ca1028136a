"""Abstract interface for prediction sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import Prediction, Snapshot


class PredictionSource(ABC):
    """Contract for inference providers.

    The state store owns the busy flag and event publication; a source only
    turns the current snapshot into a Prediction. Sources may take a long
    time (simulated latency, network round trip) and must not touch the
    store themselves.

    Lifecycle:
        source = create_prediction_source()
        prediction = await source.predict(snapshot)
        # ... app shutting down ...
        await source.close()
    """

    @abstractmethod
    async def predict(self, snapshot: Snapshot | None) -> Prediction:
        """Run one inference cycle and return its result.

        `snapshot` is None when no dashboard data has been loaded yet.
        Raises PredictionError (or any exception, which the store wraps)
        on failure.
        """

    async def close(self) -> None:
        """Release resources. Safe to call multiple times."""
