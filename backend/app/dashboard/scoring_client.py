"""HTTP client for an external scoring service."""

from __future__ import annotations

import logging

import httpx

from .defaults import SCORING_TIMEOUT
from .exceptions import PredictionError
from .interface import PredictionSource
from .models import Prediction, Snapshot

logger = logging.getLogger(__name__)


class RemoteScoringSource(PredictionSource):
    """PredictionSource backed by a request/response scoring service.

    Sends POST {base_url}/predict with the current price and chart, and
    expects a body in the Prediction wire format:

        {"direction": "UP", "confidence": 84,
         "probabilities": {"up": 61.2, "down": 38.8},
         "model": "hybrid", "timestamp": "2025-01-01T00:00:00+00:00"}

    The timestamp is optional. Every failure surfaces as PredictionError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = SCORING_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def predict(self, snapshot: Snapshot | None) -> Prediction:
        if snapshot is None:
            raise PredictionError("No dashboard data loaded to score")

        body = {
            "currentPrice": snapshot.current_price,
            "priceHistory": snapshot.history_dicts(),
            "featureCount": snapshot.feature_count,
        }
        try:
            response = await self._client.post("/predict", json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise PredictionError(
                "Scoring service returned an error",
                context={"status": e.response.status_code, "url": str(e.request.url)},
            ) from e
        except httpx.HTTPError as e:
            raise PredictionError(
                "Scoring service unreachable",
                context={"error": str(e), "url": self._base_url},
            ) from e
        except ValueError as e:
            raise PredictionError("Scoring service returned invalid JSON") from e

        try:
            prediction = Prediction.from_dict(payload)
        except ValueError as e:
            raise PredictionError(
                "Scoring service returned an invalid prediction",
                context={"error": str(e)},
            ) from e

        logger.debug(
            "Remote prediction: %s (%d%%)", prediction.direction.value, prediction.confidence
        )
        return prediction

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Scoring client closed")
