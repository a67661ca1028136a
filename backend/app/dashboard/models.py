"""Data models for dashboard state."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any

from .defaults import CONFIDENCE_MAX, CONFIDENCE_MIN


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class ModelName(str, Enum):
    RANDOM_FOREST = "random_forest"
    HYBRID = "hybrid"
    SVM = "svm"


@dataclass(frozen=True, slots=True)
class PricePoint:
    """One entry of the price chart."""

    price: float
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp.isoformat(), "price": self.price}


@dataclass(frozen=True, slots=True)
class ModelMetrics:
    """Offline evaluation scores for one model."""

    accuracy: float
    precision: float
    recall: float

    def to_dict(self) -> dict:
        return {
            "accuracy": self.accuracy,
            "precision": self.precision,
            "recall": self.recall,
        }


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Immutable view of the complete dashboard state at a point in time.

    Every mutation of the state store produces a new Snapshot, so instances
    can be handed to event handlers and HTTP responses without copying.
    """

    current_price: float
    price_change: float
    price_change_percent: float
    data_point_count: int
    feature_count: int
    price_history: tuple[PricePoint, ...]
    models: Mapping[ModelName, ModelMetrics]

    def __post_init__(self) -> None:
        # Callers may pass lists/dicts; freeze them so nobody can mutate the
        # snapshot through a shared reference.
        object.__setattr__(self, "price_history", tuple(self.price_history))
        object.__setattr__(self, "models", MappingProxyType(dict(self.models)))

    def history_dicts(self) -> list[dict]:
        return [point.to_dict() for point in self.price_history]

    def to_dict(self) -> dict:
        """Serialize for JSON / WebSocket transmission."""
        return {
            "currentPrice": self.current_price,
            "priceChange": self.price_change,
            "priceChangePercent": self.price_change_percent,
            "dataPointCount": self.data_point_count,
            "featureCount": self.feature_count,
            "priceHistory": self.history_dicts(),
            "models": {name.value: metrics.to_dict() for name, metrics in self.models.items()},
        }


@dataclass(frozen=True, slots=True)
class Prediction:
    """Output of one completed inference cycle."""

    direction: Direction
    confidence: int
    probability_up: float
    probability_down: float
    model: ModelName
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "confidence": self.confidence,
            "probabilities": {"up": self.probability_up, "down": self.probability_down},
            "model": self.model.value,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Prediction:
        """Parse the wire form produced by to_dict() or a scoring service.

        Raises ValueError if the payload is malformed or out of range.
        A missing timestamp defaults to now.
        """
        try:
            probabilities = data["probabilities"]
            raw_timestamp = data.get("timestamp")
            prediction = cls(
                direction=Direction(data["direction"]),
                confidence=int(data["confidence"]),
                probability_up=round(float(probabilities["up"]), 1),
                probability_down=round(float(probabilities["down"]), 1),
                model=ModelName(data["model"]),
                timestamp=datetime.fromisoformat(raw_timestamp) if raw_timestamp else utc_now(),
            )
        except (KeyError, TypeError, OverflowError) as e:
            raise ValueError(f"Malformed prediction payload: {e!r}") from e

        if not CONFIDENCE_MIN <= prediction.confidence < CONFIDENCE_MAX:
            raise ValueError(f"Confidence out of range: {prediction.confidence}")
        for probability in (prediction.probability_up, prediction.probability_down):
            if not math.isfinite(probability) or not 0.0 <= probability <= 100.0:
                raise ValueError(f"Probability out of range: {probability}")
        total = prediction.probability_up + prediction.probability_down
        if abs(total - 100.0) > 0.1:
            raise ValueError(f"Probabilities must sum to 100, got {total}")
        return prediction
