"""Typed dashboard events and the in-process bus that delivers them."""

from __future__ import annotations

import inspect
import itertools
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .models import PricePoint, Prediction, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DataLoaded:
    snapshot: Snapshot

    def to_payload(self) -> dict:
        return self.snapshot.to_dict()


@dataclass(frozen=True, slots=True)
class PredictionStarted:
    def to_payload(self) -> dict:
        return {}


@dataclass(frozen=True, slots=True)
class PredictionComplete:
    prediction: Prediction

    def to_payload(self) -> dict:
        return self.prediction.to_dict()


@dataclass(frozen=True, slots=True)
class PriceUpdate:
    current_price: float
    price_change: float
    price_change_percent: float

    def to_payload(self) -> dict:
        return {
            "currentPrice": self.current_price,
            "priceChange": self.price_change,
            "priceChangePercent": self.price_change_percent,
        }


@dataclass(frozen=True, slots=True)
class ChartUpdate:
    history: tuple[PricePoint, ...]

    def to_payload(self) -> list[dict]:
        return [point.to_dict() for point in self.history]


@dataclass(frozen=True, slots=True)
class ErrorOccurred:
    message: str

    def to_payload(self) -> dict:
        return {"message": self.message}


Event = (
    DataLoaded | PredictionStarted | PredictionComplete | PriceUpdate | ChartUpdate | ErrorOccurred
)
Handler = Callable[[Any], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class Subscription:
    """Handle returned by EventBus.subscribe(); pass it to unsubscribe()."""

    id: int
    event_type: type
    handler: Handler


class EventBus:
    """Type-keyed publish/subscribe bus.

    Handlers are registered per event class and invoked in registration
    order. A handler may be a plain function or a coroutine function; its
    awaitable is awaited before the next handler runs, so everything one
    publish() delivers arrives in order. A failing handler is logged and
    skipped without affecting the others or the publisher.
    """

    def __init__(self) -> None:
        self._subs: dict[type, list[Subscription]] = defaultdict(list)
        self._ids = itertools.count(1)

    def subscribe(self, event_type: type, handler: Handler) -> Subscription:
        subscription = Subscription(id=next(self._ids), event_type=event_type, handler=handler)
        self._subs[event_type].append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription. No-op if it was already removed."""
        subs = self._subs.get(subscription.event_type)
        if subs and subscription in subs:
            subs.remove(subscription)

    def handler_count(self, event_type: type) -> int:
        return len(self._subs.get(event_type, []))

    async def publish(self, event: Event) -> int:
        """Deliver an event to every handler of its type.

        Returns the number of handlers that completed without raising.
        """
        delivered = 0
        # Copy: handlers may subscribe/unsubscribe while we iterate
        for subscription in list(self._subs.get(type(event), [])):
            try:
                result = subscription.handler(event)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:
                logger.exception(
                    "Handler %r failed for %s", subscription.handler, type(event).__name__
                )
        return delivered
