"""Fan-out of dashboard events to connected WebSocket subscribers."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

from starlette import status
from starlette.websockets import WebSocketState

from .defaults import SEND_TIMEOUT
from .events import ChartUpdate, DataLoaded, EventBus, PredictionComplete, PriceUpdate
from .exceptions import DeliveryError
from .scheduler import TaskTracker
from .state import StateStore

logger = logging.getLogger(__name__)

# Bus events pushed to subscribers, and the envelope type each is sent as.
# PredictionStarted and ErrorOccurred have no wire message type and are not
# forwarded: subscribers get no notice when a load or prediction fails.
MESSAGE_TYPES: dict[type, str] = {
    DataLoaded: "dataLoaded",
    PredictionComplete: "predictionResult",
    PriceUpdate: "priceUpdate",
    ChartUpdate: "chartUpdate",
}

INITIAL_DATA = "initialData"


class Subscriber(Protocol):
    """What the broadcaster needs from a connection (a FastAPI WebSocket)."""

    client_state: WebSocketState
    application_state: WebSocketState

    async def accept(self) -> None: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


def _is_open(subscriber: Subscriber) -> bool:
    return (
        subscriber.client_state == WebSocketState.CONNECTED
        and subscriber.application_state == WebSocketState.CONNECTED
    )


def encode_message(message_type: str, data: Any) -> str:
    """Serialize a {"type", "data"} envelope."""
    return json.dumps({"type": message_type, "data": data})


class Broadcaster:
    """Pushes store events to every connected subscriber.

    Owns the subscriber registry; the store never sees a connection. Each
    subscriber has a send lock so messages to one connection never
    interleave, and so the initialData replay on connect always goes out
    before any broadcast reaches the new subscriber.

    Delivery is best effort and at most once: a subscriber that is closed,
    raises on send or times out is dropped without affecting the rest, and
    its connection is closed so the client can reconnect.
    """

    def __init__(
        self,
        bus: EventBus,
        store: StateStore,
        tasks: TaskTracker,
        send_timeout: float = SEND_TIMEOUT,
    ) -> None:
        self._bus = bus
        self._store = store
        self._tasks = tasks
        self._send_timeout = send_timeout
        self._subscribers: dict[Subscriber, asyncio.Lock] = {}
        self._subscriptions = [
            bus.subscribe(event_type, self._on_event) for event_type in MESSAGE_TYPES
        ]

    @property
    def active_count(self) -> int:
        return len(self._subscribers)

    async def connect(self, subscriber: Subscriber) -> None:
        """Accept a subscriber, register it and replay the current snapshot to it."""
        await subscriber.accept()
        lock = asyncio.Lock()
        async with lock:
            self._subscribers[subscriber] = lock
            logger.info("Subscriber connected (%d active)", len(self._subscribers))

            snapshot = self._store.current_snapshot()
            if snapshot is None:
                return
            message = encode_message(INITIAL_DATA, snapshot.to_dict())
            try:
                await self._send(subscriber, message)
            except Exception as e:
                self._drop(subscriber, INITIAL_DATA, e)

    def disconnect(self, subscriber: Subscriber) -> None:
        """Forget a subscriber. No-op if it is not registered."""
        if self._subscribers.pop(subscriber, None) is not None:
            logger.info("Subscriber disconnected (%d active)", len(self._subscribers))

    async def broadcast(self, message_type: str, data: Any) -> int:
        """Send one envelope to every open subscriber.

        Iterates over a copy of the registry, so subscribers may connect or
        disconnect while a broadcast is in progress. Returns the number of
        subscribers the message was delivered to.
        """
        message = encode_message(message_type, data)
        delivered = 0
        for subscriber, lock in list(self._subscribers.items()):
            if subscriber not in self._subscribers:
                continue  # Left during this broadcast
            if not _is_open(subscriber):
                self.disconnect(subscriber)
                continue
            try:
                async with lock:
                    await self._send(subscriber, message)
                delivered += 1
            except Exception as e:
                self._drop(subscriber, message_type, e)

        logger.debug("Broadcast %s to %d subscribers", message_type, delivered)
        return delivered

    def handle_command(self, command: str) -> None:
        """Dispatch an inbound text command. Unknown commands are ignored.

        Commands are fire-and-forget: the outcome reaches the subscriber only
        through the resulting broadcast.
        """
        if command == "getPrediction":
            self._tasks.spawn(self._store.start_prediction(), name="ws-prediction")
        elif command == "getDashboardData":
            self._tasks.spawn(self._store.load_initial_data(), name="ws-load")
        else:
            logger.debug("Ignoring unknown command %r", command[:50])

    def close(self) -> None:
        """Detach from the event bus."""
        for subscription in self._subscriptions:
            self._bus.unsubscribe(subscription)
        self._subscriptions = []

    # --- Internal ---

    async def _on_event(self, event: Any) -> None:
        await self.broadcast(MESSAGE_TYPES[type(event)], event.to_payload())

    async def _send(self, subscriber: Subscriber, message: str) -> None:
        await asyncio.wait_for(subscriber.send_text(message), timeout=self._send_timeout)

    def _drop(self, subscriber: Subscriber, message_type: str, exc: Exception) -> None:
        error = DeliveryError(
            "Delivery failed, dropping subscriber",
            context={"type": message_type, "error": repr(exc)},
        )
        logger.debug("%s", error)
        self.disconnect(subscriber)
        self._tasks.spawn(self._close(subscriber), name="ws-close")

    async def _close(self, subscriber: Subscriber) -> None:
        try:
            await asyncio.wait_for(
                subscriber.close(code=status.WS_1011_INTERNAL_ERROR),
                timeout=self._send_timeout,
            )
        except Exception as e:
            # The connection is usually already broken
            logger.debug("Closing dropped subscriber failed: %r", e)
