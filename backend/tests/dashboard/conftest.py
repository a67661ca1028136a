"""Fixtures for dashboard tests."""

import json

import numpy as np
import pytest
from starlette.websockets import WebSocketState

from app.dashboard.broadcaster import Broadcaster
from app.dashboard.events import EventBus
from app.dashboard.predictor import SimulatedPredictionSource
from app.dashboard.scheduler import TaskTracker
from app.dashboard.state import StateStore


class FakeSubscriber:
    """In-memory stand-in for a FastAPI WebSocket."""

    def __init__(self, fail: bool = False, on_send=None) -> None:
        self.client_state = WebSocketState.CONNECTING
        self.application_state = WebSocketState.CONNECTING
        self.sent: list[dict] = []
        self.close_code: int | None = None
        self.fail = fail
        self.on_send = on_send

    async def accept(self) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str) -> None:
        if self.on_send is not None:
            self.on_send(self)
        if self.fail:
            raise RuntimeError("Connection closed")
        self.sent.append(json.loads(data))

    def hang_up(self) -> None:
        """Simulate the client going away."""
        self.client_state = WebSocketState.DISCONNECTED

    async def close(self, code: int = 1000) -> None:
        self.application_state = WebSocketState.DISCONNECTED
        self.close_code = code

    @property
    def types(self) -> list[str]:
        return [message["type"] for message in self.sent]


class EventRecorder:
    """Subscribes to the given event types and keeps everything published."""

    def __init__(self, bus: EventBus, *event_types: type) -> None:
        self.events: list = []
        for event_type in event_types:
            bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type: type) -> list:
        return [event for event in self.events if isinstance(event, event_type)]


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def source() -> SimulatedPredictionSource:
    """Prediction source with no latency and a fixed seed."""
    return SimulatedPredictionSource(latency=0, rng=np.random.default_rng(7))


@pytest.fixture
def store(bus: EventBus, source: SimulatedPredictionSource) -> StateStore:
    return StateStore(bus, source, rng=np.random.default_rng(42))


@pytest.fixture
def tasks() -> TaskTracker:
    return TaskTracker()


@pytest.fixture
def broadcaster(bus: EventBus, store: StateStore, tasks: TaskTracker) -> Broadcaster:
    return Broadcaster(bus, store, tasks, send_timeout=1.0)


@pytest.fixture
def make_subscriber():
    """Factory for FakeSubscriber instances."""
    return FakeSubscriber


@pytest.fixture
def record(bus: EventBus):
    """Factory: record(EventType, ...) -> EventRecorder on the shared bus."""

    def _record(*event_types: type) -> EventRecorder:
        return EventRecorder(bus, *event_types)

    return _record
