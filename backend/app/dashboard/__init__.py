"""Live dashboard subsystem.

Public API:
    Snapshot, Prediction   - Immutable state and inference result dataclasses
    EventBus               - Typed in-process publish/subscribe
    StateStore             - Owner of dashboard state; publishes events on mutation
    Broadcaster            - Pushes events to connected WebSocket subscribers
    PriceTicker            - Periodic price tick driver
    TaskTracker            - Tracks fire-and-forget background tasks
    PredictionSource       - Abstract interface for inference providers
    create_prediction_source - Factory that selects simulated or remote scoring
    create_api_router      - FastAPI router factory for the REST endpoints
    create_stream_router   - FastAPI router factory for the WebSocket endpoint
    DashboardRuntime       - One wired instance of all of the above
"""

from .api import create_api_router
from .broadcaster import Broadcaster
from .events import EventBus
from .factory import create_prediction_source
from .interface import PredictionSource
from .models import Prediction, Snapshot
from .runtime import DashboardRuntime
from .scheduler import PriceTicker, TaskTracker
from .state import StateStore
from .stream import create_stream_router

__all__ = [
    "Snapshot",
    "Prediction",
    "EventBus",
    "StateStore",
    "Broadcaster",
    "PriceTicker",
    "TaskTracker",
    "PredictionSource",
    "create_prediction_source",
    "create_api_router",
    "create_stream_router",
    "DashboardRuntime",
]
