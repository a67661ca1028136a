"""REST endpoints for dashboard snapshots and prediction triggers."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .scheduler import TaskTracker
from .state import StateStore

logger = logging.getLogger(__name__)

LOAD_FAILED = {"error": "Failed to load dashboard data"}
PREDICTION_FAILED = {"error": "Prediction failed"}
NO_PREDICTION = {"error": "No prediction available"}


def create_api_router(store: StateStore, tasks: TaskTracker) -> APIRouter:
    """Create the REST router bound to a state store.

    Every handler delegates to the store; failures map to fixed-message
    error responses and are never retried.
    """
    router = APIRouter(prefix="/api", tags=["dashboard"])

    @router.get("/dashboard")
    async def get_dashboard(refresh: bool = False) -> JSONResponse:
        """Current snapshot. Loads first if nothing is loaded or refresh=true."""
        try:
            snapshot = store.current_snapshot()
            if snapshot is None or refresh:
                snapshot = await store.load_initial_data()
        except Exception:
            logger.exception("GET /api/dashboard failed")
            return JSONResponse(status_code=500, content=LOAD_FAILED)

        if snapshot is None:
            # Store busy with a prediction before anything was ever loaded
            return JSONResponse(status_code=500, content=LOAD_FAILED)
        return JSONResponse(content=snapshot.to_dict())

    @router.post("/predict")
    async def predict() -> JSONResponse:
        """Start a prediction cycle in the background and acknowledge at once.

        The result is available from /api/last-prediction and is pushed to
        WebSocket subscribers when it completes.
        """
        try:
            tasks.spawn(store.start_prediction(), name="api-prediction")
        except Exception:
            logger.exception("POST /api/predict failed")
            return JSONResponse(status_code=500, content=PREDICTION_FAILED)
        return JSONResponse(content={"message": "Prediction started"})

    @router.get("/last-prediction")
    async def last_prediction() -> JSONResponse:
        prediction = store.current_prediction()
        if prediction is None:
            return JSONResponse(status_code=404, content=NO_PREDICTION)
        return JSONResponse(content=prediction.to_dict())

    return router
