"""WebSocket endpoint for live dashboard updates."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from .broadcaster import Broadcaster

logger = logging.getLogger(__name__)


def _command_text(message: dict) -> str:
    """Commands may arrive as text or binary frames."""
    if message.get("text") is not None:
        return message["text"]
    return (message.get("bytes") or b"").decode("utf-8", errors="replace")


def create_stream_router(broadcaster: Broadcaster, path: str = "/") -> APIRouter:
    """Create the WebSocket router bound to a broadcaster.

    This factory pattern lets us inject the Broadcaster without globals.
    """
    router = APIRouter(tags=["streaming"])

    @router.websocket(path)
    async def stream_dashboard(websocket: WebSocket) -> None:
        """Push dashboard events to the client and accept text commands.

        On connect the client receives {"type": "initialData", ...} if data
        has been loaded. After that it receives dataLoaded, predictionResult,
        priceUpdate and chartUpdate envelopes as they happen, and may send
        the raw commands "getPrediction" or "getDashboardData" as text or
        binary frames.
        """
        client = websocket.client.host if websocket.client else "unknown"
        await broadcaster.connect(websocket)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                broadcaster.handle_command(_command_text(message).strip())
        except WebSocketDisconnect:
            logger.info("WebSocket client disconnected: %s", client)
        finally:
            broadcaster.disconnect(websocket)

    return router
