"""Process entry point: REST API and WebSocket stream on their own ports.

Run with: python -m app.main
"""

from __future__ import annotations

import asyncio
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.dashboard import DashboardRuntime, create_api_router, create_stream_router
from app.dashboard.defaults import HOST, HTTP_PORT, WS_PORT

logger = logging.getLogger(__name__)


def create_api_app(runtime: DashboardRuntime) -> FastAPI:
    """REST app: snapshot reads and prediction triggers."""
    app = FastAPI(title="Quantum ML Dashboard", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(create_api_router(runtime.store, runtime.tasks))
    return app


def create_ws_app(runtime: DashboardRuntime) -> FastAPI:
    """WebSocket app: live pushes and inbound commands at the root path."""
    app = FastAPI(title="Quantum ML Dashboard stream", version="0.1.0")
    app.include_router(create_stream_router(runtime.broadcaster))
    return app


async def serve(runtime: DashboardRuntime | None = None) -> None:
    """Start the runtime and serve both apps until either server exits."""
    runtime = runtime or DashboardRuntime()
    servers = [
        uvicorn.Server(uvicorn.Config(create_api_app(runtime), host=HOST, port=HTTP_PORT)),
        uvicorn.Server(uvicorn.Config(create_ws_app(runtime), host=HOST, port=WS_PORT)),
    ]

    await runtime.start()
    logger.info("HTTP server on http://localhost:%d", HTTP_PORT)
    logger.info("WebSocket server on ws://localhost:%d", WS_PORT)
    try:
        tasks = [asyncio.create_task(server.serve()) for server in servers]
        _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        # A signal only stops the server that caught it; stop the other too
        for server in servers:
            server.should_exit = True
        if pending:
            await asyncio.wait(pending)
    finally:
        await runtime.stop()


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(serve())


if __name__ == "__main__":
    main()
