"""
FastAPI application factory for Vision Tracker.

Routes:
- /api/health      -> liveness
- /api/status      -> mode, detect/track state, counts, fps
- /api/reset       -> clear tracking and overlay (POST)
- /api/mode        -> toggle rectangles/faces (POST)
- /api/frame.jpg   -> latest annotated preview
- /api/stream.mjpg -> MJPEG preview stream
"""

from __future__ import annotations

import logging
import threading

from fastapi import FastAPI

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Vision Tracker",
        version="0.1.0",
        description="Detect and track rectangles or faces in a camera feed",
    )
    app.include_router(api.router, prefix="/api")
    return app


def start_web_server(host: str, port: int) -> threading.Thread:
    """Serve the API with uvicorn on a daemon thread."""
    import uvicorn

    def _serve():
        uvicorn.run(create_app(), host=host, port=port, log_level="warning")

    thread = threading.Thread(target=_serve, name="web", daemon=True)
    thread.start()
    logging.info(f"Web control surface listening on http://{host}:{port}/api/status")
    return thread
