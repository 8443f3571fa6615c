"""
FastAPI application factory.

Routes:
- /                       -> minimal preview page
- /api/detect             -> JSON boxes for a posted image
- /api/detect/annotated.jpg -> posted image with boxes drawn
- /api/model, /api/status -> model and pump information
- /api/stream.mjpg        -> annotated video pump output
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from .routes import api
from .state import SharedState, state

INDEX_HTML = """<!doctype html>
<html>
  <head><title>Object Detection</title></head>
  <body style="font-family: sans-serif; background: #111; color: #eee">
    <h1>Object Detection</h1>
    <img src="/api/stream.mjpg" alt="live detections" style="max-width: 100%">
    <p>POST an image to <code>/api/detect</code> or <code>/api/detect/annotated.jpg</code>.</p>
  </body>
</html>
"""


def create_app(shared_state: Optional[SharedState] = None) -> FastAPI:
    """Create the FastAPI app bound to a shared state (the global one by default)."""
    app = FastAPI(
        title="Object Detection",
        version="0.1.0",
        description="YOLO object detection with ONNX Runtime",
    )
    app.state.shared = shared_state if shared_state is not None else state

    app.include_router(api.router, prefix="/api")

    @app.get("/", response_class=HTMLResponse)
    def index():
        return INDEX_HTML

    return app
