from __future__ import annotations

import logging
import time
from typing import Iterator, Optional

import cv2
import numpy as np
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response, StreamingResponse

from models.errors import InferenceBackendError, InvalidImageSource
from observation.image_source import decode_image
from rendering.canvas import Canvas
from ..api_models import BoxModel, DetectResponse, ModelInfoResponse, StatusResponse
from ..state import SharedState

router = APIRouter()


def get_shared_state(request: Request) -> SharedState:
    return request.app.state.shared


def _require_detector(shared: SharedState):
    if shared.detector is None:
        raise HTTPException(status_code=503, detail="Detector not loaded")
    return shared.detector


def _run_detection(detector, image: np.ndarray, canvas: Optional[Canvas] = None):
    try:
        return detector.detect(image, canvas)
    except InvalidImageSource as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InferenceBackendError as e:
        logging.error(f"Inference failed for HTTP request: {e}")
        raise HTTPException(status_code=502, detail=str(e))


def _decode_body(body: bytes) -> np.ndarray:
    try:
        return decode_image(body)
    except InvalidImageSource as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the raw request body, refusing anything larger than limit bytes."""
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise HTTPException(status_code=413, detail=f"Image payload exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise HTTPException(status_code=413, detail=f"Image payload exceeds {limit} bytes")
    return bytes(body)


def _detect_payload(detector, body: bytes, canvas: Optional[Canvas] = None):
    """Decode and detect; blocking, so handlers run it in the threadpool."""
    image = _decode_body(body)
    started = time.perf_counter()
    boxes = _run_detection(detector, image, canvas)
    return image, boxes, (time.perf_counter() - started) * 1000


def _annotate_payload(detector, body: bytes) -> bytes:
    canvas = Canvas()
    image, _, _ = _detect_payload(detector, body, canvas)
    ok, jpeg = cv2.imencode(".jpg", canvas.compose(image))
    if not ok:
        raise HTTPException(status_code=500, detail="JPEG encoding failed")
    return jpeg.tobytes()


@router.post("/detect", response_model=DetectResponse)
async def detect(request: Request, shared: SharedState = Depends(get_shared_state)):
    """Detect objects in an encoded image posted as the raw request body."""
    detector = _require_detector(shared)
    body = await _read_body(request, shared.max_upload_bytes)
    image, boxes, elapsed_ms = await run_in_threadpool(_detect_payload, detector, body)

    h, w = image.shape[:2]
    return DetectResponse(
        width=w,
        height=h,
        inference_ms=round(elapsed_ms, 2),
        boxes=[BoxModel.from_box(b) for b in boxes],
    )


@router.post("/detect/annotated.jpg")
async def detect_annotated(request: Request, shared: SharedState = Depends(get_shared_state)):
    """Same as /detect but returns the image with boxes drawn on it."""
    detector = _require_detector(shared)
    body = await _read_body(request, shared.max_upload_bytes)
    jpeg = await run_in_threadpool(_annotate_payload, detector, body)
    return Response(content=jpeg, media_type="image/jpeg", headers={"Cache-Control": "no-store"})


@router.get("/model", response_model=ModelInfoResponse)
def model_info(shared: SharedState = Depends(get_shared_state)):
    detector = _require_detector(shared)
    cfg = detector.config
    return ModelInfoResponse(
        input_shape=list(detector.input_shape),
        topk=cfg.topk,
        iou_threshold=cfg.iou_threshold,
        score_threshold=cfg.score_threshold,
        num_labels=len(detector.labels) if detector.labels is not None else None,
    )


@router.get("/status", response_model=StatusResponse)
def status(shared: SharedState = Depends(get_shared_state)):
    now = time.time()
    pump = shared.pump
    last_frame_age = None if shared.last_frame_ts is None else round(now - shared.last_frame_ts, 3)
    if pump is None:
        return StatusResponse(
            pump_state="absent",
            frames=0,
            boxes=0,
            dropped_frames=0,
            fps=0.0,
            last_frame_age=last_frame_age,
            uptime_seconds=int(now - shared.start_time),
        )

    stats = pump.stats
    return StatusResponse(
        pump_state=pump.state.value,
        frames=stats.frame_count,
        boxes=stats.box_count,
        dropped_frames=stats.dropped_frames,
        fps=round(stats.fps, 2),
        last_frame_age=last_frame_age,
        uptime_seconds=int(now - shared.start_time),
    )


def mjpeg_chunk(frame: np.ndarray) -> Optional[bytes]:
    """Encode one multipart/x-mixed-replace part, or None if encoding fails."""
    ok, jpeg = cv2.imencode(".jpg", frame)
    if not ok:
        return None
    return b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpeg.tobytes() + b"\r\n"


@router.get("/stream.mjpg")
def stream(fps: int = 5, shared: SharedState = Depends(get_shared_state)):
    """MJPEG stream of the pump's annotated output."""
    interval = 1.0 / max(1, min(fps, 30))

    def gen() -> Iterator[bytes]:
        while True:
            frame = shared.get_frame()
            if frame is not None:
                chunk = mjpeg_chunk(frame)
                if chunk is not None:
                    yield chunk
            if shared.pump is None or shared.pump.state.value != "running":
                break
            time.sleep(interval)

    return StreamingResponse(gen(), media_type="multipart/x-mixed-replace; boundary=frame")
