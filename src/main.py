"""
Object detection entry point.

Runs a YOLO ONNX model on a still image or on a live video source, drawing
the detections. With --serve, also exposes the HTTP API and a live preview.

Usage:
    python src/main.py --image street.jpg --output street_boxes.jpg
    python src/main.py --video 0 --display
    python src/main.py --video clip.mp4 --record --serve

Arguments:
    --config: Path to configuration file
    --image: Detect on a single image and exit
    --output: Where to write the annotated image (with --image)
    --video: Camera index, stream URL or video file (overrides source.device_id)
    --display: Show annotated frames in a window ('q' quits)
    --record: Record annotated video
    --serve: Start the web interface alongside the video pump
"""

import os
import sys
import argparse
import json
import logging
import threading
from typing import Dict, Any, Tuple, Optional

import cv2
import uvicorn
import yaml

from detection.detector import Detector
from inference.onnx_backend import OnnxYoloBackend, OnnxYoloConfig
from models.config import Config
from models.errors import DetectionError
from models.labels import load_labels
from observation import create_source_from_config, read_image
from ops.logging import setup_logging
from pipeline.pump import create_pump_from_config
from rendering.canvas import Canvas
from web.app import create_app
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['model', 'detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    model = config.get('model') or {}
    for key in ('model', 'nms_model'):
        if not isinstance(model.get(key), str) or not model.get(key):
            return False, f"model.{key} must be a non-empty path"
    if 'input_shape' in model:
        shape = model['input_shape']
        if not isinstance(shape, list) or len(shape) != 4:
            return False, "model.input_shape must be [batch, channels, height, width]"
        if not all(isinstance(x, int) and x > 0 for x in shape):
            return False, "model.input_shape values must be positive integers"
    if 'providers' in model:
        if not isinstance(model['providers'], list) or not all(isinstance(p, str) for p in model['providers']):
            return False, "model.providers must be a list of provider names"

    detection = config.get('detection') or {}
    if 'topk' in detection:
        topk = detection['topk']
        if not isinstance(topk, int) or isinstance(topk, bool) or topk <= 0:
            return False, "detection.topk must be a positive integer"
    if 'iou_threshold' in detection:
        iou = detection['iou_threshold']
        if not _is_number(iou) or not (0 < iou <= 1):
            return False, "detection.iou_threshold must be between 0 and 1"
    if 'score_threshold' in detection:
        score = detection['score_threshold']
        if not _is_number(score) or not (0 <= score <= 1):
            return False, "detection.score_threshold must be between 0 and 1"

    source = config.get('source') or {}
    if 'device_id' in source:
        device_id = source['device_id']
        if not isinstance(device_id, (int, str)) or isinstance(device_id, bool):
            return False, "source.device_id must be an integer (index) or string (URL/path)"
        if isinstance(device_id, int) and device_id < 0:
            return False, "source.device_id integer must be non-negative"
    if source.get('resolution') is not None:
        res = source['resolution']
        if not isinstance(res, list) or len(res) != 2 or not all(isinstance(x, int) and x > 0 for x in res):
            return False, "source.resolution must be a list of two positive integers"

    pump = config.get('pump') or {}
    for key in ('fps', 'scale_factor'):
        if key in pump and (not _is_number(pump[key]) or pump[key] <= 0):
            return False, f"pump.{key} must be a positive number"
    if 'max_consecutive_failures' in pump:
        mcf = pump['max_consecutive_failures']
        if not isinstance(mcf, int) or mcf <= 0:
            return False, "pump.max_consecutive_failures must be a positive integer"

    web = config.get('web') or {}
    if 'max_upload_mb' in web and (not _is_number(web['max_upload_mb']) or web['max_upload_mb'] <= 0):
        return False, "web.max_upload_mb must be a positive number"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def build_detector(cfg: Config) -> Detector:
    """Load the ONNX graphs and label table and bind them to the configured thresholds."""
    backend = OnnxYoloBackend(OnnxYoloConfig.from_model_config(cfg.model))
    labels = load_labels(cfg.model.labels_file)
    return Detector(backend, cfg.detection, labels=labels, input_shape=backend.input_shape)


def run_image(detector: Detector, image_path: str, output_path: Optional[str]) -> int:
    """Detect on one image, print the boxes as JSON, optionally save the annotated image."""
    canvas = Canvas()
    try:
        image = read_image(image_path)
        boxes = detector.detect(image, canvas)
    except DetectionError as e:
        logging.error(f"Detection failed for {image_path}: {e}")
        return 1

    logging.info(f"{len(boxes)} objects detected in {image_path}")
    print(json.dumps([b.to_dict() for b in boxes], indent=2))

    if output_path:
        out_dir = os.path.dirname(output_path)
        if out_dir and not os.path.exists(out_dir):
            os.makedirs(out_dir)
        cv2.imwrite(output_path, canvas.compose(image))
        logging.info(f"Annotated image written to {output_path}")
    return 0


def run_video(cfg: Config, detector: Detector, display: bool, record: bool, serve: bool) -> int:
    """Run the video pump until the source ends or the user quits."""
    source = create_source_from_config(cfg.source, source_id="video")
    canvas = Canvas()
    pump = create_pump_from_config(source, detector, canvas, cfg.pump, display=display, record=record)

    if serve:
        web_state.set_detector(detector)
        web_state.set_pump(pump)
        web_state.max_upload_bytes = cfg.web.max_upload_bytes
        pump.add_callback(lambda frame_data, boxes: web_state.set_frame(canvas.compose(frame_data.frame)))
        pump.add_stop_callback(web_state.clear_frame)

        def run_web_app():
            uvicorn.run(
                create_app(),
                host=cfg.web.host,
                port=cfg.web.port,
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Web interface started on port {cfg.web.port}")

    try:
        pump.run()
    except RuntimeError as e:
        logging.error(f"Video source error: {e}")
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(description='YOLO object detection with ONNX Runtime')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--image', type=str, default=None,
                        help='Detect objects in a single image and exit')
    parser.add_argument('--output', type=str, default=None,
                        help='Annotated image output path (with --image)')
    parser.add_argument('--video', type=str, default=None,
                        help='Camera index, stream URL or video file')
    parser.add_argument('--display', action='store_true',
                        help='Enable visual display')
    parser.add_argument('--record', action='store_true',
                        help='Record annotated video output')
    parser.add_argument('--serve', action='store_true',
                        help='Start the web interface')
    args = parser.parse_args()

    config = load_config(args.config)
    if args.video is not None:
        config.setdefault('source', {})['device_id'] = int(args.video) if args.video.isdigit() else args.video

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    cfg = Config.from_dict(config)

    try:
        detector = build_detector(cfg)
    except (DetectionError, FileNotFoundError, ValueError) as e:
        logging.error(f"Failed to load detector: {e}")
        sys.exit(1)

    if args.image:
        sys.exit(run_image(detector, args.image, args.output))
    sys.exit(run_video(cfg, detector, args.display, args.record, args.serve))


if __name__ == "__main__":
    main()
