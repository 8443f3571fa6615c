#!/usr/bin/env python3
"""
Check the ONNX Runtime setup and time the detection pipeline.

This utility helps verify that:
1. onnxruntime is installed and which execution providers it offers
2. Both the YOLO graph and the NMS graph load
3. Detection on a real image/camera frame produces sensible boxes, and how fast

Usage:
    python tools/benchmark_detector.py --image path/to/image.jpg
    python tools/benchmark_detector.py --device 0 --runs 50
    python tools/benchmark_detector.py --image street.jpg --providers CUDAExecutionProvider CPUExecutionProvider
"""

import argparse
import os
import sys
import time

# Add project directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

import cv2
import numpy as np
import onnxruntime as ort

from detection.detector import Detector
from inference.onnx_backend import OnnxYoloBackend, OnnxYoloConfig
from models.config import DetectionConfig
from models.errors import DetectionError
from models.labels import COCO_LABELS
from rendering.canvas import Canvas


def print_providers():
    print(f"onnxruntime {ort.__version__}")
    for provider in ort.get_available_providers():
        print(f"  ✅ {provider}")


def grab_frame(device: int):
    cap = cv2.VideoCapture(device)
    try:
        if not cap.isOpened():
            return None
        ok, frame = cap.read()
        return frame if ok else None
    finally:
        cap.release()


def main():
    parser = argparse.ArgumentParser(description="Benchmark the ONNX detection pipeline")
    parser.add_argument("--model", default="models/yolov8n.onnx")
    parser.add_argument("--nms-model", default="models/nms-yolov8.onnx")
    parser.add_argument("--image", type=str, default=None, help="Image to run on")
    parser.add_argument("--device", type=int, default=None, help="Camera index to grab one frame from")
    parser.add_argument("--runs", type=int, default=20)
    parser.add_argument("--providers", nargs="+", default=["CPUExecutionProvider"])
    parser.add_argument("--output", type=str, default=None, help="Write the annotated image here")
    args = parser.parse_args()

    print_providers()

    if args.image:
        image = cv2.imread(args.image)
    elif args.device is not None:
        image = grab_frame(args.device)
    else:
        print("⚠️  No --image or --device given, using a blank 640x480 frame")
        image = np.zeros((480, 640, 3), dtype=np.uint8)

    if image is None:
        print("❌ Could not read an input image")
        return 1

    try:
        backend = OnnxYoloBackend(
            OnnxYoloConfig(model=args.model, nms_model=args.nms_model, providers=tuple(args.providers))
        )
    except DetectionError as e:
        print(f"❌ {e}")
        return 1

    detector = Detector(backend, DetectionConfig(), labels=COCO_LABELS)
    canvas = Canvas()

    # first run includes session warmup
    boxes = detector.detect(image, canvas)
    timings = []
    for _ in range(args.runs):
        start = time.perf_counter()
        boxes = detector.detect(image, canvas)
        timings.append((time.perf_counter() - start) * 1000)

    print(f"\nInput {image.shape[1]}x{image.shape[0]}, model input {detector.input_shape}")
    print(f"{len(boxes)} boxes:")
    for box in boxes:
        x, y, w, h = box.bounding
        print(f"  {box.class_name:<15} {box.probability:.2f}  [{x:.0f}, {y:.0f}, {w:.0f}, {h:.0f}]")

    if timings:
        print(
            f"\nLatency over {len(timings)} runs: mean {np.mean(timings):.1f} ms, "
            f"p95 {np.percentile(timings, 95):.1f} ms, ~{1000 / np.mean(timings):.1f} FPS"
        )

    if args.output:
        cv2.imwrite(args.output, canvas.compose(image))
        print(f"Annotated image written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
