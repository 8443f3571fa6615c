"""
Video pump: runs still-image detection against a live source, frame after frame.

Each tick captures the source's current frame, detects and renders it, and
only then asks the scheduler for the next tick, so at most one inference is
ever in flight and the pump never outruns the refresh rate. The pump stops
when the source reports no frame width and no attached stream (unset or
ended, as opposed to a paused live feed), or when stop() is called.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Protocol

import cv2

from detection.detector import Detector
from models.config import PumpConfig
from models.detection import Box
from models.errors import DetectionError
from models.frame import FrameData
from observation.base import ObservationSource
from observation.capture import capture_frame
from rendering.canvas import Canvas


class PumpState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class FrameScheduler(Protocol):
    def wait(self) -> None:
        """Block until the next tick is due."""
        ...


class RefreshScheduler:
    """Paces ticks to a target refresh rate."""

    def __init__(
        self,
        fps: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.interval = 1.0 / fps
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None

    def wait(self) -> None:
        now = self._clock()
        if self._last is not None:
            remaining = self._last + self.interval - now
            if remaining > 0:
                self._sleep(remaining)
                now = self._clock()
        self._last = now


@dataclass
class PumpStats:
    """Runtime statistics for the pump."""
    frame_count: int = 0
    box_count: int = 0
    dropped_frames: int = 0
    consecutive_failures: int = 0
    fps: float = 0.0
    last_frame_ts: Optional[float] = None
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


FrameCallback = Callable[[FrameData, List[Box]], None]


class VideoPump:
    """
    Drives a Detector over an ObservationSource.

    Example:
        pump = VideoPump(source, detector, Canvas(), PumpConfig(fps=30))
        pump.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        detector: Detector,
        canvas: Canvas,
        config: Optional[PumpConfig] = None,
        scheduler: Optional[FrameScheduler] = None,
    ):
        self.source = source
        self.detector = detector
        self.canvas = canvas
        self.config = config or PumpConfig()
        self.scheduler = scheduler or RefreshScheduler(self.config.fps)
        self.stats = PumpStats()
        self._state = PumpState.STOPPED
        self._cancelled = False
        self._callbacks: List[FrameCallback] = []
        self._stop_callbacks: List[Callable[[], None]] = []
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._output_path: Optional[str] = None

    @property
    def state(self) -> PumpState:
        return self._state

    def add_callback(self, callback: FrameCallback) -> None:
        """Register a function called with (frame_data, boxes) after each rendered frame."""
        self._callbacks.append(callback)

    def add_stop_callback(self, callback: Callable[[], None]) -> None:
        """Register a function called once when the pump stops and releases the source."""
        self._stop_callbacks.append(callback)

    def stop(self) -> None:
        """Cancel the pump; it stops at the top of the next tick."""
        self._cancelled = True

    def start(self) -> None:
        self._cancelled = False
        self.stats = PumpStats()
        if not self.source.is_open:
            self.source.open()
        self._state = PumpState.RUNNING
        logging.info(f"Video pump started: source={self.source.source_id}")

    def run(self) -> None:
        """Tick until the pump stops, then release the source and outputs."""
        try:
            self.start()
            while self.tick():
                self.scheduler.wait()
        except KeyboardInterrupt:
            logging.info("Video pump interrupted by user")
        finally:
            self._cleanup()

    def tick(self) -> bool:
        """
        Process one frame.

        Returns:
            True if another tick should be scheduled, False once stopped.
        """
        if self._state is not PumpState.RUNNING:
            return False
        if self._cancelled:
            self._transition_stopped("cancelled")
            return False
        if self.source.video_width == 0 and not self.source.has_stream:
            self.canvas.clear()
            self._transition_stopped("source closed")
            return False

        frame_data = capture_frame(self.source, self.config.scale_factor)
        if frame_data is None:
            self.stats.consecutive_failures += 1
            if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                logging.error(
                    f"Too many consecutive read failures ({self.stats.consecutive_failures}), stopping"
                )
                self.canvas.clear()
                self._transition_stopped("read failures")
                return False
            return True
        self.stats.consecutive_failures = 0

        rendered = []
        try:
            boxes = self.detector.detect(
                frame_data.frame, self.canvas, callback=lambda: rendered.append(True)
            )
        except DetectionError as e:
            self.stats.dropped_frames += 1
            logging.warning(f"Dropped frame {frame_data.frame_index}: {e}")
            return True

        if rendered:
            self._on_rendered(frame_data, boxes)
        return True

    def _on_rendered(self, frame_data: FrameData, boxes: List[Box]) -> None:
        now = time.time()
        if self.stats.last_frame_ts is not None and now > self.stats.last_frame_ts:
            instant = 1.0 / (now - self.stats.last_frame_ts)
            self.stats.fps = instant if self.stats.fps == 0 else 0.9 * self.stats.fps + 0.1 * instant
        self.stats.last_frame_ts = now
        self.stats.frame_count += 1
        self.stats.box_count += len(boxes)

        for callback in self._callbacks:
            try:
                callback(frame_data, boxes)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        if self.config.display or self.config.record:
            composed = self.canvas.compose(frame_data.frame)
            if self.config.record:
                self._write_frame(composed)
            if self.config.display and not self._handle_display(composed):
                self.stop()

        self._handle_periodic_tasks(now)

    def _handle_display(self, composed) -> bool:
        """Show the composed frame. Returns False if the user pressed 'q'."""
        cv2.imshow("Object Detection", composed)
        key = cv2.waitKey(1) & 0xFF
        return key != ord('q')

    def _write_frame(self, composed) -> None:
        if self._video_writer is None:
            if not os.path.exists(self.config.output_dir):
                os.makedirs(self.config.output_dir)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self._output_path = os.path.join(self.config.output_dir, f"detections_{timestamp}.avi")
            h, w = composed.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*'XVID')
            self._video_writer = cv2.VideoWriter(self._output_path, fourcc, self.config.fps, (w, h), True)
            logging.info(f"Video recording started: {self._output_path}")
        self._video_writer.write(composed)

    def _handle_periodic_tasks(self, now: float) -> None:
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Pump stats: frames={self.stats.frame_count}, boxes={self.stats.box_count}, "
                f"dropped={self.stats.dropped_frames}, fps={self.stats.fps:.1f}"
            )
            self.stats.last_stats_log_time = now

    def _transition_stopped(self, reason: str) -> None:
        self._state = PumpState.STOPPED
        logging.info(f"Video pump stopped ({reason}) after {self.stats.frame_count} frames")

    def _cleanup(self) -> None:
        self._state = PumpState.STOPPED
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        if self._video_writer is not None:
            self._video_writer.release()
            self._video_writer = None
            logging.info(f"Video saved: {self._output_path}")

        if self.config.display:
            cv2.destroyAllWindows()

        for callback in self._stop_callbacks:
            try:
                callback()
            except Exception as e:
                logging.warning(f"Stop callback error: {e}")


def create_pump_from_config(
    source: ObservationSource,
    detector: Detector,
    canvas: Canvas,
    config: PumpConfig,
    display: bool = False,
    record: bool = False,
) -> VideoPump:
    """Build a pump, letting CLI flags switch on display/recording."""
    pump_config = PumpConfig(
        fps=config.fps,
        scale_factor=config.scale_factor,
        max_consecutive_failures=config.max_consecutive_failures,
        stats_log_interval=config.stats_log_interval,
        display=config.display or display,
        record=config.record or record,
        output_dir=config.output_dir,
    )
    return VideoPump(source, detector, canvas, pump_config)
