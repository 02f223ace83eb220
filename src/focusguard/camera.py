"""
Webcam face-detection source for FocusGuard.

Reads frames with OpenCV on a background thread, runs MediaPipe short-range
face detection at most once per ``interval_ms`` and hands a DetectionEvent to
``on_event``. The callback runs on the capture thread; the UI marshals it onto
the Tk thread before it reaches the tracker.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import cv2
import mediapipe as mp
import numpy as np

from .detection import DetectionEvent, event_from_scores

logger = logging.getLogger(__name__)


class FaceDetectionSource:
    def __init__(
        self,
        on_event: Callable[[DetectionEvent], None],
        camera_index: int = 0,
        interval_ms: int = 100,
        min_detection_confidence: float = 0.5,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.on_event = on_event
        self.on_error = on_error
        self.camera_index = camera_index
        self.interval_s = max(0.01, interval_ms / 1000.0)
        self.min_detection_confidence = min_detection_confidence

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="FocusGuard-Camera", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None

    def _run(self) -> None:
        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            cap.release()
            self._report_error(f"Could not open camera {self.camera_index}")
            return
        detector = None
        try:
            try:
                detector = mp.solutions.face_detection.FaceDetection(
                    model_selection=0,  # short range, < 2m
                    min_detection_confidence=self.min_detection_confidence,
                )
            except Exception as e:
                logger.exception("Face detector could not be created")
                self._report_error(f"Face detector unavailable: {e}")
                return
            logger.info("Camera %s opened, detecting every %.0fms", self.camera_index, self.interval_s * 1000)
            while not self._stop_event.is_set():
                started = time.monotonic()
                ok, frame = cap.read()
                if not ok or frame is None:
                    # dropped frame: no event this interval
                    logger.debug("Camera returned no frame")
                else:
                    self._emit(self._detect(detector, frame))
                elapsed = time.monotonic() - started
                self._stop_event.wait(timeout=max(0.0, self.interval_s - elapsed))
        except Exception as e:
            logger.exception("Camera loop crashed")
            self._report_error(f"Camera stopped: {e}")
        finally:
            if detector is not None:
                detector.close()
            cap.release()
            logger.info("Camera %s released", self.camera_index)

    def _detect(self, detector: object, frame: np.ndarray) -> DetectionEvent:
        # MediaPipe expects RGB, OpenCV delivers BGR
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = detector.process(rgb_frame)  # type: ignore[attr-defined]
        scores = [d.score[0] for d in (results.detections or []) if d.score]
        return event_from_scores(scores)

    def _emit(self, event: DetectionEvent) -> None:
        try:
            self.on_event(event)
        except Exception:
            logger.exception("Detection listener failed")

    def _report_error(self, message: str) -> None:
        logger.error(message)
        cb = self.on_error
        if cb:
            try:
                cb(message)
            except Exception:
                logger.exception("Camera error listener failed")


__all__ = ["FaceDetectionSource"]
