"""
Detection events and the focus classification rule.

A detection source reports, roughly ten times a second, whether a face is in
front of the camera and how confident the detector is. Events may come from
our own camera adapter, from tests, or from any other producer, so
``DetectionEvent.coerce`` accepts dataclasses, mappings (snake or camel case)
and plain objects, and falls back to "no face" for anything it cannot read.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

import numpy as np

FOCUS_CONFIDENCE_THRESHOLD = 0.6


class FocusState(str, Enum):
    FOCUSED = "focused"
    DISTRACTED = "distracted"
    AWAY = "away"


@dataclass(frozen=True)
class DetectionEvent:
    face_detected: bool = False
    confidence: float = 0.0  # 0..1, meaningful only when face_detected
    timestamp: int = 0  # epoch ms, advisory

    @classmethod
    def coerce(cls, raw: Any) -> Optional["DetectionEvent"]:
        """Normalize whatever a producer handed us.

        ``None`` is a gap and stays ``None``. Missing or malformed fields never
        raise: the face flag defaults to False and the confidence to 0.0.
        """
        if raw is None:
            return None
        if isinstance(raw, DetectionEvent):
            return raw
        if isinstance(raw, Mapping):
            face = _first(raw.get, ("face_detected", "faceDetected"))
            conf = _first(raw.get, ("confidence",))
            ts = _first(raw.get, ("timestamp", "ts_ms"))
        else:
            face = _first(lambda k: getattr(raw, k, None), ("face_detected", "faceDetected"))
            conf = getattr(raw, "confidence", None)
            ts = getattr(raw, "timestamp", None)
        return cls(
            face_detected=_as_flag(face),
            confidence=_as_confidence(conf),
            timestamp=_as_timestamp(ts),
        )


def classify(event: DetectionEvent, threshold: float = FOCUS_CONFIDENCE_THRESHOLD) -> FocusState:
    """No face -> AWAY; confidence >= threshold -> FOCUSED; otherwise DISTRACTED."""
    if not event.face_detected:
        return FocusState.AWAY
    if event.confidence >= threshold:
        return FocusState.FOCUSED
    return FocusState.DISTRACTED


def event_from_scores(scores: Iterable[float], timestamp: Optional[int] = None) -> DetectionEvent:
    """Build an event from per-face detector scores; the best face wins."""
    best = max((_as_confidence(s) for s in scores), default=None)
    ts = timestamp if timestamp is not None else int(time.time() * 1000)
    if best is None:
        return DetectionEvent(face_detected=False, confidence=0.0, timestamp=ts)
    return DetectionEvent(face_detected=True, confidence=best, timestamp=ts)


# ---------------------------- Field parsing ----------------------------


def _first(getter: Any, keys: Iterable[str]) -> Any:
    for key in keys:
        value = getter(key)
        if value is not None:
            return value
    return None


def _as_flag(value: Any) -> bool:
    # only real booleans (and 0/1) count; strings like "false" must not be truthy
    if isinstance(value, bool):
        return value
    # detector outputs are often numpy scalars
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, (int, np.integer)):
        return bool(value == 1)
    return False


def _as_confidence(value: Any) -> float:
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(conf):
        return 0.0
    return min(1.0, max(0.0, conf))


def _as_timestamp(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


__all__ = [
    "FOCUS_CONFIDENCE_THRESHOLD",
    "FocusState",
    "DetectionEvent",
    "classify",
    "event_from_scores",
]
