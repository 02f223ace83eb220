"""
Session tracker: the focus-tracking state machine behind FocusGuard.

Turns a stream of detection events plus a 1 Hz tick into:
- focused / distracted / away seconds for the running session
- a countdown that ends timed sessions exactly once
- "come back", "session complete" and hydration reminders

Contract:
- start(config): (re)start a session; a running session is discarded, not stacked
- update_focus_state(event): credit the time since the previous update to the
  state held BEFORE this event, then adopt the new classification
- tick(): scheduled every second; advances elapsed/remaining time
- stop(): finalize and return a SessionSummary; idempotent
- snapshot(): read-only view for the UI

The tracker owns no threads and no timers. Time and periodic jobs come from an
injected Scheduler, and every call is expected on one thread (the Tk loop in the
app, the test body in tests).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .detection import FOCUS_CONFIDENCE_THRESHOLD, DetectionEvent, FocusState, classify
from .notification import AwayGuard, NotificationSettings
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

Notify = Callable[[str, str], None]


# ---------------------------- Configuration & results ----------------------------


@dataclass
class TrackerConfig:
    focus_threshold: float = FOCUS_CONFIDENCE_THRESHOLD
    tick_interval_s: float = 1.0


@dataclass(frozen=True)
class SessionSummary:
    elapsed_seconds: int
    focused_seconds: float
    distracted_seconds: float
    away_seconds: float
    focus_score: float
    session_type: Optional[str] = None
    target_duration_seconds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.elapsed_seconds,
            "focused_time": self.focused_seconds,
            "distracted_time": self.distracted_seconds,
            "away_time": self.away_seconds,
            "focus_score": self.focus_score,
            "session_type": self.session_type,
            "target_duration": self.target_duration_seconds,
        }


@dataclass(frozen=True)
class SessionSnapshot:
    session_active: bool
    session_duration: int
    session_type: Optional[str]
    target_duration: int
    remaining_time: int
    focused_time: float
    distracted_time: float
    away_time: float
    focus_score: float
    state: FocusState

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.__dict__)
        data["state"] = self.state.value
        return data


def compute_focus_score(focused_seconds: float, elapsed_seconds: float) -> float:
    """Percentage of elapsed time spent focused, within [0, 100]."""
    if elapsed_seconds <= 0:
        return 0.0
    return min(100.0, max(0.0, 100.0 * focused_seconds / elapsed_seconds))


# ---------------------------- Tracker ----------------------------


class SessionTracker:
    def __init__(
        self,
        scheduler: Scheduler,
        notify: Notify,
        cfg: Optional[TrackerConfig] = None,
        settings: Optional[NotificationSettings] = None,
        on_complete: Optional[Callable[[SessionSummary], None]] = None,
    ) -> None:
        self.cfg = cfg or TrackerConfig()
        self.settings = settings or NotificationSettings()
        self.on_complete = on_complete
        self._scheduler = scheduler
        self._notify = notify

        # Session
        self._active = False
        self._completed = False
        self._start_time: Optional[float] = None
        self._session_type: Optional[str] = None
        self._target_s = 0
        self._elapsed_s = 0
        self._remaining_s = 0

        # Accumulators, credited to the state held before each update
        self._totals: Dict[FocusState, float] = {s: 0.0 for s in FocusState}
        self._state = FocusState.AWAY
        self._last_update: Optional[float] = None

        self._away = AwayGuard(self.settings.away_delay_s)
        self._tick_job: Optional[int] = None
        self._hydration_job: Optional[int] = None
        self._last_summary: Optional[SessionSummary] = None

    # ---------- Commands ----------
    def start(self, config: Any) -> None:
        """Begin a session from a SessionConfig (anything with type/duration_seconds)."""
        self._cancel_jobs()

        duration = max(0, int(getattr(config, "duration_seconds", 0) or 0))
        session_type = getattr(config, "type", None)
        now = self._scheduler.now()

        self._active = True
        self._completed = False
        self._start_time = now
        self._session_type = getattr(session_type, "value", session_type)
        self._target_s = duration
        self._elapsed_s = 0
        self._remaining_s = duration
        self._totals = {s: 0.0 for s in FocusState}
        self._state = FocusState.AWAY
        self._last_update = now
        self._away.reset()

        self._tick_job = self._scheduler.call_every(self.cfg.tick_interval_s, self.tick)
        self._hydration_job = self._scheduler.call_every(
            self.settings.hydration_interval_s, self._hydration_reminder
        )
        logger.info("Session started: type=%s duration=%ss", self._session_type, duration)

    def update_focus_state(self, event: Any) -> None:
        """Account time since the previous update and adopt the new classification."""
        if not self._active or self._last_update is None:
            logger.debug("Ignoring detection event while no session is active")
            return
        evt = DetectionEvent.coerce(event)
        if evt is None:
            return

        new_state = classify(evt, self.cfg.focus_threshold)
        now = self._scheduler.now()
        self._accrue_until(now)

        if self._away.observe(new_state, now):
            self._send(self.settings.away_title, self.settings.away_message)
            logger.info("Away for %.0fs, sent come-back reminder", now - (self._away.away_started_at or now))

        self._state = new_state

    def tick(self) -> None:
        """One second of session time; ends timed sessions at zero."""
        if not self._active or self._completed:
            return
        self._elapsed_s += 1
        if self._target_s > 0:
            self._remaining_s = max(0, self._remaining_s - 1)
            if self._remaining_s == 0:
                self._complete()
                return

        now = self._scheduler.now()
        if self._away.check(now):
            self._send(self.settings.away_title, self.settings.away_message)
            logger.info("Away period still open at tick, sent come-back reminder")

    def stop(self) -> Optional[SessionSummary]:
        """Finalize the session; a second call returns the same summary."""
        if not self._active:
            return self._last_summary

        self._accrue_until(self._scheduler.now())
        self._active = False
        self._cancel_jobs()
        self._away.reset()

        summary = SessionSummary(
            elapsed_seconds=self._elapsed_s,
            focused_seconds=self._totals[FocusState.FOCUSED],
            distracted_seconds=self._totals[FocusState.DISTRACTED],
            away_seconds=self._totals[FocusState.AWAY],
            focus_score=self.focus_score,
            session_type=self._session_type,
            target_duration_seconds=self._target_s,
        )
        self._last_summary = summary
        logger.info(
            "Session stopped after %ss: focused=%.1fs distracted=%.1fs away=%.1fs score=%.1f",
            summary.elapsed_seconds,
            summary.focused_seconds,
            summary.distracted_seconds,
            summary.away_seconds,
            summary.focus_score,
        )
        return summary

    # ---------- Queries ----------
    @property
    def active(self) -> bool:
        return self._active

    @property
    def state(self) -> FocusState:
        return self._state

    @property
    def focused_seconds(self) -> float:
        return self._totals[FocusState.FOCUSED]

    @property
    def distracted_seconds(self) -> float:
        return self._totals[FocusState.DISTRACTED]

    @property
    def away_seconds(self) -> float:
        return self._totals[FocusState.AWAY]

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed_s

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_s

    @property
    def focus_score(self) -> float:
        return compute_focus_score(self._totals[FocusState.FOCUSED], self._elapsed_s)

    def snapshot(self) -> SessionSnapshot:
        """Current numbers, including time since the last detection update."""
        totals = dict(self._totals)
        if self._active and self._last_update is not None:
            pending = max(0.0, self._scheduler.now() - self._last_update)
            totals[self._state] += pending
        return SessionSnapshot(
            session_active=self._active,
            session_duration=self._elapsed_s,
            session_type=self._session_type,
            target_duration=self._target_s,
            remaining_time=self._remaining_s,
            focused_time=totals[FocusState.FOCUSED],
            distracted_time=totals[FocusState.DISTRACTED],
            away_time=totals[FocusState.AWAY],
            focus_score=compute_focus_score(totals[FocusState.FOCUSED], self._elapsed_s),
            state=self._state,
        )

    # ---------- Internals ----------
    def _accrue_until(self, now: float) -> None:
        if self._last_update is None:
            return
        delta = now - self._last_update
        if delta > 0:
            self._totals[self._state] += delta
        # a clock that steps backwards must not produce negative time
        self._last_update = max(now, self._last_update)

    def _complete(self) -> None:
        self._completed = True
        logger.info("Countdown finished for %s session", self._session_type)
        self._send(self.settings.complete_title, self.settings.complete_message)
        summary = self.stop()
        cb = self.on_complete
        if cb is not None and summary is not None:
            try:
                cb(summary)
            except Exception:
                logger.exception("on_complete listener failed")

    def _hydration_reminder(self) -> None:
        if not self._active:
            return
        logger.info("Hydration reminder")
        self._send(self.settings.hydration_title, self.settings.hydration_message)

    def _cancel_jobs(self) -> None:
        self._scheduler.cancel(self._tick_job)
        self._scheduler.cancel(self._hydration_job)
        self._tick_job = None
        self._hydration_job = None

    def _send(self, title: str, message: str) -> None:
        try:
            self._notify(title, message)
        except Exception:
            logger.exception("Notification failed: %s", title)


__all__ = [
    "TrackerConfig",
    "SessionSummary",
    "SessionSnapshot",
    "SessionTracker",
    "compute_focus_score",
]
