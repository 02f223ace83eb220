"""
Clock and periodic-job ports for the session tracker.

The tracker never sleeps or starts threads on its own. It asks a scheduler for
the current time and for periodic callbacks (the 1 Hz tick and the hydration
reminder), so the same tracker runs inside the Tk event loop and inside tests
that fast-forward a virtual clock.

Implementations:
- ManualScheduler: virtual time, advanced explicitly (tests, simulations)
- TkScheduler: monotonic clock, jobs driven by ``widget.after``
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol


class Scheduler(Protocol):
    def now(self) -> float:
        """Current time in seconds (any fixed origin)."""
        ...

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> int:
        """Run ``callback`` every ``interval_s`` seconds until cancelled."""
        ...

    def cancel(self, handle: Optional[int]) -> None:
        """Cancel a job; unknown or None handles are ignored."""
        ...


# ---------------------------- Virtual time ----------------------------


@dataclass
class _Job:
    handle: int
    interval_s: float
    anchor: float
    callback: Callable[[], None]
    runs: int = 0

    @property
    def due(self) -> float:
        # anchor + n * interval avoids drift from repeated float additions
        return self.anchor + (self.runs + 1) * self.interval_s


class ManualScheduler:
    """Scheduler whose clock only moves when told to.

    ``advance_to`` fires every due job in due-time order. While a job runs the
    clock reads exactly its due time, so callbacks observe the same timestamps
    a real timer would have produced.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._jobs: Dict[int, _Job] = {}
        self._next_handle = 1

    def now(self) -> float:
        return self._now

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> int:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        handle = self._next_handle
        self._next_handle += 1
        self._jobs[handle] = _Job(handle=handle, interval_s=float(interval_s), anchor=self._now, callback=callback)
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        if handle is not None:
            self._jobs.pop(handle, None)

    @property
    def pending(self) -> int:
        """Number of live periodic jobs."""
        return len(self._jobs)

    def advance(self, seconds: float) -> None:
        self.advance_to(self._now + seconds)

    def advance_to(self, target: float) -> None:
        if target < self._now:
            raise ValueError("cannot move the clock backwards")
        while True:
            due_jobs = [j for j in self._jobs.values() if j.due <= target]
            if not due_jobs:
                break
            job = min(due_jobs, key=lambda j: (j.due, j.handle))
            self._now = job.due
            job.runs += 1
            job.callback()
        self._now = target


# ---------------------------- Tk event loop ----------------------------


class TkScheduler:
    """Scheduler backed by a Tk widget's ``after`` queue.

    Every callback runs on the Tk thread, which is what serializes ticks with
    detection events posted through ``after(0, ...)``.
    """

    def __init__(self, widget: Any, clock: Callable[[], float] = time.monotonic) -> None:
        self._widget = widget
        self._clock = clock
        self._after_ids: Dict[int, Optional[str]] = {}
        self._next_handle = 1

    def now(self) -> float:
        return self._clock()

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        interval_ms = max(1, int(round(interval_s * 1000)))

        def _fire() -> None:
            if handle not in self._after_ids:
                return
            # re-arm first so a callback that cancels this job wins
            self._after_ids[handle] = self._widget.after(interval_ms, _fire)
            callback()

        self._after_ids[handle] = self._widget.after(interval_ms, _fire)
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        if handle is None:
            return
        after_id = self._after_ids.pop(handle, None)
        if after_id is not None:
            try:
                self._widget.after_cancel(after_id)
            except Exception:
                # widget already destroyed
                pass


__all__ = [
    "Scheduler",
    "ManualScheduler",
    "TkScheduler",
]
