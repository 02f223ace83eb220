from __future__ import annotations

"""
Reminder messages and the away-period debounce for FocusGuard.

Three reminders exist:
- "come back": the user has been away from the camera for a while
- "session complete": the countdown reached zero
- "hydration": fixed-period reminder while a session runs

The away reminder is debounced per away period: nothing during the first
``away_delay_s`` seconds, then exactly one notification until the user is seen
again. Timing is computed from clock timestamps, never from event counts, so
irregular detection rates do not change when the reminder fires.
"""

from dataclasses import dataclass
from typing import Optional

from .detection import FocusState


@dataclass
class NotificationSettings:
    # Timing
    away_delay_s: float = 10.0  # away this long before the "come back" reminder
    hydration_interval_s: float = 30 * 60

    # Copy
    away_title: str = "Come back!"
    away_message: str = "You've stepped away from your session. Ready to refocus?"
    complete_title: str = "Session complete"
    complete_message: str = "Great work! Your focus session has finished."
    hydration_title: str = "Hydration break"
    hydration_message: str = "Time for a glass of water. Stay hydrated!"


class AwayGuard:
    """Tracks one debounce window per uninterrupted away period."""

    def __init__(self, delay_s: float = 10.0) -> None:
        self.delay_s = delay_s
        self.away_started_at: Optional[float] = None
        self.notified: bool = False

    @property
    def is_open(self) -> bool:
        return self.away_started_at is not None

    def observe(self, state: FocusState, now: float) -> bool:
        """Feed the newest classification; True means "notify now".

        An AWAY state opens a period if none is open, otherwise checks it.
        Any other state closes the period and re-arms the reminder.
        """
        if state is not FocusState.AWAY:
            self.reset()
            return False
        if self.away_started_at is None:
            self.away_started_at = now
            return False
        return self.check(now)

    def check(self, now: float) -> bool:
        """Fire at most once for the open period, after the delay."""
        if self.away_started_at is None or self.notified:
            return False
        if (now - self.away_started_at) < self.delay_s:
            return False
        self.notified = True
        return True

    def reset(self) -> None:
        self.away_started_at = None
        self.notified = False


__all__ = [
    "NotificationSettings",
    "AwayGuard",
]
