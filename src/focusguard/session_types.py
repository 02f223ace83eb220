"""Session presets and validation of user-chosen durations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

CUSTOM_MIN_MINUTES = 1
CUSTOM_MAX_MINUTES = 180

_INT_RE = re.compile(r"^[+-]?\d+$")


class SessionType(str, Enum):
    POMODORO = "pomodoro"
    DEEP_WORK = "deepWork"
    SHORT_SPRINT = "shortSprint"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SessionPreset:
    type: SessionType
    name: str
    duration_seconds: int
    description: str


@dataclass(frozen=True)
class SessionConfig:
    type: SessionType
    duration_seconds: int  # 0 means untimed
    name: str


class SessionConfigError(ValueError):
    """Rejected session choice; the message is meant for the user."""


PRESETS: Dict[SessionType, SessionPreset] = {
    SessionType.POMODORO: SessionPreset(
        SessionType.POMODORO, "Pomodoro", 25 * 60, "25 minutes of focused work"
    ),
    SessionType.DEEP_WORK: SessionPreset(
        SessionType.DEEP_WORK, "Deep Work", 90 * 60, "90 minutes of deep concentration"
    ),
    SessionType.SHORT_SPRINT: SessionPreset(
        SessionType.SHORT_SPRINT, "Short Sprint", 15 * 60, "15 minutes quick focus session"
    ),
}


def preset_session(key: Any) -> SessionConfig:
    """Config for a preset, by SessionType or its string value."""
    try:
        session_type = SessionType(key)
    except ValueError:
        raise SessionConfigError(f"Unknown session type: {key!r}") from None
    preset = PRESETS.get(session_type)
    if preset is None:
        raise SessionConfigError("Custom sessions need a duration in minutes")
    return SessionConfig(type=preset.type, duration_seconds=preset.duration_seconds, name=preset.name)


def custom_session(minutes: Any) -> SessionConfig:
    """Validate a custom duration (whole minutes, 1-180) typed by the user."""
    value = _parse_minutes(minutes)
    if value is None or value < CUSTOM_MIN_MINUTES:
        raise SessionConfigError("Please enter a valid duration (minimum 1 minute)")
    if value > CUSTOM_MAX_MINUTES:
        raise SessionConfigError("Maximum duration is 180 minutes (3 hours)")
    return SessionConfig(type=SessionType.CUSTOM, duration_seconds=value * 60, name=f"{value} Minute Session")


def display_name(session_type: Any) -> str:
    if session_type is None:
        return "Open"
    try:
        st = SessionType(session_type)
    except ValueError:
        return str(session_type)
    preset = PRESETS.get(st)
    return preset.name if preset else "Custom"


def _parse_minutes(minutes: Any) -> int | None:
    if isinstance(minutes, bool):
        return None
    if isinstance(minutes, int):
        return minutes
    if isinstance(minutes, float):
        return int(minutes) if minutes.is_integer() else None
    if isinstance(minutes, str):
        text = minutes.strip()
        if _INT_RE.match(text):
            return int(text)
    return None


__all__ = [
    "SessionType",
    "SessionPreset",
    "SessionConfig",
    "SessionConfigError",
    "PRESETS",
    "preset_session",
    "custom_session",
    "display_name",
]
