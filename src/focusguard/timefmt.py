from __future__ import annotations

from typing import Optional


def format_duration(total_seconds: float) -> str:
    """Human readable duration: "23s", "45m 12s", "5h 23m"."""
    total = max(0, int(total_seconds))
    if total == 0:
        return "0s"
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    if h > 0:
        return f"{h}h {m}m"
    if m > 0:
        return f"{m}m {s}s"
    return f"{s}s"


def format_session_time(total_seconds: float) -> str:
    """Clock style HH:MM:SS."""
    total = max(0, int(total_seconds))
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def elapsed_seconds(start: Optional[float], now: float) -> int:
    if not start:
        return 0
    return max(0, int(now - start))
