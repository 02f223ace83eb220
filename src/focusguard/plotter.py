from __future__ import annotations

from typing import List, Tuple

import matplotlib.pyplot as plt

from .tracker import SessionSummary

_BUCKETS = (
    ("Focused", "#2ecc71"),
    ("Distracted", "#f39c12"),
    ("Away", "#e74c3c"),
)


def summary_pie_data(summary: SessionSummary) -> Tuple[List[str], List[float], List[str]]:
    """Labels, sizes and colors for the non-empty buckets of a session."""
    sizes = (summary.focused_seconds, summary.distracted_seconds, summary.away_seconds)
    labels: List[str] = []
    values: List[float] = []
    colors: List[str] = []
    for (label, color), size in zip(_BUCKETS, sizes):
        if size > 0:
            labels.append(label)
            values.append(float(size))
            colors.append(color)
    return labels, values, colors


def show_pie_summary(summary: SessionSummary) -> None:
    """Show a pie chart of focused / distracted / away time, non-blocking."""

    # Ensure an interactive backend (TkAgg) if available
    try:
        plt.switch_backend("TkAgg")
    except Exception:
        pass

    labels, sizes, colors = summary_pie_data(summary)
    total = sum(sizes)

    fig, ax = plt.subplots()  # type: ignore[call-arg]
    if total > 0:
        ax.pie(
            sizes,
            labels=labels,
            autopct=lambda p: f"{p:.1f}%",
            startangle=140,
            colors=colors,
            textprops={"color": "black"},
        )  # type: ignore[call-arg]
    else:
        ax.text(0.5, 0.5, "No session time recorded", ha="center", va="center")
    ax.axis("equal")  # Equal aspect ratio ensures that pie is drawn as a circle.
    ax.set_title(f"FocusGuard Session Summary ({summary.focus_score:.0f}% focused)")  # type: ignore[call-arg]
    # Non-blocking show to avoid freezing Tk
    plt.show(block=False)  # type: ignore[call-arg]
