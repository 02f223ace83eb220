from __future__ import annotations

import logging
import tkinter as tk
from tkinter import messagebox, ttk
from typing import Any, Callable, Optional

from . import notifier
from .config import AppConfig
from .detection import DetectionEvent, FocusState
from .plotter import show_pie_summary
from .scheduler import TkScheduler
from .session_types import (
    PRESETS,
    SessionConfig,
    SessionConfigError,
    SessionType,
    custom_session,
    display_name,
    preset_session,
)
from .timefmt import format_duration, format_session_time
from .tracker import SessionSummary, SessionTracker

logger = logging.getLogger(__name__)

SourceFactory = Callable[..., Any]

_STATE_TEXT = {
    FocusState.FOCUSED: "Focused",
    FocusState.DISTRACTED: "Distracted",
    FocusState.AWAY: "Away",
}


class SessionTypeDialog(tk.Toplevel):
    """Modal chooser: three presets, or a custom duration with inline validation."""

    def __init__(self, master: tk.Misc, on_select: Callable[[SessionConfig], None]) -> None:
        super().__init__(master)
        self.title("Choose Your Session")
        self.resizable(False, False)
        self.transient(master)  # type: ignore[arg-type]
        self._on_select = on_select

        body = ttk.Frame(self, padding=12)
        body.pack(fill=tk.BOTH, expand=True)
        ttk.Label(body, text="Select a preset or create a custom duration").pack(anchor="w", pady=(0, 8))

        for preset in PRESETS.values():
            text = f"{preset.name} ({preset.duration_seconds // 60} min) - {preset.description}"
            ttk.Button(body, text=text, command=lambda t=preset.type: self._choose_preset(t)).pack(fill=tk.X, pady=2)

        custom = ttk.Frame(body)
        custom.pack(fill=tk.X, pady=(10, 0))
        ttk.Label(custom, text="Custom (1-180 min):").pack(side=tk.LEFT)
        self.custom_var = tk.StringVar(value="")
        entry = ttk.Entry(custom, textvariable=self.custom_var, width=6)
        entry.pack(side=tk.LEFT, padx=(4, 6))
        entry.bind("<Return>", lambda _e: self._choose_custom())
        ttk.Button(custom, text="Start Custom Session", command=self._choose_custom).pack(side=tk.LEFT)

        self.error_lbl = tk.Label(body, text="", fg="#b33a3a")
        self.error_lbl.pack(anchor="w", pady=(4, 0))
        self.custom_var.trace_add("write", lambda *_: self.error_lbl.config(text=""))

        ttk.Button(body, text="Cancel", command=self.destroy).pack(fill=tk.X, pady=(8, 0))
        entry.focus_set()
        self.grab_set()

    def _choose_preset(self, session_type: SessionType) -> None:
        self._finish(preset_session(session_type))

    def _choose_custom(self) -> None:
        try:
            config = custom_session(self.custom_var.get())
        except SessionConfigError as e:
            self.error_lbl.config(text=str(e))
            return
        self._finish(config)

    def _finish(self, config: SessionConfig) -> None:
        self.grab_release()
        self.destroy()
        self._on_select(config)


class FocusGuardApp:
    def __init__(
        self,
        root: tk.Tk,
        cfg: Optional[AppConfig] = None,
        *,
        source_factory: Optional[SourceFactory] = None,
        notify: Callable[[str, str], None] = notifier.notify,
    ) -> None:
        self.root = root
        self.cfg = cfg or AppConfig()
        self.root.title("FocusGuard")
        self.root.geometry("460x320")

        self.scheduler = TkScheduler(root)
        self.tracker = SessionTracker(
            self.scheduler,
            notify,
            on_complete=self._on_session_complete,
        )
        self._refresh_job: Optional[str] = None
        self._last_event: Optional[DetectionEvent] = None
        self._source_factory = source_factory
        self.source: Any = None

        self._build_ui()
        self._bind_close()
        self._start_camera()
        self._refresh_loop()

    # ---------------- UI -----------------
    def _build_ui(self) -> None:
        style = ttk.Style(self.root)
        try:
            style.theme_use("clam")
        except Exception:
            pass

        container = ttk.Frame(self.root, padding=10)
        container.pack(fill=tk.BOTH, expand=True)

        # Session timer
        self.type_lbl = ttk.Label(container, text="No active session")
        self.type_lbl.pack(anchor="w")
        self.remaining_lbl = tk.Label(container, text="00:00:00", font=("Consolas", 24, "bold"))
        self.remaining_lbl.pack(anchor="w", pady=(2, 4))
        self.progress = ttk.Progressbar(container, orient=tk.HORIZONTAL, mode="determinate", maximum=100)
        self.progress.pack(fill=tk.X)

        # Stats
        stats = ttk.Frame(container)
        stats.pack(fill=tk.X, pady=(12, 0))
        self.focused_lbl = ttk.Label(stats, text="Focused: 0s")
        self.focused_lbl.pack(anchor="w")
        self.distracted_lbl = ttk.Label(stats, text="Distracted: 0s")
        self.distracted_lbl.pack(anchor="w")
        self.away_lbl = ttk.Label(stats, text="Away: 0s")
        self.away_lbl.pack(anchor="w")
        self.score_lbl = ttk.Label(stats, text="Score: 0%")
        self.score_lbl.pack(anchor="w", pady=(4, 0))

        # Detection status
        self.detection_lbl = ttk.Label(container, text="Camera: starting…")
        self.detection_lbl.pack(anchor="w", pady=(10, 0))

        self.toggle_btn = ttk.Button(container, text="Start Session", command=self._on_toggle, width=20)
        self.toggle_btn.pack(anchor="w", pady=(12, 0))

    def _bind_close(self) -> None:
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    # -------------- Session ---------------
    def _on_toggle(self) -> None:
        if self.tracker.active:
            summary = self.tracker.stop()
            self._render()
            if summary is not None:
                self._show_summary(summary)
        else:
            SessionTypeDialog(self.root, self.start_session)

    def start_session(self, config: SessionConfig) -> None:
        self.tracker.start(config)
        self.toggle_btn.config(text="End Session")
        self._render()

    def _on_session_complete(self, summary: SessionSummary) -> None:
        # runs inside the tracker's tick; let it unwind before opening dialogs
        self.root.after(0, lambda: self._show_summary(summary))

    def _show_summary(self, summary: SessionSummary) -> None:
        self.toggle_btn.config(text="Start Session")
        self._render()
        messagebox.showinfo(
            "FocusGuard",
            f"Session finished: {format_session_time(summary.elapsed_seconds)}\n"
            f"Focused: {format_duration(summary.focused_seconds)}\n"
            f"Distracted: {format_duration(summary.distracted_seconds)}\n"
            f"Away: {format_duration(summary.away_seconds)}\n"
            f"Score: {round(summary.focus_score)}%",
        )
        if self.cfg.show_summary_chart:
            try:
                show_pie_summary(summary)
            except Exception:
                logger.warning("Could not show summary chart", exc_info=True)

    # -------------- Detection ---------------
    def _start_camera(self) -> None:
        factory = self._source_factory
        if factory is None:
            from .camera import FaceDetectionSource

            factory = FaceDetectionSource
        self.source = factory(
            on_event=self._on_detection_threadsafe,
            camera_index=self.cfg.camera_index,
            interval_ms=self.cfg.detection_interval_ms,
            min_detection_confidence=self.cfg.min_detection_confidence,
            on_error=self._on_camera_error_threadsafe,
        )
        self.source.start()

    def _on_detection_threadsafe(self, event: DetectionEvent) -> None:
        # ensure run on Tk thread
        try:
            self.root.after(0, lambda: self._on_detection(event))
        except RuntimeError:
            # main loop already gone
            pass

    def _on_detection(self, event: DetectionEvent) -> None:
        self._last_event = event
        self.tracker.update_focus_state(event)

    def _on_camera_error_threadsafe(self, message: str) -> None:
        try:
            self.root.after(0, lambda: self.detection_lbl.config(text=f"Camera: {message}"))
        except RuntimeError:
            pass

    # -------------- Rendering ---------------
    def _refresh_loop(self) -> None:
        self._render()
        self._refresh_job = self.root.after(self.cfg.ui_refresh_ms, self._refresh_loop)

    def _render(self) -> None:
        snap = self.tracker.snapshot()
        if snap.session_active:
            name = display_name(snap.session_type)
            if snap.target_duration > 0:
                self.type_lbl.config(text=f"{name} Session - Time Remaining")
                self.remaining_lbl.config(text=format_session_time(snap.remaining_time))
                done = snap.target_duration - snap.remaining_time
                self.progress.config(value=100.0 * done / snap.target_duration)
            else:
                # untimed: count up instead of down
                self.type_lbl.config(text=f"{name} Session - Time Elapsed")
                self.remaining_lbl.config(text=format_session_time(snap.session_duration))
                self.progress.config(value=0)
        else:
            self.type_lbl.config(text="No active session")
            self.remaining_lbl.config(text=format_session_time(0))
            self.progress.config(value=0)

        self.focused_lbl.config(text=f"Focused: {format_duration(snap.focused_time)}")
        self.distracted_lbl.config(text=f"Distracted: {format_duration(snap.distracted_time)}")
        self.away_lbl.config(text=f"Away: {format_duration(snap.away_time)}")
        self.score_lbl.config(text=f"Score: {round(snap.focus_score)}%")

        evt = self._last_event
        if evt is not None:
            if evt.face_detected:
                status = f"face detected ({evt.confidence:.0%})"
            else:
                status = "no face"
            if snap.session_active:
                status += f" - {_STATE_TEXT[snap.state]}"
            self.detection_lbl.config(text=f"Camera: {status}")

    def _on_close(self) -> None:
        if self._refresh_job is not None:
            try:
                self.root.after_cancel(self._refresh_job)
            except Exception:
                pass
            self._refresh_job = None
        self.tracker.stop()
        if self.source is not None:
            self.source.stop()
        self.root.destroy()


def main(cfg: Optional[AppConfig] = None) -> int:
    root = tk.Tk()
    _app = FocusGuardApp(root, cfg)
    root.mainloop()
    return 0
