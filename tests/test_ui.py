"""
Tests for the FocusGuard Tk window and session dialog.

Tk is replaced by lightweight stand-ins so the tests run without a display:
widgets record their options, and the fake root queues ``after`` callbacks so
tests can check what is deferred to the event loop and run it explicitly.
"""

import importlib
import sys
import unittest
from types import ModuleType
from unittest.mock import MagicMock, patch

import focusguard.plotter  # noqa: F401  (import pyplot before Tk is faked)
from focusguard.config import AppConfig
from focusguard.detection import DetectionEvent, FocusState
from focusguard.session_types import SessionType, preset_session


class FakeWidget:
    def __init__(self, *args, **kwargs):
        self.options = dict(kwargs)
        self.bindings = {}
        self.destroyed = False

    def pack(self, *args, **kwargs):
        pass

    def config(self, **kwargs):
        self.options.update(kwargs)

    configure = config

    def bind(self, sequence, func):
        self.bindings[sequence] = func

    def focus_set(self):
        pass

    def theme_use(self, name):
        pass

    def destroy(self):
        self.destroyed = True


class FakeToplevel(FakeWidget):
    def title(self, text):
        self.options["title"] = text

    def resizable(self, *args):
        pass

    def transient(self, master):
        pass

    def grab_set(self):
        pass

    def grab_release(self):
        pass


class FakeStringVar:
    def __init__(self, value=""):
        self._value = value
        self._traces = []

    def get(self):
        return self._value

    def set(self, value):
        self._value = value
        for cb in self._traces:
            cb("var", "", "write")

    def trace_add(self, mode, callback):
        self._traces.append(callback)


class FakeRoot:
    def __init__(self):
        self.jobs = {}
        self.cancelled = []
        self.protocols = {}
        self.destroyed = False
        self._n = 0

    def title(self, text):
        pass

    def geometry(self, spec):
        pass

    def protocol(self, name, func):
        self.protocols[name] = func

    def after(self, ms, func):
        self._n += 1
        after_id = f"after#{self._n}"
        self.jobs[after_id] = (ms, func)
        return after_id

    def after_cancel(self, after_id):
        self.cancelled.append(after_id)
        self.jobs.pop(after_id, None)

    def destroy(self):
        self.destroyed = True

    def immediate(self):
        return [aid for aid, (ms, _f) in self.jobs.items() if ms == 0]

    def run_immediate(self):
        """Run callbacks posted with after(0, ...), as the event loop would."""
        for after_id in self.immediate():
            _ms, func = self.jobs.pop(after_id)
            func()


def _fake_tk_modules():
    tk = ModuleType("tkinter")
    for name in ("X", "BOTH", "LEFT", "HORIZONTAL", "DISABLED", "NORMAL"):
        setattr(tk, name, name.lower())
    tk.Misc = FakeWidget
    tk.Tk = FakeRoot
    tk.Toplevel = FakeToplevel
    tk.Label = FakeWidget
    tk.StringVar = FakeStringVar

    ttk = ModuleType("tkinter.ttk")
    for name in ("Frame", "Label", "Button", "Entry", "Progressbar", "Style"):
        setattr(ttk, name, FakeWidget)

    messagebox = ModuleType("tkinter.messagebox")
    messagebox.showinfo = MagicMock()

    tk.ttk = ttk
    tk.messagebox = messagebox
    return {"tkinter": tk, "tkinter.ttk": ttk, "tkinter.messagebox": messagebox}


class UITestCase(unittest.TestCase):
    def setUp(self):
        fakes = _fake_tk_modules()
        self.messagebox = fakes["tkinter.messagebox"]
        patcher = patch.dict(sys.modules, fakes)
        patcher.start()
        self.addCleanup(patcher.stop)
        sys.modules.pop("focusguard.ui", None)
        self.ui = importlib.import_module("focusguard.ui")

        self.root = FakeRoot()
        self.source = MagicMock()
        self.source_factory = MagicMock(return_value=self.source)
        self.notify = MagicMock()

    def make_app(self, **cfg):
        cfg.setdefault("show_summary_chart", False)
        return self.ui.FocusGuardApp(
            self.root,
            AppConfig(**cfg),
            source_factory=self.source_factory,
            notify=self.notify,
        )


class TestFocusGuardApp(UITestCase):
    def test_camera_source_built_from_config(self):
        self.make_app(camera_index=2, detection_interval_ms=50)
        kwargs = self.source_factory.call_args.kwargs
        self.assertEqual(kwargs["camera_index"], 2)
        self.assertEqual(kwargs["interval_ms"], 50)
        self.source.start.assert_called_once()

    def test_detection_events_marshalled_onto_tk_thread(self):
        app = self.make_app()
        app.start_session(preset_session(SessionType.POMODORO))

        app._on_detection_threadsafe(DetectionEvent(face_detected=True, confidence=0.9))

        # nothing reaches the tracker until the event loop runs the callback
        self.assertEqual(len(self.root.immediate()), 1)
        self.assertIs(app.tracker.state, FocusState.AWAY)

        self.root.run_immediate()
        self.assertIs(app.tracker.state, FocusState.FOCUSED)

    def test_session_complete_defers_summary_and_resets_button(self):
        app = self.make_app()
        app.start_session(type("Cfg", (), {"type": SessionType.CUSTOM, "duration_seconds": 2})())
        self.assertEqual(app.toggle_btn.options["text"], "End Session")

        app.tracker.tick()
        app.tracker.tick()

        self.assertFalse(app.tracker.active)
        self.messagebox.showinfo.assert_not_called()
        self.assertEqual(app.toggle_btn.options["text"], "End Session")

        self.root.run_immediate()
        self.messagebox.showinfo.assert_called_once()
        self.assertIn("Score:", self.messagebox.showinfo.call_args.args[1])
        self.assertEqual(app.toggle_btn.options["text"], "Start Session")

    def test_summary_chart_shown_when_enabled(self):
        app = self.make_app(show_summary_chart=True)
        app.start_session(preset_session(SessionType.SHORT_SPRINT))
        with patch.object(self.ui, "show_pie_summary") as show:
            app._on_toggle()
        show.assert_called_once()
        self.assertFalse(app.tracker.active)

    def test_camera_errors_reach_status_line(self):
        app = self.make_app()
        app._on_camera_error_threadsafe("Could not open camera 0")
        self.assertNotIn("Could not open", app.detection_lbl.options["text"])

        self.root.run_immediate()
        self.assertEqual(app.detection_lbl.options["text"], "Camera: Could not open camera 0")

    def test_untimed_session_counts_up(self):
        app = self.make_app()
        app.start_session(type("Cfg", (), {"type": None, "duration_seconds": 0})())
        for _ in range(3):
            app.tracker.tick()
        app._render()
        self.assertEqual(app.type_lbl.options["text"], "Open Session - Time Elapsed")
        self.assertEqual(app.remaining_lbl.options["text"], "00:00:03")

    def test_timed_session_shows_remaining(self):
        app = self.make_app()
        app.start_session(preset_session(SessionType.POMODORO))
        app.tracker.tick()
        app._render()
        self.assertEqual(app.type_lbl.options["text"], "Pomodoro Session - Time Remaining")
        self.assertEqual(app.remaining_lbl.options["text"], "00:24:59")

    def test_close_stops_tracker_and_source(self):
        app = self.make_app()
        app.start_session(preset_session(SessionType.POMODORO))
        refresh_job = app._refresh_job

        self.root.protocols["WM_DELETE_WINDOW"]()

        self.assertFalse(app.tracker.active)
        self.source.stop.assert_called_once()
        self.assertIn(refresh_job, self.root.cancelled)
        self.assertTrue(self.root.destroyed)
        # tick and hydration jobs cancelled with the session
        self.assertEqual([ms for ms, _f in self.root.jobs.values()], [])


class TestSessionTypeDialog(UITestCase):
    def test_invalid_custom_duration_shown_inline(self):
        chosen = []
        dialog = self.ui.SessionTypeDialog(self.root, chosen.append)

        dialog.custom_var.set("500")
        dialog._choose_custom()

        self.assertEqual(dialog.error_lbl.options["text"], "Maximum duration is 180 minutes (3 hours)")
        self.assertEqual(chosen, [])
        self.assertFalse(dialog.destroyed)

        # typing again clears the message
        dialog.custom_var.set("3")
        self.assertEqual(dialog.error_lbl.options["text"], "")

    def test_valid_custom_duration_starts_session(self):
        app = self.make_app()
        dialog = self.ui.SessionTypeDialog(self.root, app.start_session)

        dialog.custom_var.set("abc")
        dialog._choose_custom()
        self.assertFalse(app.tracker.active)

        dialog.custom_var.set("30")
        dialog._choose_custom()
        self.assertTrue(dialog.destroyed)
        self.assertTrue(app.tracker.active)
        self.assertEqual(app.tracker.remaining_seconds, 1800)

    def test_preset_choice(self):
        chosen = []
        dialog = self.ui.SessionTypeDialog(self.root, chosen.append)
        dialog._choose_preset(SessionType.DEEP_WORK)
        self.assertEqual(chosen[0].duration_seconds, 5400)
        self.assertTrue(dialog.destroyed)


if __name__ == "__main__":
    unittest.main()
