import unittest
from unittest.mock import MagicMock, patch

from focusguard import notifier
from focusguard.detection import FocusState
from focusguard.notification import AwayGuard, NotificationSettings


class TestNotificationSettings(unittest.TestCase):
    def test_defaults(self):
        s = NotificationSettings()
        self.assertEqual(s.away_delay_s, 10.0)
        self.assertEqual(s.hydration_interval_s, 1800)
        titles = {s.away_title, s.complete_title, s.hydration_title}
        self.assertEqual(len(titles), 3)


class TestAwayGuard(unittest.TestCase):
    def setUp(self):
        self.guard = AwayGuard(delay_s=10.0)

    def test_first_away_opens_period(self):
        self.assertFalse(self.guard.observe(FocusState.AWAY, 3.0))
        self.assertTrue(self.guard.is_open)
        self.assertEqual(self.guard.away_started_at, 3.0)

    def test_fires_once_after_delay(self):
        self.guard.observe(FocusState.AWAY, 0.0)
        self.assertFalse(self.guard.observe(FocusState.AWAY, 9.9))
        self.assertTrue(self.guard.observe(FocusState.AWAY, 10.0))
        self.assertFalse(self.guard.observe(FocusState.AWAY, 11.0))
        self.assertFalse(self.guard.check(30.0))

    def test_presence_closes_and_rearms(self):
        self.guard.observe(FocusState.AWAY, 0.0)
        self.assertTrue(self.guard.observe(FocusState.AWAY, 12.0))
        self.assertFalse(self.guard.observe(FocusState.DISTRACTED, 12.5))
        self.assertFalse(self.guard.is_open)
        self.assertFalse(self.guard.notified)
        self.guard.observe(FocusState.AWAY, 13.0)
        self.assertTrue(self.guard.observe(FocusState.AWAY, 23.0))

    def test_check_without_open_period(self):
        self.assertFalse(self.guard.check(100.0))


class TestNotifier(unittest.TestCase):
    def test_notify_uses_plyer_on_thread(self):
        fake = MagicMock()
        with patch.object(notifier, "plyer_notification", fake), \
                patch.object(notifier.threading, "Thread") as thread_cls:
            notifier.notify("Title", "Body", timeout=3)
            target = thread_cls.call_args.kwargs["target"]
            thread_cls.return_value.start.assert_called_once()
            target()
        fake.notify.assert_called_once_with(title="Title", message="Body", timeout=3, app_name="FocusGuard")

    def test_notify_backend_failure_is_logged(self):
        fake = MagicMock()
        fake.notify.side_effect = NotImplementedError("no backend")
        with patch.object(notifier, "plyer_notification", fake), \
                patch.object(notifier.threading, "Thread") as thread_cls, \
                self.assertLogs("focusguard.notifier", level="WARNING"):
            notifier.notify("Title", "Body")
            thread_cls.call_args.kwargs["target"]()


if __name__ == "__main__":
    unittest.main()
