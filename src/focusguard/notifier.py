from __future__ import annotations

import logging
import threading

from plyer import notification as plyer_notification  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

APP_NAME = "FocusGuard"


def notify(title: str, message: str, timeout: int = 5) -> None:
    """Send a desktop notification in a non-blocking way."""
    def _do() -> None:
        try:
            notify_func = getattr(plyer_notification, "notify", None)
            if callable(notify_func):
                notify_func(title=title, message=message, timeout=timeout, app_name=APP_NAME)  # type: ignore[no-untyped-call]
            else:
                logger.info("%s: %s", title, message)
        except Exception:
            # no notification backend on this platform
            logger.warning("Desktop notification failed: %s - %s", title, message, exc_info=True)

    t = threading.Thread(target=_do, name="FocusGuard-Notify", daemon=True)
    t.start()
