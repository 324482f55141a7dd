"""Notification overlay state with a once-per-second countdown."""

from __future__ import annotations

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Overlay, Router
from relaycode.app.timers import Scheduler, TimerScope
from relaycode.logging import get_logger
from relaycode.models.notification import Notification

__all__ = ["NotificationCenter"]

logger = get_logger(__name__)


class NotificationCenter:
    """Shows one notification at a time and hides it when its time is up.

    Args:
        router: Router whose NOTIFICATION overlay is used.
        scheduler: Scheduler driving the countdown.
        default_duration: Seconds shown when a notification sets none.
    """

    def __init__(
        self, router: Router, scheduler: Scheduler, default_duration: int = 5
    ) -> None:
        self._router = router
        self._scheduler = scheduler
        self._default_duration = default_duration
        self._timers: TimerScope | None = None
        self.current: Notification | None = None
        self.remaining = 0

    def show(self, notification: Notification) -> None:
        """Display ``notification``, replacing any current one."""
        self._stop()
        self.current = notification
        self.remaining = notification.duration or self._default_duration
        self._timers = TimerScope(self._scheduler, name="notification")
        self._timers.call_every(1.0, self._tick)
        logger.info(
            "notification_shown",
            type=notification.type.value,
            title=notification.title,
        )
        self._router.open_overlay(Overlay.NOTIFICATION)

    def dismiss(self) -> None:
        if self.current is None:
            return
        self._stop()
        self.current = None
        self.remaining = 0
        if self._router.overlay is Overlay.NOTIFICATION:
            self._router.close_overlay()

    def handle_key(self, key: KeyEvent) -> bool:
        if key.is_key(NamedKey.ENTER) or key.is_key(NamedKey.ESCAPE):
            self.dismiss()
            return True
        return False

    def on_overlay_closed(self) -> None:
        """Forget the notification when another overlay replaced it."""
        self._stop()
        self.current = None
        self.remaining = 0

    def _tick(self) -> None:
        self.remaining -= 1
        if self.remaining <= 0:
            self.dismiss()

    def _stop(self) -> None:
        if self._timers is not None:
            self._timers.close()
            self._timers = None
