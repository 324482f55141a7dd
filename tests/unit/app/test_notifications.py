"""Tests for the notification overlay and debug log store."""

from __future__ import annotations

from relaycode.app.input import KeyEvent
from relaycode.app.log_store import LogStore
from relaycode.app.notifications import NotificationCenter
from relaycode.app.router import Overlay, Router, Screen
from relaycode.models.enums import LogLevel, NotificationType
from relaycode.models.notification import Notification
from tests.fixtures.scheduler import FakeScheduler


def make_center(scheduler: FakeScheduler) -> tuple[Router, NotificationCenter]:
    router = Router(Screen.DASHBOARD)
    return router, NotificationCenter(router, scheduler, default_duration=5)


class TestNotificationCenter:
    """Tests for NotificationCenter."""

    def test_counts_down_then_hides(self, scheduler: FakeScheduler) -> None:
        router, center = make_center(scheduler)

        center.show(Notification.success("Copied", "Prompt copied"))
        assert router.overlay is Overlay.NOTIFICATION

        scheduler.advance(3.0)
        assert center.remaining == 2

        scheduler.advance(2.0)
        assert center.current is None
        assert router.overlay is Overlay.NONE

    def test_own_duration_wins(self, scheduler: FakeScheduler) -> None:
        _, center = make_center(scheduler)

        center.show(
            Notification(
                type=NotificationType.INFO, title="Hi", message="there", duration=2
            )
        )

        assert center.remaining == 2

    def test_enter_and_escape_dismiss(self, scheduler: FakeScheduler) -> None:
        router, center = make_center(scheduler)
        for key in ("enter", "escape"):
            center.show(Notification.error("Oops", "failed"))

            assert center.handle_key(KeyEvent.parse(key))
            assert router.overlay is Overlay.NONE

        assert scheduler.pending == 0

    def test_other_keys_are_ignored(self, scheduler: FakeScheduler) -> None:
        _, center = make_center(scheduler)
        center.show(Notification.error("Oops", "failed"))

        assert not center.handle_key(KeyEvent.parse("x"))
        assert center.current is not None

    def test_new_notification_replaces_current(self, scheduler: FakeScheduler) -> None:
        _, center = make_center(scheduler)
        center.show(Notification.error("First", "one"))
        scheduler.advance(4.0)

        center.show(Notification.error("Second", "two"))
        scheduler.advance(4.0)

        assert center.current is not None
        assert center.current.title == "Second"
        assert center.remaining == 1


class TestLogStore:
    """Tests for LogStore."""

    def test_newest_first_and_bounded(self) -> None:
        store = LogStore(max_entries=3)
        for n in range(5):
            store.info(f"message {n}")

        assert [e.message for e in store.entries] == [
            "message 4",
            "message 3",
            "message 2",
        ]

    def test_filter_matches_message_and_level(self) -> None:
        store = LogStore()
        store.debug("clipboard write")
        store.error("apply failed")
        store.warn("slow step")

        assert [e.message for e in store.filter("APPLY")] == ["apply failed"]
        assert [e.level for e in store.filter("warn")] == [LogLevel.WARN]
        assert len(store.filter("  ")) == 3

    def test_clear(self) -> None:
        store = LogStore()
        store.info("x")

        store.clear()

        assert len(store) == 0
