"""Tests for rendering controller state with Rich."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from relaycode.app.context import AppContext
from relaycode.app.router import Overlay, Screen
from relaycode.models.notification import Notification
from relaycode.tui.render import relative_time, render_app


def render_text(ctx: AppContext) -> str:
    console = Console(file=io.StringIO(), width=100, record=True)
    console.print(render_app(ctx))
    return console.export_text()


@pytest.mark.parametrize(
    ("age", "expected"),
    [(0, "0s"), (59, "59s"), (60, "1m"), (3600, "1h"), (2 * 86400, "2d")],
)
def test_relative_time(age: int, expected: str) -> None:
    assert relative_time(1_000_000 - age, now=1_000_000) == expected


def test_future_timestamp_is_zero() -> None:
    assert relative_time(1_000_010, now=1_000_000) == "0s"


class TestRenderScreens:
    """Smoke tests: every screen renders its key content."""

    def test_splash(self, ctx: AppContext) -> None:
        ctx.router.show(Screen.SPLASH)

        assert "Press any key to continue" in render_text(ctx)

    def test_dashboard(self, ctx: AppContext) -> None:
        text = render_text(ctx)

        assert "Dashboard" in text
        assert "fix: add missing error handling" in text

    def test_approve_all_modal(self, ctx: AppContext) -> None:
        ctx.press("a")

        assert "APPROVE ALL" in render_text(ctx)

    def test_review_with_bulk_menu(self, ctx: AppContext) -> None:
        ctx.debug_menu.review_partial_failure()
        ctx.press("T")

        text = render_text(ctx)

        assert "BULK REPAIR" in text
        assert "Handoff to External Agent" in text

    def test_review_script_output(self, ctx: AppContext) -> None:
        ctx.debug_menu.review_script_output()

        assert "... test output ..." in render_text(ctx)

    def test_commit(self, ctx: AppContext) -> None:
        ctx.press("c")

        text = render_text(ctx)

        assert "Git Commit" in text
        assert "feat: implement new dashboard UI" in text

    def test_detail(self, ctx: AppContext) -> None:
        ctx.debug_menu.detail_screen()

        text = render_text(ctx)

        assert "Transaction Detail" in text
        assert "Files (3)" in text

    def test_history_with_filter(self, ctx: AppContext) -> None:
        ctx.history.apply_preset("filter")
        ctx.router.show(Screen.TRANSACTION_HISTORY)

        text = render_text(ctx)

        assert "Transaction History" in text

    @pytest.mark.asyncio
    async def test_processing(self, ctx: AppContext) -> None:
        ctx.debug_menu.review_processing()

        assert ctx.router.screen is Screen.REVIEW_PROCESSING
        assert "Applying e4a7c112" in render_text(ctx)
        await ctx.tasks.drain()


class TestRenderOverlays:
    """Overlays are drawn instead of the screen below them."""

    @pytest.mark.parametrize(
        ("overlay", "title"),
        [
            (Overlay.HELP, "KEYBOARD SHORTCUTS"),
            (Overlay.LOG, "DEBUG LOG"),
            (Overlay.DEBUG, "DEBUG MENU"),
        ],
    )
    def test_panels(self, ctx: AppContext, overlay: Overlay, title: str) -> None:
        ctx.router.open_overlay(overlay)

        text = render_text(ctx)

        assert title in text
        assert "fix: add missing error handling" not in text

    def test_copy(self, ctx: AppContext) -> None:
        ctx.debug_menu.history_copy_mode()

        assert "Select data to copy from 2 transactions:" in render_text(ctx)

    def test_notification(self, ctx: AppContext) -> None:
        ctx.notify(Notification.error("Repair failed", "engine offline"))

        text = render_text(ctx)

        assert "Repair failed" in text
        assert "engine offline" in text
