"""Tests for the copy, help, debug log and debug menu overlays."""

from __future__ import annotations

import random

import pytest
import yaml

from relaycode.app.context import AppContext
from relaycode.app.router import Overlay, Screen
from relaycode.config import RelaycodeConfig
from relaycode.models.copy import CopyItem
from relaycode.models.enums import FileReviewStatus, PatchStatus
from relaycode.screens.copy import format_copy_payload, transaction_yaml
from relaycode.screens.debug_log import DebugLogController
from relaycode.screens.debug_menu import shortcut_index
from relaycode.screens.review import ReviewBodyView
from relaycode.services.transactions import TransactionStore
from tests.fixtures.collaborators import FailingClipboard
from tests.fixtures.context import make_context
from tests.fixtures.scheduler import FakeScheduler
from tests.fixtures.transactions import make_transaction


def open_review_copy(ctx: AppContext) -> None:
    ctx.review.load("1")
    ctx.router.show(Screen.REVIEW)
    ctx.press("c")
    assert ctx.router.overlay is Overlay.COPY


class TestCopyOverlay:
    """Tests for CopyController."""

    @pytest.mark.asyncio
    async def test_default_selection_is_copied(self, ctx: AppContext) -> None:
        open_review_copy(ctx)

        ctx.press("enter")
        await ctx.tasks.drain()

        assert ctx.clipboard.last == (
            "--- Git Message ---\nfix: add missing error handling"
        )
        assert ctx.copy.last_copied == "Copied Git Message to clipboard."

    @pytest.mark.asyncio
    async def test_letter_keys_toggle_items(self, ctx: AppContext) -> None:
        open_review_copy(ctx)

        ctx.press("m", "U", "enter")
        await ctx.tasks.drain()

        assert ctx.copy.selected == {"U"}
        assert ctx.clipboard.last == "--- UUID ---\n1"

    def test_space_toggles_item_under_cursor(self, ctx: AppContext) -> None:
        open_review_copy(ctx)

        ctx.press("down", "space")

        assert ctx.copy.cursor == 1
        assert ctx.copy.selected == set()

    @pytest.mark.asyncio
    async def test_nothing_selected(self, ctx: AppContext) -> None:
        open_review_copy(ctx)

        ctx.press("m", "enter")
        await ctx.tasks.drain()

        assert ctx.clipboard.last is None
        assert ctx.copy.last_copied == "Nothing selected"

    @pytest.mark.asyncio
    async def test_clipboard_failure_is_reported(
        self,
        fast_config: RelaycodeConfig,
        scheduler: FakeScheduler,
        store: TransactionStore,
    ) -> None:
        ctx = make_context(fast_config, scheduler, store, clipboard=FailingClipboard())
        ctx.start()
        open_review_copy(ctx)

        assert await ctx.copy.copy_selected() is None
        assert ctx.copy.last_copied == "Copy failed: clipboard unavailable"

    def test_escape_closes(self, ctx: AppContext) -> None:
        open_review_copy(ctx)

        ctx.press("escape")

        assert ctx.router.overlay is Overlay.NONE
        assert ctx.router.screen is Screen.REVIEW

    def test_unbound_letter_is_not_consumed(self, ctx: AppContext) -> None:
        open_review_copy(ctx)

        ctx.press("q")

        assert not ctx.router.exit_requested
        assert ctx.router.overlay is Overlay.COPY


def test_format_copy_payload_is_lazy() -> None:
    calls: list[str] = []

    def data(text: str) -> str:
        calls.append(text)
        return text

    items = [
        CopyItem("A", "First", lambda: data("one")),
        CopyItem("B", "Second", lambda: data("two")),
    ]

    assert calls == []
    assert format_copy_payload(items) == "--- First ---\none\n\n--- Second ---\ntwo"


def test_transaction_yaml_round_trips_key_fields() -> None:
    tx = make_transaction("t1")

    data = yaml.safe_load(transaction_yaml(tx))

    assert data["id"] == "t1"
    assert data["status"] == tx.status.value
    assert data["files"][0]["path"] == "src/module_1.py"
    assert "error" not in data


class TestHelpOverlay:
    """Tests for HelpController."""

    def test_question_mark_toggles(self, ctx: AppContext) -> None:
        ctx.press("?")
        assert ctx.router.overlay is Overlay.HELP

        ctx.press("?")
        assert ctx.router.overlay is Overlay.NONE

    def test_swallows_screen_keys(self, ctx: AppContext) -> None:
        ctx.press("?", "down", "q")

        assert ctx.dashboard.selected.id == "1"
        assert not ctx.router.exit_requested

        ctx.press("escape")
        assert ctx.router.overlay is Overlay.NONE


class TestDebugLogOverlay:
    """Tests for DebugLogController."""

    def test_opening_starts_simulator(
        self, ctx: AppContext, scheduler: FakeScheduler
    ) -> None:
        ctx.press("ctrl+l")
        assert ctx.router.overlay is Overlay.LOG

        scheduler.advance(0.25)

        messages = [entry.message for entry in ctx.log_store.entries]
        assert messages == [
            "Log simulator started.",
            "Initializing clipboard watcher...",
            "Clipboard watcher active.",
        ]

    def test_simulator_appends_on_interval(
        self, ctx: AppContext, scheduler: FakeScheduler
    ) -> None:
        ctx.press("ctrl+l")
        before = len(ctx.log_store)

        scheduler.advance(ctx.config.logs.simulator_interval * 3)

        assert len(ctx.log_store) == before + 4

    def test_closing_stops_simulator(
        self, ctx: AppContext, scheduler: FakeScheduler
    ) -> None:
        ctx.press("ctrl+l", "escape")
        count = len(ctx.log_store)

        scheduler.advance(60)

        assert ctx.log_store.entries[-1].message == "Log simulator stopped."
        assert len(ctx.log_store) == count

    def test_filter(self, ctx: AppContext) -> None:
        ctx.press("ctrl+l", "f")
        assert ctx.debug_log.captures_text

        ctx.press(*"started", "enter")

        assert not ctx.debug_log.filtering
        assert [entry.message for entry in ctx.debug_log.entries] == [
            "Log simulator started."
        ]

    def test_clear(self, ctx: AppContext) -> None:
        ctx.press("ctrl+l", "c")

        assert len(ctx.log_store) == 0
        assert ctx.debug_log.visible_entries == []

    def test_simulated_messages(self, ctx: AppContext) -> None:
        controller = DebugLogController(ctx, rng=random.Random(3))
        before = len(ctx.log_store)

        for _ in range(20):
            controller.simulate()

        assert len(ctx.log_store) == before + 20
        assert {entry.message for entry in ctx.log_store.entries[before:]} <= {
            "Clipboard watcher polling...",
            "No clipboard change detected.",
            "Clipboard content changed.",
        }


@pytest.mark.parametrize(
    ("char", "index"),
    [("1", 0), ("9", 8), ("a", 9), ("B", 10), ("l", 20), ("0", None), ("!", None)],
)
def test_shortcut_index(char: str, index: int | None) -> None:
    assert shortcut_index(char) == index


class TestDebugMenuOverlay:
    """Tests for DebugMenuController."""

    def test_ctrl_b_toggles(self, ctx: AppContext) -> None:
        ctx.press("ctrl+b")
        assert ctx.router.overlay is Overlay.DEBUG

        ctx.press("ctrl+b")
        assert ctx.router.overlay is Overlay.NONE

    def test_shortcut_selects_without_running(self, ctx: AppContext) -> None:
        ctx.press("ctrl+b", "5")

        assert ctx.debug_menu.selected_index == 4
        assert ctx.router.overlay is Overlay.DEBUG
        assert ctx.router.screen is Screen.DASHBOARD

    def test_enter_runs_partial_failure_preset(self, ctx: AppContext) -> None:
        ctx.press("ctrl+b", "5", "enter")

        assert ctx.router.overlay is Overlay.NONE
        assert ctx.router.screen is Screen.REVIEW
        session = ctx.review.session
        assert session.patch_status is PatchStatus.PARTIAL_FAILURE
        assert session.status("1-1") is FileReviewStatus.APPROVED
        assert session.status("1-2") is FileReviewStatus.FAILED

    def test_diff_preset_selects_first_file(self, ctx: AppContext) -> None:
        ctx.debug_menu.select_shortcut("7")
        ctx.debug_menu.run_selected()

        assert ctx.review.body_view is ReviewBodyView.DIFF
        assert ctx.review.selected_file.id == "1-1"

    def test_selection_resets_when_reopened(self, ctx: AppContext) -> None:
        ctx.press("ctrl+b", "down", "down", "escape", "ctrl+b")

        assert ctx.debug_menu.selected_index == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("index", range(21))
    async def test_every_preset_runs(self, ctx: AppContext, index: int) -> None:
        ctx.press("ctrl+b")
        ctx.debug_menu.selected_index = index

        ctx.debug_menu.run_selected()
        await ctx.tasks.drain()

        assert ctx.router.overlay in (Overlay.NONE, Overlay.COPY)
