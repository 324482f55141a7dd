"""Debug menu overlay: jump straight into any screen state."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Overlay, Screen
from relaycode.logging import get_logger
from relaycode.models.enums import ApplyScenario, PatchStatus
from relaycode.navigation.list_navigator import move_index
from relaycode.screens.base import Controller
from relaycode.screens.copy import history_copy_items
from relaycode.screens.dashboard import DashboardStatus
from relaycode.screens.review import ReviewBodyView, ReviewItemKind
from relaycode.services.patch import scenario_results

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = ["MenuItem", "DebugMenuController", "shortcut_index"]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MenuItem:
    title: str
    action: Callable[[], None]


def shortcut_index(char: str) -> int | None:
    """Menu index for a shortcut: 1-9 pick the first nine, a-z the rest."""
    if len(char) != 1:
        return None
    if "1" <= char <= "9":
        return int(char) - 1
    lower = char.lower()
    if "a" <= lower <= "z":
        return 9 + ord(lower) - ord("a")
    return None


class DebugMenuController(Controller):
    """List of preset screen states.

    Attributes:
        selected_index: Highlighted entry.
    """

    name = "debug_menu"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.selected_index = 0
        self.items = self._build_items()

    def _build_items(self) -> list[MenuItem]:
        return [
            MenuItem("Splash Screen", self._show(Screen.SPLASH)),
            MenuItem(
                "Dashboard: Listening", self._dashboard(DashboardStatus.LISTENING)
            ),
            MenuItem(
                "Dashboard: Confirm Approve",
                self._dashboard(DashboardStatus.CONFIRM_APPROVE),
            ),
            MenuItem(
                "Dashboard: Approving", self._dashboard(DashboardStatus.APPROVING)
            ),
            MenuItem("Review: Partial Failure (Default)", self.review_partial_failure),
            MenuItem("Review: Success", self.review_success),
            MenuItem("Review: Diff View", self._review(ReviewBodyView.DIFF)),
            MenuItem("Review: Reasoning View", self._review(ReviewBodyView.REASONING)),
            MenuItem("Review: Copy Mode", self.review_copy_mode),
            MenuItem("Review: Script Output", self.review_script_output),
            MenuItem("Review: Bulk Repair", self._review(ReviewBodyView.BULK_REPAIR)),
            MenuItem(
                "Review: Handoff Confirm", self._review(ReviewBodyView.CONFIRM_HANDOFF)
            ),
            MenuItem("Review Processing", self.review_processing),
            MenuItem("Git Commit Screen", self.commit_screen),
            MenuItem("Transaction Detail Screen", self.detail_screen),
            MenuItem("Transaction History Screen", self.history_screen),
            MenuItem("History: L1 Drilldown", self._history("l1-drill")),
            MenuItem("History: L2 Drilldown (Diff)", self._history("l2-drill")),
            MenuItem("History: Filter Mode", self._history("filter")),
            MenuItem("History: Copy Mode", self.history_copy_mode),
            MenuItem("History: Bulk Actions", self._history("bulk")),
        ]

    # -- presets ---------------------------------------------------------

    def _show(self, screen: Screen) -> Callable[[], None]:
        return lambda: self.ctx.router.show(screen)

    def _dashboard(self, status: DashboardStatus) -> Callable[[], None]:
        def action() -> None:
            self.ctx.dashboard.set_status(status)
            self.ctx.router.show(Screen.DASHBOARD)

        return action

    def _review(self, view: ReviewBodyView) -> Callable[[], None]:
        def action() -> None:
            self.review_partial_failure()
            if view is ReviewBodyView.DIFF:
                tx = self.ctx.review.transaction
                if tx is not None and tx.files:
                    self.ctx.review.select_file(tx.files[0].id)
            self.ctx.review.set_body_view(view)

        return action

    def _history(self, preset: str) -> Callable[[], None]:
        def action() -> None:
            self.ctx.history.apply_preset(preset)
            self.ctx.router.show(Screen.TRANSACTION_HISTORY)

        return action

    def review_partial_failure(self) -> None:
        """Review transaction 1 as if its last apply partly failed."""
        tx = self.ctx.store.get("1")
        if tx is None:
            logger.warning("debug_preset_missing_transaction", transaction_id="1")
            return
        results = scenario_results(tx, ApplyScenario.FAILURE)
        self.ctx.review.load(
            tx.id,
            initial_states={
                file_id: result.to_review_state() for file_id, result in results.items()
            },
            patch_status=PatchStatus.PARTIAL_FAILURE,
        )
        self.ctx.router.show(Screen.REVIEW)

    def review_success(self) -> None:
        tx = self.ctx.store.get("2")
        if tx is None:
            logger.warning("debug_preset_missing_transaction", transaction_id="2")
            return
        results = scenario_results(tx, ApplyScenario.SUCCESS)
        self.ctx.review.load(
            tx.id,
            initial_states={
                file_id: result.to_review_state() for file_id, result in results.items()
            },
        )
        self.ctx.router.show(Screen.REVIEW)

    def review_copy_mode(self) -> None:
        self.review_partial_failure()
        self.ctx.review.open_copy_mode()

    def review_script_output(self) -> None:
        self.review_success()
        review = self.ctx.review
        for index, item in enumerate(review.items):
            if item.kind is ReviewItemKind.SCRIPT:
                review.move_selection(index - review.viewport.selected_index)
                break
        review.set_body_view(ReviewBodyView.SCRIPT_OUTPUT)

    def review_processing(self) -> None:
        self.review_partial_failure()
        self.ctx.review.start_apply(ApplyScenario.FAILURE)

    def commit_screen(self) -> None:
        self.ctx.commit.prepare()
        self.ctx.router.show(Screen.GIT_COMMIT)

    def detail_screen(self) -> None:
        self.ctx.detail.load("3")
        self.ctx.router.show(Screen.TRANSACTION_DETAIL)

    def history_screen(self) -> None:
        self.ctx.history.load()
        self.ctx.router.show(Screen.TRANSACTION_HISTORY)

    def history_copy_mode(self) -> None:
        self._history("copy")()
        history = self.ctx.history
        txs = history.selected_transactions()
        self.ctx.copy.open(
            f"Select data to copy from {len(txs)} transactions:",
            history_copy_items(txs),
        )

    # -- menu ------------------------------------------------------------

    def on_enter(self) -> None:
        super().on_enter()
        self.selected_index = 0

    def move_selection(self, delta: int) -> None:
        self.selected_index = move_index(self.selected_index, delta, len(self.items))

    def select_shortcut(self, char: str) -> bool:
        index = shortcut_index(char)
        if index is None or index >= len(self.items):
            return False
        self.selected_index = index
        return True

    def run_selected(self) -> None:
        """Close the menu, then run the highlighted preset."""
        item = self.items[self.selected_index]
        logger.info("debug_preset_selected", title=item.title)
        if self.ctx.router.overlay is Overlay.DEBUG:
            self.ctx.router.close_overlay()
        item.action()

    def close(self) -> None:
        if self.ctx.router.overlay is Overlay.DEBUG:
            self.ctx.router.close_overlay()

    def handle_key(self, key: KeyEvent) -> bool:
        if key.is_key(NamedKey.UP):
            self.move_selection(-1)
        elif key.is_key(NamedKey.DOWN):
            self.move_selection(1)
        elif key.is_key(NamedKey.ENTER):
            self.run_selected()
        elif key.is_key(NamedKey.ESCAPE):
            self.close()
        elif key.char and not key.ctrl and not key.meta:
            self.select_shortcut(key.char)
        return True
