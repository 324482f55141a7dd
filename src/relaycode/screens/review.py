"""Review screen: per-file approve/reject, repair flows and apply runs.

The controller wraps a :class:`ReviewSession` for the transaction under
review and owns the apply run started from this screen. Only the newest run
may write results back; a run superseded by another (or by loading another
transaction) finishes in the background and its outcome is discarded.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Screen
from relaycode.app.timers import TimerScope
from relaycode.constants import BULK_INSTRUCT_OPTIONS, BULK_REPAIR_OPTIONS
from relaycode.logging import get_logger
from relaycode.models.apply import ApplyUpdate
from relaycode.models.domain import FileItem, ScriptResult, Transaction
from relaycode.models.enums import (
    ApplyScenario,
    FileReviewStatus,
    PatchStatus,
    TransactionStatus,
)
from relaycode.models.notification import Notification
from relaycode.models.review import FileReviewState
from relaycode.navigation.list_navigator import move_index
from relaycode.navigation.viewport import (
    ContentViewport,
    LayoutConfig,
    ViewportState,
    available_height,
)
from relaycode.review.pipeline import ApplyOutcome, ApplyPipeline, ApplyRun
from relaycode.review.session import BulkOutcome, ReviewSession
from relaycode.screens.base import Controller
from relaycode.screens.copy import review_copy_items

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = [
    "ReviewBodyView",
    "ReviewItemKind",
    "ReviewItem",
    "ReviewController",
    "REVIEW_LAYOUT",
    "REVIEW_BODY_LAYOUT",
]

logger = get_logger(__name__)

#: Header, transaction summary, separators and footer around the item list
REVIEW_LAYOUT = LayoutConfig(header=2, separators=3, fixed_rows=4, footer=2)

#: Rows around an expanded body (diff, reasoning, script output)
REVIEW_BODY_LAYOUT = LayoutConfig(
    header=2, separators=3, fixed_rows=4, margins_y=2, footer=2
)


class ReviewBodyView(str, Enum):
    NONE = "none"
    DIFF = "diff"
    REASONING = "reasoning"
    SCRIPT_OUTPUT = "script_output"
    BULK_REPAIR = "bulk_repair"
    BULK_INSTRUCT = "bulk_instruct"
    CONFIRM_HANDOFF = "confirm_handoff"


#: Body views whose content scrolls with the arrow keys
CONTENT_VIEWS = frozenset(
    {ReviewBodyView.DIFF, ReviewBodyView.REASONING, ReviewBodyView.SCRIPT_OUTPUT}
)


class ReviewItemKind(str, Enum):
    PROMPT = "prompt"
    REASONING = "reasoning"
    SCRIPT = "script"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class ReviewItem:
    """One selectable row on the review screen."""

    kind: ReviewItemKind
    id: str


class ReviewController(Controller):
    """Review of one pending transaction.

    Attributes:
        transaction_id: Transaction under review.
        session: Per-file review state, None until :meth:`load`.
        body_view: Expanded panel below the item list.
        bulk_repair_index: Highlighted option of the bulk repair menu.
        bulk_instruct_index: Highlighted option of the bulk instruct menu.
        content: Scroll position of the expanded panel.
        diff_expanded: Whether a long diff is shown in full.
        script_error_index: Highlighted error line in script output.
        flashing: File ids highlighted after a status change.
        active_run: Apply run whose results will be written back.
        last_run: Most recent finished run, kept for display.
    """

    name = "review"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.transaction_id: str | None = None
        self.session: ReviewSession | None = None
        self.body_view = ReviewBodyView.NONE
        self.bulk_repair_index = 0
        self.bulk_instruct_index = 0
        self.content = ContentViewport()
        self.diff_expanded = False
        self.script_error_index = 0
        self.flashing: set[str] = set()
        self.active_run: ApplyRun | None = None
        self.last_run: ApplyRun | None = None
        self._viewport = ViewportState()
        self._flash_timers = TimerScope(ctx.scheduler, name="review-flash")
        self._flash_timers.close()

    def on_enter(self) -> None:
        super().on_enter()
        self._reset_flash()

    def on_exit(self) -> None:
        super().on_exit()
        self._reset_flash()

    # -- loading ---------------------------------------------------------

    def load(
        self,
        transaction_id: str,
        *,
        initial_states: Mapping[str, FileReviewState] | None = None,
        patch_status: PatchStatus = PatchStatus.SUCCESS,
        body_view: ReviewBodyView = ReviewBodyView.NONE,
    ) -> bool:
        """Start reviewing ``transaction_id``.

        Any apply run still in flight for the previous transaction is
        cancelled and its outcome discarded.

        Returns:
            False if the transaction does not exist.
        """
        tx = self.ctx.store.get(transaction_id)
        if tx is None:
            logger.warning("review_unknown_transaction", transaction_id=transaction_id)
            return False
        self._abandon_run()
        self._reset_flash()

        self.transaction_id = tx.id
        self.session = ReviewSession(
            tx,
            patch_engine=self.ctx.patch_engine_factory(tx, ApplyScenario.SUCCESS),
            clipboard=self.ctx.clipboard,
            notify=self.ctx.notify,
            on_status_change=self._on_status_change,
            initial_states=initial_states,
            patch_status=patch_status,
        )
        self._viewport = ViewportState()
        self.bulk_repair_index = 0
        self.bulk_instruct_index = 0
        self.diff_expanded = False
        self.script_error_index = 0
        self.last_run = None
        self.set_body_view(body_view)
        logger.info("review_loaded", transaction_id=tx.id, files=len(tx.files))
        return True

    # -- queries ---------------------------------------------------------

    @property
    def transaction(self) -> Transaction | None:
        if self.session is None:
            return None
        return self.session.transaction

    @property
    def items(self) -> list[ReviewItem]:
        tx = self.transaction
        if tx is None:
            return []
        items = [
            ReviewItem(ReviewItemKind.PROMPT, "prompt"),
            ReviewItem(ReviewItemKind.REASONING, "reasoning"),
        ]
        items.extend(
            ReviewItem(ReviewItemKind.SCRIPT, str(index))
            for index in range(len(tx.scripts))
        )
        items.extend(ReviewItem(ReviewItemKind.FILE, f.id) for f in tx.files)
        return items

    @property
    def viewport(self) -> ViewportState:
        layout = REVIEW_LAYOUT
        if self.body_view is not ReviewBodyView.NONE:
            layout = layout.with_dynamic_rows(self.body_height)
        height = available_height(self.ctx.terminal.rows, layout)
        self._viewport = self._viewport.with_item_count(len(self.items)).with_height(
            height
        )
        return self._viewport

    @property
    def body_height(self) -> int:
        """Lines available to the expanded panel."""
        layout = REVIEW_BODY_LAYOUT.with_dynamic_rows(min(len(self.items), 6))
        return available_height(self.ctx.terminal.rows, layout)

    @property
    def selected_item(self) -> ReviewItem | None:
        items = self.items
        if not items:
            return None
        return items[self.viewport.selected_index]

    @property
    def selected_file(self) -> FileItem | None:
        item = self.selected_item
        tx = self.transaction
        if item is None or tx is None or item.kind is not ReviewItemKind.FILE:
            return None
        return tx.file(item.id)

    @property
    def selected_script(self) -> ScriptResult | None:
        item = self.selected_item
        tx = self.transaction
        if item is None or tx is None or item.kind is not ReviewItemKind.SCRIPT:
            return None
        return tx.scripts[int(item.id)]

    def diff_display_lines(self, file: FileItem | None = None) -> list[str]:
        """Diff lines as shown, collapsed to both ends when long."""
        file = file or self.selected_file
        if file is None:
            return []
        lines = file.diff_lines
        review = self.ctx.config.review
        if self.diff_expanded or len(lines) <= review.diff_collapse_threshold:
            return lines
        keep = review.diff_preview_lines
        hidden = len(lines) - 2 * keep
        return [
            *lines[:keep],
            f"... {hidden} lines hidden ('x' to expand) ...",
            *lines[-keep:],
        ]

    def script_error_lines(self) -> list[int]:
        """Indexes of the output lines that report an error or warning."""
        script = self.selected_script
        if script is None:
            return []
        return [
            index
            for index, line in enumerate(script.output_lines)
            if "Error" in line or "Warning" in line
        ]

    def body_lines(self) -> list[str]:
        """Content of the current scrollable panel."""
        tx = self.transaction
        if tx is None:
            return []
        if self.body_view is ReviewBodyView.DIFF:
            return self.diff_display_lines()
        if self.body_view is ReviewBodyView.REASONING:
            item = self.selected_item
            if item is not None and item.kind is ReviewItemKind.PROMPT:
                return tx.prompt.splitlines()
            return tx.reasoning.splitlines()
        if self.body_view is ReviewBodyView.SCRIPT_OUTPUT:
            script = self.selected_script
            return script.output_lines if script else []
        return []

    # -- selection and panels --------------------------------------------

    def move_selection(self, delta: int) -> None:
        viewport = self.viewport
        self._viewport = viewport.with_selection(viewport.selected_index + delta)
        self.script_error_index = 0

    def page(self, direction: int) -> None:
        self.move_selection(direction * self.viewport.viewport_height)

    def select_file(self, file_id: str) -> bool:
        for index, item in enumerate(self.items):
            if item.kind is ReviewItemKind.FILE and item.id == file_id:
                self._viewport = self.viewport.with_selection(index)
                return True
        return False

    def set_body_view(self, view: ReviewBodyView) -> None:
        self.body_view = view
        if view in CONTENT_VIEWS:
            self.content.set_content(len(self.body_lines()), self.body_height)
        else:
            self.content.set_content(0, self.body_height)

    def toggle_body_view(self, view: ReviewBodyView) -> None:
        """Open ``view``, or close it if it is already open."""
        if self.body_view is view:
            self.close_body_view()
        else:
            self.set_body_view(view)

    def close_body_view(self) -> None:
        self.set_body_view(ReviewBodyView.NONE)

    def expand_diff(self) -> None:
        self.diff_expanded = not self.diff_expanded
        if self.body_view is ReviewBodyView.DIFF:
            self.content.set_content(len(self.body_lines()), self.body_height)

    def open_selected(self) -> None:
        """Expand the panel matching the selected row."""
        item = self.selected_item
        if item is None:
            return
        if item.kind is ReviewItemKind.FILE:
            self.toggle_body_view(ReviewBodyView.DIFF)
        elif item.kind is ReviewItemKind.SCRIPT:
            self.toggle_body_view(ReviewBodyView.SCRIPT_OUTPUT)
        else:
            self.toggle_body_view(ReviewBodyView.REASONING)

    def next_script_error(self, direction: int) -> int | None:
        """Jump to the next (or previous) error line in the script output.

        Returns:
            The line index scrolled to, or None without error lines.
        """
        errors = self.script_error_lines()
        if not errors:
            return None
        self.script_error_index = (self.script_error_index + direction) % len(errors)
        line = errors[self.script_error_index]
        self.content.scroll_index = min(line, self.content.max_scroll)
        return line

    def on_resize(self) -> None:
        self.content.resize(self.body_height)

    # -- file review -----------------------------------------------------

    def toggle_selected_file(self) -> bool:
        file = self.selected_file
        if file is None or self.session is None:
            return False
        return self.session.toggle_file(file.id)

    def reject_all(self) -> int:
        if self.session is None:
            return 0
        return self.session.reject_all()

    def repair_selected(self) -> bool:
        """Start the repair flow for the selected FAILED file."""
        file = self.selected_file
        if file is None or self.session is None:
            return False
        if self.session.status(file.id) is not FileReviewStatus.FAILED:
            return False
        self.ctx.tasks.spawn(
            self.session.repair_file(file.id), name=f"repair-{file.id}"
        )
        return True

    def instruct_selected(self) -> bool:
        """Start the re-instruct flow for the selected REJECTED file."""
        file = self.selected_file
        if file is None or self.session is None:
            return False
        if self.session.status(file.id) is not FileReviewStatus.REJECTED:
            return False
        self.ctx.tasks.spawn(
            self.session.instruct_file(file.id), name=f"instruct-{file.id}"
        )
        return True

    def open_bulk_repair(self) -> bool:
        if self.session is None or not self.session.has_failed_files:
            return False
        self.bulk_repair_index = 0
        self.set_body_view(ReviewBodyView.BULK_REPAIR)
        return True

    def open_bulk_instruct(self) -> bool:
        if self.session is None or not self.session.has_rejected_files:
            return False
        self.bulk_instruct_index = 0
        self.set_body_view(ReviewBodyView.BULK_INSTRUCT)
        return True

    def execute_bulk_repair_option(self, option: int) -> None:
        """Run a bulk repair option in the background."""
        self.ctx.tasks.spawn(self.run_bulk_repair(option), name="bulk-repair")

    def execute_bulk_instruct_option(self, option: int) -> None:
        """Run a bulk instruct option in the background."""
        self.ctx.tasks.spawn(self.run_bulk_instruct(option), name="bulk-instruct")

    async def run_bulk_repair(self, option: int) -> BulkOutcome:
        """Close the menu and run a bulk repair option."""
        if self.session is None:
            return BulkOutcome.NOOP
        self.close_body_view()
        outcome = await self.session.execute_bulk_repair(option)
        if outcome is BulkOutcome.HANDOFF_REQUESTED:
            self.set_body_view(ReviewBodyView.CONFIRM_HANDOFF)
        return outcome

    async def run_bulk_instruct(self, option: int) -> BulkOutcome:
        """Close the menu and run a bulk instruct option."""
        if self.session is None:
            return BulkOutcome.NOOP
        self.close_body_view()
        outcome = await self.session.execute_bulk_instruct(option)
        if outcome is BulkOutcome.HANDOFF_REQUESTED:
            self.set_body_view(ReviewBodyView.CONFIRM_HANDOFF)
        return outcome

    def start_handoff(self) -> None:
        """Copy the hand-off prompt in the background."""
        self.ctx.tasks.spawn(self.confirm_handoff(), name="handoff")

    async def confirm_handoff(self) -> bool:
        """Copy the hand-off prompt and mark the transaction as handed off."""
        session = self.session
        if session is None:
            return False
        if not await session.copy_handoff_prompt():
            return False
        self.ctx.store.update_status(session.transaction.id, TransactionStatus.HANDOFF)
        if session is self.session:
            self.close_body_view()
            self.ctx.router.show(Screen.DASHBOARD)
        return True

    def approve(self) -> bool:
        """Accept the transaction if at least one file is approved."""
        if self.session is None or not self.session.can_approve:
            return False
        tx_id = self.session.transaction.id
        self.ctx.store.update_status(tx_id, TransactionStatus.APPLIED)
        self.ctx.router.show(Screen.DASHBOARD)
        return True

    def open_copy_mode(self) -> bool:
        tx = self.transaction
        if tx is None:
            return False
        self.ctx.copy.open(
            "Select data to copy from review:",
            review_copy_items(tx, self.selected_file),
        )
        return True

    def _on_status_change(self, file_id: str, state: FileReviewState) -> None:
        duration = self.ctx.config.review.flash_duration
        if duration <= 0 or self._flash_timers.closed:
            return
        self.flashing.add(file_id)
        self._flash_timers.call_later(duration, lambda: self.flashing.discard(file_id))

    def _reset_flash(self) -> None:
        # Flash timers only live while the review screen is shown
        self._flash_timers.close()
        self.flashing.clear()
        self._flash_timers = TimerScope(self.ctx.scheduler, name="review-flash")
        if not self.active:
            self._flash_timers.close()

    # -- apply runs ------------------------------------------------------

    def start_apply(self, scenario: ApplyScenario) -> ApplyRun | None:
        """Re-run the apply pipeline for the reviewed transaction.

        A run already in flight is cancelled and superseded.

        Returns:
            The new run, or None when nothing is loaded.
        """
        tx = self.transaction
        if tx is None or self.session is None:
            return None
        self._abandon_run()
        engine = self.ctx.patch_engine_factory(tx, scenario)
        self.session.patch_engine = engine
        self.session.reset_for_apply()
        pipeline = ApplyPipeline.from_config(
            engine, self.ctx.script_runner, self.ctx.config.apply
        )
        run = ApplyRun(pipeline, tx)
        run.on_update = lambda update: self._on_run_update(run, update)
        self.active_run = run
        self.close_body_view()
        logger.info(
            "review_apply_started", transaction_id=tx.id, scenario=scenario.value
        )
        self.ctx.router.show(Screen.REVIEW_PROCESSING)
        self.ctx.tasks.spawn(self.drive(run), name=f"apply-{tx.id}")
        return run

    async def drive(self, run: ApplyRun) -> ApplyOutcome | None:
        """Run ``run`` and write its outcome back if it is still current.

        Returns:
            The outcome, or None if the run was superseded.
        """
        try:
            outcome = await run.run()
        finally:
            current = run is self.active_run
            if current:
                self.active_run = None
                self.last_run = run
        if not current or self.session is None:
            logger.info(
                "review_apply_outcome_discarded", transaction_id=run.transaction.id
            )
            return None
        if self.ctx.router.screen is Screen.REVIEW_PROCESSING:
            self.ctx.router.show(Screen.REVIEW)
        self.session.apply_outcome(outcome.file_results, outcome.patch_status)
        logger.info(
            "review_apply_finished",
            transaction_id=run.transaction.id,
            patch_status=outcome.patch_status.value,
            cancelled=outcome.cancelled,
        )
        if outcome.error is not None:
            self.ctx.notify(Notification.error("Apply aborted", outcome.error))
        return outcome

    def cancel_apply(self) -> bool:
        if self.active_run is None:
            return False
        return self.active_run.cancel()

    def _abandon_run(self) -> None:
        if self.active_run is not None:
            self.active_run.cancel()
            logger.info(
                "review_apply_superseded",
                transaction_id=self.active_run.transaction.id,
            )
            self.active_run = None

    def _on_run_update(self, run: ApplyRun, update: ApplyUpdate) -> None:
        if run is not self.active_run:
            logger.debug("review_apply_update_discarded", update=type(update).__name__)

    # -- keys ------------------------------------------------------------

    def handle_key(self, key: KeyEvent) -> bool:
        if self.session is None:
            return False
        view = self.body_view

        if key.is_key(NamedKey.ESCAPE):
            if view is ReviewBodyView.NONE:
                return False
            self.close_body_view()
            return True

        if view is ReviewBodyView.BULK_REPAIR:
            self.bulk_repair_index = self._handle_menu(
                key,
                self.bulk_repair_index,
                len(BULK_REPAIR_OPTIONS),
                self.execute_bulk_repair_option,
            )
            return True
        if view is ReviewBodyView.BULK_INSTRUCT:
            self.bulk_instruct_index = self._handle_menu(
                key,
                self.bulk_instruct_index,
                len(BULK_INSTRUCT_OPTIONS),
                self.execute_bulk_instruct_option,
            )
            return True
        if view is ReviewBodyView.CONFIRM_HANDOFF:
            if key.is_key(NamedKey.ENTER):
                self.start_handoff()
            return True

        if view in CONTENT_VIEWS and self._handle_scroll(key):
            return True

        if view is ReviewBodyView.NONE and key.char in ("1", "2"):
            self.start_apply(
                ApplyScenario.SUCCESS if key.char == "1" else ApplyScenario.FAILURE
            )
            return True

        if key.is_key(NamedKey.UP):
            self.move_selection(-1)
        elif key.is_key(NamedKey.DOWN):
            self.move_selection(1)
        elif key.is_key(NamedKey.PAGE_UP):
            self.page(-1)
        elif key.is_key(NamedKey.PAGE_DOWN):
            self.page(1)
        elif key.is_key(NamedKey.SPACE):
            self.toggle_selected_file()
        elif key.is_key(NamedKey.ENTER) or key.char == "d":
            self.open_selected()
        elif key.char == "R":
            self.reject_all()
        elif key.char == "r":
            self.toggle_body_view(ReviewBodyView.REASONING)
        elif key.char == "a":
            self.approve()
        elif key.char == "c":
            self.open_copy_mode()
        elif key.char == "t":
            self.repair_selected()
        elif key.char == "T":
            self.open_bulk_repair()
        elif key.char == "i":
            self.instruct_selected()
        elif key.char == "I":
            self.open_bulk_instruct()
        elif key.char == "x":
            self.expand_diff()
        else:
            return False
        return True

    def _handle_scroll(self, key: KeyEvent) -> bool:
        if key.is_key(NamedKey.UP):
            self.content.scroll_up()
        elif key.is_key(NamedKey.DOWN):
            self.content.scroll_down()
        elif key.is_key(NamedKey.PAGE_UP):
            self.content.page_up()
        elif key.is_key(NamedKey.PAGE_DOWN):
            self.content.page_down()
        elif self.body_view is ReviewBodyView.SCRIPT_OUTPUT and key.char == "j":
            self.next_script_error(1)
        elif self.body_view is ReviewBodyView.SCRIPT_OUTPUT and key.char == "k":
            self.next_script_error(-1)
        else:
            return False
        return True

    def _handle_menu(
        self,
        key: KeyEvent,
        index: int,
        option_count: int,
        execute: Callable[[int], None],
    ) -> int:
        """Drive a numbered option menu whose last option is Cancel.

        Returns:
            The new highlighted index.
        """
        cancel = option_count
        choice: int | None = None
        if key.is_key(NamedKey.UP):
            return move_index(index, -1, option_count)
        if key.is_key(NamedKey.DOWN):
            return move_index(index, 1, option_count)
        if key.is_key(NamedKey.ENTER):
            choice = index + 1
        elif key.digit is not None and 1 <= key.digit <= option_count:
            choice = key.digit
        if choice == cancel:
            self.close_body_view()
        elif choice is not None:
            execute(choice)
        return index
