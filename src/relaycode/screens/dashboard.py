"""Dashboard: the live transaction list and the approve-all flow."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Screen
from relaycode.logging import get_logger
from relaycode.models.domain import Transaction
from relaycode.models.enums import TransactionStatus
from relaycode.navigation.viewport import LayoutConfig, ViewportState, available_height
from relaycode.screens.base import Controller

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = ["DashboardStatus", "DashboardController", "DASHBOARD_LAYOUT"]

logger = get_logger(__name__)

#: Header, status bar, separators and footer around the event stream
DASHBOARD_LAYOUT = LayoutConfig(header=2, separators=2, fixed_rows=3, footer=2)


class DashboardStatus(str, Enum):
    LISTENING = "LISTENING"
    PAUSED = "PAUSED"
    CONFIRM_APPROVE = "CONFIRM_APPROVE"
    APPROVING = "APPROVING"


class DashboardController(Controller):
    """Event stream of all transactions.

    Attributes:
        status: Listener status, or the approve-all modal state.
        previous_status: Status restored when the modal closes.
        expanded_id: Transaction whose files are shown inline.
    """

    name = "dashboard"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.status = DashboardStatus.LISTENING
        self.previous_status = DashboardStatus.LISTENING
        self.expanded_id: str | None = None
        self._viewport = ViewportState()

    # -- queries ---------------------------------------------------------

    @property
    def transactions(self) -> list[Transaction]:
        return self.ctx.store.all()

    @property
    def pending(self) -> list[Transaction]:
        return self.ctx.store.by_status(TransactionStatus.PENDING)

    @property
    def applied(self) -> list[Transaction]:
        return self.ctx.store.by_status(TransactionStatus.APPLIED)

    @property
    def layout(self) -> LayoutConfig:
        expanded = self.ctx.store.get(self.expanded_id) if self.expanded_id else None
        rows = len(expanded.files) if expanded else 0
        return DASHBOARD_LAYOUT.with_dynamic_rows(rows)

    @property
    def viewport(self) -> ViewportState:
        """Selection and offset, recomputed against the live list and terminal."""
        height = available_height(self.ctx.terminal.rows, self.layout)
        self._viewport = self._viewport.with_item_count(
            len(self.transactions)
        ).with_height(height)
        return self._viewport

    @property
    def selected(self) -> Transaction | None:
        transactions = self.transactions
        if not transactions:
            return None
        return transactions[self.viewport.selected_index]

    @property
    def is_modal(self) -> bool:
        return self.status is DashboardStatus.CONFIRM_APPROVE

    @property
    def is_processing(self) -> bool:
        return self.status is DashboardStatus.APPROVING

    # -- actions ---------------------------------------------------------

    def move_selection(self, delta: int) -> None:
        viewport = self.viewport
        self._viewport = viewport.with_selection(viewport.selected_index + delta)

    def page(self, direction: int) -> None:
        self.move_selection(direction * self.viewport.viewport_height)

    def select(self, transaction_id: str) -> bool:
        for index, tx in enumerate(self.transactions):
            if tx.id == transaction_id:
                self._viewport = self.viewport.with_selection(index)
                return True
        return False

    def toggle_expand(self) -> None:
        tx = self.selected
        if tx is None:
            return
        self.expanded_id = None if self.expanded_id == tx.id else tx.id

    def collapse(self) -> None:
        self.expanded_id = None

    def toggle_pause(self) -> None:
        if self.status is DashboardStatus.LISTENING:
            self.status = DashboardStatus.PAUSED
        elif self.status is DashboardStatus.PAUSED:
            self.status = DashboardStatus.LISTENING
        logger.info("dashboard_status_changed", status=self.status.value)

    def set_status(self, status: DashboardStatus) -> None:
        """Force a status (debug presets)."""
        if status in (DashboardStatus.LISTENING, DashboardStatus.PAUSED):
            self.previous_status = status
        self.status = status

    def start_approve_all(self) -> bool:
        if not self.pending or self.status in (
            DashboardStatus.CONFIRM_APPROVE,
            DashboardStatus.APPROVING,
        ):
            return False
        self.previous_status = self.status
        self.status = DashboardStatus.CONFIRM_APPROVE
        return True

    def cancel_action(self) -> None:
        if self.status is DashboardStatus.CONFIRM_APPROVE:
            self.status = self.previous_status

    def confirm_action(self) -> None:
        if self.status is not DashboardStatus.CONFIRM_APPROVE:
            return
        self.status = DashboardStatus.APPROVING
        self.ctx.tasks.spawn(self.approve_all(), name="dashboard-approve-all")

    async def approve_all(self) -> int:
        """Apply every transaction still PENDING when the work starts.

        Returns:
            Number of transactions applied.
        """
        ids = [tx.id for tx in self.pending]
        logger.info("dashboard_approve_all", transactions=ids)
        try:
            for tx_id in ids:
                self.ctx.store.update_status(tx_id, TransactionStatus.IN_PROGRESS)
            await self.ctx.sleep(self.ctx.config.dashboard.approve_delay)
            applied = 0
            for tx_id in ids:
                tx = self.ctx.store.get(tx_id)
                if tx is not None and tx.status is TransactionStatus.IN_PROGRESS:
                    self.ctx.store.update_status(tx_id, TransactionStatus.APPLIED)
                    applied += 1
            return applied
        finally:
            self.status = self.previous_status

    def open_selected(self) -> bool:
        """Open review for a pending transaction, detail for anything else."""
        tx = self.selected
        if tx is None:
            return False
        if tx.status is TransactionStatus.PENDING:
            self.ctx.review.load(tx.id)
            self.ctx.router.show(Screen.REVIEW)
        else:
            self.ctx.detail.load(tx.id)
            self.ctx.router.show(Screen.TRANSACTION_DETAIL)
        return True

    def open_commit(self) -> bool:
        if not self.applied:
            return False
        self.ctx.commit.prepare()
        self.ctx.router.show(Screen.GIT_COMMIT)
        return True

    def open_history(self) -> None:
        self.ctx.history.load()
        self.ctx.router.show(Screen.TRANSACTION_HISTORY)

    # -- keys ------------------------------------------------------------

    def handle_key(self, key: KeyEvent) -> bool:
        if self.is_modal:
            if key.is_key(NamedKey.ENTER):
                self.confirm_action()
            elif key.is_key(NamedKey.ESCAPE):
                self.cancel_action()
            return True
        if self.is_processing:
            return True

        if key.is_key(NamedKey.UP):
            self.move_selection(-1)
        elif key.is_key(NamedKey.DOWN):
            self.move_selection(1)
        elif key.is_key(NamedKey.PAGE_UP):
            self.page(-1)
        elif key.is_key(NamedKey.PAGE_DOWN):
            self.page(1)
        elif key.is_key(NamedKey.LEFT):
            self.collapse()
        elif key.is_key(NamedKey.RIGHT):
            if self.expanded_id is None:
                self.toggle_expand()
        elif key.is_key(NamedKey.ENTER):
            tx = self.selected
            if tx is not None and self.expanded_id == tx.id:
                self.open_selected()
            else:
                self.toggle_expand()
        elif key.letter == "p":
            self.toggle_pause()
        elif key.letter == "a":
            self.start_approve_all()
        elif key.letter == "c":
            self.open_commit()
        elif key.letter == "l":
            self.open_history()
        else:
            return False
        return True
