"""Transaction history: tree of transactions and files, filter and bulk actions."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Screen
from relaycode.constants import HISTORY_BULK_ACTIONS
from relaycode.logging import get_logger
from relaycode.models.domain import Transaction
from relaycode.models.enums import TransactionStatus
from relaycode.navigation.tree import (
    NavigationResult,
    NavTree,
    NodeKind,
    PathNavigator,
    TreeNode,
    join_path,
    transaction_file_tree,
)
from relaycode.navigation.viewport import (
    LayoutConfig,
    ViewportState,
    available_height,
)
from relaycode.screens.base import Controller
from relaycode.screens.copy import history_copy_items

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = [
    "HistoryMode",
    "HistoryController",
    "HISTORY_LAYOUT",
    "HISTORY_PRESETS",
    "matches_filter",
]

logger = get_logger(__name__)

#: Header, filter line, status line and footer around the tree
HISTORY_LAYOUT = LayoutConfig(header=2, separators=2, fixed_rows=2, footer=2)

HISTORY_PRESETS = ("l1-drill", "l2-drill", "filter", "copy", "bulk")


class HistoryMode(str, Enum):
    LIST = "LIST"
    FILTER = "FILTER"
    BULK_ACTIONS = "BULK_ACTIONS"


def matches_filter(tx: Transaction, query: str) -> bool:
    """Check a transaction against a filter query.

    The query is split on whitespace and every token must match. A
    ``status:<name>`` token matches the transaction status; any other token
    is a case-insensitive substring of the message, hash, id or a file path.
    """
    for token in query.lower().split():
        if token.startswith("status:"):
            if tx.status.value.lower() != token.removeprefix("status:"):
                return False
            continue
        haystacks = [tx.message, tx.hash, tx.id, *(f.path for f in tx.files)]
        if not any(token in text.lower() for text in haystacks):
            return False
    return True


class HistoryController(Controller):
    """All transactions as an expandable tree.

    Attributes:
        mode: List, filter entry or bulk-action menu.
        filter_query: Applied filter.
        filter_draft: Filter being typed.
        selected_ids: Transactions marked for bulk actions.
        navigator: Focus and expansion over the filtered tree.
    """

    name = "history"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.mode = HistoryMode.LIST
        self.filter_query = ""
        self.filter_draft = ""
        self.selected_ids: set[str] = set()
        self.navigator = PathNavigator(self._tree)
        self._viewport = ViewportState()

    def _tree(self) -> NavTree:
        return transaction_file_tree(self.transactions)

    # -- queries ---------------------------------------------------------

    @property
    def captures_text(self) -> bool:
        return self.mode is HistoryMode.FILTER

    @property
    def transactions(self) -> list[Transaction]:
        """Transactions matching the applied filter, newest first."""
        return [
            tx for tx in self.ctx.store.all() if matches_filter(tx, self.filter_query)
        ]

    @property
    def visible_paths(self) -> list[str]:
        return self.navigator.visible_paths()

    @property
    def viewport(self) -> ViewportState:
        height = available_height(self.ctx.terminal.rows, HISTORY_LAYOUT)
        visible = self.navigator.visible_paths()
        self._viewport = (
            self._viewport.with_item_count(len(visible))
            .with_height(height)
            .with_selection(max(0, self.navigator.focused_index()))
        )
        return self._viewport

    @property
    def focused_transaction(self) -> Transaction | None:
        node = self.navigator.focused_node()
        if node is None:
            return None
        return self.ctx.store.get(self._transaction_id(node))

    def _transaction_id(self, node: TreeNode) -> str:
        if node.kind is NodeKind.TRANSACTION:
            return node.ref or node.path
        parent = self.navigator.tree().parent(node)
        if parent is None:
            return node.path
        return parent.ref or parent.path

    def selected_transactions(self) -> list[Transaction]:
        """Marked transactions that still exist, in display order."""
        return [tx for tx in self.ctx.store.all() if tx.id in self.selected_ids]

    # -- lifecycle -------------------------------------------------------

    def load(self) -> None:
        """Reset to an unfiltered, collapsed list focused on the newest entry."""
        self.mode = HistoryMode.LIST
        self.filter_query = ""
        self.filter_draft = ""
        self.selected_ids.clear()
        self.navigator.reset()

    def apply_preset(self, preset: str) -> bool:
        """Put the screen into a named demo state.

        Returns:
            False for an unknown preset.
        """
        self.load()
        if preset == "l1-drill":
            self.navigator.expand("3")
            self.navigator.focus("3")
        elif preset == "l2-drill":
            self.navigator.expand("3")
            self.navigator.focus(join_path("3", "3-1"))
            self.navigator.detail_open = True
        elif preset == "filter":
            self.start_filter()
            self.filter_draft = "logger.ts"
        elif preset == "copy":
            self.selected_ids = {"3", "6"} & {tx.id for tx in self.ctx.store.all()}
        elif preset == "bulk":
            self.selected_ids = {"3", "6"} & {tx.id for tx in self.ctx.store.all()}
            self.open_bulk_actions()
        else:
            logger.warning("history_unknown_preset", preset=preset)
            return False
        return True

    # -- navigation ------------------------------------------------------

    def navigate_up(self) -> NavigationResult:
        return self.navigator.navigate_up()

    def navigate_down(self) -> NavigationResult:
        return self.navigator.navigate_down()

    def page(self, direction: int) -> NavigationResult:
        size = self.viewport.viewport_height
        if direction < 0:
            return self.navigator.page_up(size)
        return self.navigator.page_down(size)

    def expand_or_drill_down(self) -> NavigationResult:
        return self.navigator.expand_or_drill_down()

    def collapse_or_bubble_up(self) -> NavigationResult:
        return self.navigator.collapse_or_bubble_up()

    def open_detail(self) -> bool:
        """Open the detail screen for the focused transaction or file."""
        node = self.navigator.focused_node()
        tx = self.focused_transaction
        if node is None or tx is None:
            return False
        self.ctx.detail.load(tx.id)
        if node.kind is NodeKind.FILE and node.ref is not None:
            self.ctx.detail.focus_file(node.ref, open_diff=True)
        self.ctx.router.show(Screen.TRANSACTION_DETAIL)
        return True

    # -- filter ----------------------------------------------------------

    def start_filter(self) -> None:
        self.mode = HistoryMode.FILTER
        self.filter_draft = self.filter_query

    def type_filter(self, text: str) -> None:
        self.filter_draft += text

    def delete_filter_char(self) -> None:
        self.filter_draft = self.filter_draft[:-1]

    def apply_filter(self) -> None:
        self.filter_query = self.filter_draft.strip()
        self.mode = HistoryMode.LIST
        self.navigator.ensure_focus_visible()
        logger.info("history_filter_applied", query=self.filter_query)

    def cancel_filter(self) -> None:
        self.filter_draft = self.filter_query
        self.mode = HistoryMode.LIST

    # -- selection and bulk actions --------------------------------------

    def toggle_selection(self) -> bool:
        tx = self.focused_transaction
        if tx is None:
            return False
        self.selected_ids ^= {tx.id}
        return True

    def open_bulk_actions(self) -> bool:
        if not self.selected_transactions():
            return False
        self.mode = HistoryMode.BULK_ACTIONS
        return True

    def close_bulk_actions(self) -> None:
        self.mode = HistoryMode.LIST

    def execute_bulk_action(self, option: int) -> int:
        """Run a bulk action over the transactions selected right now.

        Args:
            option: 1 revert, 2 mark committed, 3 delete.

        Returns:
            Number of transactions affected.
        """
        self.mode = HistoryMode.LIST
        targets = [tx.id for tx in self.selected_transactions()]
        if option not in (1, 2, 3) or not targets:
            return 0
        logger.info("history_bulk_action", option=option, transactions=targets)
        if option == 3:
            count = self.ctx.store.remove(targets)
        else:
            status = TransactionStatus.COMMITTED
            if option == 1:
                status = TransactionStatus.REVERTED
            count = sum(
                self.ctx.store.update_status(tx_id, status) is not None
                for tx_id in targets
            )
        self.selected_ids.clear()
        self.navigator.ensure_focus_visible()
        return count

    def open_copy_mode(self) -> bool:
        """Copy from the marked transactions, or the focused one if none."""
        txs = self.selected_transactions()
        if not txs:
            focused = self.focused_transaction
            txs = [focused] if focused is not None else []
        if not txs:
            return False
        self.ctx.copy.open(
            f"Select data to copy from {len(txs)} transactions:",
            history_copy_items(txs),
        )
        return True

    # -- keys ------------------------------------------------------------

    def handle_key(self, key: KeyEvent) -> bool:
        if self.mode is HistoryMode.FILTER:
            if key.is_key(NamedKey.ENTER):
                self.apply_filter()
            elif key.is_key(NamedKey.ESCAPE):
                self.cancel_filter()
            elif key.is_key(NamedKey.BACKSPACE):
                self.delete_filter_char()
            elif key.char and not key.ctrl:
                self.type_filter(key.char)
            return True

        if self.mode is HistoryMode.BULK_ACTIONS:
            choices = len(HISTORY_BULK_ACTIONS) - 1
            if key.is_key(NamedKey.ESCAPE):
                self.close_bulk_actions()
            elif key.digit is not None and 1 <= key.digit <= choices:
                self.execute_bulk_action(key.digit)
            return True

        if key.is_key(NamedKey.UP):
            self.navigate_up()
        elif key.is_key(NamedKey.DOWN):
            self.navigate_down()
        elif key.is_key(NamedKey.PAGE_UP):
            self.page(-1)
        elif key.is_key(NamedKey.PAGE_DOWN):
            self.page(1)
        elif key.is_key(NamedKey.RIGHT):
            self.expand_or_drill_down()
        elif key.is_key(NamedKey.LEFT):
            self.collapse_or_bubble_up()
        elif key.is_key(NamedKey.SPACE):
            self.toggle_selection()
        elif key.is_key(NamedKey.ENTER):
            node = self.navigator.focused_node()
            if node is not None and node.kind is NodeKind.TRANSACTION:
                self.open_detail()
            else:
                self.expand_or_drill_down()
        elif key.letter == "f":
            self.start_filter()
        elif key.letter == "b":
            self.open_bulk_actions()
        elif key.letter == "c":
            self.open_copy_mode()
        else:
            return False
        return True
