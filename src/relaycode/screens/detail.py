"""Transaction detail screen: section tree, body panels and revert."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.logging import get_logger
from relaycode.models.domain import FileItem, Transaction
from relaycode.models.enums import TransactionStatus
from relaycode.navigation.tree import (
    SECTION_FILES,
    SECTION_PROMPT,
    SECTION_REASONING,
    NavigationResult,
    NavTree,
    NodeKind,
    PathNavigator,
    TreeBuilder,
    join_path,
    transaction_section_tree,
)
from relaycode.navigation.viewport import (
    ContentViewport,
    LayoutConfig,
    available_height,
)
from relaycode.screens.base import Controller
from relaycode.screens.copy import detail_copy_items

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = ["DetailBodyView", "DetailController", "DETAIL_BODY_LAYOUT"]

logger = get_logger(__name__)

#: Header, summary block, section rows and footer around the body panel
DETAIL_BODY_LAYOUT = LayoutConfig(header=2, separators=2, fixed_rows=7, footer=2)


class DetailBodyView(str, Enum):
    NONE = "none"
    PROMPT = "prompt"
    REASONING = "reasoning"
    FILES_LIST = "files_list"
    DIFF_VIEW = "diff_view"
    REVERT_CONFIRM = "revert_confirm"


class DetailController(Controller):
    """Details of one non-pending transaction.

    The focused section and the open/closed state of its detail decide which
    body panel is shown; see :attr:`body_view`.

    Attributes:
        transaction_id: Transaction shown.
        navigator: Focus and expansion over the section tree.
        confirming_revert: Whether the revert confirmation is open.
        content: Scroll position of the body panel.
    """

    name = "detail"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.transaction_id: str | None = None
        self.navigator = PathNavigator(self._tree)
        self.confirming_revert = False
        self.content = ContentViewport()

    def _tree(self) -> NavTree:
        tx = self.transaction
        if tx is None:
            return TreeBuilder().build()
        return transaction_section_tree(tx)

    def load(
        self,
        transaction_id: str,
        *,
        focused_path: str | None = None,
        expanded: frozenset[str] = frozenset(),
        detail_open: bool = False,
    ) -> bool:
        """Show ``transaction_id``, optionally with a pre-set focus.

        Returns:
            False if the transaction does not exist.
        """
        if self.ctx.store.get(transaction_id) is None:
            logger.warning("detail_unknown_transaction", transaction_id=transaction_id)
            return False
        self.transaction_id = transaction_id
        self.confirming_revert = False
        self.navigator.reset(focused_path)
        for path in sorted(expanded):
            self.navigator.expand(path)
        if focused_path is not None:
            self.navigator.focus(focused_path)
        self.navigator.detail_open = detail_open
        self.navigator.ensure_focus_visible()
        self._reset_content()
        return True

    # -- queries ---------------------------------------------------------

    @property
    def transaction(self) -> Transaction | None:
        if self.transaction_id is None:
            return None
        return self.ctx.store.get(self.transaction_id)

    @property
    def focused_file(self) -> FileItem | None:
        node = self.navigator.focused_node()
        tx = self.transaction
        if node is None or tx is None or node.kind is not NodeKind.FILE:
            return None
        return tx.file(node.ref or "")

    @property
    def body_view(self) -> DetailBodyView:
        if self.confirming_revert:
            return DetailBodyView.REVERT_CONFIRM
        node = self.navigator.focused_node()
        if node is None:
            return DetailBodyView.NONE
        detail_open = self.navigator.detail_open
        if node.path == SECTION_PROMPT and detail_open:
            return DetailBodyView.PROMPT
        if node.path == SECTION_REASONING and detail_open:
            return DetailBodyView.REASONING
        if node.kind is NodeKind.FILE:
            if detail_open:
                return DetailBodyView.DIFF_VIEW
            return DetailBodyView.FILES_LIST
        if node.path == SECTION_FILES and SECTION_FILES in self.navigator.expanded:
            return DetailBodyView.FILES_LIST
        return DetailBodyView.NONE

    @property
    def body_height(self) -> int:
        return available_height(self.ctx.terminal.rows, DETAIL_BODY_LAYOUT)

    def body_lines(self) -> list[str]:
        tx = self.transaction
        if tx is None:
            return []
        view = self.body_view
        if view is DetailBodyView.PROMPT:
            return tx.prompt.splitlines()
        if view is DetailBodyView.REASONING:
            return tx.reasoning.splitlines()
        if view is DetailBodyView.DIFF_VIEW:
            file = self.focused_file
            return file.diff_lines if file else []
        return []

    # -- actions ---------------------------------------------------------

    def navigate_up(self) -> NavigationResult:
        return self._after(self.navigator.navigate_up())

    def navigate_down(self) -> NavigationResult:
        return self._after(self.navigator.navigate_down())

    def expand_or_drill_down(self) -> NavigationResult:
        return self._after(self.navigator.expand_or_drill_down())

    def collapse_or_bubble_up(self) -> NavigationResult:
        return self._after(self.navigator.collapse_or_bubble_up())

    def focus_file(self, file_id: str, *, open_diff: bool = False) -> bool:
        """Expand the files section and focus one file."""
        self.navigator.expand(SECTION_FILES)
        if not self.navigator.focus(join_path(SECTION_FILES, file_id)):
            return False
        self.navigator.detail_open = open_diff
        self._reset_content()
        return True

    def toggle_revert_confirm(self) -> None:
        self.confirming_revert = not self.confirming_revert

    def confirm_revert(self) -> bool:
        """Mark the transaction REVERTED."""
        tx = self.transaction
        self.confirming_revert = False
        if tx is None:
            return False
        if tx.status is TransactionStatus.REVERTED:
            logger.debug("detail_revert_ignored", transaction_id=tx.id)
            return False
        self.ctx.store.update_status(tx.id, TransactionStatus.REVERTED)
        return True

    def open_copy_mode(self) -> bool:
        tx = self.transaction
        if tx is None:
            return False
        self.ctx.copy.open(
            f"Select data to copy from transaction {tx.hash}:",
            detail_copy_items(tx, self.focused_file),
        )
        return True

    def on_resize(self) -> None:
        self.content.resize(self.body_height)

    def _after(self, result: NavigationResult) -> NavigationResult:
        if result is not NavigationResult.NOOP:
            self._reset_content()
        return result

    def _reset_content(self) -> None:
        self.content.set_content(len(self.body_lines()), self.body_height)

    # -- keys ------------------------------------------------------------

    def handle_key(self, key: KeyEvent) -> bool:
        if self.confirming_revert:
            if key.is_key(NamedKey.ENTER):
                self.confirm_revert()
            elif key.is_key(NamedKey.ESCAPE):
                self.toggle_revert_confirm()
            return True

        if key.is_key(NamedKey.UP):
            self.navigate_up()
        elif key.is_key(NamedKey.DOWN):
            self.navigate_down()
        elif key.is_key(NamedKey.PAGE_UP):
            self.content.page_up()
        elif key.is_key(NamedKey.PAGE_DOWN):
            self.content.page_down()
        elif key.is_key(NamedKey.ENTER) or key.is_key(NamedKey.RIGHT):
            self.expand_or_drill_down()
        elif key.is_key(NamedKey.ESCAPE) or key.is_key(NamedKey.LEFT):
            self.collapse_or_bubble_up()
        elif key.letter == "u":
            self.toggle_revert_confirm()
        elif key.letter == "c":
            self.open_copy_mode()
        else:
            return False
        return True
