"""Copy overlay: pick items with letter keys and copy them in one block."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import yaml

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Overlay
from relaycode.exceptions import ClipboardError
from relaycode.logging import get_logger
from relaycode.models.copy import CopyItem
from relaycode.models.domain import FileItem, Transaction
from relaycode.navigation.list_navigator import move_index
from relaycode.screens.base import Controller

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = [
    "CopyController",
    "format_copy_payload",
    "review_copy_items",
    "detail_copy_items",
    "history_copy_items",
    "transaction_yaml",
]

logger = get_logger(__name__)


def format_copy_payload(items: Sequence[CopyItem]) -> str:
    """Join the data of ``items`` as ``--- label ---`` blocks."""
    return "\n\n".join(f"--- {item.label} ---\n{item.get_data()}" for item in items)


def _all_diffs(tx: Transaction) -> str:
    return "\n\n".join(f"// {f.path}\n{f.diff}" for f in tx.files)


def _diff_for(file: FileItem | None) -> str:
    if file is None:
        return "No file selected"
    return f"// {file.path}\n{file.diff}"


def review_copy_items(tx: Transaction, selected: FileItem | None) -> list[CopyItem]:
    return [
        CopyItem("U", "UUID", lambda: tx.id),
        CopyItem("M", "Git Message", lambda: tx.message, selected_by_default=True),
        CopyItem("P", "Prompt", lambda: tx.prompt),
        CopyItem("R", "Reasoning", lambda: tx.reasoning),
        CopyItem(
            "F",
            f"Diff for: {selected.path}" if selected else "Diff for: (none)",
            lambda: _diff_for(selected),
        ),
        CopyItem("A", "All Diffs", lambda: _all_diffs(tx)),
    ]


def detail_copy_items(tx: Transaction, selected: FileItem | None) -> list[CopyItem]:
    return [
        CopyItem("M", "Git Message", lambda: tx.message, selected_by_default=True),
        CopyItem("P", "Prompt", lambda: tx.prompt),
        CopyItem("R", "Reasoning", lambda: tx.reasoning, selected_by_default=True),
        CopyItem("A", "All Diffs", lambda: _all_diffs(tx)),
        CopyItem(
            "F",
            f"Diff for: {selected.path}" if selected else "Diff for: (none)",
            lambda: _diff_for(selected),
        ),
        CopyItem("U", "UUID", lambda: tx.id),
        CopyItem("Y", "Full YAML representation", lambda: transaction_yaml(tx)),
    ]


def history_copy_items(transactions: Sequence[Transaction]) -> list[CopyItem]:
    txs = list(transactions)

    def joined(part: str) -> str:
        return "\n\n".join(getattr(tx, part) for tx in txs)

    return [
        CopyItem("M", "Git Messages", lambda: joined("message"), True),
        CopyItem("P", "Prompts", lambda: joined("prompt")),
        CopyItem("R", "Reasonings", lambda: joined("reasoning")),
        CopyItem("D", "Diffs", lambda: "\n\n".join(_all_diffs(tx) for tx in txs)),
        CopyItem("U", "UUIDs", lambda: "\n".join(tx.id for tx in txs)),
        CopyItem(
            "Y",
            "Full YAML",
            lambda: "\n---\n".join(transaction_yaml(tx) for tx in txs),
        ),
    ]


def transaction_yaml(tx: Transaction) -> str:
    """Render a transaction as a YAML document."""
    data: dict[str, Any] = {
        "id": tx.id,
        "hash": tx.hash,
        "status": tx.status.value,
        "message": tx.message,
        "timestamp": tx.timestamp,
        "prompt": tx.prompt,
        "reasoning": tx.reasoning,
        "files": [
            {
                "id": f.id,
                "path": f.path,
                "type": f.type.value,
                "strategy": f.strategy.value,
                "linesAdded": f.lines_added,
                "linesRemoved": f.lines_removed,
            }
            for f in tx.files
        ],
    }
    if tx.error:
        data["error"] = tx.error
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


class CopyController(Controller):
    """State of the copy overlay.

    Attributes:
        title: Overlay heading.
        items: Items on offer.
        selected: Keys of the selected items.
        cursor: Highlighted row.
        last_copied: Status line after the last copy attempt.
    """

    name = "copy"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.title = ""
        self.items: list[CopyItem] = []
        self.selected: set[str] = set()
        self.cursor = 0
        self.last_copied: str | None = None

    def open(self, title: str, items: Sequence[CopyItem]) -> None:
        self.title = title
        self.items = list(items)
        self.selected = {item.key for item in self.items if item.selected_by_default}
        self.cursor = 0
        self.last_copied = None
        self.ctx.router.open_overlay(Overlay.COPY)

    def close(self) -> None:
        if self.ctx.router.overlay is Overlay.COPY:
            self.ctx.router.close_overlay()

    def move_cursor(self, delta: int) -> None:
        self.cursor = move_index(self.cursor, delta, len(self.items))

    def toggle(self, key: str) -> bool:
        """Toggle the item whose shortcut is ``key`` (case-insensitive)."""
        for item in self.items:
            if item.key.lower() == key.lower():
                self.selected ^= {item.key}
                return True
        return False

    def toggle_cursor(self) -> None:
        if self.items:
            self.toggle(self.items[self.cursor].key)

    def selected_items(self) -> list[CopyItem]:
        return [item for item in self.items if item.key in self.selected]

    def start_copy(self) -> None:
        """Write the selection to the clipboard in the background."""
        self.ctx.tasks.spawn(self.copy_selected(), name="copy")

    async def copy_selected(self) -> str | None:
        """Write the selected items to the clipboard.

        Returns:
            The copied text, or None if nothing was selected or the write
            failed.
        """
        items = self.selected_items()
        if not items:
            self.last_copied = "Nothing selected"
            return None
        payload = format_copy_payload(items)
        try:
            await self.ctx.clipboard.write(payload)
        except ClipboardError as e:
            logger.warning("copy_failed", error=str(e))
            self.last_copied = f"Copy failed: {e}"
            return None
        labels = ", ".join(item.label for item in items)
        self.last_copied = f"Copied {labels} to clipboard."
        logger.info("copy_succeeded", items=[item.key for item in items])
        return payload

    def handle_key(self, key: KeyEvent) -> bool:
        if key.is_key(NamedKey.ESCAPE):
            self.close()
        elif key.is_key(NamedKey.UP):
            self.move_cursor(-1)
        elif key.is_key(NamedKey.DOWN):
            self.move_cursor(1)
        elif key.is_key(NamedKey.SPACE):
            self.toggle_cursor()
        elif key.is_key(NamedKey.ENTER):
            self.start_copy()
        elif key.char:
            return self.toggle(key.char)
        else:
            return False
        return True
