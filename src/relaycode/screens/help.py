"""Help overlay."""

from __future__ import annotations

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Overlay
from relaycode.screens.base import Controller

__all__ = ["HelpController", "HELP_SECTIONS"]

HELP_SECTIONS: dict[str, list[tuple[str, str]]] = {
    "Global": [
        ("?", "Toggle this help screen"),
        ("q", "Back / quit"),
        ("Ctrl+B", "Toggle debug menu"),
        ("Ctrl+L", "Toggle debug log"),
    ],
    "Dashboard": [
        ("↑↓ PgUp/PgDn", "Navigate transactions"),
        ("→/Enter", "Expand, then open"),
        ("P", "Pause/resume clipboard watcher"),
        ("A", "Approve all pending"),
        ("C", "Commit applied transactions"),
        ("L", "Open transaction history"),
    ],
    "Review": [
        ("Space", "Toggle approve/reject for a file"),
        ("D/Enter", "View diff or details"),
        ("R", "Show reasoning"),
        ("Shift+R", "Reject all approved files"),
        ("T / Shift+T", "Repair file / bulk repair"),
        ("I / Shift+I", "Re-instruct file / bulk re-instruct"),
        ("C", "Copy mode"),
        ("A", "Approve transaction"),
        ("1/2", "Simulate successful / failed apply"),
    ],
    "Detail & History": [
        ("→/Enter", "Expand or drill down"),
        ("←/Esc", "Collapse or go up"),
        ("Space", "Select transaction (history)"),
        ("F", "Filter (history)"),
        ("B", "Bulk actions (history)"),
        ("U", "Revert transaction (detail)"),
        ("C", "Copy mode"),
    ],
}


class HelpController(Controller):
    name = "help"

    def close(self) -> None:
        if self.ctx.router.overlay is Overlay.HELP:
            self.ctx.router.close_overlay()

    def handle_key(self, key: KeyEvent) -> bool:
        if key.is_key(NamedKey.ESCAPE) or key.char == "?":
            self.close()
        return True
