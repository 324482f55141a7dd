"""Debug log overlay with a filter and a clipboard-watcher simulator."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Overlay
from relaycode.models.log import LogEntry
from relaycode.navigation.viewport import (
    ContentViewport,
    LayoutConfig,
    available_height,
)
from relaycode.screens.base import Controller

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = ["DebugLogController", "DEBUG_LOG_LAYOUT"]

#: Title, filter line, borders and footer around the entries
DEBUG_LOG_LAYOUT = LayoutConfig(header=2, separators=2, fixed_rows=2, footer=2)


class DebugLogController(Controller):
    """Scrollable, filterable view of the in-app log.

    While the overlay is open a simulator appends clipboard-watcher messages
    every ``config.logs.simulator_interval`` seconds.

    Attributes:
        filtering: Whether the filter line has focus.
        filter_query: Current filter text.
        content: Scroll position within the filtered entries.
    """

    name = "debug_log"

    def __init__(self, ctx: AppContext, rng: random.Random | None = None) -> None:
        super().__init__(ctx)
        self.filtering = False
        self.filter_query = ""
        self.content = ContentViewport()
        self._rng = rng or random.Random()

    @property
    def captures_text(self) -> bool:
        return self.filtering

    @property
    def entries(self) -> list[LogEntry]:
        return self.ctx.log_store.filter(self.filter_query)

    @property
    def visible_entries(self) -> list[LogEntry]:
        self._sync()
        entries = self.entries
        start = self.content.scroll_index
        return entries[start : start + self.content.height]

    def _sync(self) -> None:
        height = available_height(self.ctx.terminal.rows, DEBUG_LOG_LAYOUT)
        self.content.line_count = len(self.entries)
        self.content.resize(height)

    # -- simulator -------------------------------------------------------

    def on_enter(self) -> None:
        super().on_enter()
        self.filtering = False
        self.content.set_content(len(self.entries))
        log = self.ctx.log_store
        log.info("Log simulator started.")
        log.debug("Initializing clipboard watcher...")
        self.timers.call_later(0.25, lambda: log.info("Clipboard watcher active."))
        self.timers.call_every(self.ctx.config.logs.simulator_interval, self.simulate)

    def on_exit(self) -> None:
        if self.active:
            self.ctx.log_store.info("Log simulator stopped.")
        super().on_exit()

    def simulate(self) -> None:
        """Append one simulated clipboard-watcher message."""
        roll = self._rng.random()
        log = self.ctx.log_store
        if roll < 0.6:
            log.debug("Clipboard watcher polling...")
        elif roll < 0.8:
            log.debug("No clipboard change detected.")
        else:
            log.info("Clipboard content changed.")

    # -- actions ---------------------------------------------------------

    def start_filter(self) -> None:
        self.filtering = True

    def stop_filter(self) -> None:
        self.filtering = False
        self.content.set_content(len(self.entries))

    def type_filter(self, text: str) -> None:
        self.filter_query += text
        self.content.set_content(len(self.entries))

    def delete_filter_char(self) -> None:
        self.filter_query = self.filter_query[:-1]
        self.content.set_content(len(self.entries))

    def clear(self) -> None:
        self.ctx.log_store.clear()
        self.content.set_content(0)

    def close(self) -> None:
        if self.ctx.router.overlay is Overlay.LOG:
            self.ctx.router.close_overlay()

    def handle_key(self, key: KeyEvent) -> bool:
        if self.filtering:
            if key.is_key(NamedKey.ENTER) or key.is_key(NamedKey.ESCAPE):
                self.stop_filter()
            elif key.is_key(NamedKey.BACKSPACE):
                self.delete_filter_char()
            elif key.char and not key.ctrl:
                self.type_filter(key.char)
            return True

        self._sync()
        if key.is_key(NamedKey.ESCAPE):
            self.close()
        elif key.is_key(NamedKey.UP):
            self.content.scroll_up()
        elif key.is_key(NamedKey.DOWN):
            self.content.scroll_down()
        elif key.is_key(NamedKey.PAGE_UP):
            self.content.page_up()
        elif key.is_key(NamedKey.PAGE_DOWN):
            self.content.page_down()
        elif key.letter == "f":
            self.start_filter()
        elif key.letter == "c":
            self.clear()
        return True
