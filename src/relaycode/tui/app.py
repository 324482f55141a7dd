"""Relaycode TUI application.

This module provides RelaycodeApp, a thin Textual shell around
:class:`~relaycode.app.context.AppContext`. Textual only delivers key and
resize events and redraws one widget; every decision is made by the context
and its controllers.
"""

from __future__ import annotations

from textual import events
from textual.app import App, ComposeResult
from textual.css.query import NoMatches
from textual.widgets import Static

from relaycode.app.context import AppContext
from relaycode.app.input import KeyEvent, TerminalSize
from relaycode.config import RelaycodeConfig
from relaycode.logging import get_logger
from relaycode.tui.logging_handler import configure_tui_logging
from relaycode.tui.render import render_app

__all__ = ["RelaycodeApp", "REFRESH_INTERVAL"]

logger = get_logger(__name__)

#: Seconds between redraws
REFRESH_INTERVAL = 0.1


class RelaycodeApp(App[None]):
    """Relaycode terminal user interface.

    Args:
        config: Loaded configuration.
        ctx: Prebuilt context. Built from ``config`` when omitted.
    """

    TITLE = "Relaycode"

    # Minimum terminal size requirements
    MIN_WIDTH = 40
    MIN_HEIGHT = 12

    CSS = """
    #frame {
        width: 100%;
        height: 100%;
        padding: 0 1;
    }
    """

    def __init__(
        self, config: RelaycodeConfig | None = None, ctx: AppContext | None = None
    ) -> None:
        super().__init__()
        self._config = config or RelaycodeConfig()
        self._ctx = ctx

    @property
    def ctx(self) -> AppContext:
        if self._ctx is None:
            self._ctx = AppContext(self._config)
        return self._ctx

    def compose(self) -> ComposeResult:
        yield Static(id="frame")

    async def on_mount(self) -> None:
        """Start the context once the event loop is running."""
        ctx = self.ctx
        configure_tui_logging(ctx.log_store)
        ctx.resize(self._terminal_size())
        ctx.start()
        self.set_interval(REFRESH_INTERVAL, self._refresh_frame)
        self._refresh_frame()

    async def on_unmount(self) -> None:
        await self.ctx.shutdown()

    def on_key(self, event: events.Key) -> None:
        """Hand every key press to the context."""
        event.stop()
        event.prevent_default()
        self.ctx.dispatch(KeyEvent.from_textual(event))
        self._refresh_frame()

    def on_resize(self, event: events.Resize) -> None:
        self.ctx.resize(
            TerminalSize(columns=event.size.width, rows=event.size.height)
        )
        self._refresh_frame()

    def _terminal_size(self) -> TerminalSize:
        width = max(self.size.width, self.MIN_WIDTH)
        height = max(self.size.height, self.MIN_HEIGHT)
        return TerminalSize(columns=width, rows=height)

    def _refresh_frame(self) -> None:
        if self.ctx.router.exit_requested:
            logger.info("tui_exit")
            self.exit()
            return
        try:
            frame = self.query_one("#frame", Static)
        except NoMatches:
            # Widget not yet mounted
            return
        frame.update(render_app(self.ctx))
