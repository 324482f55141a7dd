"""Base class for screen and overlay controllers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent
from relaycode.app.timers import TimerScope
from relaycode.logging import get_logger

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = ["Controller"]

logger = get_logger(__name__)


class Controller:
    """State and key handling for one screen or overlay.

    Every key binding calls a public method, so anything reachable by key is
    also reachable by a direct call. Timers are registered on :attr:`timers`,
    which is opened on enter and closed on exit.

    Attributes:
        name: Short name used in log events and timer scopes.
    """

    name = "controller"

    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx
        self.timers = TimerScope(ctx.scheduler, name=self.name)
        self.timers.close()

    @property
    def active(self) -> bool:
        return not self.timers.closed

    @property
    def captures_text(self) -> bool:
        """True while the controller wants every printable key (text entry)."""
        return False

    def on_enter(self) -> None:
        self.timers.close()
        self.timers = TimerScope(self.ctx.scheduler, name=self.name)
        logger.debug("controller_entered", controller=self.name)

    def on_exit(self) -> None:
        self.timers.close()
        logger.debug("controller_exited", controller=self.name)

    def on_resize(self) -> None:
        """Called after the terminal size changed."""

    def handle_key(self, key: KeyEvent) -> bool:
        """Handle a key press.

        Returns:
            True if the key was consumed.
        """
        return False
