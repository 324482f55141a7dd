"""Screen and overlay routing.

The router holds which screen is shown and which overlay (at most one) is
open on top of it. It never terminates the process: a back action that maps
to EXIT only sets :attr:`Router.exit_requested`, and the TUI decides what to
do with it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Final, Literal

from relaycode.logging import get_logger

__all__ = [
    "Screen",
    "Overlay",
    "EXIT",
    "BACK_ACTIONS",
    "RouteChange",
    "Router",
]

logger = get_logger(__name__)


class Screen(str, Enum):
    """Top-level screens."""

    SPLASH = "SPLASH"
    DASHBOARD = "DASHBOARD"
    REVIEW = "REVIEW"
    REVIEW_PROCESSING = "REVIEW_PROCESSING"
    GIT_COMMIT = "GIT_COMMIT"
    TRANSACTION_DETAIL = "TRANSACTION_DETAIL"
    TRANSACTION_HISTORY = "TRANSACTION_HISTORY"


class Overlay(str, Enum):
    """Modal layers drawn over the current screen."""

    NONE = "NONE"
    HELP = "HELP"
    COPY = "COPY"
    LOG = "LOG"
    DEBUG = "DEBUG"
    NOTIFICATION = "NOTIFICATION"


EXIT: Final = "EXIT"

BackTarget = Screen | Literal["EXIT"]

#: Where the back action ("q") leads from each screen
BACK_ACTIONS: Final[dict[Screen, BackTarget]] = {
    Screen.SPLASH: EXIT,
    Screen.DASHBOARD: EXIT,
    Screen.REVIEW: Screen.DASHBOARD,
    Screen.REVIEW_PROCESSING: Screen.DASHBOARD,
    Screen.GIT_COMMIT: Screen.DASHBOARD,
    Screen.TRANSACTION_DETAIL: Screen.DASHBOARD,
    Screen.TRANSACTION_HISTORY: Screen.DASHBOARD,
}


@dataclass(frozen=True, slots=True)
class RouteChange:
    """Screen/overlay pair before and after a routing change."""

    previous_screen: Screen
    screen: Screen
    previous_overlay: Overlay
    overlay: Overlay


RouteListener = Callable[[RouteChange], None]


class Router:
    """Current screen and overlay, with change notification.

    Args:
        initial: Screen shown at start-up.
    """

    def __init__(self, initial: Screen = Screen.SPLASH) -> None:
        self._screen = initial
        self._overlay = Overlay.NONE
        self._listeners: list[RouteListener] = []
        self.exit_requested = False

    @property
    def screen(self) -> Screen:
        return self._screen

    @property
    def overlay(self) -> Overlay:
        return self._overlay

    def subscribe(self, listener: RouteListener) -> None:
        self._listeners.append(listener)

    def show(self, screen: Screen) -> None:
        """Switch screens. Any open overlay is closed."""
        self._change(screen, Overlay.NONE)

    def open_overlay(self, overlay: Overlay) -> None:
        """Open ``overlay``, replacing whichever overlay was open."""
        self._change(self._screen, overlay)

    def close_overlay(self) -> None:
        self._change(self._screen, Overlay.NONE)

    def toggle_overlay(self, overlay: Overlay) -> None:
        if self._overlay is overlay:
            self.close_overlay()
        else:
            self.open_overlay(overlay)

    def back(self) -> BackTarget:
        """Follow the back action of the current screen.

        Returns:
            The screen navigated to, or EXIT.
        """
        target = BACK_ACTIONS[self._screen]
        if target == EXIT:
            self.request_exit()
        else:
            self.show(Screen(target))
        return target

    def request_exit(self) -> None:
        logger.info("exit_requested", screen=self._screen.value)
        self.exit_requested = True

    def _change(self, screen: Screen, overlay: Overlay) -> None:
        if screen is self._screen and overlay is self._overlay:
            return
        change = RouteChange(
            previous_screen=self._screen,
            screen=screen,
            previous_overlay=self._overlay,
            overlay=overlay,
        )
        self._screen = screen
        self._overlay = overlay
        logger.debug(
            "route_changed",
            screen=screen.value,
            overlay=overlay.value,
            previous_screen=change.previous_screen.value,
        )
        for listener in self._listeners:
            listener(change)
