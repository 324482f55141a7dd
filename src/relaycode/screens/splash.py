from __future__ import annotations

from relaycode.app.input import KeyEvent
from relaycode.app.router import Screen
from relaycode.screens.base import Controller

__all__ = ["SplashController"]


class SplashController(Controller):
    """Start-up screen that advances to the dashboard on a timer or any key."""

    name = "splash"

    def on_enter(self) -> None:
        super().on_enter()
        self.timers.call_later(self.ctx.config.splash.duration, self.finish)

    def finish(self) -> None:
        if self.ctx.router.screen is Screen.SPLASH:
            self.ctx.router.show(Screen.DASHBOARD)

    def handle_key(self, key: KeyEvent) -> bool:
        self.finish()
        return True
