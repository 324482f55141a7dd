"""Application context: owns shared state and dispatches input.

``AppContext`` is the single object the TUI talks to. It owns the
transaction store, router, notification center, log store and one controller
per screen and overlay, and routes every key press to whichever of them
should see it. Nothing here depends on Textual, so the whole application can
be driven from tests with :meth:`AppContext.press`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from relaycode.app.input import KeyEvent, TerminalSize
from relaycode.app.log_store import LogStore
from relaycode.app.notifications import NotificationCenter
from relaycode.app.router import Overlay, RouteChange, Router, Screen
from relaycode.app.tasks import TaskRunner
from relaycode.app.timers import AsyncioScheduler, Scheduler
from relaycode.config import RelaycodeConfig
from relaycode.logging import get_logger
from relaycode.models.notification import Notification
from relaycode.screens.base import Controller
from relaycode.screens.commit import CommitController
from relaycode.screens.copy import CopyController
from relaycode.screens.dashboard import DashboardController
from relaycode.screens.debug_log import DebugLogController
from relaycode.screens.debug_menu import DebugMenuController
from relaycode.screens.detail import DetailController
from relaycode.screens.help import HelpController
from relaycode.screens.history import HistoryController
from relaycode.screens.processing import ProcessingController
from relaycode.screens.review import ReviewController
from relaycode.screens.splash import SplashController
from relaycode.services.clipboard import MemoryClipboard, SystemClipboard
from relaycode.services.fixtures import load_all_transactions
from relaycode.services.git import SimulatedGitService
from relaycode.services.patch import (
    PatchEngineFactory,
    simulated_patch_engine_factory,
)
from relaycode.services.protocols import ClipboardService, GitService, ScriptRunner
from relaycode.services.scripts import SimulatedScriptRunner
from relaycode.services.transactions import TransactionStore

__all__ = ["AppContext", "Sleep"]

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class AppContext:
    """Everything the running application shares.

    Args:
        config: Loaded configuration.
        store: Transaction store. Defaults to the demo transactions.
        clipboard: Clipboard collaborator. Defaults to the backend named in
            ``config.clipboard``.
        patch_engine_factory: Builds a patch engine per apply run.
        git: Git collaborator.
        script_runner: Runs post-commands and linters.
        scheduler: Arms timers. Defaults to the running event loop.
        sleep: Awaitable delay used by simulated work.

    Example:
        ```python
        ctx = AppContext(RelaycodeConfig(), clipboard=MemoryClipboard())
        ctx.start()
        ctx.press("enter")
        ```
    """

    def __init__(
        self,
        config: RelaycodeConfig,
        *,
        store: TransactionStore | None = None,
        clipboard: ClipboardService | None = None,
        patch_engine_factory: PatchEngineFactory | None = None,
        git: GitService | None = None,
        script_runner: ScriptRunner | None = None,
        scheduler: Scheduler | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        if store is None:
            store = TransactionStore(load_all_transactions())
        self.store = store
        self.clipboard = clipboard or self._default_clipboard(config)
        self.patch_engine_factory = patch_engine_factory or (
            simulated_patch_engine_factory(
                reapply_success_rate=config.apply.reapply_success_rate,
                seed=config.apply.seed,
            )
        )
        self.git = git or SimulatedGitService()
        self.script_runner = script_runner or SimulatedScriptRunner(
            delay=config.apply.script_delay
        )
        self.scheduler = scheduler or AsyncioScheduler()
        self.sleep = sleep
        self.terminal = TerminalSize(config.terminal.columns, config.terminal.rows)

        self.router = Router()
        self.log_store = LogStore(config.logs.max_entries)
        self.tasks = TaskRunner()
        self.notifications = NotificationCenter(
            self.router, self.scheduler, config.notifications.duration
        )

        self.splash = SplashController(self)
        self.dashboard = DashboardController(self)
        self.review = ReviewController(self)
        self.processing = ProcessingController(self)
        self.commit = CommitController(self)
        self.detail = DetailController(self)
        self.history = HistoryController(self)
        self.copy = CopyController(self)
        self.debug_log = DebugLogController(self)
        self.debug_menu = DebugMenuController(self)
        self.help = HelpController(self)

        self._screens: dict[Screen, Controller] = {
            Screen.SPLASH: self.splash,
            Screen.DASHBOARD: self.dashboard,
            Screen.REVIEW: self.review,
            Screen.REVIEW_PROCESSING: self.processing,
            Screen.GIT_COMMIT: self.commit,
            Screen.TRANSACTION_DETAIL: self.detail,
            Screen.TRANSACTION_HISTORY: self.history,
        }
        self._overlays: dict[Overlay, Controller] = {
            Overlay.HELP: self.help,
            Overlay.COPY: self.copy,
            Overlay.LOG: self.debug_log,
            Overlay.DEBUG: self.debug_menu,
        }
        self.router.subscribe(self._on_route_change)

    @staticmethod
    def _default_clipboard(config: RelaycodeConfig) -> ClipboardService:
        if config.clipboard.backend == "memory":
            return MemoryClipboard()
        return SystemClipboard(timeout=config.clipboard.timeout)

    # -- routing ---------------------------------------------------------

    @property
    def screen_controller(self) -> Controller:
        return self._screens[self.router.screen]

    @property
    def overlay_controller(self) -> Controller | None:
        return self._overlays.get(self.router.overlay)

    def start(self) -> None:
        """Enter the initial screen (arms the splash timer)."""
        logger.info("app_started", screen=self.router.screen.value)
        self.screen_controller.on_enter()

    def _on_route_change(self, change: RouteChange) -> None:
        if change.previous_overlay is not change.overlay:
            previous = self._overlays.get(change.previous_overlay)
            if previous is not None:
                previous.on_exit()
            if change.previous_overlay is Overlay.NOTIFICATION:
                self.notifications.on_overlay_closed()
        if change.previous_screen is not change.screen:
            self._screens[change.previous_screen].on_exit()
            self._screens[change.screen].on_enter()
        if change.previous_overlay is not change.overlay:
            current = self._overlays.get(change.overlay)
            if current is not None:
                current.on_enter()

    def notify(self, notification: Notification) -> None:
        self.notifications.show(notification)

    # -- input -----------------------------------------------------------

    def dispatch(self, key: KeyEvent) -> bool:
        """Route one key press.

        Priority: debug-menu and log toggles, the open overlay, a screen that
        is capturing text, the help toggle, the back action, then the screen.

        Returns:
            True if something consumed the key.
        """
        if key.is_ctrl("b"):
            self.router.toggle_overlay(Overlay.DEBUG)
            return True
        if key.is_ctrl("l"):
            self.router.toggle_overlay(Overlay.LOG)
            return True

        overlay = self.router.overlay
        if overlay is Overlay.NOTIFICATION:
            return self.notifications.handle_key(key)
        controller = self.overlay_controller
        if controller is not None:
            return controller.handle_key(key)

        screen = self.screen_controller
        if screen.captures_text:
            return screen.handle_key(key)
        if key.char == "?":
            self.router.toggle_overlay(Overlay.HELP)
            return True
        if key.letter == "q" and not key.ctrl:
            self.router.back()
            return True
        return screen.handle_key(key)

    def press(self, *keys: str) -> None:
        """Dispatch keys given as specs (``"up"``, ``"shift+t"``, ``"ctrl+b"``)."""
        for spec in keys:
            self.dispatch(KeyEvent.parse(spec))

    def resize(self, size: TerminalSize) -> None:
        self.terminal = size
        self.screen_controller.on_resize()
        overlay = self.overlay_controller
        if overlay is not None:
            overlay.on_resize()

    async def shutdown(self) -> None:
        """Close timers and cancel outstanding work."""
        self.screen_controller.on_exit()
        overlay = self.overlay_controller
        if overlay is not None:
            overlay.on_exit()
        self.notifications.on_overlay_closed()
        self.review.cancel_apply()
        self.tasks.cancel_all()
        await self.tasks.drain()
        logger.info("app_stopped")
