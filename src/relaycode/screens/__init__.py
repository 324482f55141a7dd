"""Screen and overlay controllers.

Each controller holds the state of one screen or overlay and exposes every
key binding as a public method.
"""

from __future__ import annotations

from relaycode.screens.base import Controller
from relaycode.screens.commit import CommitController
from relaycode.screens.copy import CopyController
from relaycode.screens.dashboard import DashboardController, DashboardStatus
from relaycode.screens.debug_log import DebugLogController
from relaycode.screens.debug_menu import DebugMenuController
from relaycode.screens.detail import DetailBodyView, DetailController
from relaycode.screens.help import HelpController
from relaycode.screens.history import HistoryController, HistoryMode
from relaycode.screens.processing import ProcessingController
from relaycode.screens.review import ReviewBodyView, ReviewController
from relaycode.screens.splash import SplashController

__all__ = [
    "CommitController",
    "Controller",
    "CopyController",
    "DashboardController",
    "DashboardStatus",
    "DebugLogController",
    "DebugMenuController",
    "DetailBodyView",
    "DetailController",
    "HelpController",
    "HistoryController",
    "HistoryMode",
    "ProcessingController",
    "ReviewBodyView",
    "ReviewController",
    "SplashController",
]
