"""Application core: routing, input, timers, notifications and the context.

``AppContext`` lives in :mod:`relaycode.app.context` and is imported from
there; it depends on the screen controllers, which depend on this package.
"""

from __future__ import annotations

from relaycode.app.input import KeyEvent, NamedKey, TerminalSize
from relaycode.app.log_store import LogStore
from relaycode.app.notifications import NotificationCenter
from relaycode.app.router import (
    BACK_ACTIONS,
    EXIT,
    Overlay,
    RouteChange,
    Router,
    Screen,
)
from relaycode.app.tasks import TaskRunner
from relaycode.app.timers import AsyncioScheduler, Scheduler, TimerHandle, TimerScope

__all__ = [
    "AsyncioScheduler",
    "BACK_ACTIONS",
    "EXIT",
    "KeyEvent",
    "LogStore",
    "NamedKey",
    "NotificationCenter",
    "Overlay",
    "RouteChange",
    "Router",
    "Scheduler",
    "Screen",
    "TaskRunner",
    "TerminalSize",
    "TimerHandle",
    "TimerScope",
]
