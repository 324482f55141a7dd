"""Timer scheduling scoped to a screen's lifetime.

Controllers never call ``loop.call_later`` directly. They register timers on
a :class:`TimerScope` opened when the screen is entered and closed when it is
left, so no timer outlives the screen that armed it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol

from relaycode.logging import get_logger

__all__ = ["TimerHandle", "Scheduler", "AsyncioScheduler", "TimerScope"]

logger = get_logger(__name__)

Callback = Callable[[], None]


class TimerHandle(Protocol):
    """Something that can be cancelled; ``asyncio.TimerHandle`` qualifies."""

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Arms one-shot callbacks."""

    def call_later(self, delay: float, callback: Callback) -> TimerHandle: ...


class AsyncioScheduler:
    """Scheduler backed by the running event loop."""

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class _Repeating:
    """A callback re-armed after every run until cancelled."""

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callback):
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle = scheduler.call_later(interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._handle = self._scheduler.call_later(self._interval, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()


class TimerScope:
    """A set of timers disarmed together.

    Args:
        scheduler: Underlying scheduler.
        name: Owner name used in log events.

    Example:
        ```python
        with TimerScope(scheduler, name="splash") as timers:
            timers.call_later(3.0, finish)
        ```
    """

    def __init__(self, scheduler: Scheduler, name: str = "") -> None:
        self._scheduler = scheduler
        self._name = name
        self._handles: set[TimerHandle] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active(self) -> int:
        return len(self._handles)

    def call_later(self, delay: float, callback: Callback) -> TimerHandle | None:
        """Run ``callback`` once after ``delay`` seconds.

        Returns:
            The handle, or None if the scope is already closed.
        """
        if self._closed:
            logger.debug("timer_scope_closed", scope=self._name)
            return None
        handle: TimerHandle | None = None

        def fire() -> None:
            self._handles.discard(handle)  # type: ignore[arg-type]
            callback()

        handle = self._scheduler.call_later(delay, fire)
        self._handles.add(handle)
        return handle

    def call_every(self, interval: float, callback: Callback) -> TimerHandle | None:
        """Run ``callback`` every ``interval`` seconds until the scope closes."""
        if self._closed:
            logger.debug("timer_scope_closed", scope=self._name)
            return None
        repeating = _Repeating(self._scheduler, interval, callback)
        self._handles.add(repeating)
        return repeating

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        self._handles.discard(handle)

    def close(self) -> None:
        """Disarm every timer. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()

    def __enter__(self) -> TimerScope:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
