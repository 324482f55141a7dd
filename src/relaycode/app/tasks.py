"""Fire-and-forget task runner for key handlers.

Key dispatch is synchronous; long-running work (apply runs, re-applies,
commits) is spawned here. The runner keeps a reference to every task so none
is garbage collected mid-flight, and logs failures instead of letting them
vanish with the task.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from relaycode.logging import get_logger

__all__ = ["TaskRunner"]

logger = get_logger(__name__)


class TaskRunner:
    """Owns background tasks spawned by controllers."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        """Schedule ``coro`` on the running loop.

        Args:
            coro: Coroutine to run.
            name: Task name used in log events.

        Returns:
            The created task.
        """
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug("task_spawned", task=name)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("task_cancelled", task=task.get_name())
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "task_failed",
                task=task.get_name(),
                error=str(error),
                exc_info=error,
            )

    async def drain(self) -> None:
        """Wait until every task, including ones spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
