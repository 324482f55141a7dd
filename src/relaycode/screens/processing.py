"""Apply progress screen."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent
from relaycode.models.apply import ApplyStep, active_step
from relaycode.review.pipeline import ApplyRun
from relaycode.screens.base import Controller

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = ["ProcessingController"]

#: Seconds between elapsed-time refreshes
ELAPSED_TICK = 0.1


class ProcessingController(Controller):
    """Shows the live steps of the review screen's active apply run.

    Attributes:
        elapsed: Seconds since the run started, refreshed on a timer.
    """

    name = "processing"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.elapsed = 0.0

    @property
    def run(self) -> ApplyRun | None:
        return self.ctx.review.active_run or self.ctx.review.last_run

    @property
    def steps(self) -> list[ApplyStep]:
        run = self.run
        return run.steps if run is not None else []

    @property
    def current_step(self) -> ApplyStep | None:
        return active_step(self.steps)

    @property
    def is_cancelling(self) -> bool:
        run = self.ctx.review.active_run
        return run is not None and run.token.cancelled

    def on_enter(self) -> None:
        super().on_enter()
        self.elapsed = 0.0
        self.timers.call_every(ELAPSED_TICK, self.refresh_elapsed)

    def refresh_elapsed(self) -> None:
        run = self.run
        self.elapsed = run.elapsed if run is not None else 0.0

    def cancel(self) -> bool:
        return self.ctx.review.cancel_apply()

    def skip_current_step(self) -> bool:
        run = self.ctx.review.active_run
        return run is not None and run.skip_current_step()

    def handle_key(self, key: KeyEvent) -> bool:
        if key.is_ctrl("c"):
            self.cancel()
            return True
        if key.letter == "s":
            self.skip_current_step()
            return True
        return False
