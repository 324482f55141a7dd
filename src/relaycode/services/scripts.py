"""Simulated post-command and linter runner."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

from relaycode.models.domain import ScriptResult

__all__ = ["SimulatedScriptRunner", "DEFAULT_SCRIPT_RESULTS"]

#: Canned results for the default post-command and linter commands
DEFAULT_SCRIPT_RESULTS: dict[str, ScriptResult] = {
    "bun run test": ScriptResult(
        command="bun run test",
        success=True,
        duration=2.3,
        summary="Passed",
        output="... test output ...",
    ),
    "bun run lint": ScriptResult(
        command="bun run lint",
        success=True,
        duration=1.2,
        summary="0 Errors",
        output="",
    ),
}


class SimulatedScriptRunner:
    """Returns canned script results after a delay.

    Unknown commands pass with a generic summary.
    """

    def __init__(
        self,
        results: Mapping[str, ScriptResult] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self._results = dict(DEFAULT_SCRIPT_RESULTS if results is None else results)
        self._delay = delay

    async def run(self, command: str) -> ScriptResult:
        if self._delay:
            await asyncio.sleep(self._delay)
        result = self._results.get(command)
        if result is None:
            return ScriptResult(
                command=command, success=True, duration=self._delay, summary="Passed"
            )
        return result
