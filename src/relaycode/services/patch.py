"""Simulated patch engine.

Stands in for the real patch/diff application service. Apply outcomes are
scripted per file so the success and failure review scenarios are
reproducible; re-apply outcomes are drawn from a seeded random source.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Callable, Mapping, Sequence

from relaycode.models.domain import FileItem, Transaction
from relaycode.models.enums import ApplyScenario
from relaycode.models.review import FileApplyResult
from relaycode.services.protocols import PatchEngine

__all__ = [
    "DEFAULT_FAILURE_ERRORS",
    "REAPPLY_FAILURE_ERROR",
    "SimulatedPatchEngine",
    "PatchEngineFactory",
    "scenario_results",
    "simulated_patch_engine_factory",
]

#: Errors given, in turn, to files that fail in the failure scenario
DEFAULT_FAILURE_ERRORS: tuple[str, ...] = (
    "Hunk #1 failed to apply",
    "Context mismatch at line 92",
    "Patch does not apply: file has local changes",
)

REAPPLY_FAILURE_ERROR = "'replace' failed: markers not found"

PatchEngineFactory = Callable[[Transaction, ApplyScenario], PatchEngine]


def scenario_results(
    transaction: Transaction,
    scenario: ApplyScenario,
    failure_errors: Sequence[str] = DEFAULT_FAILURE_ERRORS,
) -> dict[str, FileApplyResult]:
    """Per-file apply results of a demo scenario.

    In the failure scenario the first file is written and every later file
    fails, each with the next error from ``failure_errors``.
    """
    results = {file.id: FileApplyResult.success(file.id) for file in transaction.files}
    if scenario is ApplyScenario.FAILURE and failure_errors:
        for index, file in enumerate(transaction.files[1:]):
            error = failure_errors[index % len(failure_errors)]
            results[file.id] = FileApplyResult.failure(file.id, error)
    return results


class SimulatedPatchEngine:
    """Patch engine with scripted apply results.

    Args:
        outcomes: Result per file id for :meth:`apply`. Files without an entry
            succeed.
        reapply_success_rate: Probability that a re-applied file succeeds.
        rng: Random source for re-apply outcomes.
        delay: Seconds each call waits, to make progress visible.
    """

    def __init__(
        self,
        outcomes: Mapping[str, FileApplyResult] | None = None,
        *,
        reapply_success_rate: float = 0.5,
        rng: random.Random | None = None,
        delay: float = 0.0,
    ) -> None:
        self._outcomes = dict(outcomes or {})
        self._reapply_success_rate = reapply_success_rate
        self._rng = rng or random.Random()
        self._delay = delay

    @classmethod
    def for_transaction(
        cls,
        transaction: Transaction,
        scenario: ApplyScenario,
        *,
        failure_errors: Sequence[str] = DEFAULT_FAILURE_ERRORS,
        reapply_success_rate: float = 0.5,
        rng: random.Random | None = None,
        delay: float = 0.0,
    ) -> SimulatedPatchEngine:
        """Script outcomes for one of the demo scenarios."""
        return cls(
            scenario_results(transaction, scenario, failure_errors),
            reapply_success_rate=reapply_success_rate,
            rng=rng,
            delay=delay,
        )

    async def apply(self, file: FileItem) -> FileApplyResult:
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._outcomes.get(file.id, FileApplyResult.success(file.id))

    async def reapply(
        self,
        files: Sequence[FileItem],
        *,
        instruction: str | None = None,
    ) -> Mapping[str, FileApplyResult]:
        if self._delay:
            await asyncio.sleep(self._delay)
        results: dict[str, FileApplyResult] = {}
        for file in files:
            if self._rng.random() < self._reapply_success_rate:
                result = FileApplyResult.success(file.id)
            else:
                result = FileApplyResult.failure(file.id, REAPPLY_FAILURE_ERROR)
            # later apply() calls see the re-applied outcome
            self._outcomes[file.id] = result
            results[file.id] = result
        return results


def simulated_patch_engine_factory(
    *,
    reapply_success_rate: float = 0.5,
    seed: int | None = None,
    delay: float = 0.0,
) -> PatchEngineFactory:
    """Build a factory that scripts a fresh engine per apply run.

    All engines share one random source so a seeded session is reproducible.
    """
    rng = random.Random(seed)

    def factory(transaction: Transaction, scenario: ApplyScenario) -> PatchEngine:
        return SimulatedPatchEngine.for_transaction(
            transaction,
            scenario,
            reapply_success_rate=reapply_success_rate,
            rng=rng,
            delay=delay,
        )

    return factory
