"""Asynchronous, cancellable apply pipeline.

The pipeline is split into a producer and a consumer joined by an
``asyncio.Queue``:

* :meth:`ApplyPipeline.produce` is the worker coroutine. It writes files
  through the patch engine, runs the post-command and linter scripts, and
  emits :data:`~relaycode.models.apply.ApplyUpdate` events. It checks the
  cancellation token before every emit and races every wait against it.
* :class:`ApplyRun` starts the worker, folds its events into a step list with
  :func:`~relaycode.models.apply.apply_update` and builds the final
  :class:`ApplyOutcome`.

The stream always ends with :data:`END_OF_STREAM`, including after
cancellation, so the consumer never waits on a dead worker.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar, cast

from relaycode.config import ApplyConfig
from relaycode.constants import (
    ABORTED_FILE_ERROR,
    APPLY_STEP_ORDER,
    CANCELLED_FILE_ERROR,
    FAIL_REASON_CANCELLED,
    SKIP_REASON_CANCELLED,
    SKIP_REASON_ERROR,
    SKIP_REASON_NO_COMMAND,
    SKIP_REASON_PATCH_FAILURE,
    SKIP_REASON_POST_COMMAND_FAILURE,
    SKIP_REASON_USER,
    SKIPPABLE_STEPS,
    STEP_LINTER,
    STEP_MEMORY,
    STEP_POST_COMMAND,
    STEP_SNAPSHOT,
)
from relaycode.exceptions import (
    PatchEngineError,
    PipelineBusyError,
    PipelineCancelledError,
    ScriptRunnerError,
)
from relaycode.logging import get_logger
from relaycode.models.apply import (
    AddSubstep,
    ApplyStep,
    ApplySubstep,
    ApplyUpdate,
    UpdateStep,
    UpdateSubstep,
    active_step,
    apply_update,
    derive_patch_status,
    find_step,
    initial_apply_steps,
)
from relaycode.models.domain import FileItem, Transaction
from relaycode.models.enums import PatchStatus, StepStatus
from relaycode.models.review import FileApplyResult
from relaycode.services.protocols import PatchEngine, ScriptRunner

__all__ = [
    "END_OF_STREAM",
    "CancellationToken",
    "ApplyOutcome",
    "WorkerResult",
    "write_title",
    "ApplyPipeline",
    "ApplyRun",
]

logger = get_logger(__name__)

T = TypeVar("T")

#: Sentinel closing every update stream
END_OF_STREAM = None


class CancellationToken:
    """One-shot cancellation signal shared by a run and its worker."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelledError()


@dataclass(frozen=True, slots=True)
class ApplyOutcome:
    """Result of a finished apply run.

    Attributes:
        patch_status: SUCCESS only when every file was written.
        file_results: One result per file in the transaction.
        cancelled: Whether the run was cancelled.
        elapsed: Wall-clock seconds the run took.
        error: Unexpected collaborator error that aborted the run, if any.
    """

    patch_status: PatchStatus
    file_results: dict[str, FileApplyResult] = field(default_factory=dict)
    cancelled: bool = False
    elapsed: float = 0.0
    error: str | None = None


@dataclass(frozen=True, slots=True)
class WorkerResult:
    """How :meth:`ApplyPipeline.produce` stopped."""

    cancelled: bool = False
    error: str | None = None


class _Skipped:
    pass


_SKIPPED = _Skipped()


def write_title(file: FileItem, result: FileApplyResult | None = None) -> str:
    """Display line of a file-write substep; ``None`` while in flight."""
    if result is None:
        return f"[ ] write: {file.path} (strategy: {file.strategy.value})"
    if result.succeeded:
        return f"[✓] write: {file.path} (strategy: {file.strategy.value})"
    return f"[!] failed: {file.path} ({result.error})"


class _StepTracker:
    """Mirror of step and substep statuses as the worker emits them."""

    def __init__(self) -> None:
        self.statuses = {step_id: StepStatus.PENDING for step_id in APPLY_STEP_ORDER}
        self.open_substeps: dict[tuple[str, str], ApplySubstep] = {}

    def record(self, update: ApplyUpdate) -> None:
        if isinstance(update, UpdateStep):
            self.statuses[update.step_id] = update.status
        elif isinstance(update, AddSubstep):
            if update.substep.status is StepStatus.ACTIVE:
                key = (update.parent_id, update.substep.id)
                self.open_substeps[key] = update.substep
        elif update.status is not StepStatus.ACTIVE:
            self.open_substeps.pop((update.parent_id, update.substep_id), None)

    def stop_updates(
        self,
        files: dict[str, FileItem],
        *,
        failed_details: str,
        skipped_details: str,
        substep_error: str,
    ) -> list[ApplyUpdate]:
        """Updates that close every in-flight substep and step.

        Active substeps and steps fail, pending steps are skipped.
        """
        updates: list[ApplyUpdate] = []
        for (parent_id, substep_id), substep in self.open_substeps.items():
            file = files.get(substep.file_id or "")
            title = (
                write_title(file, FileApplyResult.failure(file.id, substep_error))
                if file is not None
                else None
            )
            updates.append(
                UpdateSubstep(
                    parent_id,
                    substep_id,
                    StepStatus.FAILED,
                    title=title,
                    error=substep_error,
                )
            )
        for step_id in APPLY_STEP_ORDER:
            status = self.statuses[step_id]
            if status is StepStatus.ACTIVE:
                updates.append(
                    UpdateStep(step_id, StepStatus.FAILED, details=failed_details)
                )
            elif status is StepStatus.PENDING:
                updates.append(
                    UpdateStep(step_id, StepStatus.SKIPPED, details=skipped_details)
                )
        return updates


class ApplyPipeline:
    """Worker that applies one transaction and reports progress.

    Args:
        patch_engine: Writes each file.
        script_runner: Runs the post-command and linter scripts.
        step_delay: Pause after entering each step, in seconds.
        file_delay: Pause before each file write, in seconds.
        post_command: Post-command script. Empty skips the step.
        linter_command: Linter script. Empty skips the step.
    """

    def __init__(
        self,
        patch_engine: PatchEngine,
        script_runner: ScriptRunner,
        *,
        step_delay: float = 0.0,
        file_delay: float = 0.0,
        post_command: str = "",
        linter_command: str = "",
    ) -> None:
        self.patch_engine = patch_engine
        self.script_runner = script_runner
        self.step_delay = step_delay
        self.file_delay = file_delay
        self.post_command = post_command
        self.linter_command = linter_command

    @classmethod
    def from_config(
        cls,
        patch_engine: PatchEngine,
        script_runner: ScriptRunner,
        config: ApplyConfig,
    ) -> ApplyPipeline:
        return cls(
            patch_engine,
            script_runner,
            step_delay=config.step_delay,
            file_delay=config.file_delay,
            post_command=config.post_command,
            linter_command=config.linter_command,
        )

    async def produce(
        self,
        transaction: Transaction,
        channel: asyncio.Queue[ApplyUpdate | None],
        token: CancellationToken,
        skip_event: asyncio.Event | None = None,
    ) -> WorkerResult:
        """Run every step, writing updates into ``channel``.

        Args:
            transaction: Transaction whose files are applied.
            channel: Receives updates, then :data:`END_OF_STREAM`.
            token: Stops the run when cancelled.
            skip_event: Set by the operator to skip the active skippable step.

        Returns:
            Whether the run was cancelled or aborted by an unexpected
            collaborator error. Either way every active step ends failed and
            every pending step skipped.
        """
        tracker = _StepTracker()

        def emit(update: ApplyUpdate) -> None:
            token.raise_if_cancelled()
            tracker.record(update)
            channel.put_nowait(update)

        skip = skip_event or asyncio.Event()
        log = logger.bind(transaction_id=transaction.id)
        log.info("apply_pipeline_started", files=len(transaction.files))
        try:
            await self._snapshot(emit, token)
            failed = await self._memory(transaction.files, emit, token)
            if failed:
                for step_id in (STEP_POST_COMMAND, STEP_LINTER):
                    emit(
                        UpdateStep(
                            step_id,
                            StepStatus.SKIPPED,
                            details=SKIP_REASON_PATCH_FAILURE,
                        )
                    )
            else:
                passed = await self._script_step(
                    STEP_POST_COMMAND, self.post_command, emit, token, skip
                )
                if passed:
                    await self._script_step(
                        STEP_LINTER, self.linter_command, emit, token, None
                    )
                else:
                    emit(
                        UpdateStep(
                            STEP_LINTER,
                            StepStatus.SKIPPED,
                            details=SKIP_REASON_POST_COMMAND_FAILURE,
                        )
                    )
            log.info("apply_pipeline_finished", failed_files=failed)
            return WorkerResult()
        except PipelineCancelledError:
            self._close_open(
                tracker,
                channel,
                transaction,
                failed_details=FAIL_REASON_CANCELLED,
                skipped_details=SKIP_REASON_CANCELLED,
                substep_error=CANCELLED_FILE_ERROR,
            )
            log.info("apply_pipeline_cancelled")
            return WorkerResult(cancelled=True)
        except Exception as e:
            reason = str(e) or type(e).__name__
            log.exception("apply_pipeline_error", error=reason)
            self._close_open(
                tracker,
                channel,
                transaction,
                failed_details=reason,
                skipped_details=SKIP_REASON_ERROR,
                substep_error=reason,
            )
            return WorkerResult(error=reason)
        finally:
            channel.put_nowait(END_OF_STREAM)

    @staticmethod
    def _close_open(
        tracker: _StepTracker,
        channel: asyncio.Queue[ApplyUpdate | None],
        transaction: Transaction,
        *,
        failed_details: str,
        skipped_details: str,
        substep_error: str,
    ) -> None:
        files = {file.id: file for file in transaction.files}
        for update in tracker.stop_updates(
            files,
            failed_details=failed_details,
            skipped_details=skipped_details,
            substep_error=substep_error,
        ):
            tracker.record(update)
            channel.put_nowait(update)

    async def _pause(self, delay: float, token: CancellationToken) -> None:
        token.raise_if_cancelled()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(token.wait(), timeout=delay)
        except TimeoutError:
            return
        raise PipelineCancelledError()

    async def _race(
        self,
        awaitable: Awaitable[T],
        token: CancellationToken,
        skip: asyncio.Event | None = None,
    ) -> T | _Skipped:
        """Await a collaborator call unless cancelled or skipped first."""
        token.raise_if_cancelled()
        work: asyncio.Future[Any] = asyncio.ensure_future(awaitable)
        waiters = {work, asyncio.ensure_future(token.wait())}
        skip_waiter = None
        if skip is not None:
            skip_waiter = asyncio.ensure_future(skip.wait())
            waiters.add(skip_waiter)
        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()
        if work in done:
            return work.result()
        if skip_waiter is not None and skip_waiter in done and not token.cancelled:
            return _SKIPPED
        raise PipelineCancelledError()

    async def _snapshot(
        self, emit: Callable[[ApplyUpdate], None], token: CancellationToken
    ) -> None:
        started = time.monotonic()
        emit(UpdateStep(STEP_SNAPSHOT, StepStatus.ACTIVE))
        await self._pause(self.step_delay, token)
        emit(
            UpdateStep(
                STEP_SNAPSHOT, StepStatus.DONE, duration=time.monotonic() - started
            )
        )

    async def _memory(
        self,
        files: tuple[FileItem, ...],
        emit: Callable[[ApplyUpdate], None],
        token: CancellationToken,
    ) -> int:
        """Write every file; returns the number of files that failed."""
        started = time.monotonic()
        emit(UpdateStep(STEP_MEMORY, StepStatus.ACTIVE))
        await self._pause(self.step_delay, token)
        failed = 0
        for file in files:
            await self._pause(self.file_delay, token)
            substep_id = f"write-{file.id}"
            emit(
                AddSubstep(
                    STEP_MEMORY,
                    ApplySubstep(
                        id=substep_id,
                        title=write_title(file),
                        status=StepStatus.ACTIVE,
                        file_id=file.id,
                    ),
                )
            )
            try:
                outcome = await self._race(self.patch_engine.apply(file), token)
            except PatchEngineError as e:
                outcome = FileApplyResult.failure(file.id, e.message)
            result = cast(FileApplyResult, outcome)
            if not result.succeeded:
                failed += 1
            emit(
                UpdateSubstep(
                    STEP_MEMORY,
                    substep_id,
                    StepStatus.DONE if result.succeeded else StepStatus.FAILED,
                    title=write_title(file, result),
                    error=result.error,
                )
            )
        emit(
            UpdateStep(
                STEP_MEMORY, StepStatus.DONE, duration=time.monotonic() - started
            )
        )
        return failed

    async def _script_step(
        self,
        step_id: str,
        command: str,
        emit: Callable[[ApplyUpdate], None],
        token: CancellationToken,
        skip: asyncio.Event | None,
    ) -> bool:
        """Run one script step; returns False when the script failed."""
        if not command:
            emit(
                UpdateStep(step_id, StepStatus.SKIPPED, details=SKIP_REASON_NO_COMMAND)
            )
            return True
        started = time.monotonic()
        emit(UpdateStep(step_id, StepStatus.ACTIVE))
        try:
            result = await self._race(self.script_runner.run(command), token, skip)
        except ScriptRunnerError as e:
            emit(
                AddSubstep(
                    step_id,
                    ApplySubstep(
                        id=f"{step_id}-run",
                        title=f"`{command}` ... {e.message}",
                        status=StepStatus.FAILED,
                        error=e.message,
                    ),
                )
            )
            emit(
                UpdateStep(
                    step_id,
                    StepStatus.FAILED,
                    duration=time.monotonic() - started,
                    details=e.message,
                )
            )
            return False
        if isinstance(result, _Skipped):
            emit(UpdateStep(step_id, StepStatus.SKIPPED, details=SKIP_REASON_USER))
            return True
        status = StepStatus.DONE if result.success else StepStatus.FAILED
        emit(
            AddSubstep(
                step_id,
                ApplySubstep(
                    id=f"{step_id}-run",
                    title=f"`{command}` ... {result.summary}",
                    status=status,
                    error=None if result.success else result.summary,
                ),
            )
        )
        emit(UpdateStep(step_id, status, duration=result.duration))
        return result.success


UpdateListener = Callable[[ApplyUpdate], None]


class ApplyRun:
    """One execution of the pipeline for one transaction.

    Args:
        pipeline: Worker to run.
        transaction: Transaction to apply.
        on_update: Called after each update is folded into :attr:`steps`.

    Attributes:
        steps: Live step list, updated as events arrive.
        token: Cancellation token shared with the worker.
        outcome: Set once :meth:`run` returns.
    """

    def __init__(
        self,
        pipeline: ApplyPipeline,
        transaction: Transaction,
        *,
        on_update: UpdateListener | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.transaction = transaction
        self.on_update = on_update
        self.steps: list[ApplyStep] = initial_apply_steps()
        self.token = CancellationToken()
        self.outcome: ApplyOutcome | None = None
        self._skip = asyncio.Event()
        self._started = False
        self._finished = False
        self._started_at: float | None = None

    @property
    def is_running(self) -> bool:
        return self._started and not self._finished

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        if self.outcome is not None:
            return self.outcome.elapsed
        return time.monotonic() - self._started_at

    async def run(self) -> ApplyOutcome:
        """Run the worker to completion and return the outcome.

        Raises:
            PipelineBusyError: If the run was already started.
        """
        if self._started:
            raise PipelineBusyError(self.transaction.id)
        self._started = True
        self._started_at = time.monotonic()
        channel: asyncio.Queue[ApplyUpdate | None] = asyncio.Queue()
        worker = asyncio.create_task(
            self.pipeline.produce(self.transaction, channel, self.token, self._skip)
        )
        try:
            while True:
                update = await channel.get()
                if update is END_OF_STREAM:
                    break
                apply_update(self.steps, update)
                if self.on_update is not None:
                    self.on_update(update)
            stopped = await worker
        finally:
            if not worker.done():
                worker.cancel()
            self._finished = True
        self.outcome = self._build_outcome(time.monotonic() - self._started_at, stopped)
        return self.outcome

    def cancel(self) -> bool:
        """Request cancellation.

        Returns:
            False if the run already finished (nothing to cancel).
        """
        if self._finished:
            return False
        if not self.token.cancelled:
            logger.info(
                "apply_run_cancel_requested", transaction_id=self.transaction.id
            )
        self.token.cancel()
        return True

    def skip_current_step(self) -> bool:
        """Skip the active step if it is skippable.

        Returns:
            True if a skip was requested.
        """
        if self._finished:
            return False
        step = active_step(self.steps)
        if step is None or step.id not in SKIPPABLE_STEPS:
            return False
        logger.info("apply_run_skip_requested", step_id=step.id)
        self._skip.set()
        return True

    def _build_outcome(self, elapsed: float, stopped: WorkerResult) -> ApplyOutcome:
        memory = find_step(self.steps, STEP_MEMORY)
        substeps = {
            s.file_id: s for s in (memory.substeps if memory else []) if s.file_id
        }
        results: dict[str, FileApplyResult] = {}
        unwritten_error = ABORTED_FILE_ERROR if stopped.error else CANCELLED_FILE_ERROR
        for file in self.transaction.files:
            substep = substeps.get(file.id)
            if substep is None:
                results[file.id] = FileApplyResult.failure(file.id, unwritten_error)
            elif substep.status is StepStatus.DONE:
                results[file.id] = FileApplyResult.success(file.id)
            else:
                results[file.id] = FileApplyResult.failure(
                    file.id, substep.error or "Patch failed to apply"
                )
        if stopped.cancelled:
            patch_status = PatchStatus.PARTIAL_FAILURE
        else:
            patch_status = derive_patch_status(
                self.steps, [f.id for f in self.transaction.files]
            )
        return ApplyOutcome(
            patch_status=patch_status,
            file_results=results,
            cancelled=stopped.cancelled,
            elapsed=elapsed,
            error=stopped.error,
        )
