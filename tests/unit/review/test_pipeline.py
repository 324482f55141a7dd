"""Tests for the cancellable apply pipeline."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence

import pytest

from relaycode.constants import (
    ABORTED_FILE_ERROR,
    CANCELLED_FILE_ERROR,
    FAIL_REASON_CANCELLED,
    SKIP_REASON_CANCELLED,
    SKIP_REASON_ERROR,
    SKIP_REASON_NO_COMMAND,
    SKIP_REASON_PATCH_FAILURE,
    SKIP_REASON_POST_COMMAND_FAILURE,
    SKIP_REASON_USER,
    STEP_LINTER,
    STEP_MEMORY,
    STEP_POST_COMMAND,
    STEP_SNAPSHOT,
)
from relaycode.exceptions import PatchEngineError, PipelineBusyError
from relaycode.models.apply import (
    AddSubstep,
    ApplyStep,
    ApplyUpdate,
    UpdateSubstep,
    find_step,
)
from relaycode.models.domain import FileItem, ScriptResult, Transaction
from relaycode.models.enums import (
    ApplyScenario,
    FileReviewStatus,
    PatchStatus,
    StepStatus,
)
from relaycode.models.review import FileApplyResult
from relaycode.review.pipeline import ApplyPipeline, ApplyRun
from relaycode.services.patch import DEFAULT_FAILURE_ERRORS, SimulatedPatchEngine
from relaycode.services.protocols import PatchEngine, ScriptRunner
from relaycode.services.scripts import SimulatedScriptRunner
from tests.fixtures.collaborators import CrashingScriptRunner, ScriptedPatchEngine


def step(steps: list[ApplyStep], step_id: str) -> ApplyStep:
    found = find_step(steps, step_id)
    assert found is not None
    return found


def make_pipeline(
    engine: PatchEngine,
    runner: ScriptRunner | None = None,
    *,
    post_command: str = "bun run test",
    linter_command: str = "bun run lint",
) -> ApplyPipeline:
    return ApplyPipeline(
        engine,
        runner or SimulatedScriptRunner(),
        post_command=post_command,
        linter_command=linter_command,
    )


class BlockingPatchEngine:
    """Writes the first file, then blocks on every later one."""

    def __init__(self) -> None:
        self.blocked = asyncio.Event()
        self._release = asyncio.Event()

    async def apply(self, file: FileItem) -> FileApplyResult:
        if file.id.endswith("-1"):
            return FileApplyResult.success(file.id)
        self.blocked.set()
        await self._release.wait()
        return FileApplyResult.success(file.id)

    async def reapply(
        self, files: Sequence[FileItem], *, instruction: str | None = None
    ) -> Mapping[str, FileApplyResult]:
        return {}


class BlockingScriptRunner:
    """Blocks on one command; every other command passes at once."""

    def __init__(self, blocking_command: str) -> None:
        self.blocking_command = blocking_command
        self.started = asyncio.Event()
        self.commands: list[str] = []

    async def run(self, command: str) -> ScriptResult:
        self.commands.append(command)
        if command == self.blocking_command:
            self.started.set()
            await asyncio.Event().wait()
        return ScriptResult(command=command, success=True, duration=0.1, summary="ok")


class TestApplyRun:
    """Tests for complete runs."""

    @pytest.mark.asyncio
    async def test_success_runs_every_step(self, transaction: Transaction) -> None:
        run = ApplyRun(make_pipeline(ScriptedPatchEngine()), transaction)

        outcome = await run.run()

        assert outcome.patch_status is PatchStatus.SUCCESS
        assert not outcome.cancelled
        assert [s.status for s in run.steps] == [StepStatus.DONE] * 4
        assert all(r.succeeded for r in outcome.file_results.values())
        memory = step(run.steps, STEP_MEMORY)
        assert [s.file_id for s in memory.substeps] == ["t1-1", "t1-2", "t1-3"]
        assert memory.substeps[0].title == (
            "[✓] write: src/module_1.py (strategy: replace)"
        )

    @pytest.mark.asyncio
    async def test_failure_scenario_skips_scripts(
        self, transaction: Transaction
    ) -> None:
        engine = SimulatedPatchEngine.for_transaction(
            transaction, ApplyScenario.FAILURE
        )
        runner = SimulatedScriptRunner()
        run = ApplyRun(make_pipeline(engine, runner), transaction)

        outcome = await run.run()

        assert outcome.patch_status is PatchStatus.PARTIAL_FAILURE
        results = outcome.file_results
        assert results["t1-1"].status is FileReviewStatus.APPROVED
        assert results["t1-2"].status is FileReviewStatus.FAILED
        assert results["t1-3"].status is FileReviewStatus.FAILED
        assert results["t1-2"].error == DEFAULT_FAILURE_ERRORS[0]
        assert results["t1-3"].error == DEFAULT_FAILURE_ERRORS[1]
        for step_id in (STEP_POST_COMMAND, STEP_LINTER):
            skipped = step(run.steps, step_id)
            assert skipped.status is StepStatus.SKIPPED
            assert skipped.details == SKIP_REASON_PATCH_FAILURE
        assert step(run.steps, STEP_MEMORY).status is StepStatus.DONE

    @pytest.mark.asyncio
    async def test_engine_error_fails_only_that_file(
        self, transaction: Transaction
    ) -> None:
        class RaisingEngine(ScriptedPatchEngine):
            async def apply(self, file: FileItem) -> FileApplyResult:
                if file.id == "t1-2":
                    raise PatchEngineError("disk full")
                return await super().apply(file)

        run = ApplyRun(make_pipeline(RaisingEngine()), transaction)

        outcome = await run.run()

        assert outcome.file_results["t1-2"].error == "disk full"
        assert outcome.file_results["t1-3"].succeeded
        assert outcome.patch_status is PatchStatus.PARTIAL_FAILURE

    @pytest.mark.asyncio
    async def test_post_command_failure_skips_linter(
        self, transaction: Transaction
    ) -> None:
        runner = SimulatedScriptRunner(
            {
                "bun run test": ScriptResult(
                    command="bun run test",
                    success=False,
                    duration=1.0,
                    summary="2 failed",
                )
            }
        )
        run = ApplyRun(make_pipeline(ScriptedPatchEngine(), runner), transaction)

        outcome = await run.run()

        post = step(run.steps, STEP_POST_COMMAND)
        assert post.status is StepStatus.FAILED
        assert post.substeps[0].title == "`bun run test` ... 2 failed"
        linter = step(run.steps, STEP_LINTER)
        assert linter.status is StepStatus.SKIPPED
        assert linter.details == SKIP_REASON_POST_COMMAND_FAILURE
        # script results do not affect the patch status
        assert outcome.patch_status is PatchStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_empty_commands_are_skipped(self, transaction: Transaction) -> None:
        pipeline = make_pipeline(
            ScriptedPatchEngine(), post_command="", linter_command=""
        )
        run = ApplyRun(pipeline, transaction)

        await run.run()

        for step_id in (STEP_POST_COMMAND, STEP_LINTER):
            assert step(run.steps, step_id).status is StepStatus.SKIPPED
            assert step(run.steps, step_id).details == SKIP_REASON_NO_COMMAND

    @pytest.mark.asyncio
    async def test_file_writes_report_progress(self, transaction: Transaction) -> None:
        updates: list[ApplyUpdate] = []
        run = ApplyRun(
            make_pipeline(ScriptedPatchEngine()), transaction, on_update=updates.append
        )

        await run.run()

        writes = [
            u
            for u in updates
            if isinstance(u, AddSubstep | UpdateSubstep) and u.parent_id == STEP_MEMORY
        ]
        assert isinstance(writes[0], AddSubstep)
        assert writes[0].substep.status is StepStatus.ACTIVE
        assert writes[0].substep.title == (
            "[ ] write: src/module_1.py (strategy: replace)"
        )
        assert isinstance(writes[1], UpdateSubstep)
        assert writes[1].substep_id == "write-t1-1"
        assert writes[1].status is StepStatus.DONE
        assert len(writes) == 6

    @pytest.mark.asyncio
    async def test_updates_are_forwarded(self, transaction: Transaction) -> None:
        updates: list[ApplyUpdate] = []
        run = ApplyRun(
            make_pipeline(ScriptedPatchEngine()), transaction, on_update=updates.append
        )

        await run.run()

        # snapshot 2, memory 2 + 2 per file, post-command 3, linter 3
        assert len(updates) == 16
        assert run.elapsed >= 0.0
        assert run.is_finished

    @pytest.mark.asyncio
    async def test_run_only_once(self, transaction: Transaction) -> None:
        run = ApplyRun(make_pipeline(ScriptedPatchEngine()), transaction)
        await run.run()

        with pytest.raises(PipelineBusyError):
            await run.run()

    def test_from_config(self) -> None:
        from relaycode.config import ApplyConfig

        pipeline = ApplyPipeline.from_config(
            ScriptedPatchEngine(),
            SimulatedScriptRunner(),
            ApplyConfig(step_delay=0.2, post_command="make test", linter_command=""),
        )

        assert pipeline.step_delay == 0.2
        assert pipeline.post_command == "make test"
        assert pipeline.linter_command == ""


class TestCancellation:
    """Tests for cancel and skip."""

    @pytest.mark.asyncio
    async def test_cancel_before_start_skips_every_step(
        self, transaction: Transaction
    ) -> None:
        run = ApplyRun(make_pipeline(ScriptedPatchEngine()), transaction)
        run.cancel()

        outcome = await run.run()

        assert outcome.cancelled
        assert outcome.patch_status is PatchStatus.PARTIAL_FAILURE
        assert {s.status for s in run.steps} == {StepStatus.SKIPPED}
        assert {s.details for s in run.steps} == {SKIP_REASON_CANCELLED}
        assert {r.error for r in outcome.file_results.values()} == {
            CANCELLED_FILE_ERROR
        }

    @pytest.mark.asyncio
    async def test_cancel_mid_write(self, transaction: Transaction) -> None:
        engine = BlockingPatchEngine()
        run = ApplyRun(make_pipeline(engine), transaction)
        task = asyncio.create_task(run.run())
        await asyncio.wait_for(engine.blocked.wait(), timeout=1.0)

        assert run.cancel()
        outcome = await asyncio.wait_for(task, timeout=1.0)

        assert outcome.cancelled
        assert step(run.steps, STEP_SNAPSHOT).status is StepStatus.DONE
        memory = step(run.steps, STEP_MEMORY)
        assert memory.status is StepStatus.FAILED
        assert memory.details == FAIL_REASON_CANCELLED
        assert step(run.steps, STEP_POST_COMMAND).status is StepStatus.SKIPPED
        assert step(run.steps, STEP_LINTER).status is StepStatus.SKIPPED
        assert outcome.file_results["t1-1"].succeeded
        assert outcome.file_results["t1-2"].error == CANCELLED_FILE_ERROR
        assert outcome.file_results["t1-3"].error == CANCELLED_FILE_ERROR
        in_flight = memory.substeps[1]
        assert in_flight.file_id == "t1-2"
        assert in_flight.status is StepStatus.FAILED
        assert in_flight.error == CANCELLED_FILE_ERROR

    @pytest.mark.asyncio
    async def test_cancel_after_finish_is_refused(
        self, transaction: Transaction
    ) -> None:
        run = ApplyRun(make_pipeline(ScriptedPatchEngine()), transaction)
        await run.run()

        assert not run.cancel()

    @pytest.mark.asyncio
    async def test_skip_post_command(self, transaction: Transaction) -> None:
        runner = BlockingScriptRunner("bun run test")
        run = ApplyRun(make_pipeline(ScriptedPatchEngine(), runner), transaction)
        task = asyncio.create_task(run.run())
        await asyncio.wait_for(runner.started.wait(), timeout=1.0)
        # let the consumer fold the ACTIVE update
        await asyncio.sleep(0)

        assert run.skip_current_step()
        outcome = await asyncio.wait_for(task, timeout=1.0)

        post = step(run.steps, STEP_POST_COMMAND)
        assert post.status is StepStatus.SKIPPED
        assert post.details == SKIP_REASON_USER
        assert step(run.steps, STEP_LINTER).status is StepStatus.DONE
        assert runner.commands == ["bun run test", "bun run lint"]
        assert not outcome.cancelled

    @pytest.mark.asyncio
    async def test_only_post_command_is_skippable(
        self, transaction: Transaction
    ) -> None:
        engine = BlockingPatchEngine()
        run = ApplyRun(make_pipeline(engine), transaction)
        task = asyncio.create_task(run.run())
        await asyncio.wait_for(engine.blocked.wait(), timeout=1.0)

        assert not run.skip_current_step()

        run.cancel()
        await asyncio.wait_for(task, timeout=1.0)


class TestUnexpectedErrors:
    """Tests for collaborators raising something other than their own errors."""

    @pytest.mark.asyncio
    async def test_crashing_script_runner_fails_the_step(
        self, transaction: Transaction
    ) -> None:
        runner = CrashingScriptRunner()
        run = ApplyRun(make_pipeline(ScriptedPatchEngine(), runner), transaction)

        outcome = await run.run()

        assert run.is_finished
        assert outcome.error == "shell not found"
        assert not outcome.cancelled
        post = step(run.steps, STEP_POST_COMMAND)
        assert post.status is StepStatus.FAILED
        assert post.details == "shell not found"
        linter = step(run.steps, STEP_LINTER)
        assert linter.status is StepStatus.SKIPPED
        assert linter.details == SKIP_REASON_ERROR
        assert runner.commands == ["bun run test"]
        # every file was written before the crash
        assert outcome.patch_status is PatchStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_crashing_engine_aborts_remaining_files(
        self, transaction: Transaction
    ) -> None:
        class CrashingEngine(ScriptedPatchEngine):
            async def apply(self, file: FileItem) -> FileApplyResult:
                if file.id == "t1-2":
                    raise RuntimeError("engine crashed")
                return await super().apply(file)

        run = ApplyRun(make_pipeline(CrashingEngine()), transaction)

        outcome = await run.run()

        memory = step(run.steps, STEP_MEMORY)
        assert memory.status is StepStatus.FAILED
        assert memory.details == "engine crashed"
        assert memory.substeps[1].status is StepStatus.FAILED
        assert memory.substeps[1].title == (
            "[!] failed: src/module_2.py (engine crashed)"
        )
        assert outcome.file_results["t1-1"].succeeded
        assert outcome.file_results["t1-2"].error == "engine crashed"
        assert outcome.file_results["t1-3"].error == ABORTED_FILE_ERROR
        assert outcome.patch_status is PatchStatus.PARTIAL_FAILURE
        for step_id in (STEP_POST_COMMAND, STEP_LINTER):
            assert step(run.steps, step_id).details == SKIP_REASON_ERROR
