"""Tests for the per-file review state machine."""

from __future__ import annotations

import pytest

from relaycode.exceptions import (
    InvalidTransitionError,
    PatchEngineError,
    UnknownFileError,
)
from relaycode.models.domain import Transaction
from relaycode.models.enums import FileReviewStatus, NotificationType, PatchStatus
from relaycode.models.notification import Notification
from relaycode.models.review import FileApplyResult, FileReviewState
from relaycode.review.session import ALLOWED_TRANSITIONS, BulkOutcome, ReviewSession
from relaycode.services.clipboard import MemoryClipboard
from tests.fixtures.collaborators import FailingClipboard, ScriptedPatchEngine

S = FileReviewStatus


def failed(error: str = "Hunk #1 failed to apply") -> FileReviewState:
    return FileReviewState(status=S.FAILED, error=error)


def make_session(
    transaction: Transaction,
    *,
    engine: ScriptedPatchEngine | None = None,
    clipboard: MemoryClipboard | FailingClipboard | None = None,
    states: dict[str, FileReviewState] | None = None,
    notifications: list[Notification] | None = None,
    changes: list[tuple[str, FileReviewStatus]] | None = None,
) -> ReviewSession:
    return ReviewSession(
        transaction,
        patch_engine=engine or ScriptedPatchEngine(),
        clipboard=clipboard or MemoryClipboard(),
        notify=None if notifications is None else notifications.append,
        on_status_change=(
            None
            if changes is None
            else lambda file_id, state: changes.append((file_id, state.status))
        ),
        initial_states=states,
    )


class TestTransitions:
    """Tests for the allowed-transition table."""

    def test_files_start_awaiting(self, transaction: Transaction) -> None:
        session = make_session(transaction)

        assert {s.status for s in session.states.values()} == {S.AWAITING}

    @pytest.mark.parametrize(
        ("start", "target"),
        [
            (from_status, to_status)
            for from_status, targets in ALLOWED_TRANSITIONS.items()
            for to_status in targets
        ],
    )
    def test_allowed_transitions(
        self,
        transaction: Transaction,
        start: FileReviewStatus,
        target: FileReviewStatus,
    ) -> None:
        session = make_session(
            transaction, states={"t1-1": FileReviewState(status=start)}
        )

        assert session.transition("t1-1", target).status is target

    @pytest.mark.parametrize(
        ("start", "target"),
        [
            (S.APPROVED, S.FAILED),
            (S.FAILED, S.APPROVED),
            (S.RE_APPLYING, S.REJECTED),
            (S.AWAITING, S.RE_APPLYING),
        ],
    )
    def test_disallowed_transitions_raise(
        self,
        transaction: Transaction,
        start: FileReviewStatus,
        target: FileReviewStatus,
    ) -> None:
        session = make_session(
            transaction, states={"t1-1": FileReviewState(status=start)}
        )

        with pytest.raises(InvalidTransitionError) as exc_info:
            session.transition("t1-1", target)

        assert exc_info.value.from_status is start
        assert session.status("t1-1") is start

    def test_unknown_file_raises(self, transaction: Transaction) -> None:
        session = make_session(transaction)

        with pytest.raises(UnknownFileError):
            session.transition("nope", S.APPROVED)

    def test_error_kept_only_while_failed(self, transaction: Transaction) -> None:
        session = make_session(transaction)

        session.transition("t1-1", S.FAILED, error="boom")
        assert session.state("t1-1").error == "boom"

        session.transition("t1-1", S.REJECTED, error="ignored")
        assert session.state("t1-1").error is None


class TestToggle:
    """Tests for toggle_file and reject_all."""

    def test_toggle_cycles_between_approved_and_rejected(
        self, transaction: Transaction
    ) -> None:
        session = make_session(transaction)

        assert session.toggle_file("t1-1")
        assert session.status("t1-1") is S.APPROVED
        assert session.toggle_file("t1-1")
        assert session.status("t1-1") is S.REJECTED
        assert session.toggle_file("t1-1")
        assert session.status("t1-1") is S.APPROVED

    @pytest.mark.parametrize("status", [S.FAILED, S.RE_APPLYING])
    def test_toggle_leaves_failed_and_reapplying_files_alone(
        self, transaction: Transaction, status: FileReviewStatus
    ) -> None:
        session = make_session(
            transaction, states={"t1-2": FileReviewState(status=status)}
        )

        assert not session.toggle_file("t1-2")
        assert session.status("t1-2") is status

    def test_toggle_unknown_file_is_ignored(self, transaction: Transaction) -> None:
        assert not make_session(transaction).toggle_file("nope")

    def test_reject_all_only_touches_approved(self, transaction: Transaction) -> None:
        session = make_session(
            transaction,
            states={
                "t1-1": FileReviewState(status=S.APPROVED),
                "t1-2": failed(),
                "t1-3": FileReviewState(status=S.APPROVED),
            },
        )

        assert session.reject_all() == 2
        assert session.status("t1-2") is S.FAILED
        assert not session.can_approve

    def test_status_listener_sees_every_change(self, transaction: Transaction) -> None:
        changes: list[tuple[str, FileReviewStatus]] = []
        session = make_session(transaction, changes=changes)

        session.toggle_file("t1-1")
        session.toggle_file("t1-1")

        assert changes == [("t1-1", S.APPROVED), ("t1-1", S.REJECTED)]


class TestSingleFileRepair:
    """Tests for repair_file and instruct_file."""

    @pytest.mark.asyncio
    async def test_repair_copies_prompt_and_reapplies(
        self, transaction: Transaction
    ) -> None:
        clipboard = MemoryClipboard()
        engine = ScriptedPatchEngine()
        session = make_session(
            transaction,
            engine=engine,
            clipboard=clipboard,
            states={"t1-2": failed("Context mismatch at line 92")},
        )

        assert await session.repair_file("t1-2")

        assert session.status("t1-2") is S.APPROVED
        assert engine.reapplied == [("t1-2",)]
        assert "Context mismatch at line 92" in (clipboard.last or "")
        assert "src/module_2.py" in (clipboard.last or "")

    @pytest.mark.asyncio
    async def test_repair_ignores_files_that_are_not_failed(
        self, transaction: Transaction
    ) -> None:
        engine = ScriptedPatchEngine()
        session = make_session(transaction, engine=engine)

        assert not await session.repair_file("t1-1")
        assert engine.reapplied == []

    @pytest.mark.asyncio
    async def test_repair_failure_from_engine_result(
        self, transaction: Transaction
    ) -> None:
        engine = ScriptedPatchEngine(
            reapply_results={"t1-2": FileApplyResult.failure("t1-2", "still broken")}
        )
        session = make_session(transaction, engine=engine, states={"t1-2": failed()})

        assert not await session.repair_file("t1-2")
        assert session.state("t1-2") == FileReviewState(
            status=S.FAILED, error="still broken", details="strategy: standard-diff"
        )

    @pytest.mark.asyncio
    async def test_repair_rolls_back_when_clipboard_fails(
        self, transaction: Transaction
    ) -> None:
        notifications: list[Notification] = []
        engine = ScriptedPatchEngine()
        session = make_session(
            transaction,
            engine=engine,
            clipboard=FailingClipboard(),
            states={"t1-2": failed()},
            notifications=notifications,
        )

        assert not await session.repair_file("t1-2")

        assert session.state("t1-2") == failed()
        assert engine.reapplied == []
        assert [n.type for n in notifications] == [NotificationType.ERROR]

    @pytest.mark.asyncio
    async def test_repair_rolls_back_when_engine_raises(
        self, transaction: Transaction
    ) -> None:
        notifications: list[Notification] = []
        changes: list[tuple[str, FileReviewStatus]] = []
        session = make_session(
            transaction,
            engine=ScriptedPatchEngine(error=PatchEngineError("engine offline")),
            states={"t1-2": failed()},
            notifications=notifications,
            changes=changes,
        )

        assert not await session.repair_file("t1-2")

        assert session.state("t1-2") == failed()
        assert changes == [("t1-2", S.RE_APPLYING), ("t1-2", S.FAILED)]
        assert notifications[0].message == "engine offline"

    @pytest.mark.asyncio
    async def test_instruct_passes_through_awaiting(
        self, transaction: Transaction
    ) -> None:
        changes: list[tuple[str, FileReviewStatus]] = []
        engine = ScriptedPatchEngine()
        session = make_session(
            transaction,
            engine=engine,
            states={"t1-3": FileReviewState(status=S.REJECTED)},
            changes=changes,
        )

        assert await session.instruct_file("t1-3", "use the new API")

        assert changes == [("t1-3", S.AWAITING), ("t1-3", S.APPROVED)]
        assert engine.instructions == ["use the new API"]

    @pytest.mark.asyncio
    async def test_instruct_requires_rejected_file(
        self, transaction: Transaction
    ) -> None:
        session = make_session(transaction)

        assert not await session.instruct_file("t1-3")
        assert session.status("t1-3") is S.AWAITING


class TestBulkRepair:
    """Tests for execute_bulk_repair."""

    def two_failed(self) -> dict[str, FileReviewState]:
        return {
            "t1-1": FileReviewState(status=S.APPROVED),
            "t1-2": failed("Context mismatch at line 92"),
            "t1-3": failed("Patch does not apply: file has local changes"),
        }

    @pytest.mark.asyncio
    async def test_no_failed_files_is_noop(self, transaction: Transaction) -> None:
        session = make_session(transaction)

        assert await session.execute_bulk_repair(1) is BulkOutcome.NOOP

    @pytest.mark.asyncio
    @pytest.mark.parametrize("option", [0, 5, 9])
    async def test_unknown_option_cancels(
        self, transaction: Transaction, option: int
    ) -> None:
        session = make_session(transaction, states=self.two_failed())

        assert await session.execute_bulk_repair(option) is BulkOutcome.CANCELLED
        assert session.states == self.two_failed()

    @pytest.mark.asyncio
    async def test_copy_prompt_lists_every_failed_file(
        self, transaction: Transaction
    ) -> None:
        clipboard = MemoryClipboard()
        session = make_session(
            transaction, clipboard=clipboard, states=self.two_failed()
        )

        assert await session.execute_bulk_repair(1) is BulkOutcome.PROMPT_COPIED

        prompt = clipboard.last or ""
        assert "src/module_2.py" in prompt
        assert "src/module_3.py" in prompt
        assert "src/module_1.py" not in prompt

    @pytest.mark.asyncio
    async def test_copy_failure_reports_error(self, transaction: Transaction) -> None:
        notifications: list[Notification] = []
        session = make_session(
            transaction,
            clipboard=FailingClipboard(),
            states=self.two_failed(),
            notifications=notifications,
        )

        assert await session.execute_bulk_repair(1) is BulkOutcome.COPY_FAILED
        assert len(notifications) == 1

    @pytest.mark.asyncio
    async def test_reapply_takes_engine_results(
        self, transaction: Transaction
    ) -> None:
        engine = ScriptedPatchEngine(
            reapply_results={"t1-3": FileApplyResult.failure("t1-3", "markers")}
        )
        session = make_session(transaction, engine=engine, states=self.two_failed())

        assert await session.execute_bulk_repair(2) is BulkOutcome.REAPPLIED

        assert engine.reapplied == [("t1-2", "t1-3")]
        assert session.status("t1-2") is S.APPROVED
        assert session.state("t1-3").error == "markers"

    @pytest.mark.asyncio
    async def test_reapply_rolls_back_when_engine_raises(
        self, transaction: Transaction
    ) -> None:
        notifications: list[Notification] = []
        session = make_session(
            transaction,
            engine=ScriptedPatchEngine(error=PatchEngineError("engine offline")),
            states=self.two_failed(),
            notifications=notifications,
        )

        assert await session.execute_bulk_repair(2) is BulkOutcome.REAPPLY_FAILED

        assert session.states == self.two_failed()
        assert notifications[0].title == "Bulk re-apply failed"

    @pytest.mark.asyncio
    async def test_handoff_leaves_states_alone(self, transaction: Transaction) -> None:
        session = make_session(transaction, states=self.two_failed())

        assert await session.execute_bulk_repair(3) is BulkOutcome.HANDOFF_REQUESTED
        assert session.states == self.two_failed()

    @pytest.mark.asyncio
    async def test_abandon_rejects_failed_files(
        self, transaction: Transaction
    ) -> None:
        session = make_session(transaction, states=self.two_failed())

        assert await session.execute_bulk_repair(4) is BulkOutcome.ABANDONED

        assert session.status("t1-1") is S.APPROVED
        assert session.status("t1-2") is S.REJECTED
        assert session.status("t1-3") is S.REJECTED
        assert not session.has_failed_files

    @pytest.mark.asyncio
    async def test_targets_are_read_when_the_option_runs(
        self, transaction: Transaction
    ) -> None:
        session = make_session(transaction, states=self.two_failed())
        # one file was fixed after the menu opened
        session.transition("t1-2", S.REJECTED)

        await session.execute_bulk_repair(4)

        assert session.status("t1-2") is S.REJECTED
        assert session.status("t1-3") is S.REJECTED


class TestBulkInstruct:
    """Tests for execute_bulk_instruct."""

    def rejected(self) -> dict[str, FileReviewState]:
        return {
            "t1-1": FileReviewState(status=S.REJECTED),
            "t1-2": FileReviewState(status=S.REJECTED),
        }

    @pytest.mark.asyncio
    async def test_copy_prompt(self, transaction: Transaction) -> None:
        clipboard = MemoryClipboard()
        session = make_session(transaction, clipboard=clipboard, states=self.rejected())

        assert await session.execute_bulk_instruct(1) is BulkOutcome.PROMPT_COPIED
        assert "- REJECTED: src/module_1.py" in (clipboard.last or "")

    @pytest.mark.asyncio
    async def test_handoff(self, transaction: Transaction) -> None:
        session = make_session(transaction, states=self.rejected())

        assert await session.execute_bulk_instruct(2) is BulkOutcome.HANDOFF_REQUESTED

    @pytest.mark.asyncio
    async def test_unreject_approves_rejected_files(
        self, transaction: Transaction
    ) -> None:
        session = make_session(transaction, states=self.rejected())

        assert await session.execute_bulk_instruct(3) is BulkOutcome.UNREJECTED

        assert session.approved_count == 2
        assert session.status("t1-3") is S.AWAITING

    @pytest.mark.asyncio
    async def test_cancel_and_noop(self, transaction: Transaction) -> None:
        session = make_session(transaction)

        assert await session.execute_bulk_instruct(4) is BulkOutcome.CANCELLED
        assert await session.execute_bulk_instruct(1) is BulkOutcome.NOOP


class TestApplyIntegration:
    """Tests for reset_for_apply and apply_outcome."""

    def test_apply_outcome_writes_results(self, transaction: Transaction) -> None:
        session = make_session(transaction)

        session.apply_outcome(
            {
                "t1-1": FileApplyResult.success("t1-1"),
                "t1-2": FileApplyResult.failure("t1-2", "Hunk #1 failed to apply"),
            },
            PatchStatus.PARTIAL_FAILURE,
        )

        assert session.patch_status is PatchStatus.PARTIAL_FAILURE
        assert session.status("t1-1") is S.APPROVED
        assert session.state("t1-2").error == "Hunk #1 failed to apply"
        # files without a result are treated as failed
        assert session.status("t1-3") is S.FAILED

    def test_reset_for_apply(self, transaction: Transaction) -> None:
        session = make_session(
            transaction,
            states={"t1-1": FileReviewState(status=S.APPROVED), "t1-2": failed()},
        )

        session.reset_for_apply()

        assert {s.status for s in session.states.values()} == {S.AWAITING}

    @pytest.mark.asyncio
    async def test_handoff_prompt_lists_failed_files(
        self, transaction: Transaction
    ) -> None:
        clipboard = MemoryClipboard()
        session = make_session(
            transaction, clipboard=clipboard, states={"t1-2": failed("boom")}
        )

        assert await session.copy_handoff_prompt()
        assert "- FAILED: src/module_2.py (Error: boom)" in (clipboard.last or "")
