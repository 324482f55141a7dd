"""Per-file review state machine for one transaction.

A :class:`ReviewSession` owns the ``FileReviewState`` of every file in the
transaction under review. All status changes go through :meth:`transition`,
which enforces the allowed-transition table; higher-level operations (toggle,
repair, bulk actions) are built on top of it and never raise for a disallowed
change, they log it and leave the state alone.

Collaborator failures (clipboard, patch engine) roll the affected files back
to the state they had before the attempt and post an error notification.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from enum import Enum

from relaycode.constants import MISSING_RESULT_ERROR
from relaycode.exceptions import (
    ClipboardError,
    InvalidTransitionError,
    PatchEngineError,
    UnknownFileError,
)
from relaycode.logging import get_logger
from relaycode.models.domain import FileItem, Transaction
from relaycode.models.enums import FileReviewStatus, PatchStatus
from relaycode.models.notification import Notification
from relaycode.models.review import FileApplyResult, FileReviewState
from relaycode.review import prompts
from relaycode.services.protocols import ClipboardService, PatchEngine

__all__ = [
    "ALLOWED_TRANSITIONS",
    "BulkOutcome",
    "ReviewSession",
    "Notifier",
    "StatusListener",
]

logger = get_logger(__name__)

Notifier = Callable[[Notification], None]
StatusListener = Callable[[str, FileReviewState], None]

_S = FileReviewStatus

ALLOWED_TRANSITIONS: dict[FileReviewStatus, frozenset[FileReviewStatus]] = {
    _S.AWAITING: frozenset({_S.APPROVED, _S.REJECTED, _S.FAILED}),
    _S.APPROVED: frozenset({_S.REJECTED}),
    _S.REJECTED: frozenset({_S.APPROVED, _S.AWAITING}),
    _S.FAILED: frozenset({_S.RE_APPLYING, _S.REJECTED}),
    _S.RE_APPLYING: frozenset({_S.APPROVED, _S.FAILED}),
}


class BulkOutcome(str, Enum):
    """What a bulk repair or bulk instruct option ended up doing."""

    NOOP = "noop"
    CANCELLED = "cancelled"
    PROMPT_COPIED = "prompt_copied"
    COPY_FAILED = "copy_failed"
    REAPPLIED = "reapplied"
    REAPPLY_FAILED = "reapply_failed"
    HANDOFF_REQUESTED = "handoff_requested"
    ABANDONED = "abandoned"
    UNREJECTED = "unrejected"


class ReviewSession:
    """Review state for the files of one transaction.

    Args:
        transaction: Transaction under review.
        patch_engine: Collaborator used for repair and re-apply.
        clipboard: Collaborator that receives generated prompts.
        notify: Receives error notifications for collaborator failures.
        on_status_change: Called with the file id and new state after every
            change, including rollbacks.
        initial_states: Starting state per file id. Missing files start
            AWAITING.
        patch_status: Result of the most recent apply run.
    """

    def __init__(
        self,
        transaction: Transaction,
        *,
        patch_engine: PatchEngine,
        clipboard: ClipboardService,
        notify: Notifier | None = None,
        on_status_change: StatusListener | None = None,
        initial_states: Mapping[str, FileReviewState] | None = None,
        patch_status: PatchStatus = PatchStatus.SUCCESS,
    ) -> None:
        self._transaction = transaction
        self.patch_engine = patch_engine
        self._clipboard = clipboard
        self._notify = notify
        self._on_status_change = on_status_change
        self.patch_status = patch_status
        initial = initial_states or {}
        self._states: dict[str, FileReviewState] = {
            file.id: initial.get(file.id, FileReviewState())
            for file in transaction.files
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def transaction(self) -> Transaction:
        return self._transaction

    @property
    def states(self) -> Mapping[str, FileReviewState]:
        return dict(self._states)

    def state(self, file_id: str) -> FileReviewState:
        """Current state of one file.

        Raises:
            UnknownFileError: If the file is not part of the transaction.
        """
        try:
            return self._states[file_id]
        except KeyError:
            raise UnknownFileError(file_id) from None

    def status(self, file_id: str) -> FileReviewStatus:
        return self.state(file_id).status

    def files_with_status(self, status: FileReviewStatus) -> list[FileItem]:
        return [
            file
            for file in self._transaction.files
            if self._states[file.id].status is status
        ]

    @property
    def approved_count(self) -> int:
        return len(self.files_with_status(FileReviewStatus.APPROVED))

    @property
    def has_failed_files(self) -> bool:
        return bool(self.files_with_status(FileReviewStatus.FAILED))

    @property
    def has_rejected_files(self) -> bool:
        return bool(self.files_with_status(FileReviewStatus.REJECTED))

    @property
    def can_approve(self) -> bool:
        return self.approved_count > 0

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition(
        self,
        file_id: str,
        to_status: FileReviewStatus,
        *,
        error: str | None = None,
        details: str | None = None,
    ) -> FileReviewState:
        """Move one file to a new status.

        Args:
            file_id: File to change.
            to_status: Requested status.
            error: Error message kept while the file is FAILED.
            details: Optional note stored with the new state.

        Returns:
            The new state.

        Raises:
            UnknownFileError: If the file is not part of the transaction.
            InvalidTransitionError: If the move is not in the allowed table.
        """
        current = self.state(file_id)
        if to_status not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidTransitionError(file_id, current.status, to_status)
        new_state = FileReviewState(
            status=to_status,
            error=error if to_status is FileReviewStatus.FAILED else None,
            details=details,
        )
        self._set(file_id, new_state)
        return new_state

    def _try_transition(
        self,
        file_id: str,
        to_status: FileReviewStatus,
        *,
        error: str | None = None,
        details: str | None = None,
    ) -> bool:
        try:
            self.transition(file_id, to_status, error=error, details=details)
        except (InvalidTransitionError, UnknownFileError) as e:
            logger.warning(
                "review_transition_rejected",
                transaction_id=self._transaction.id,
                file_id=file_id,
                to_status=to_status.value,
                reason=e.message,
            )
            return False
        return True

    def _set(self, file_id: str, state: FileReviewState) -> None:
        self._states[file_id] = state
        if self._on_status_change is not None:
            self._on_status_change(file_id, state)

    def _rollback(self, snapshot: Mapping[str, FileReviewState]) -> None:
        for file_id, state in snapshot.items():
            if self._states.get(file_id) != state:
                self._set(file_id, state)

    def _report(self, title: str, error: Exception) -> None:
        logger.warning(
            "review_collaborator_failed",
            transaction_id=self._transaction.id,
            title=title,
            error=str(error),
        )
        if self._notify is not None:
            self._notify(Notification.error(title, str(error)))

    async def _copy(self, text: str, title: str) -> bool:
        try:
            await self._clipboard.write(text)
        except ClipboardError as e:
            self._report(title, e)
            return False
        logger.info("review_prompt_copied", transaction_id=self._transaction.id)
        return True

    # ------------------------------------------------------------------
    # Single-file operations
    # ------------------------------------------------------------------

    def toggle_file(self, file_id: str) -> bool:
        """Flip a file between approved and rejected.

        AWAITING becomes APPROVED. FAILED and RE_APPLYING files are left
        untouched.

        Returns:
            True if the file changed.
        """
        try:
            status = self.status(file_id)
        except UnknownFileError:
            logger.warning("review_unknown_file", file_id=file_id)
            return False
        if status in (FileReviewStatus.AWAITING, FileReviewStatus.REJECTED):
            return self._try_transition(file_id, FileReviewStatus.APPROVED)
        if status is FileReviewStatus.APPROVED:
            return self._try_transition(file_id, FileReviewStatus.REJECTED)
        logger.debug("review_toggle_ignored", file_id=file_id, status=status.value)
        return False

    def reject_all(self) -> int:
        """Reject every approved file.

        Returns:
            Number of files rejected.
        """
        return sum(
            self._try_transition(file.id, FileReviewStatus.REJECTED)
            for file in self.files_with_status(FileReviewStatus.APPROVED)
        )

    async def repair_file(self, file_id: str) -> bool:
        """Copy a repair prompt for a FAILED file, then re-apply it.

        Returns:
            True if the file ended up APPROVED.
        """
        file = self._transaction.file(file_id)
        if file is None or self.status(file_id) is not FileReviewStatus.FAILED:
            logger.debug("review_repair_ignored", file_id=file_id)
            return False
        before = self._states[file_id]
        prompt = prompts.single_file_repair_prompt(file, before.error)
        if not await self._copy(prompt, "Could not copy repair prompt"):
            return False

        self._try_transition(file_id, FileReviewStatus.RE_APPLYING)
        try:
            results = await self.patch_engine.reapply([file])
        except PatchEngineError as e:
            self._rollback({file_id: before})
            self._report("Repair failed", e)
            return False
        self._apply_reapply_results([file], results)
        return self._states[file_id].status is FileReviewStatus.APPROVED

    async def instruct_file(self, file_id: str, instruction: str | None = None) -> bool:
        """Copy an instruct prompt for a REJECTED file, then re-apply it.

        The file goes back to AWAITING while the patch engine works, then
        takes the engine's result.

        Returns:
            True if the file ended up APPROVED.
        """
        file = self._transaction.file(file_id)
        if file is None or self.status(file_id) is not FileReviewStatus.REJECTED:
            logger.debug("review_instruct_ignored", file_id=file_id)
            return False
        before = self._states[file_id]
        prompt = prompts.instruct_prompt(self._transaction, file)
        if not await self._copy(prompt, "Could not copy instruct prompt"):
            return False

        self._try_transition(file_id, FileReviewStatus.AWAITING)
        try:
            results = await self.patch_engine.reapply(
                [file], instruction=instruction or prompt
            )
        except PatchEngineError as e:
            self._rollback({file_id: before})
            self._report("Re-instruct failed", e)
            return False
        self._apply_reapply_results([file], results)
        return self._states[file_id].status is FileReviewStatus.APPROVED

    def _apply_reapply_results(
        self, files: Iterable[FileItem], results: Mapping[str, FileApplyResult]
    ) -> None:
        for file in files:
            result = results.get(file.id)
            if result is None:
                logger.warning("review_reapply_missing_result", file_id=file.id)
                result = FileApplyResult.failure(file.id, MISSING_RESULT_ERROR)
            self._try_transition(
                file.id,
                result.status,
                error=result.error,
                details=f"strategy: {file.strategy.value}",
            )

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def execute_bulk_repair(self, option: int) -> BulkOutcome:
        """Run one of the bulk repair options over the FAILED files.

        Targets are the files FAILED at the moment of the call, not when the
        menu was opened.

        Args:
            option: 1 copy prompt, 2 re-apply, 3 hand-off, 4 abandon.

        Returns:
            What the option did.
        """
        if option not in (1, 2, 3, 4):
            return BulkOutcome.CANCELLED
        targets = self.files_with_status(FileReviewStatus.FAILED)
        if not targets:
            logger.debug("review_bulk_repair_no_targets", option=option)
            return BulkOutcome.NOOP
        logger.info(
            "review_bulk_repair",
            transaction_id=self._transaction.id,
            option=option,
            targets=[f.id for f in targets],
        )

        if option == 1:
            prompt = prompts.bulk_repair_prompt(targets, self._states)
            if not await self._copy(prompt, "Could not copy bulk repair prompt"):
                return BulkOutcome.COPY_FAILED
            return BulkOutcome.PROMPT_COPIED

        if option == 2:
            snapshot = {f.id: self._states[f.id] for f in targets}
            for file in targets:
                self._try_transition(file.id, FileReviewStatus.RE_APPLYING)
            try:
                results = await self.patch_engine.reapply(targets)
            except PatchEngineError as e:
                self._rollback(
                    {
                        file_id: state
                        for file_id, state in snapshot.items()
                        if self._states[file_id].status is FileReviewStatus.RE_APPLYING
                    }
                )
                self._report("Bulk re-apply failed", e)
                return BulkOutcome.REAPPLY_FAILED
            self._apply_reapply_results(targets, results)
            return BulkOutcome.REAPPLIED

        if option == 3:
            return BulkOutcome.HANDOFF_REQUESTED

        for file in targets:
            self._try_transition(file.id, FileReviewStatus.REJECTED)
        return BulkOutcome.ABANDONED

    async def execute_bulk_instruct(self, option: int) -> BulkOutcome:
        """Run one of the bulk instruct options over the REJECTED files.

        Args:
            option: 1 copy prompt, 2 hand-off, 3 un-reject.

        Returns:
            What the option did.
        """
        if option not in (1, 2, 3):
            return BulkOutcome.CANCELLED
        targets = self.files_with_status(FileReviewStatus.REJECTED)
        if not targets:
            logger.debug("review_bulk_instruct_no_targets", option=option)
            return BulkOutcome.NOOP
        logger.info(
            "review_bulk_instruct",
            transaction_id=self._transaction.id,
            option=option,
            targets=[f.id for f in targets],
        )

        if option == 1:
            prompt = prompts.bulk_instruct_prompt(self._transaction, targets)
            if not await self._copy(prompt, "Could not copy bulk instruct prompt"):
                return BulkOutcome.COPY_FAILED
            return BulkOutcome.PROMPT_COPIED

        if option == 2:
            return BulkOutcome.HANDOFF_REQUESTED

        for file in targets:
            self._try_transition(file.id, FileReviewStatus.APPROVED)
        return BulkOutcome.UNREJECTED

    def handoff_prompt(self) -> str:
        return prompts.handoff_prompt(self._transaction, self._states)

    async def copy_handoff_prompt(self) -> bool:
        return await self._copy(
            self.handoff_prompt(), "Could not copy hand-off prompt"
        )

    # ------------------------------------------------------------------
    # Apply pipeline integration
    # ------------------------------------------------------------------

    def reset_for_apply(self) -> None:
        """Put every file back to AWAITING before a new apply run."""
        for file in self._transaction.files:
            if self._states[file.id].status is not FileReviewStatus.AWAITING:
                self._set(file.id, FileReviewState())

    def apply_outcome(
        self,
        file_results: Mapping[str, FileApplyResult],
        patch_status: PatchStatus,
    ) -> None:
        """Write the per-file results of a finished apply run."""
        self.patch_status = patch_status
        for file in self._transaction.files:
            result = file_results.get(file.id)
            if result is None:
                result = FileApplyResult.failure(file.id, MISSING_RESULT_ERROR)
            if self._states[file.id].status is not FileReviewStatus.AWAITING:
                self._set(file.id, FileReviewState())
            self._try_transition(file.id, result.status, error=result.error)
