"""Transaction and file models.

Transactions are immutable snapshots. Status changes go through
``TransactionStore.update_status`` which swaps in a new instance, so screens
holding an old reference never observe a half-updated transaction.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace

from relaycode.models.enums import (
    FileChangeType,
    PatchStrategy,
    TransactionStatus,
)

__all__ = [
    "FileItem",
    "ScriptResult",
    "TransactionStats",
    "Transaction",
]


@dataclass(frozen=True, slots=True)
class FileItem:
    """A single file touched by a transaction.

    Attributes:
        id: Stable file id, unique within the transaction (e.g. "1-2").
        path: Repository-relative path.
        diff: Unified diff text (may be empty).
        lines_added: Number of added lines.
        lines_removed: Number of removed lines.
        type: Kind of change.
        strategy: Patch strategy the AI response asked for.
    """

    id: str
    path: str
    diff: str = ""
    lines_added: int = 0
    lines_removed: int = 0
    type: FileChangeType = FileChangeType.MOD
    strategy: PatchStrategy = PatchStrategy.STANDARD_DIFF

    @property
    def diff_lines(self) -> list[str]:
        return self.diff.splitlines() if self.diff else []


@dataclass(frozen=True, slots=True)
class ScriptResult:
    """Result of a post-command or linter script.

    Attributes:
        command: Command line that was run.
        success: Whether the script passed.
        duration: Runtime in seconds.
        summary: One-line summary (e.g. "Passed (37 tests)").
        output: Full captured output.
    """

    command: str
    success: bool
    duration: float
    summary: str
    output: str = ""

    @property
    def output_lines(self) -> list[str]:
        return self.output.splitlines()


@dataclass(frozen=True, slots=True)
class TransactionStats:
    """Aggregate line counts for a transaction."""

    files: int = 0
    lines_added: int = 0
    lines_removed: int = 0


@dataclass(frozen=True, slots=True)
class Transaction:
    """A patch produced from one AI response.

    Attributes:
        id: Transaction id.
        timestamp: Unix timestamp of the last status change.
        status: Lifecycle status.
        hash: Short hash used in prompts and file names.
        message: Commit-style message.
        prompt: Prompt that produced the patch.
        reasoning: The model's reasoning text.
        error: Error message for failed transactions.
        files: Files touched, in patch order.
        scripts: Results of scripts run after applying.
    """

    id: str
    status: TransactionStatus
    hash: str
    message: str
    timestamp: float = field(default_factory=time.time)
    prompt: str = ""
    reasoning: str = ""
    error: str | None = None
    files: tuple[FileItem, ...] = ()
    scripts: tuple[ScriptResult, ...] = ()

    @property
    def stats(self) -> TransactionStats:
        return TransactionStats(
            files=len(self.files),
            lines_added=sum(f.lines_added for f in self.files),
            lines_removed=sum(f.lines_removed for f in self.files),
        )

    def file(self, file_id: str) -> FileItem | None:
        """Look up a file by id.

        Args:
            file_id: File id within this transaction.

        Returns:
            The file, or None if not part of this transaction.
        """
        for item in self.files:
            if item.id == file_id:
                return item
        return None

    def with_status(
        self, status: TransactionStatus, *, timestamp: float | None = None
    ) -> Transaction:
        """Return a copy with a new status and a fresh timestamp."""
        return replace(
            self,
            status=status,
            timestamp=time.time() if timestamp is None else timestamp,
        )
