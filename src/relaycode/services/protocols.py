"""Collaborator protocol definitions.

The review engine only orchestrates state around these services; the real
patch merge, git commit, clipboard and script execution live behind them.
Implementations satisfy the protocols structurally, no inheritance required.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from relaycode.models.domain import FileItem, ScriptResult
from relaycode.models.review import FileApplyResult

__all__ = [
    "CommitResult",
    "PatchEngine",
    "GitService",
    "ClipboardService",
    "ScriptRunner",
]


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Two-outcome result of a commit request.

    Attributes:
        success: Whether the commit was created.
        error: Failure message when it was not.
    """

    success: bool
    error: str | None = None


@runtime_checkable
class PatchEngine(Protocol):
    """Writes file patches and re-applies failed ones."""

    async def apply(self, file: FileItem) -> FileApplyResult:
        """Write one file's patch and report APPROVED or FAILED."""
        ...

    async def reapply(
        self,
        files: Sequence[FileItem],
        *,
        instruction: str | None = None,
    ) -> Mapping[str, FileApplyResult]:
        """Re-apply a batch of files, returning one result per file id."""
        ...


@runtime_checkable
class GitService(Protocol):
    """Commits applied transactions."""

    async def commit(self, transaction_ids: Sequence[str]) -> CommitResult:
        """Commit the given transactions."""
        ...


@runtime_checkable
class ClipboardService(Protocol):
    """Writes text to the system clipboard.

    Raises ClipboardError when the write fails.
    """

    async def write(self, text: str) -> None:
        """Copy *text* to the clipboard."""
        ...


@runtime_checkable
class ScriptRunner(Protocol):
    """Runs post-command and linter scripts."""

    async def run(self, command: str) -> ScriptResult:
        """Run *command* and summarize its result."""
        ...
