"""Relaycode constants.

Single source of truth for apply-step identifiers, the option labels of the
bulk sub-views, and the reason strings attached to skipped steps.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Apply Pipeline
# =============================================================================

STEP_SNAPSHOT: Final = "snapshot"
STEP_MEMORY: Final = "memory"
STEP_POST_COMMAND: Final = "post-command"
STEP_LINTER: Final = "linter"

#: Fixed stage order of the apply pipeline
APPLY_STEP_ORDER: Final[tuple[str, ...]] = (
    STEP_SNAPSHOT,
    STEP_MEMORY,
    STEP_POST_COMMAND,
    STEP_LINTER,
)

#: Titles shown for each stage before it runs
APPLY_STEP_TITLES: Final[dict[str, str]] = {
    STEP_SNAPSHOT: "Reading initial file snapshot...",
    STEP_MEMORY: "Applying operations to memory...",
    STEP_POST_COMMAND: "Running post-command script...",
    STEP_LINTER: "Analyzing changes with linter...",
}

#: Steps that accumulate substeps
STEPS_WITH_SUBSTEPS: Final = frozenset({STEP_MEMORY, STEP_POST_COMMAND, STEP_LINTER})

#: Steps the operator may skip while they are active
SKIPPABLE_STEPS: Final = frozenset({STEP_POST_COMMAND})

SKIP_REASON_PATCH_FAILURE: Final = "Skipped due to patch application failure"
SKIP_REASON_POST_COMMAND_FAILURE: Final = "Skipped due to post-command failure"
SKIP_REASON_NO_COMMAND: Final = "No command configured"
SKIP_REASON_USER: Final = "Skipped by user"
SKIP_REASON_CANCELLED: Final = "Cancelled"
SKIP_REASON_ERROR: Final = "Skipped due to an unexpected error"
FAIL_REASON_CANCELLED: Final = "Cancelled by user"

#: Errors attached to files not written when a run is cancelled or aborted
CANCELLED_FILE_ERROR: Final = "Apply cancelled before this file was written"
ABORTED_FILE_ERROR: Final = "Apply aborted before this file was written"

#: Error attached to files the re-apply collaborator returned no result for
MISSING_RESULT_ERROR: Final = "Re-apply returned no result for this file"

# =============================================================================
# Review Bulk Sub-views
# =============================================================================

BULK_REPAIR_OPTIONS: Final[tuple[str, ...]] = (
    "(1) Copy Bulk Re-apply Prompt (for single-shot AI)",
    "(2) Bulk Change Strategy & Re-apply",
    "(3) Handoff to External Agent",
    "(4) Bulk Abandon All Failed Files",
    "(Esc) Cancel",
)

BULK_INSTRUCT_OPTIONS: Final[tuple[str, ...]] = (
    "(1) Copy Bulk Re-instruct Prompt (for single-shot AI)",
    "(2) Handoff to External Agent",
    "(3) Bulk Un-reject All Files (revert to original)",
    "(4) Cancel",
)

# =============================================================================
# Transaction History
# =============================================================================

HISTORY_BULK_ACTIONS: Final[tuple[str, ...]] = (
    "(1) Revert Selected Transactions",
    "(2) Mark as 'Git Committed'",
    "(3) Delete Selected Transactions (from Relaycode history)",
    "(Esc) Cancel",
)

# =============================================================================
# Display
# =============================================================================

#: Diffs longer than this are shown collapsed until expanded
DIFF_COLLAPSE_THRESHOLD: Final = 20

#: Lines shown from each end of a collapsed diff
DIFF_PREVIEW_LINES: Final = 8

#: Upper bound on entries kept in the debug log
MAX_LOG_ENTRIES: Final = 200

#: Commit title used when several transactions are committed together
AGGREGATE_COMMIT_TITLE: Final = "feat: apply relaycode transactions"
