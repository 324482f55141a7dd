"""Prompt text copied to the clipboard by the review workflows.

Each builder takes the files it reports on together with their current
review state, so callers decide which files are targeted.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from relaycode.models.domain import FileItem, Transaction
from relaycode.models.enums import FileReviewStatus
from relaycode.models.review import FileReviewState

__all__ = [
    "bulk_repair_prompt",
    "single_file_repair_prompt",
    "instruct_prompt",
    "bulk_instruct_prompt",
    "handoff_prompt",
]

States = Mapping[str, FileReviewState]


def _error(file: FileItem, states: States) -> str:
    state = states.get(file.id)
    return (state.error if state else None) or "unknown error"


def single_file_repair_prompt(file: FileItem, error: str | None) -> str:
    return f"""The patch failed to apply to {file.path}. Please generate a corrected patch.

Error: {error or "unknown error"}
Strategy: {file.strategy.value}

ORIGINAL CONTENT:
---
// ... original file content would be here ...
---

FAILED PATCH:
---
{file.diff or "// ... failed diff would be here ..."}
---

Please provide a corrected patch that addresses the error."""


def bulk_repair_prompt(files: Sequence[FileItem], states: States) -> str:
    """Aggregate repair prompt covering every file in ``files``."""
    sections = "\n".join(
        f"""--- FILE: {file.path} ---
Strategy: {file.strategy.value}
Error: {_error(file, states)}

ORIGINAL CONTENT:
---
// ... original content of {file.path} ...
---

FAILED PATCH:
---
{file.diff or "// ... failed diff ..."}
---
"""
        for file in files
    )
    return f"""The previous patch failed to apply to MULTIPLE files. Please generate a new, corrected patch that addresses all the files listed below.

IMPORTANT: The response MUST contain a complete code block for EACH file that needs to be fixed.

{sections}

Please analyze all failed files and provide a complete, corrected response."""


def instruct_prompt(transaction: Transaction, file: FileItem) -> str:
    return f"""The change to {file.path} from transaction {transaction.hash} was rejected during review.

Original goal: {transaction.message}

REJECTED PATCH:
---
{file.diff or "// ... rejected diff ..."}
---

Please propose a different change to {file.path} that still achieves the original goal. I will add further instructions below."""


def bulk_instruct_prompt(transaction: Transaction, files: Sequence[FileItem]) -> str:
    """Aggregate re-instruct prompt covering every rejected file in ``files``."""
    listing = "\n".join(f"- REJECTED: {file.path}" for file in files)
    return f"""Several changes from transaction {transaction.hash} were rejected during review.

Original goal: {transaction.message}

REJECTED FILES:
{listing}

Please propose new changes for each rejected file that still achieve the original goal. I will add further instructions below."""


def handoff_prompt(transaction: Transaction, states: States) -> str:
    """Prompt handing a partially applied transaction to an external agent."""
    successful = [
        f"- MODIFIED: {file.path}"
        for file in transaction.files
        if (state := states.get(file.id)) and state.status is FileReviewStatus.APPROVED
    ]
    failed = [
        f"- FAILED: {file.path} (Error: {_error(file, states)})"
        for file in transaction.files
        if (state := states.get(file.id)) and state.status is FileReviewStatus.FAILED
    ]
    successful_text = "\n".join(successful) or "  (None)"
    failed_text = "\n".join(failed)
    return f"""I am handing off a failed automated code transaction to you. Your task is to act as my programming assistant and complete the planned changes.

The full plan for this transaction is detailed in the YAML file located at: .relay/transactions/{transaction.hash}.yml. Please use this file as your primary source of truth for the overall goal.

Here is the current status of the transaction:

--- TRANSACTION SUMMARY ---
Goal: {transaction.message}
Reasoning:
{transaction.reasoning}

--- CURRENT FILE STATUS ---
SUCCESSFUL CHANGES (already applied, no action needed):
{successful_text}

FAILED CHANGES (these are the files you need to fix):
{failed_text}

Your job is to now work with me to fix the FAILED files and achieve the original goal of the transaction. Please start by asking me which file you should work on first."""
