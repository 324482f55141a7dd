"""Transaction loader backed by built-in demo data.

Stands in for the loader that reads ``.relay/transactions``. The six primary
transactions drive the dashboard and review flows; the generated history
batch gives the history screen a long list to scroll.
"""

from __future__ import annotations

import hashlib
import time

from relaycode.models.domain import FileItem, ScriptResult, Transaction
from relaycode.models.enums import FileChangeType, PatchStrategy, TransactionStatus

__all__ = [
    "load_mock_transactions",
    "load_history_transactions",
    "load_all_transactions",
]

_RESTORE_REASONING = """\
1. Identified a potential uncaught exception in the `restoreSnapshot` function
   if a file operation fails midway through a loop of many files. This could
   leave the project in a partially-reverted, inconsistent state.

2. Wrapped the file restoration loop in a `Promise.all` and added a dedicated
   error collection array. This ensures that all file operations are
   attempted and that a comprehensive list of failures is available
   afterward for better error reporting or partial rollback logic.
"""

_RENAME_DIFF = """\
--- a/src/core/transaction.ts
+++ b/src/core/transaction.ts
@@ -15,7 +15,7 @@ export class Transaction {
   }

-  calculateChanges(): ChangeSet {
+  computeDelta(): ChangeSet {
     return this.changes;
   }
 }"""

_LINT_OUTPUT = """\
src/core/clipboard.ts
  45:12  Error    'clipboardy' is assigned a value but never used. (@typescript-eslint/no-unused-vars)
  88:5   Warning  Unexpected console statement. (no-console)"""

_HISTORY_DIFF = """\
--- a/src/core/transaction.ts
+++ b/src/core/transaction.ts
@@ -45,7 +45,9 @@
-    for (const [filePath, content] of entries) {
+    const restoreErrors: { path: string, error: unknown }[] = [];
+    for (const [filePath, content] of entries) {"""


def load_mock_transactions(now: float | None = None) -> list[Transaction]:
    """The six primary demo transactions, one per interesting status."""
    now = time.time() if now is None else now
    return [
        Transaction(
            id="1",
            timestamp=now - 10,
            status=TransactionStatus.PENDING,
            hash="e4a7c112",
            message="fix: add missing error handling",
            prompt=(
                "Rename the `calculateChanges` utility to `computeDelta` across "
                "all files and update imports accordingly."
            ),
            reasoning=_RESTORE_REASONING,
            files=(
                FileItem(
                    id="1-1",
                    path="src/core/transaction.ts",
                    diff=_RENAME_DIFF,
                    lines_added=18,
                    lines_removed=5,
                    strategy=PatchStrategy.REPLACE,
                ),
                FileItem(id="1-2", path="src/utils/logger.ts"),
                FileItem(id="1-3", path="src/commands/apply.ts"),
            ),
        ),
        Transaction(
            id="2",
            timestamp=now - 15,
            status=TransactionStatus.PENDING,
            hash="4b9d8f03",
            message="refactor: simplify clipboard logic",
            prompt="Simplify the clipboard logic using an external library...",
            reasoning=(
                "The existing clipboard logic was complex and platform-dependent. "
                "Using the `clipboardy` library simplifies the code and improves "
                "reliability across different operating systems."
            ),
            files=(
                FileItem(
                    id="2-1",
                    path="src/core/clipboard.ts",
                    diff=(
                        "--- a/src/core/clipboard.ts\n+++ b/src/core/clipboard.ts\n"
                        "@@ -1,5 +1,6 @@\n"
                        " import { copy as copyToClipboard } from 'clipboardy';"
                    ),
                    lines_added=15,
                    lines_removed=8,
                    strategy=PatchStrategy.REPLACE,
                ),
                FileItem(
                    id="2-2",
                    path="src/utils/shell.ts",
                    diff="--- a/src/utils/shell.ts\n+++ b/src/utils/shell.ts",
                    lines_added=7,
                    lines_removed=3,
                ),
            ),
            scripts=(
                ScriptResult(
                    command="bun run test",
                    success=True,
                    duration=2.3,
                    summary="Passed (37 tests)",
                    output="... test output ...",
                ),
                ScriptResult(
                    command="bun run lint",
                    success=False,
                    duration=1.2,
                    summary="1 Error, 3 Warnings",
                    output=_LINT_OUTPUT,
                ),
            ),
        ),
        Transaction(
            id="3",
            timestamp=now - 5 * 60,
            status=TransactionStatus.APPLIED,
            hash="8a3f21b8",
            message="feat: implement new dashboard UI",
            prompt=(
                "Add more robust error handling to the `restoreSnapshot` function. "
                "It should attempt all file restorations and then report a summary "
                "of any failures."
            ),
            reasoning=_RESTORE_REASONING,
            files=(
                FileItem(
                    id="3-1",
                    path="src/core/transaction.ts",
                    diff="... diff ...",
                    lines_added=18,
                    lines_removed=5,
                ),
                FileItem(
                    id="3-2",
                    path="src/utils/logger.ts",
                    diff="... diff ...",
                    lines_added=7,
                    lines_removed=3,
                ),
                FileItem(
                    id="3-3",
                    path="src/utils/old-helper.ts",
                    diff="... diff ...",
                    lines_removed=30,
                    type=FileChangeType.DEL,
                ),
            ),
        ),
        Transaction(
            id="4",
            timestamp=now - 8 * 60,
            status=TransactionStatus.REVERTED,
            hash="b2c9e04d",
            message="Reverting transaction 9c2e1a05",
        ),
        Transaction(
            id="5",
            timestamp=now - 9 * 60,
            status=TransactionStatus.FAILED,
            hash="9c2e1a05",
            message="style: update button component (Linter errors: 5)",
            error="Linter errors: 5",
        ),
        Transaction(
            id="6",
            timestamp=now - 12 * 60,
            status=TransactionStatus.COMMITTED,
            hash="c7d6b5e0",
            message="docs: update readme with TUI spec",
        ),
    ]


def _history_status(index: int) -> TransactionStatus:
    if index % 5 == 2:
        return TransactionStatus.HANDOFF
    if index % 5 == 3:
        return TransactionStatus.REVERTED
    return TransactionStatus.COMMITTED


def load_history_transactions(
    count: int = 42, now: float | None = None
) -> list[Transaction]:
    """Generate ``count`` older transactions, one per day, newest first."""
    now = time.time() if now is None else now
    day = 24 * 60 * 60
    transactions: list[Transaction] = []
    for index in range(count):
        tx_id = f"tx-{index}"
        transactions.append(
            Transaction(
                id=tx_id,
                # offset by one day so history sits below the primary set
                timestamp=now - (index + 1) * day,
                status=_history_status(index),
                hash=hashlib.sha1(tx_id.encode()).hexdigest()[:8],
                message=f"feat: commit message number {count - index}",
                prompt=f"Prompt for transaction {count - index}",
                reasoning=_RESTORE_REASONING,
                files=(
                    FileItem(
                        id=f"{tx_id}-1",
                        path="src/core/transaction.ts",
                        diff=_HISTORY_DIFF,
                        lines_added=25,
                        lines_removed=8,
                    ),
                    FileItem(
                        id=f"{tx_id}-2",
                        path="src/utils/logger.ts",
                        diff="diff for logger",
                        lines_added=10,
                        lines_removed=2,
                    ),
                    FileItem(
                        id=f"{tx_id}-3",
                        path="src/utils/old-helper.ts",
                        diff="diff for old-helper",
                        lines_removed=30,
                        type=FileChangeType.DEL,
                    ),
                ),
            )
        )
    return transactions


def load_all_transactions(history_count: int = 42) -> list[Transaction]:
    now = time.time()
    return [
        *load_mock_transactions(now),
        *load_history_transactions(history_count, now),
    ]
