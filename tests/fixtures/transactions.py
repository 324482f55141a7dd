"""Transaction fixtures."""

from __future__ import annotations

import pytest

from relaycode.models.domain import FileItem, Transaction
from relaycode.models.enums import PatchStrategy, TransactionStatus
from relaycode.services.fixtures import load_mock_transactions
from relaycode.services.transactions import TransactionStore

#: Fixed clock for deterministic ordering and relative times
NOW = 1_700_000_000.0


def make_transaction(
    tx_id: str = "t1",
    *,
    status: TransactionStatus = TransactionStatus.PENDING,
    file_count: int = 3,
    timestamp: float = NOW,
    diff_lines: int = 3,
) -> Transaction:
    """Build a transaction with ``file_count`` files named ``<tx_id>-<n>``."""
    diff = "\n".join(f"+line {n}" for n in range(diff_lines))
    files = tuple(
        FileItem(
            id=f"{tx_id}-{n}",
            path=f"src/module_{n}.py",
            diff=diff,
            lines_added=diff_lines,
            strategy=PatchStrategy.REPLACE if n == 1 else PatchStrategy.STANDARD_DIFF,
        )
        for n in range(1, file_count + 1)
    )
    return Transaction(
        id=tx_id,
        status=status,
        hash=f"{tx_id:0>8}"[:8],
        message=f"feat: change {tx_id}",
        timestamp=timestamp,
        prompt=f"Prompt for {tx_id}",
        reasoning=f"Reasoning for {tx_id}\nsecond line",
        files=files,
    )


@pytest.fixture
def transaction() -> Transaction:
    """A pending transaction with three files."""
    return make_transaction()


@pytest.fixture
def mock_transactions() -> list[Transaction]:
    return load_mock_transactions(NOW)


@pytest.fixture
def store(mock_transactions: list[Transaction]) -> TransactionStore:
    """Store holding only the six primary demo transactions."""
    return TransactionStore(mock_transactions)
