"""In-memory transaction store.

The store is the single owner of transaction data. Screens read from it on
every query and change status only through :meth:`TransactionStore.update_status`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from relaycode.logging import get_logger
from relaycode.models.domain import Transaction
from relaycode.models.enums import TransactionStatus

__all__ = ["TransactionStore"]

logger = get_logger(__name__)

StoreListener = Callable[[str], None]


class TransactionStore:
    """Ordered collection of transactions keyed by id."""

    def __init__(self, transactions: Iterable[Transaction] = ()) -> None:
        self._transactions: dict[str, Transaction] = {}
        self._listeners: list[StoreListener] = []
        self.replace_all(transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._transactions

    def subscribe(self, listener: StoreListener) -> None:
        """Register a callback invoked with the id of every changed transaction."""
        self._listeners.append(listener)

    def replace_all(self, transactions: Iterable[Transaction]) -> None:
        self._transactions = {tx.id: tx for tx in transactions}

    def all(self) -> list[Transaction]:
        """All transactions, newest first."""
        return sorted(
            self._transactions.values(), key=lambda tx: tx.timestamp, reverse=True
        )

    def get(self, transaction_id: str) -> Transaction | None:
        return self._transactions.get(transaction_id)

    def by_status(self, *statuses: TransactionStatus) -> list[Transaction]:
        return [tx for tx in self.all() if tx.status in statuses]

    def update_status(
        self, transaction_id: str, status: TransactionStatus
    ) -> Transaction | None:
        """Swap in a copy of the transaction with a new status.

        Returns:
            The updated transaction, or None if the id is unknown.
        """
        current = self._transactions.get(transaction_id)
        if current is None:
            logger.warning("transaction_not_found", transaction_id=transaction_id)
            return None
        updated = current.with_status(status)
        self._transactions[transaction_id] = updated
        logger.debug(
            "transaction_status_updated",
            transaction_id=transaction_id,
            from_status=current.status.value,
            to_status=status.value,
        )
        self._notify(transaction_id)
        return updated

    def remove(self, transaction_ids: Iterable[str]) -> int:
        """Delete transactions.

        Returns:
            Number of transactions removed.
        """
        removed = 0
        for transaction_id in list(transaction_ids):
            if self._transactions.pop(transaction_id, None) is not None:
                removed += 1
                self._notify(transaction_id)
        return removed

    def _notify(self, transaction_id: str) -> None:
        for listener in self._listeners:
            listener(transaction_id)
