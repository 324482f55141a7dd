"""Git commit screen for applied transactions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relaycode.app.input import KeyEvent, NamedKey
from relaycode.app.router import Screen
from relaycode.constants import AGGREGATE_COMMIT_TITLE
from relaycode.exceptions import GitServiceError
from relaycode.logging import get_logger
from relaycode.models.domain import Transaction
from relaycode.models.enums import TransactionStatus
from relaycode.models.notification import Notification
from relaycode.screens.base import Controller

if TYPE_CHECKING:
    from relaycode.app.context import AppContext

__all__ = ["CommitController", "build_commit_message"]

logger = get_logger(__name__)


def build_commit_message(transactions: list[Transaction]) -> str:
    """Commit message for the given transactions.

    A single transaction keeps its own message; several are summarized under
    a shared title with one bullet per transaction.
    """
    if not transactions:
        return ""
    if len(transactions) == 1:
        return transactions[0].message
    body = "\n".join(f"- {tx.message}" for tx in transactions)
    return f"{AGGREGATE_COMMIT_TITLE}\n\n{body}"


class CommitController(Controller):
    """Commits every APPLIED transaction.

    Attributes:
        transactions: Transactions captured by :meth:`prepare`.
        message: Commit message shown for confirmation.
        is_committing: True while the git service is working.
    """

    name = "commit"

    def __init__(self, ctx: AppContext) -> None:
        super().__init__(ctx)
        self.transactions: list[Transaction] = []
        self.message = ""
        self.is_committing = False

    def prepare(self) -> None:
        self.transactions = self.ctx.store.by_status(TransactionStatus.APPLIED)
        self.message = build_commit_message(self.transactions)
        self.is_committing = False

    def commit(self) -> bool:
        """Start the commit in the background."""
        if self.is_committing or not self.transactions:
            return False
        self.is_committing = True
        self.ctx.tasks.spawn(self.run_commit(), name="git-commit")
        return True

    async def run_commit(self) -> bool:
        """Commit the prepared transactions and mark them COMMITTED.

        Returns:
            True if the commit succeeded.
        """
        ids = [tx.id for tx in self.transactions]
        self.is_committing = True
        try:
            result = await self.ctx.git.commit(ids)
        except GitServiceError as e:
            logger.error("commit_failed", error=str(e))
            self.ctx.notify(Notification.error("Commit failed", str(e)))
            return False
        finally:
            self.is_committing = False
        if not result.success:
            error = result.error or "Commit was not created"
            logger.warning("commit_rejected", error=error)
            self.ctx.notify(Notification.error("Commit failed", error))
            return False
        for tx_id in ids:
            self.ctx.store.update_status(tx_id, TransactionStatus.COMMITTED)
        logger.info("commit_succeeded", transactions=ids)
        self.ctx.router.show(Screen.DASHBOARD)
        self.ctx.notify(
            Notification.success("Committed", f"Committed {len(ids)} transaction(s).")
        )
        return True

    def cancel(self) -> None:
        if not self.is_committing:
            self.ctx.router.show(Screen.DASHBOARD)

    def handle_key(self, key: KeyEvent) -> bool:
        if key.is_key(NamedKey.ENTER):
            self.commit()
        elif key.is_key(NamedKey.ESCAPE):
            self.cancel()
        else:
            return False
        return True
