"""Simulated git service."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from relaycode.logging import get_logger
from relaycode.services.protocols import CommitResult

__all__ = ["SimulatedGitService"]

logger = get_logger(__name__)


class SimulatedGitService:
    """Pretends to commit transactions after a short delay.

    Attributes:
        commits: Transaction id batches committed so far.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self._delay = delay
        self.commits: list[tuple[str, ...]] = []

    async def commit(self, transaction_ids: Sequence[str]) -> CommitResult:
        if not transaction_ids:
            return CommitResult(success=False, error="Nothing to commit")
        if self._delay:
            await asyncio.sleep(self._delay)
        self.commits.append(tuple(transaction_ids))
        logger.info("simulated_commit", transaction_count=len(transaction_ids))
        return CommitResult(success=True)
