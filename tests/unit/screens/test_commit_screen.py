"""Tests for the git commit and apply progress screens."""

from __future__ import annotations

import pytest

from relaycode.app.context import AppContext
from relaycode.app.router import Overlay, Screen
from relaycode.config import RelaycodeConfig
from relaycode.constants import AGGREGATE_COMMIT_TITLE
from relaycode.models.enums import NotificationType, StepStatus, TransactionStatus
from relaycode.screens.commit import build_commit_message
from relaycode.services.protocols import CommitResult
from relaycode.services.transactions import TransactionStore
from tests.fixtures.collaborators import RecordingGitService
from tests.fixtures.context import make_context
from tests.fixtures.scheduler import FakeScheduler
from tests.fixtures.transactions import make_transaction


class TestBuildCommitMessage:
    """Tests for build_commit_message."""

    def test_empty(self) -> None:
        assert build_commit_message([]) == ""

    def test_single_transaction_keeps_its_message(self) -> None:
        tx = make_transaction("t1")

        assert build_commit_message([tx]) == tx.message

    def test_several_transactions_are_summarized(self) -> None:
        first = make_transaction("t1")
        second = make_transaction("t2")

        message = build_commit_message([first, second])

        assert message == (
            f"{AGGREGATE_COMMIT_TITLE}\n\n- {first.message}\n- {second.message}"
        )


class TestCommitScreen:
    """Tests for CommitController."""

    def test_prepare_captures_applied(self, ctx: AppContext) -> None:
        ctx.store.update_status("2", TransactionStatus.APPLIED)

        ctx.press("c")

        assert [tx.id for tx in ctx.commit.transactions] == ["2", "3"]
        assert ctx.commit.message.startswith(AGGREGATE_COMMIT_TITLE)

    @pytest.mark.asyncio
    async def test_enter_commits_and_returns_to_dashboard(
        self, ctx: AppContext
    ) -> None:
        ctx.press("c", "enter")
        assert ctx.commit.is_committing

        await ctx.tasks.drain()

        assert ctx.store.get("3").status is TransactionStatus.COMMITTED
        assert ctx.router.screen is Screen.DASHBOARD
        assert ctx.router.overlay is Overlay.NOTIFICATION
        assert ctx.notifications.current.type is NotificationType.SUCCESS
        assert not ctx.commit.is_committing

    @pytest.mark.asyncio
    async def test_rejected_commit_keeps_screen(
        self,
        fast_config: RelaycodeConfig,
        scheduler: FakeScheduler,
        store: TransactionStore,
    ) -> None:
        git = RecordingGitService(CommitResult(success=False, error="hook failed"))
        ctx = make_context(fast_config, scheduler, store, git=git)
        ctx.start()
        ctx.commit.prepare()
        ctx.router.show(Screen.GIT_COMMIT)

        assert not await ctx.commit.run_commit()

        assert git.commits == [("3",)]
        assert ctx.store.get("3").status is TransactionStatus.APPLIED
        assert ctx.router.screen is Screen.GIT_COMMIT
        assert ctx.notifications.current.message == "hook failed"

    @pytest.mark.asyncio
    async def test_second_enter_is_ignored_while_committing(
        self, ctx: AppContext
    ) -> None:
        ctx.press("c", "enter")

        assert not ctx.commit.commit()
        assert ctx.tasks.pending == 1
        await ctx.tasks.drain()

    def test_escape_returns_to_dashboard(self, ctx: AppContext) -> None:
        ctx.press("c", "escape")

        assert ctx.router.screen is Screen.DASHBOARD


class TestProcessingScreen:
    """Tests for ProcessingController."""

    @pytest.mark.asyncio
    async def test_steps_follow_the_active_run(self, ctx: AppContext) -> None:
        ctx.review.load("1")
        ctx.router.show(Screen.REVIEW)
        ctx.press("1")

        assert ctx.router.screen is Screen.REVIEW_PROCESSING
        assert ctx.processing.run is ctx.review.active_run
        assert ctx.processing.current_step is None

        await ctx.tasks.drain()

        assert ctx.processing.run is ctx.review.last_run
        assert {step.status for step in ctx.processing.steps} == {StepStatus.DONE}

    @pytest.mark.asyncio
    async def test_elapsed_refreshes_on_timer(
        self, ctx: AppContext, scheduler: FakeScheduler
    ) -> None:
        ctx.review.load("1")
        ctx.router.show(Screen.REVIEW)
        ctx.press("1")
        await ctx.tasks.drain()
        ctx.router.show(Screen.REVIEW_PROCESSING)

        scheduler.advance(0.1)

        assert ctx.processing.elapsed == ctx.review.last_run.elapsed

    def test_skip_without_run(self, ctx: AppContext) -> None:
        assert not ctx.processing.skip_current_step()
        assert not ctx.processing.cancel()
