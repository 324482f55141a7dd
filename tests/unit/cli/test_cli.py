"""Tests for the relaycode command line."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from relaycode.cli.commands.simulate import exit_code_for
from relaycode.cli.context import ExitCode
from relaycode.main import cli
from relaycode.models.enums import PatchStatus
from relaycode.review.pipeline import ApplyOutcome

FAST_APPLY_YAML = """
apply:
  step_delay: 0
  file_delay: 0
  script_delay: 0
  seed: 7
"""


@pytest.fixture
def project_dir(temp_dir: Path, clean_env: None) -> Path:
    """Temporary project directory with a zero-delay relaycode.yaml."""
    (temp_dir / "relaycode.yaml").write_text(FAST_APPLY_YAML)
    os.chdir(temp_dir)
    return temp_dir


class TestGroup:
    """Tests for global options."""

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_no_command_prints_help(
        self, cli_runner: CliRunner, project_dir: Path
    ) -> None:
        result = cli_runner.invoke(cli, [])

        assert result.exit_code == 0
        assert "simulate" in result.output
        assert "transactions" in result.output

    def test_invalid_config_exits_with_failure(
        self, cli_runner: CliRunner, project_dir: Path
    ) -> None:
        bad = project_dir / "bad.yaml"
        bad.write_text("apply: [unclosed")

        result = cli_runner.invoke(cli, ["-c", str(bad), "transactions"])

        assert result.exit_code == ExitCode.FAILURE
        assert "Error:" in result.output

    def test_invalid_value_reports_field(
        self, cli_runner: CliRunner, project_dir: Path
    ) -> None:
        bad = project_dir / "bad.yaml"
        bad.write_text("notifications:\n  duration: 0\n")

        result = cli_runner.invoke(cli, ["-c", str(bad), "transactions"])

        assert result.exit_code == ExitCode.FAILURE
        assert "Field: notifications.duration" in result.output


class TestTransactionsCommand:
    """Tests for `relaycode transactions`."""

    def test_lists_everything(self, cli_runner: CliRunner, project_dir: Path) -> None:
        result = cli_runner.invoke(cli, ["transactions"])

        assert result.exit_code == 0
        assert "e4a7c112" in result.output
        assert "c7d6b5e0" in result.output

    def test_status_filter(self, cli_runner: CliRunner, project_dir: Path) -> None:
        result = cli_runner.invoke(cli, ["transactions", "-s", "pending"])

        assert result.exit_code == 0
        assert "Transactions (2)" in result.output
        assert "e4a7c112" in result.output
        assert "8a3f21b8" not in result.output

    def test_unknown_status_is_rejected(
        self, cli_runner: CliRunner, project_dir: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["transactions", "-s", "bogus"])

        assert result.exit_code == 2


class TestSimulateCommand:
    """Tests for `relaycode simulate`."""

    def test_success(self, cli_runner: CliRunner, project_dir: Path) -> None:
        result = cli_runner.invoke(cli, ["simulate"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Applying" in result.output
        assert "src/core/transaction.ts" in result.output
        assert "Applied in" in result.output

    def test_failure_scenario_exits_partial(
        self, cli_runner: CliRunner, project_dir: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["simulate", "--scenario", "failure"])

        assert result.exit_code == ExitCode.PARTIAL
        assert "Some files failed to apply" in result.output

    def test_unknown_transaction(
        self, cli_runner: CliRunner, project_dir: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["simulate", "-t", "99"])

        assert result.exit_code == ExitCode.FAILURE
        assert "Unknown transaction: 99" in result.output

    def test_cancel_after(
        self,
        cli_runner: CliRunner,
        project_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("RELAYCODE_APPLY__STEP_DELAY", "0.5")

        result = cli_runner.invoke(cli, ["simulate", "--cancel-after", "0.05"])

        assert result.exit_code == ExitCode.INTERRUPTED
        assert "Run cancelled" in result.output


class TestExitCodes:
    """Tests for mapping an apply outcome onto the process exit code."""

    def test_aborted_run_is_a_failure(self) -> None:
        outcome = ApplyOutcome(PatchStatus.SUCCESS, error="shell not found")

        assert exit_code_for(outcome) == ExitCode.FAILURE

    def test_cancel_wins_over_error(self) -> None:
        outcome = ApplyOutcome(
            PatchStatus.PARTIAL_FAILURE, cancelled=True, error="shell not found"
        )

        assert exit_code_for(outcome) == ExitCode.INTERRUPTED
