from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from click.testing import CliRunner

# Register fixture plugins from tests/fixtures/
pytest_plugins = [
    "tests.fixtures.config",
    "tests.fixtures.scheduler",
    "tests.fixtures.collaborators",
    "tests.fixtures.transactions",
    "tests.fixtures.context",
]


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for the test run.

    Runs for every test so log output goes to stderr at WARNING level and
    never mixes with captured stdout.
    """
    from relaycode.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory so tests that
    chdir do not affect each other.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
    os.chdir(original_cwd)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all RELAYCODE_ environment variables for clean testing."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("RELAYCODE_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_config_yaml() -> str:
    """Return sample relaycode.yaml content for testing."""
    return """
terminal:
  columns: 100
  rows: 30

notifications:
  duration: 3

apply:
  step_delay: 0
  file_delay: 0
  post_command: "npm test"
  seed: 7

review:
  diff_collapse_threshold: 10

verbosity: "info"
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a click CLI test runner.

    Example:
        >>> def test_version(cli_runner):
        ...     from relaycode.main import cli
        ...     result = cli_runner.invoke(cli, ["--version"])
        ...     assert result.exit_code == 0
    """
    from click.testing import CliRunner

    return CliRunner()
