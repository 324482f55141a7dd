"""CLI context and utilities for relaycode.

This module provides exit codes, the typed click context object, and the
bridge from click's synchronous commands to async code.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, TypeVar

from relaycode.config import RelaycodeConfig

__all__ = [
    "ExitCode",
    "CLIContext",
    "async_command",
]


class ExitCode(IntEnum):
    """Exit codes of the relaycode CLI.

    - 0 for success
    - 1 for failure
    - 2 for partial success (some files failed to apply)
    - 130 for an interrupted run (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    PARTIAL = 2
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global options and configuration shared by every command.

    Attributes:
        config: Loaded relaycode configuration.
        config_path: Path given with --config, if any.
        verbosity: Verbosity level (0=default, 1=INFO, 2+=DEBUG).
        quiet: Suppress non-essential output.
    """

    config: RelaycodeConfig
    config_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False


F = TypeVar("F", bound=Callable[..., Any])


def async_command(f: F) -> F:
    """Decorator to run async click commands with asyncio.run().

    Args:
        f: Async function to wrap.

    Returns:
        Wrapped synchronous function suitable for click commands.

    Example:
        >>> @cli.command()
        >>> @click.pass_context
        >>> @async_command
        >>> async def simulate(ctx: click.Context, scenario: str) -> None:
        >>>     await run.run()
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper  # type: ignore[return-value]
