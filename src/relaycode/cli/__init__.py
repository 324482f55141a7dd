"""CLI utilities for relaycode.

This module provides the CLI context, exit codes and output helpers shared
by the commands.
"""

from __future__ import annotations

from relaycode.cli.context import CLIContext, ExitCode, async_command
from relaycode.cli.output import format_error, format_success, format_warning

__all__ = [
    "CLIContext",
    "ExitCode",
    "async_command",
    "format_error",
    "format_success",
    "format_warning",
]
