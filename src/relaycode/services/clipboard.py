"""Clipboard implementations."""

from __future__ import annotations

import asyncio
import os
import shutil
import sys

from relaycode.exceptions import ClipboardError
from relaycode.logging import get_logger

__all__ = ["SystemClipboard", "MemoryClipboard", "clipboard_commands"]

logger = get_logger(__name__)


def clipboard_commands() -> list[list[str]]:
    """Candidate clipboard commands for the current platform, in preference order."""
    if sys.platform == "darwin":
        return [["pbcopy"]]
    if os.name == "nt":
        return [["clip"]]
    return [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


class SystemClipboard:
    """Copies text by piping it into the platform's clipboard tool.

    The tool runs as an asyncio subprocess so a slow or hung tool never
    blocks the event loop.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self._timeout = timeout

    async def write(self, text: str) -> None:
        """Copy *text* using the first available clipboard tool.

        Raises:
            ClipboardError: If no tool is installed or every tool fails.
        """
        attempted: list[str] = []
        for command in clipboard_commands():
            if shutil.which(command[0]) is None:
                continue
            attempted.append(command[0])
            returncode = await self._pipe(command, text)
            if returncode == 0:
                return
            logger.debug(
                "clipboard_command_failed",
                command=command[0],
                returncode=returncode,
            )
        if not attempted:
            raise ClipboardError(
                "No clipboard tool found (tried pbcopy, clip, wl-copy, xclip, xsel)"
            )
        raise ClipboardError(f"Clipboard write failed using {', '.join(attempted)}")

    async def _pipe(self, command: list[str], text: str) -> int | None:
        """Feed *text* to *command*; returns its exit code, None if it never ran."""
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug("clipboard_command_failed", command=command[0], error=str(e))
            return None
        try:
            await asyncio.wait_for(
                process.communicate(text.encode("utf-8")), timeout=self._timeout
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            logger.debug("clipboard_command_timed_out", command=command[0])
            return None
        return process.returncode


class MemoryClipboard:
    """Keeps copied text in memory; used headless and in tests.

    Attributes:
        history: Every text written, oldest first.
    """

    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    def last(self) -> str | None:
        return self.history[-1] if self.history else None

    async def write(self, text: str) -> None:
        self.history.append(text)
