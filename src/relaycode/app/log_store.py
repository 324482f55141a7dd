"""Bounded in-app debug log."""

from __future__ import annotations

from collections import deque

from relaycode.constants import MAX_LOG_ENTRIES
from relaycode.models.enums import LogLevel
from relaycode.models.log import LogEntry

__all__ = ["LogStore"]


class LogStore:
    """Most recent log entries, newest first.

    Args:
        max_entries: Entries kept; older ones are dropped.
    """

    def __init__(self, max_entries: int = MAX_LOG_ENTRIES) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=max(1, max_entries))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def add(self, level: LogLevel, message: str) -> LogEntry:
        entry = LogEntry(level=level, message=message)
        self._entries.appendleft(entry)
        return entry

    def debug(self, message: str) -> LogEntry:
        return self.add(LogLevel.DEBUG, message)

    def info(self, message: str) -> LogEntry:
        return self.add(LogLevel.INFO, message)

    def warn(self, message: str) -> LogEntry:
        return self.add(LogLevel.WARN, message)

    def error(self, message: str) -> LogEntry:
        return self.add(LogLevel.ERROR, message)

    def clear(self) -> None:
        self._entries.clear()

    def filter(self, query: str) -> list[LogEntry]:
        """Entries whose message or level contains ``query`` (case-insensitive)."""
        needle = query.strip().lower()
        if not needle:
            return self.entries
        return [
            entry
            for entry in self._entries
            if needle in entry.message.lower() or needle in entry.level.value.lower()
        ]
