from __future__ import annotations

import time
from dataclasses import dataclass, field

from relaycode.models.enums import LogLevel

__all__ = ["LogEntry"]


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One line in the in-app debug log.

    Attributes:
        level: Severity.
        message: Rendered message.
        timestamp: Unix timestamp when the entry was recorded.
    """

    level: LogLevel
    message: str
    timestamp: float = field(default_factory=time.time)
