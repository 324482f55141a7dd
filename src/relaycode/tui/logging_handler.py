"""TUI logging handler for routing logs into the in-app debug log.

While the Textual app runs, stderr belongs to the terminal UI. This handler
captures stdlib and structlog records and appends them to the context's
:class:`LogStore`, which the debug log overlay (Ctrl+L) displays.
"""

from __future__ import annotations

import logging

import structlog

from relaycode.app.log_store import LogStore
from relaycode.models.enums import LogLevel

__all__ = ["LogStoreHandler", "configure_tui_logging"]

_LEVEL_MAP = {
    logging.DEBUG: LogLevel.DEBUG,
    logging.INFO: LogLevel.INFO,
    logging.WARNING: LogLevel.WARN,
    logging.ERROR: LogLevel.ERROR,
    logging.CRITICAL: LogLevel.ERROR,
}


class LogStoreHandler(logging.Handler):
    """Logging handler that appends records to a :class:`LogStore`."""

    def __init__(self, store: LogStore) -> None:
        """Initialize the handler.

        Args:
            store: Log store that receives the formatted records.
        """
        super().__init__()
        self._store = store

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _LEVEL_MAP.get(record.levelno, LogLevel.INFO)
            self._store.add(level, self.format(record))
        except Exception:
            # Don't let logging errors crash the app
            self.handleError(record)


def configure_tui_logging(store: LogStore, level: int = logging.INFO) -> None:
    """Route all logging into ``store`` instead of stderr.

    Args:
        store: Log store shown by the debug log overlay.
        level: Logging level to use.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    store_handler = LogStoreHandler(store)
    store_handler.setLevel(level)
    store_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(store_handler)
    root_logger.setLevel(level)

    # Plain text; the overlay colors entries by level
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
