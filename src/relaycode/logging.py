"""Structured logging configuration for Relaycode.

Relaycode logs through structlog on top of the standard library:
- Pretty console output on stderr by default
- JSON output when RELAYCODE_LOG_FORMAT=json
- Level taken from RELAYCODE_LOG_LEVEL unless overridden
- Context binding (transaction_id, screen) via contextvars

While the TUI is running, records are routed into the in-app debug log
instead of stderr (see ``relaycode.tui.logging_handler``).

Usage:
    from relaycode.logging import configure_logging, get_logger

    configure_logging()

    logger = get_logger(__name__)
    logger.info("pipeline_started", transaction_id="1")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "shared_processors",
]

# Environment variable for log format ("json" or anything else for console)
LOG_FORMAT_ENV_VAR = "RELAYCODE_LOG_FORMAT"

# Environment variable for log level
LOG_LEVEL_ENV_VAR = "RELAYCODE_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "INFO"


def _level_from_env() -> int:
    """Resolve the log level from the environment.

    Returns:
        Logging level constant, INFO when unset or unrecognized.
    """
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def _json_requested() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def shared_processors() -> list[Processor]:
    """Processors applied to both structlog and foreign stdlib records.

    Returns:
        Processor chain without a final renderer.
    """
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(use_json: bool) -> Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; each call replaces the root handlers.

    Args:
        force_json: Emit JSON regardless of RELAYCODE_LOG_FORMAT.
        level: Explicit level. Falls back to RELAYCODE_LOG_LEVEL.
    """
    use_json = force_json or _json_requested()
    log_level = level if level is not None else _level_from_env()

    if use_json:
        tail: list[Processor] = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        tail = [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=[*shared_processors(), *tail],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stdlib records (textual, asyncio) go through the same renderer
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(use_json),
            ],
            foreign_pre_chain=shared_processors(),
        )
    )
    root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger.

    Args:
        name: Logger name, normally ``__name__``.

    Returns:
        A bound structlog logger.
    """
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Bind values that are added to every subsequent log event.

    Args:
        **context: Key-value pairs, e.g. ``transaction_id="1"``.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Drop all values bound with :func:`bind_context`."""
    structlog.contextvars.clear_contextvars()
