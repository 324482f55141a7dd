"""Textual front end for relaycode."""

from __future__ import annotations

from relaycode.tui.app import RelaycodeApp
from relaycode.tui.logging_handler import LogStoreHandler, configure_tui_logging
from relaycode.tui.render import render_app

__all__ = [
    "RelaycodeApp",
    "LogStoreHandler",
    "configure_tui_logging",
    "render_app",
]
