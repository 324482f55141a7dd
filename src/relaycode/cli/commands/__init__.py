"""Click commands registered on the relaycode group."""

from __future__ import annotations

from relaycode.cli.commands.simulate import simulate
from relaycode.cli.commands.transactions import transactions
from relaycode.cli.commands.tui import tui

__all__ = ["simulate", "transactions", "tui"]
