from __future__ import annotations

import click

from relaycode.cli.context import CLIContext
from relaycode.logging import get_logger


@click.command()
@click.pass_context
def tui(ctx: click.Context) -> None:
    """Run the interactive terminal UI.

    Examples:
        relaycode tui
        RELAYCODE_CLIPBOARD__BACKEND=memory relaycode tui
    """
    from relaycode.tui.app import RelaycodeApp

    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    logger = get_logger(__name__)
    logger.debug("tui_starting")
    RelaycodeApp(cli_ctx.config).run()
