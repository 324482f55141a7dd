from __future__ import annotations

import click
from rich.table import Table

from relaycode.cli.console import console
from relaycode.models.enums import TransactionStatus
from relaycode.services.fixtures import load_all_transactions
from relaycode.services.transactions import TransactionStore


@click.command()
@click.option(
    "-s",
    "--status",
    "statuses",
    type=click.Choice([s.value for s in TransactionStatus], case_sensitive=False),
    multiple=True,
    help="Only show transactions with this status (repeatable).",
)
def transactions(statuses: tuple[str, ...]) -> None:
    """List the loaded transactions.

    Examples:
        relaycode transactions
        relaycode transactions --status APPLIED --status PENDING
    """
    store = TransactionStore(load_all_transactions())
    if statuses:
        rows = store.by_status(*(TransactionStatus(s.upper()) for s in statuses))
    else:
        rows = store.all()

    table = Table(title=f"Transactions ({len(rows)})")
    table.add_column("ID", justify="right")
    table.add_column("Status")
    table.add_column("Hash", style="yellow")
    table.add_column("Message")
    table.add_column("Files", justify="right")
    table.add_column("+/-", justify="right")
    for tx in rows:
        stats = tx.stats
        table.add_row(
            tx.id,
            tx.status.value,
            tx.hash,
            tx.message,
            str(stats.files),
            f"+{stats.lines_added}/-{stats.lines_removed}",
        )
    console.print(table)
