from __future__ import annotations

import asyncio

import click

from relaycode.cli.console import console, err_console
from relaycode.cli.context import CLIContext, ExitCode, async_command
from relaycode.cli.output import format_error, format_success, format_warning
from relaycode.logging import get_logger
from relaycode.models.apply import AddSubstep, ApplyUpdate, UpdateStep, UpdateSubstep
from relaycode.models.enums import ApplyScenario, PatchStatus
from relaycode.review.pipeline import ApplyOutcome, ApplyPipeline, ApplyRun
from relaycode.services.fixtures import load_all_transactions
from relaycode.services.patch import simulated_patch_engine_factory
from relaycode.services.scripts import SimulatedScriptRunner
from relaycode.services.transactions import TransactionStore


def describe_update(update: ApplyUpdate) -> str:
    """One console line for a pipeline update."""
    if isinstance(update, UpdateStep):
        line = f"[bold]{update.step_id}[/bold] → {update.status.value}"
        if update.duration is not None:
            line += f" ({update.duration:.1f}s)"
        if update.details:
            line += f" [dim]{update.details}[/dim]"
        return line
    if isinstance(update, AddSubstep):
        return f"  {update.parent_id}: {update.substep.title}"
    if isinstance(update, UpdateSubstep):
        title = update.title or update.substep_id
        return f"  {update.parent_id}: {title} → {update.status.value}"
    return repr(update)


def exit_code_for(outcome: ApplyOutcome) -> ExitCode:
    if outcome.cancelled:
        return ExitCode.INTERRUPTED
    if outcome.error is not None:
        return ExitCode.FAILURE
    if outcome.patch_status is PatchStatus.PARTIAL_FAILURE:
        return ExitCode.PARTIAL
    return ExitCode.SUCCESS


@click.command()
@click.option(
    "--scenario",
    type=click.Choice([s.value for s in ApplyScenario]),
    default=ApplyScenario.SUCCESS.value,
    show_default=True,
    help="Simulated outcome of the file writes.",
)
@click.option(
    "-t",
    "--transaction",
    "transaction_id",
    default="1",
    show_default=True,
    help="Id of the transaction to apply.",
)
@click.option(
    "--cancel-after",
    type=float,
    default=None,
    help="Cancel the run after this many seconds.",
)
@click.pass_context
@async_command
async def simulate(
    ctx: click.Context,
    scenario: str,
    transaction_id: str,
    cancel_after: float | None,
) -> None:
    """Run the apply pipeline without the TUI and print each update.

    Exits 2 when some files failed to apply and 130 when cancelled.

    Examples:
        relaycode simulate
        relaycode simulate --scenario failure -t 2
        relaycode simulate --cancel-after 0.5
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    config = cli_ctx.config
    logger = get_logger(__name__)

    store = TransactionStore(load_all_transactions())
    tx = store.get(transaction_id)
    if tx is None:
        err_console.print(
            format_error(
                f"Unknown transaction: {transaction_id}",
                suggestion="Run 'relaycode transactions' to list ids",
            )
        )
        raise SystemExit(ExitCode.FAILURE)

    factory = simulated_patch_engine_factory(
        reapply_success_rate=config.apply.reapply_success_rate,
        seed=config.apply.seed,
    )
    pipeline = ApplyPipeline.from_config(
        factory(tx, ApplyScenario(scenario)),
        SimulatedScriptRunner(delay=config.apply.script_delay),
        config.apply,
    )
    run = ApplyRun(
        pipeline, tx, on_update=lambda update: console.print(describe_update(update))
    )

    console.print(f"Applying [yellow]{tx.hash}[/yellow] {tx.message}")
    if cancel_after is not None:
        asyncio.get_running_loop().call_later(cancel_after, run.cancel)
    outcome = await run.run()
    logger.info(
        "simulate_finished",
        transaction_id=tx.id,
        patch_status=outcome.patch_status.value,
        cancelled=outcome.cancelled,
    )

    for file in tx.files:
        result = outcome.file_results[file.id]
        if result.succeeded:
            console.print(format_success(file.path))
        else:
            console.print(f"[red]✗[/red] {file.path}: {result.error}")

    code = exit_code_for(outcome)
    if code is ExitCode.SUCCESS:
        console.print(format_success(f"Applied in {outcome.elapsed:.1f}s"))
        return
    if code is ExitCode.INTERRUPTED:
        console.print(format_warning("Run cancelled"))
    elif outcome.error is not None:
        err_console.print(format_error(f"Apply aborted: {outcome.error}"))
    else:
        console.print(format_warning("Some files failed to apply"))
    raise SystemExit(code)
