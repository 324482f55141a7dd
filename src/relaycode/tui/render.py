"""Render the application state as Rich renderables.

The Textual app redraws a single widget from :func:`render_app` on every
refresh tick. Everything shown here is read from the controllers; rendering
never changes state.
"""

from __future__ import annotations

import time

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from relaycode.app.context import AppContext
from relaycode.app.router import Overlay, Screen
from relaycode.constants import (
    BULK_INSTRUCT_OPTIONS,
    BULK_REPAIR_OPTIONS,
    HISTORY_BULK_ACTIONS,
)
from relaycode.models.domain import Transaction
from relaycode.models.enums import (
    FileReviewStatus,
    LogLevel,
    NotificationType,
    StepStatus,
    TransactionStatus,
)
from relaycode.navigation.tree import NodeKind
from relaycode.screens.dashboard import DashboardStatus
from relaycode.screens.detail import DetailBodyView
from relaycode.screens.help import HELP_SECTIONS
from relaycode.screens.history import HistoryMode
from relaycode.screens.review import ReviewBodyView, ReviewItemKind

__all__ = ["render_app", "relative_time"]

TRANSACTION_ICONS: dict[TransactionStatus, tuple[str, str]] = {
    TransactionStatus.PENDING: ("?", "cyan"),
    TransactionStatus.APPLIED: ("✓", "green"),
    TransactionStatus.COMMITTED: ("→", "blue"),
    TransactionStatus.FAILED: ("✗", "red"),
    TransactionStatus.REVERTED: ("↩", "yellow"),
    TransactionStatus.IN_PROGRESS: ("○", "magenta"),
    TransactionStatus.HANDOFF: ("→", "magenta"),
}

FILE_ICONS: dict[FileReviewStatus, tuple[str, str]] = {
    FileReviewStatus.AWAITING: ("[ ]", "white"),
    FileReviewStatus.APPROVED: ("[✓]", "green"),
    FileReviewStatus.REJECTED: ("[✗]", "red"),
    FileReviewStatus.FAILED: ("[!]", "red"),
    FileReviewStatus.RE_APPLYING: ("[●]", "cyan"),
}

STEP_ICONS: dict[StepStatus, tuple[str, str]] = {
    StepStatus.PENDING: ("( )", "dim"),
    StepStatus.ACTIVE: ("(●)", "cyan"),
    StepStatus.DONE: ("[✓]", "green"),
    StepStatus.FAILED: ("[!]", "red"),
    StepStatus.SKIPPED: ("(-)", "dim"),
}

LOG_COLORS: dict[LogLevel, str] = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "white",
    LogLevel.WARN: "yellow",
    LogLevel.ERROR: "red",
}

NOTIFICATION_COLORS: dict[NotificationType, str] = {
    NotificationType.SUCCESS: "green",
    NotificationType.ERROR: "red",
    NotificationType.INFO: "blue",
    NotificationType.WARNING: "yellow",
}


def relative_time(timestamp: float, now: float | None = None) -> str:
    """Short age of a timestamp ("15s", "5m", "2h", "3d")."""
    seconds = max(0, int((now if now is not None else time.time()) - timestamp))
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def _header(title: str) -> Text:
    return Text.assemble(
        (" ▲ relaycode ", "bold black on cyan"), " ", (title, "bold")
    )


def _footer(*hints: str) -> Text:
    return Text("  ·  ".join(hints), style="dim")


def _tx_line(tx: Transaction, *, selected: bool, marked: bool = False) -> Text:
    icon, color = TRANSACTION_ICONS[tx.status]
    line = Text("> " if selected else "  ")
    if marked:
        line.append("[x] ", style="cyan")
    line.append(f"{icon} ", style=color)
    line.append(f"{relative_time(tx.timestamp):>4} ", style="dim")
    line.append(f"{tx.hash} ", style="yellow")
    line.append(tx.message, style="bold" if selected else "")
    return line


# -- screens ---------------------------------------------------------------


def _render_splash(ctx: AppContext) -> RenderableType:
    return Group(
        Text("relaycode", style="bold cyan", justify="center"),
        Text("A zero-friction, AI-native patch engine.", justify="center"),
        Text(""),
        Text("Press any key to continue...", style="dim", justify="center"),
    )


def _render_dashboard(ctx: AppContext) -> RenderableType:
    dash = ctx.dashboard
    viewport = dash.viewport
    transactions = dash.transactions
    listening = dash.status is DashboardStatus.LISTENING
    status_line = Text.assemble(
        ("STATUS: ", "bold"),
        (dash.status.value, "green" if listening else "yellow"),
        f" · APPROVALS: {len(dash.pending)} · COMMITS: {len(dash.applied)}",
    )
    rows: list[RenderableType] = [_header("Dashboard"), status_line, Text("")]
    if dash.is_modal:
        rows.append(
            Panel(
                f"Approve all {len(dash.pending)} pending transactions?\n"
                "(Enter) Confirm  (Esc) Cancel",
                title="APPROVE ALL",
                border_style="yellow",
            )
        )
    elif dash.is_processing:
        rows.append(Text("Approving transactions...", style="magenta"))
    for index in viewport.visible_range:
        tx = transactions[index]
        selected = index == viewport.selected_index
        rows.append(_tx_line(tx, selected=selected))
        if dash.expanded_id == tx.id:
            for file in tx.files:
                rows.append(
                    Text(
                        f"      {file.type.value} {file.path} "
                        f"(+{file.lines_added}/-{file.lines_removed})",
                        style="dim",
                    )
                )
    rows.append(
        _footer(
            "(↑↓) Nav",
            "(→/Enter) Expand/Open",
            "(P)ause",
            "(A)pprove All",
            "(C)ommit",
            "(L)og",
            "(Q)uit",
        )
    )
    return Group(*rows)


def _render_review(ctx: AppContext) -> RenderableType:
    review = ctx.review
    session = review.session
    tx = review.transaction
    if session is None or tx is None:
        return Group(_header("Review"), Text("No transaction loaded."))
    stats = tx.stats
    rows: list[RenderableType] = [
        _header(f"Review · {tx.hash} · {tx.message}"),
        Text(
            f"{stats.files} files · +{stats.lines_added}/-{stats.lines_removed} · "
            f"approved {session.approved_count}/{stats.files} · "
            f"patch {session.patch_status.value}",
            style="dim",
        ),
        Text(""),
    ]
    viewport = review.viewport
    items = review.items
    for index in viewport.visible_range:
        item = items[index]
        selected = index == viewport.selected_index
        prefix = "> " if selected else "  "
        if item.kind is ReviewItemKind.FILE:
            file = tx.file(item.id)
            if file is None:
                continue
            state = session.state(file.id)
            icon, color = FILE_ICONS[state.status]
            style = f"bold {color}" if file.id in review.flashing else color
            line = Text(prefix)
            line.append(f"{icon} ", style=style)
            line.append(f"{file.type.value} {file.path}")
            line.append(f" (+{file.lines_added}/-{file.lines_removed})", style="dim")
            if state.error:
                line.append(f"  {state.error}", style="red")
            rows.append(line)
        elif item.kind is ReviewItemKind.SCRIPT:
            script = tx.scripts[int(item.id)]
            color = "green" if script.success else "red"
            rows.append(
                Text.assemble(
                    prefix,
                    ("✓ " if script.success else "✗ ", color),
                    f"{script.command}  ",
                    (script.summary, color),
                )
            )
        else:
            rows.append(Text(f"{prefix}{item.kind.value.capitalize()}"))

    rows.append(Text(""))
    rows.extend(_review_body(ctx))
    rows.append(
        _footer(
            "(↑↓) Nav",
            "(Spc) Toggle",
            "(D)iff",
            "(R)easoning",
            "(T)ry repair",
            "(I)nstruct",
            "(C)opy",
            "(A)pprove",
            "(Q)uit",
        )
    )
    return Group(*rows)


def _review_body(ctx: AppContext) -> list[RenderableType]:
    review = ctx.review
    view = review.body_view
    if view is ReviewBodyView.NONE:
        return []
    if view is ReviewBodyView.BULK_REPAIR:
        return [_menu("BULK REPAIR", BULK_REPAIR_OPTIONS, review.bulk_repair_index)]
    if view is ReviewBodyView.BULK_INSTRUCT:
        return [
            _menu("BULK INSTRUCT", BULK_INSTRUCT_OPTIONS, review.bulk_instruct_index)
        ]
    if view is ReviewBodyView.CONFIRM_HANDOFF:
        return [
            Panel(
                "Copy the hand-off prompt and mark this transaction as HANDOFF?\n"
                "(Enter) Confirm  (Esc) Cancel",
                title="HANDOFF TO EXTERNAL AGENT",
                border_style="magenta",
            )
        ]
    lines = review.content.window(review.body_lines())
    body = Text()
    for line in lines:
        style = ""
        if line.startswith("+"):
            style = "green"
        elif line.startswith("-"):
            style = "red"
        elif "Error" in line:
            style = "red"
        elif "Warning" in line:
            style = "yellow"
        body.append(line + "\n", style=style)
    return [Panel(body, title=view.value.upper(), border_style="dim")]


def _menu(title: str, options: tuple[str, ...], index: int) -> Panel:
    body = Text()
    for position, option in enumerate(options):
        selected = position == index
        marker = "> " if selected else "  "
        body.append(f"{marker}{option}\n", style="bold" if selected else "")
    return Panel(body, title=title, border_style="yellow")


def _render_processing(ctx: AppContext) -> RenderableType:
    processing = ctx.processing
    run = processing.run
    title = "Applying Patch" if run is None else f"Applying {run.transaction.hash}"
    rows: list[RenderableType] = [_header(title), Text("")]
    for step in processing.steps:
        icon, color = STEP_ICONS[step.status]
        line = Text.assemble((f"{icon} ", color), step.title)
        if step.duration is not None:
            line.append(f" ({step.duration:.1f}s)", style="dim")
        if step.details:
            line.append(f"  {step.details}", style="dim")
        rows.append(line)
        for substep in step.substeps:
            sub_icon, sub_color = STEP_ICONS[substep.status]
            rows.append(
                Text.assemble("    ", (f"{sub_icon} ", sub_color), substep.title)
            )
    rows.append(Text(""))
    state = "Cancelling..." if processing.is_cancelling else "Running"
    rows.append(Text(f"{state} · elapsed {processing.elapsed:.1f}s", style="dim"))
    rows.append(_footer("(Ctrl+C) Cancel", "(S)kip script"))
    return Group(*rows)


def _render_commit(ctx: AppContext) -> RenderableType:
    commit = ctx.commit
    rows: list[RenderableType] = [_header("Git Commit"), Text("")]
    for tx in commit.transactions:
        rows.append(Text(f"  {tx.hash}  {tx.message}"))
    rows.append(Panel(commit.message or "(nothing to commit)", title="COMMIT MESSAGE"))
    if commit.is_committing:
        rows.append(Text("Committing...", style="cyan"))
    rows.append(_footer("(Enter) Confirm & Commit", "(Esc) Cancel"))
    return Group(*rows)


def _render_detail(ctx: AppContext) -> RenderableType:
    detail = ctx.detail
    tx = detail.transaction
    if tx is None:
        return Group(_header("Transaction Detail"), Text("No transaction loaded."))
    tree = detail.navigator.tree()
    focused = detail.navigator.focused_path
    rows: list[RenderableType] = [
        _header(f"Transaction {tx.hash}"),
        Text(f"{tx.status.value} · {tx.message}", style="dim"),
        Text(""),
    ]
    for path in detail.navigator.visible_paths():
        node = tree.get(path)
        if node is None:
            continue
        marker = "> " if path == focused else "  "
        indent = "  " * node.depth
        if node.expandable:
            arrow = "▾ " if path in detail.navigator.expanded else "▸ "
        else:
            arrow = "  "
        rows.append(Text(f"{marker}{indent}{arrow}{node.label}"))
    view = detail.body_view
    if view is DetailBodyView.REVERT_CONFIRM:
        rows.append(
            Panel(
                f"Revert transaction {tx.hash}?\n(Enter) Confirm  (Esc) Cancel",
                title="REVERT",
                border_style="red",
            )
        )
    elif view in (
        DetailBodyView.PROMPT,
        DetailBodyView.REASONING,
        DetailBodyView.DIFF_VIEW,
    ):
        lines = detail.content.window(detail.body_lines())
        rows.append(
            Panel("\n".join(lines), title=view.value.upper(), border_style="dim")
        )
    rows.append(
        _footer(
            "(↑↓) Nav", "(→) Expand", "(←) Collapse", "(U)ndo", "(C)opy", "(Q)uit"
        )
    )
    return Group(*rows)


def _render_history(ctx: AppContext) -> RenderableType:
    history = ctx.history
    tree = history.navigator.tree()
    focused = history.navigator.focused_path
    viewport = history.viewport
    visible = history.visible_paths
    filtering = history.mode is HistoryMode.FILTER
    query = history.filter_draft if filtering else history.filter_query
    rows: list[RenderableType] = [
        _header("Transaction History"),
        Text(f"Filter: {query or '(none)'}", style="cyan" if query else "dim"),
        Text(""),
    ]
    for index in viewport.visible_range:
        node = tree.get(visible[index])
        if node is None:
            continue
        selected = node.path == focused
        if node.kind is NodeKind.TRANSACTION:
            tx = ctx.store.get(node.ref or node.path)
            if tx is not None:
                marked = tx.id in history.selected_ids
                rows.append(_tx_line(tx, selected=selected, marked=marked))
        else:
            marker = "> " if selected else "  "
            rows.append(Text(f"{marker}      {node.label}", style="dim"))
    if history.mode is HistoryMode.BULK_ACTIONS:
        rows.append(_menu("BULK ACTIONS", HISTORY_BULK_ACTIONS, -1))
    rows.append(
        _footer(
            "(↑↓) Nav",
            "(→) Expand",
            "(Spc) Select",
            "(F)ilter",
            "(C)opy",
            "(B)ulk",
            "(Q)uit",
        )
    )
    return Group(*rows)


# -- overlays ----------------------------------------------------------------


def _render_help(ctx: AppContext) -> RenderableType:
    body = Text()
    for section, bindings in HELP_SECTIONS.items():
        body.append(f"{section}\n", style="bold cyan")
        for keys, description in bindings:
            body.append(f"  {keys:<16}{description}\n")
    return Panel(body, title="KEYBOARD SHORTCUTS", border_style="cyan")


def _render_copy(ctx: AppContext) -> RenderableType:
    copy = ctx.copy
    body = Text(f"{copy.title}\n\n")
    for index, item in enumerate(copy.items):
        cursor = "> " if index == copy.cursor else "  "
        check = "[x]" if item.key in copy.selected else "[ ]"
        body.append(f"{cursor}{check} ({item.key}) {item.label}\n")
    if copy.last_copied:
        body.append(f"\n{copy.last_copied}\n", style="green")
    body.append(
        "\n(↑↓) Nav · (Spc/Key) Toggle · (Enter) Copy · (Esc) Close", style="dim"
    )
    return Panel(body, title="COPY", border_style="cyan")


def _render_log(ctx: AppContext) -> RenderableType:
    log = ctx.debug_log
    body = Text()
    if log.filtering or log.filter_query:
        body.append(f"Filter: {log.filter_query}\n", style="cyan")
    for entry in log.visible_entries:
        stamp = time.strftime("%H:%M:%S", time.localtime(entry.timestamp))
        body.append(f"{stamp} ", style="dim")
        body.append(f"[{entry.level.value:<5}] ", style=LOG_COLORS[entry.level])
        body.append(entry.message + "\n")
    body.append("(↑↓) Scroll · (F)ilter · (C)lear · (Esc) Close", style="dim")
    return Panel(body, title="DEBUG LOG", border_style="yellow")


def _render_debug_menu(ctx: AppContext) -> RenderableType:
    menu = ctx.debug_menu
    body = Text()
    for index, item in enumerate(menu.items):
        key = str(index + 1) if index < 9 else chr(ord("a") + index - 9)
        selected = index == menu.selected_index
        cursor = "> " if selected else "  "
        body.append(f"{cursor}({key}) {item.title}\n", style="bold" if selected else "")
    return Panel(body, title="DEBUG MENU", border_style="magenta")


def _render_notification(ctx: AppContext) -> RenderableType:
    notification = ctx.notifications.current
    if notification is None:
        return Text("")
    color = NOTIFICATION_COLORS.get(notification.type, "white")
    return Panel(
        f"{notification.message}\n\n(closes in {ctx.notifications.remaining}s)",
        title=notification.title,
        border_style=color,
    )


SCREEN_RENDERERS = {
    Screen.SPLASH: _render_splash,
    Screen.DASHBOARD: _render_dashboard,
    Screen.REVIEW: _render_review,
    Screen.REVIEW_PROCESSING: _render_processing,
    Screen.GIT_COMMIT: _render_commit,
    Screen.TRANSACTION_DETAIL: _render_detail,
    Screen.TRANSACTION_HISTORY: _render_history,
}

OVERLAY_RENDERERS = {
    Overlay.HELP: _render_help,
    Overlay.COPY: _render_copy,
    Overlay.LOG: _render_log,
    Overlay.DEBUG: _render_debug_menu,
    Overlay.NOTIFICATION: _render_notification,
}


def render_app(ctx: AppContext) -> RenderableType:
    """Render the current screen, with the open overlay drawn instead of it."""
    overlay = OVERLAY_RENDERERS.get(ctx.router.overlay)
    if overlay is not None:
        return overlay(ctx)
    return SCREEN_RENDERERS[ctx.router.screen](ctx)
