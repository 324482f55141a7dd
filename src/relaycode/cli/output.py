"""Output formatting helpers for the relaycode CLI."""

from __future__ import annotations

__all__ = ["format_error", "format_success", "format_warning"]


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Args:
        message: Primary error message.
        details: Optional list of detail lines to include.
        suggestion: Optional suggestion for resolving the error.

    Returns:
        Formatted error string.

    Example:
        >>> print(format_error(
        ...     "Unknown transaction: 99",
        ...     suggestion="Run 'relaycode transactions'",
        ... ))
        Error: Unknown transaction: 99
        Suggestion: Run 'relaycode transactions'
    """
    lines = [f"Error: {message}"]

    if details:
        for detail in details:
            lines.append(f"  {detail}")

    if suggestion:
        lines.append(f"Suggestion: {suggestion}")

    return "\n".join(lines)


def format_success(message: str) -> str:
    return f"[green]✓[/green] {message}"


def format_warning(message: str) -> str:
    return f"[yellow]Warning:[/yellow] {message}"
