"""Clamped index movement for flat lists."""

from __future__ import annotations

__all__ = ["move_index", "page_index"]


def move_index(current: int, delta: int, size: int) -> int:
    """Move an index by ``delta`` without wrapping.

    Args:
        current: Current index.
        delta: Signed step (-1 for up, +1 for down).
        size: Number of items.

    Returns:
        The clamped index, 0 for an empty list.
    """
    if size <= 0:
        return 0
    return min(max(current + delta, 0), size - 1)


def page_index(current: int, direction: int, size: int, page_size: int) -> int:
    """Move an index by a full page.

    Args:
        current: Current index.
        direction: -1 for page up, +1 for page down.
        size: Number of items.
        page_size: Rows per page (the viewport height).

    Returns:
        The clamped index.
    """
    step = max(1, page_size)
    return move_index(current, step if direction > 0 else -step, size)
