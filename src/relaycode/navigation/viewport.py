"""Viewport math for keeping a selected row visible.

Every list screen renders a window of ``viewport_height`` rows starting at
``offset``. The offset is derived from the selection, never stored
independently of it, so the selected row is always on screen.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import TypeVar

__all__ = [
    "LayoutConfig",
    "ViewportState",
    "ContentViewport",
    "available_height",
    "compute_viewport",
]

T = TypeVar("T")


def compute_viewport(
    selected_index: int,
    item_count: int,
    viewport_height: int,
    previous_offset: int,
) -> int:
    """Compute the scroll offset that keeps ``selected_index`` visible.

    Scrolls up just enough to reveal a selection above the window, scrolls
    down just enough to reveal one below it, and otherwise keeps the previous
    offset. The result is clamped to ``[0, max(0, item_count - height)]``.

    Args:
        selected_index: Index of the selected row.
        item_count: Number of rows in the list.
        viewport_height: Visible rows; values below 1 are treated as 1.
        previous_offset: Offset before this selection change.

    Returns:
        The new offset (0 for an empty list).
    """
    if item_count <= 0:
        return 0
    height = max(1, viewport_height)
    selected = min(max(selected_index, 0), item_count - 1)

    offset = previous_offset
    if selected < offset:
        offset = selected
    elif selected >= offset + height:
        offset = selected - height + 1

    max_offset = max(0, item_count - height)
    return min(max(offset, 0), max_offset)


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """Rows a screen reserves around its scrolling list.

    Attributes:
        header: Header lines.
        footer: Footer lines.
        separators: Separator lines.
        margins_y: Vertical margin lines.
        padding_y: Vertical padding lines.
        fixed_rows: Other fixed lines (status bars, titles).
        dynamic_rows: Number of variable blocks (e.g. expanded rows).
        dynamic_line_height: Lines each dynamic block takes.
    """

    header: int = 0
    footer: int = 0
    separators: int = 0
    margins_y: int = 0
    padding_y: int = 0
    fixed_rows: int = 0
    dynamic_rows: int = 0
    dynamic_line_height: int = 1

    @property
    def reserved_rows(self) -> int:
        return (
            self.header
            + self.footer
            + self.separators
            + self.margins_y
            + self.padding_y
            + self.fixed_rows
            + self.dynamic_rows * self.dynamic_line_height
        )

    def with_dynamic_rows(self, count: int) -> LayoutConfig:
        return replace(self, dynamic_rows=max(0, count))


def available_height(total_rows: int, layout: LayoutConfig) -> int:
    """Rows left for the list after the layout reservation.

    Args:
        total_rows: Terminal height in rows.
        layout: The screen's reservation.

    Returns:
        Remaining rows, never less than 1.
    """
    return max(1, total_rows - layout.reserved_rows)


@dataclass(frozen=True, slots=True)
class ViewportState:
    """Selection plus derived scroll offset for one list.

    Attributes:
        selected_index: Selected row.
        item_count: Rows in the list.
        viewport_height: Visible rows.
        offset: First visible row.
    """

    selected_index: int = 0
    item_count: int = 0
    viewport_height: int = 1
    offset: int = 0

    def with_selection(self, selected_index: int) -> ViewportState:
        """Move the selection, clamped to the list, and rescroll."""
        if self.item_count <= 0:
            return replace(self, selected_index=0, offset=0)
        selected = min(max(selected_index, 0), self.item_count - 1)
        return replace(
            self,
            selected_index=selected,
            offset=compute_viewport(
                selected, self.item_count, self.viewport_height, self.offset
            ),
        )

    def with_item_count(self, item_count: int) -> ViewportState:
        """Change the list length.

        The offset restarts from 0 whenever the length changes, then the
        selection is clamped and revealed.
        """
        count = max(0, item_count)
        previous = self.offset if count == self.item_count else 0
        state = replace(self, item_count=count, offset=previous)
        return state.with_selection(self.selected_index)

    def with_height(self, viewport_height: int) -> ViewportState:
        state = replace(self, viewport_height=max(1, viewport_height))
        return state.with_selection(self.selected_index)

    @property
    def visible_range(self) -> range:
        end = min(self.item_count, self.offset + self.viewport_height)
        return range(self.offset, end)

    def window(self, items: Sequence[T]) -> list[T]:
        """Slice ``items`` to the visible rows."""
        return list(items[self.offset : self.offset + self.viewport_height])


@dataclass(slots=True)
class ContentViewport:
    """Scroll position inside a block of text (diff, reasoning, log).

    Attributes:
        line_count: Lines in the content.
        height: Visible lines.
        scroll_index: First visible line.
    """

    line_count: int = 0
    height: int = 1
    scroll_index: int = 0

    @property
    def max_scroll(self) -> int:
        return max(0, self.line_count - max(1, self.height))

    def set_content(self, line_count: int, height: int | None = None) -> None:
        """Replace the content size and scroll back to the top."""
        self.line_count = max(0, line_count)
        if height is not None:
            self.height = max(1, height)
        self.scroll_index = 0

    def resize(self, height: int) -> None:
        self.height = max(1, height)
        self.scroll_index = min(self.scroll_index, self.max_scroll)

    def scroll_up(self, lines: int = 1) -> None:
        self.scroll_index = max(0, self.scroll_index - lines)

    def scroll_down(self, lines: int = 1) -> None:
        self.scroll_index = min(self.max_scroll, self.scroll_index + lines)

    def page_up(self) -> None:
        self.scroll_up(max(1, self.height))

    def page_down(self) -> None:
        self.scroll_down(max(1, self.height))

    def reset(self) -> None:
        self.scroll_index = 0

    def window(self, lines: Sequence[str]) -> list[str]:
        return list(lines[self.scroll_index : self.scroll_index + max(1, self.height)])
