from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

__all__ = ["CopyItem"]


@dataclass(frozen=True, slots=True)
class CopyItem:
    """Something the copy overlay can put on the clipboard.

    Content is produced lazily so opening the overlay never builds large
    strings the operator does not select.

    Attributes:
        key: Single-letter shortcut that toggles the item.
        label: Display label, also used as the block header when copied.
        get_data: Produces the text to copy.
        selected_by_default: Whether the item starts selected.
    """

    key: str
    label: str
    get_data: Callable[[], str]
    selected_by_default: bool = False
