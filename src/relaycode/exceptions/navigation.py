from __future__ import annotations

from relaycode.exceptions.base import RelaycodeError


class NavigationError(RelaycodeError):
    """Raised when a path does not address a node in the current tree.

    Navigator operations never let this escape to the user; they log it and
    leave the state unchanged.

    Attributes:
        message: Human-readable error message.
        path: The offending path.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize the NavigationError.

        Args:
            message: Human-readable error message.
            path: The path that could not be resolved.
        """
        self.path = path
        super().__init__(message)


class UnknownPathError(NavigationError):
    """Raised when a path is not present in the tree."""

    def __init__(self, path: str) -> None:
        """Initialize the UnknownPathError.

        Args:
            path: The path that could not be resolved.
        """
        super().__init__(f"Path '{path}' is not present in the tree", path=path)
