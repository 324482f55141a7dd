from __future__ import annotations


class RelaycodeError(Exception):
    """Base exception class for all Relaycode-specific errors.

    Every custom exception in Relaycode inherits from this class so the CLI
    boundary can catch Relaycode failures in one place while letting
    system exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            config = load_config()
        except RelaycodeError as e:
            err_console.print(f"Error: {e.message}")
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the RelaycodeError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
