from __future__ import annotations

from relaycode.exceptions.base import RelaycodeError


class PipelineError(RelaycodeError):
    """Base exception for apply pipeline errors.

    Attributes:
        message: Human-readable error message.
        step_id: Step that was active when the error occurred (if any).
    """

    def __init__(self, message: str, step_id: str | None = None) -> None:
        """Initialize the PipelineError.

        Args:
            message: Human-readable error message.
            step_id: Optional id of the active step.
        """
        self.step_id = step_id
        super().__init__(message)


class PipelineCancelledError(PipelineError):
    """Raised inside the pipeline worker when its cancellation token fires."""

    def __init__(self) -> None:
        """Initialize the PipelineCancelledError."""
        super().__init__("Apply pipeline cancelled")


class PipelineBusyError(PipelineError):
    """Raised when an ApplyRun is started a second time."""

    def __init__(self, transaction_id: str) -> None:
        """Initialize the PipelineBusyError.

        Args:
            transaction_id: Transaction the run belongs to.
        """
        self.transaction_id = transaction_id
        super().__init__(
            f"Apply run for transaction '{transaction_id}' has already started"
        )
