from __future__ import annotations

from typing import TYPE_CHECKING

from relaycode.exceptions.base import RelaycodeError

if TYPE_CHECKING:
    from relaycode.models.enums import FileReviewStatus


class ReviewError(RelaycodeError):
    """Base exception for review-session errors.

    Attributes:
        message: Human-readable error message.
        transaction_id: Transaction under review (if known).
    """

    def __init__(self, message: str, transaction_id: str | None = None) -> None:
        """Initialize the ReviewError.

        Args:
            message: Human-readable error message.
            transaction_id: Optional id of the transaction under review.
        """
        self.transaction_id = transaction_id
        super().__init__(message)


class InvalidTransitionError(ReviewError):
    """Raised when a file review status change is not allowed.

    Attributes:
        file_id: File whose status was being changed.
        from_status: Current status.
        to_status: Requested status.
    """

    def __init__(
        self,
        file_id: str,
        from_status: FileReviewStatus,
        to_status: FileReviewStatus,
    ) -> None:
        """Initialize the InvalidTransitionError.

        Args:
            file_id: File whose status was being changed.
            from_status: Current status.
            to_status: Requested status.
        """
        self.file_id = file_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"File '{file_id}' cannot move from {from_status.value} "
            f"to {to_status.value}"
        )


class UnknownFileError(ReviewError):
    """Raised when a file id is not part of the session."""

    def __init__(self, file_id: str) -> None:
        """Initialize the UnknownFileError.

        Args:
            file_id: The unknown file id.
        """
        self.file_id = file_id
        super().__init__(f"File '{file_id}' is not part of this review")
