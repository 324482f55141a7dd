from __future__ import annotations

from dataclasses import dataclass

from relaycode.models.enums import FileReviewStatus

__all__ = ["FileReviewState", "FileApplyResult"]


@dataclass(frozen=True, slots=True)
class FileReviewState:
    """Review status of one file in a session.

    Attributes:
        status: Current review status.
        error: Failure message while FAILED.
        details: Free-form note (e.g. the strategy used on re-apply).
    """

    status: FileReviewStatus = FileReviewStatus.AWAITING
    error: str | None = None
    details: str | None = None


@dataclass(frozen=True, slots=True)
class FileApplyResult:
    """Per-file result reported by the patch engine.

    Attributes:
        file_id: File the result belongs to.
        status: APPROVED when the patch was written, FAILED otherwise.
        error: Failure message when FAILED.
    """

    file_id: str
    status: FileReviewStatus
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is FileReviewStatus.APPROVED

    def to_review_state(self) -> FileReviewState:
        return FileReviewState(status=self.status, error=self.error)

    @classmethod
    def success(cls, file_id: str) -> FileApplyResult:
        return cls(file_id=file_id, status=FileReviewStatus.APPROVED)

    @classmethod
    def failure(cls, file_id: str, error: str) -> FileApplyResult:
        return cls(file_id=file_id, status=FileReviewStatus.FAILED, error=error)
