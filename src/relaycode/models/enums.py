from enum import Enum


class TransactionStatus(str, Enum):
    """Lifecycle status of a patch transaction."""

    PENDING = "PENDING"
    APPLIED = "APPLIED"
    COMMITTED = "COMMITTED"
    FAILED = "FAILED"
    REVERTED = "REVERTED"
    IN_PROGRESS = "IN-PROGRESS"
    HANDOFF = "HANDOFF"


class FileChangeType(str, Enum):
    """Kind of change a patch makes to a file."""

    MOD = "MOD"
    ADD = "ADD"
    DEL = "DEL"
    REN = "REN"


class PatchStrategy(str, Enum):
    """Strategy used to write a file patch."""

    REPLACE = "replace"
    STANDARD_DIFF = "standard-diff"


class FileReviewStatus(str, Enum):
    """Review status of a single file in a review session."""

    AWAITING = "AWAITING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"
    RE_APPLYING = "RE_APPLYING"


class StepStatus(str, Enum):
    """Status of an apply step or substep."""

    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.DONE, StepStatus.FAILED, StepStatus.SKIPPED)


class PatchStatus(str, Enum):
    """Aggregate outcome of writing a transaction's files."""

    SUCCESS = "SUCCESS"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"


class ApplyScenario(str, Enum):
    """Simulated apply outcome selected from the review screen."""

    SUCCESS = "success"
    FAILURE = "failure"


class NotificationType(str, Enum):
    """Visual category of a notification."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


class LogLevel(str, Enum):
    """Level of an entry in the in-app debug log."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
