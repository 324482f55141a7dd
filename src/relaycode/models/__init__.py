"""Data models shared by the navigation, review and screen layers."""

from __future__ import annotations

from relaycode.models.apply import (
    AddSubstep,
    ApplyStep,
    ApplySubstep,
    ApplyUpdate,
    UpdateStep,
    UpdateSubstep,
)
from relaycode.models.copy import CopyItem
from relaycode.models.domain import (
    FileItem,
    ScriptResult,
    Transaction,
    TransactionStats,
)
from relaycode.models.enums import (
    ApplyScenario,
    FileChangeType,
    FileReviewStatus,
    LogLevel,
    NotificationType,
    PatchStatus,
    PatchStrategy,
    StepStatus,
    TransactionStatus,
)
from relaycode.models.log import LogEntry
from relaycode.models.notification import Notification
from relaycode.models.review import FileApplyResult, FileReviewState

__all__ = [
    "AddSubstep",
    "ApplyScenario",
    "ApplyStep",
    "ApplySubstep",
    "ApplyUpdate",
    "CopyItem",
    "FileApplyResult",
    "FileChangeType",
    "FileItem",
    "FileReviewState",
    "FileReviewStatus",
    "LogEntry",
    "LogLevel",
    "Notification",
    "NotificationType",
    "PatchStatus",
    "PatchStrategy",
    "ScriptResult",
    "StepStatus",
    "Transaction",
    "TransactionStats",
    "TransactionStatus",
    "UpdateStep",
    "UpdateSubstep",
]
