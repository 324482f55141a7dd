"""Relaycode exception hierarchy.

All exceptions can be imported from this package:
    from relaycode.exceptions import ClipboardError, ConfigError, RelaycodeError
"""

from __future__ import annotations

from relaycode.exceptions.base import RelaycodeError
from relaycode.exceptions.collaborators import (
    ClipboardError,
    CollaboratorError,
    GitServiceError,
    PatchEngineError,
    ScriptRunnerError,
)
from relaycode.exceptions.config import ConfigError
from relaycode.exceptions.navigation import NavigationError, UnknownPathError
from relaycode.exceptions.pipeline import (
    PipelineBusyError,
    PipelineCancelledError,
    PipelineError,
)
from relaycode.exceptions.review import (
    InvalidTransitionError,
    ReviewError,
    UnknownFileError,
)

__all__ = [
    "RelaycodeError",
    "ConfigError",
    "NavigationError",
    "UnknownPathError",
    "ReviewError",
    "InvalidTransitionError",
    "UnknownFileError",
    "CollaboratorError",
    "ClipboardError",
    "PatchEngineError",
    "GitServiceError",
    "ScriptRunnerError",
    "PipelineError",
    "PipelineCancelledError",
    "PipelineBusyError",
]
