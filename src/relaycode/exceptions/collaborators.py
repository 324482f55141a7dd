from __future__ import annotations

from relaycode.exceptions.base import RelaycodeError


class CollaboratorError(RelaycodeError):
    """Base exception for failures reported by external services.

    These are always recoverable: callers convert them to a notification
    and roll back the state transition that triggered the call.

    Attributes:
        message: Human-readable error message.
        service: Name of the failing collaborator.
    """

    service = "collaborator"

    def __init__(self, message: str) -> None:
        """Initialize the CollaboratorError.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class ClipboardError(CollaboratorError):
    """Raised when text could not be written to the clipboard."""

    service = "clipboard"


class PatchEngineError(CollaboratorError):
    """Raised when the patch engine cannot process a request at all.

    A per-file failure is not an exception; it is a FAILED result.
    """

    service = "patch_engine"


class GitServiceError(CollaboratorError):
    """Raised when git cannot be reached to commit transactions."""

    service = "git"


class ScriptRunnerError(CollaboratorError):
    """Raised when a post-command or linter script cannot be started.

    Attributes:
        command: The command that could not run.
    """

    service = "script_runner"

    def __init__(self, message: str, command: str | None = None) -> None:
        """Initialize the ScriptRunnerError.

        Args:
            message: Human-readable error message.
            command: The command that could not run.
        """
        self.command = command
        super().__init__(message)
