from __future__ import annotations

from typing import Any

from relaycode.exceptions.base import RelaycodeError


class ConfigError(RelaycodeError):
    """Exception for configuration loading, parsing, and validation errors.

    Raised when relaycode.yaml cannot be parsed, or when a value from YAML
    or the environment fails Pydantic validation.

    Attributes:
        message: Human-readable error message describing the configuration issue.
        field: Optional dotted field name that caused the error
            (e.g., "apply.step_delay").
        value: Optional value that failed validation (for debugging).

    Examples:
        ```python
        raise ConfigError("Failed to parse relaycode.yaml: invalid YAML syntax")

        raise ConfigError(
            "Invalid configuration value",
            field="logs.max_entries",
            value=-1,
        )
        ```
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        """Initialize the ConfigError.

        Args:
            message: Human-readable error message.
            field: Optional field name that caused the error.
            value: Optional value that failed validation.
        """
        self.field = field
        self.value = value
        super().__init__(message)
