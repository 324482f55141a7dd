from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Literal, Self

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from relaycode.constants import (
    DIFF_COLLAPSE_THRESHOLD,
    DIFF_PREVIEW_LINES,
    MAX_LOG_ENTRIES,
)
from relaycode.exceptions import ConfigError
from relaycode.logging import get_logger

__all__ = [
    "RelaycodeConfig",
    "TerminalConfig",
    "NotificationConfig",
    "LogConfig",
    "ApplyConfig",
    "ReviewConfig",
    "DashboardConfig",
    "SplashConfig",
    "ClipboardConfig",
    "load_config",
    "get_user_config_path",
    "get_project_config_path",
]

logger = get_logger(__name__)


class TerminalConfig(BaseModel):
    """Terminal size assumed before the first resize event.

    Attributes:
        columns: Initial width in columns.
        rows: Initial height in rows.
    """

    columns: int = Field(default=80, ge=20)
    rows: int = Field(default=24, ge=5)


class NotificationConfig(BaseModel):
    """Settings for the notification overlay."""

    duration: int = Field(default=5, ge=1, le=60)


class LogConfig(BaseModel):
    """Settings for the in-app debug log.

    Attributes:
        max_entries: Entries kept before the oldest are dropped.
        simulator_interval: Seconds between simulated clipboard-watcher entries.
    """

    max_entries: int = Field(default=MAX_LOG_ENTRIES, ge=10, le=10000)
    simulator_interval: float = Field(default=2.0, gt=0.0)


class ApplyConfig(BaseModel):
    """Settings for the apply pipeline.

    Attributes:
        step_delay: Pause between pipeline steps, in seconds.
        file_delay: Pause before each file write, in seconds.
        script_delay: Simulated script runtime, in seconds.
        post_command: Command run after files are written. Empty skips the step.
        linter_command: Linter command. Empty skips the step.
        reapply_success_rate: Probability a simulated re-apply succeeds.
        seed: Seed for simulated re-apply outcomes (None for a random seed).

    Example relaycode.yaml:
        apply:
          post_command: "bun run test"
          linter_command: "bun run lint"
          reapply_success_rate: 0.5
    """

    step_delay: float = Field(default=0.5, ge=0.0)
    file_delay: float = Field(default=0.3, ge=0.0)
    script_delay: float = Field(default=0.0, ge=0.0)
    post_command: str = "bun run test"
    linter_command: str = "bun run lint"
    reapply_success_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    seed: int | None = None


class ReviewConfig(BaseModel):
    """Settings for the review screen.

    Attributes:
        flash_duration: Seconds a changed row stays highlighted.
        diff_collapse_threshold: Diffs longer than this start collapsed.
        diff_preview_lines: Lines shown from each end of a collapsed diff.
    """

    flash_duration: float = Field(default=0.8, ge=0.0)
    diff_collapse_threshold: int = Field(default=DIFF_COLLAPSE_THRESHOLD, ge=1)
    diff_preview_lines: int = Field(default=DIFF_PREVIEW_LINES, ge=1)

    @model_validator(mode="after")
    def check_preview_fits_threshold(self) -> Self:
        if self.diff_preview_lines * 2 > self.diff_collapse_threshold:
            logger.warning(
                "diff_preview_exceeds_threshold",
                preview_lines=self.diff_preview_lines,
                threshold=self.diff_collapse_threshold,
            )
        return self


class DashboardConfig(BaseModel):
    """Settings for the dashboard approve-all flow."""

    approve_delay: float = Field(default=2.0, ge=0.0)


class SplashConfig(BaseModel):
    """Settings for the splash screen."""

    duration: float = Field(default=3.0, ge=0.0)


class ClipboardConfig(BaseModel):
    """Clipboard backend selection.

    ``system`` pipes to the platform clipboard tool; ``memory`` keeps writes
    in-process, which is useful on headless machines.
    """

    backend: Literal["system", "memory"] = "system"
    timeout: float = Field(default=2.0, gt=0.0)


class YamlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from YAML files."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
                    if loaded is None:
                        logger.warning("config_file_empty", path=str(yaml_file))
                    elif isinstance(loaded, dict):
                        self._config_data = loaded
                    else:
                        raise ConfigError(
                            message=f"Config file {yaml_file} must contain a mapping",
                            field=None,
                            value=type(loaded).__name__,
                        )
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    field=None,
                    value=None,
                ) from e

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the complete config data."""
        return self._config_data


class RelaycodeConfig(BaseSettings):
    """Root configuration object containing all Relaycode settings."""

    model_config = SettingsConfigDict(
        env_prefix="RELAYCODE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Set by load_config() for the duration of one load
    project_config_override: ClassVar[Path | None] = None

    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    logs: LogConfig = Field(default_factory=LogConfig)
    apply: ApplyConfig = Field(default_factory=ApplyConfig)
    review: ReviewConfig = Field(default_factory=ReviewConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    splash: SplashConfig = Field(default_factory=SplashConfig)
    clipboard: ClipboardConfig = Field(default_factory=ClipboardConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Init arguments (used by tests)
        2. Environment variables (RELAYCODE_*)
        3. Project YAML config (./relaycode.yaml)
        4. User YAML config (~/.config/relaycode/config.yaml)
        5. Defaults
        """
        project_config_path = cls.project_config_override or get_project_config_path()
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_config_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/relaycode/config.yaml
    """
    return Path.home() / ".config" / "relaycode" / "config.yaml"


def get_project_config_path() -> Path:
    return Path.cwd() / "relaycode.yaml"


def load_config(config_path: Path | None = None) -> RelaycodeConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Optional path to the project config file. Defaults to
            ./relaycode.yaml

    Returns:
        RelaycodeConfig instance with merged configuration

    Raises:
        ConfigError: If a config file is malformed or a value is invalid
    """
    if config_path is None:
        config_path = get_project_config_path()

    if not config_path.exists():
        logger.info("project_config_not_found", path=str(config_path))

    RelaycodeConfig.project_config_override = config_path
    try:
        return RelaycodeConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        RelaycodeConfig.project_config_override = None
