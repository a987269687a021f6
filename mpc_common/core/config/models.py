"""Pydantic configuration models for mpc_common.

For loading and merging logic, see loader.py.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from mpc_common.core.queue.store import DEFAULT_KEY_SEPARATOR

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    """Configuration for logging system."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    directory: str = Field(default="logs", description="Directory for log files")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB before rotation")
    backup_count: int = Field(default=5, description="Number of backup log files to keep")
    per_party: bool = Field(default=True, description="Create a separate log file per participant")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and validate the logging level name."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Invalid logging level '{v}'. Use one of: {', '.join(_LOG_LEVELS)}.")
        return level


class ChannelConfig(BaseModel):
    """Configuration for per-channel queue stores."""

    key_separator: str = Field(
        default=DEFAULT_KEY_SEPARATOR,
        description="Separator joining sender and recipient names into a channel key",
    )

    @field_validator("key_separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        if not v:
            raise ValueError("key_separator must not be empty")
        return v


class Config(BaseModel):
    """Root configuration for one MPC participant."""

    name: str | None = Field(default=None, description="This participant's name")
    circuit: Path | None = Field(default=None, description="Path to the circuit description (JSON or YAML)")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")
    channels: ChannelConfig = Field(default_factory=ChannelConfig)

    model_config = {"extra": "allow"}
