"""Configuration models describing mimeguess settings."""

from __future__ import annotations

from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mimeguess.detection.external import (
    DEFAULT_ALIASES,
    DEFAULT_COMMAND,
    DEFAULT_TIMEOUT_SECONDS,
)


class MimeGuessBaseModel(BaseModel):
    """Shared configuration for mimeguess Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class ProbeSettings(MimeGuessBaseModel):
    """External classifier options.

    Attributes:
        enabled: Whether the external command runs as the first stage.
        command: Executable and leading arguments; the file path is appended.
        timeout_seconds: Upper bound on how long the command may run.
        aliases: Ordered ``[raw, canonical]`` pairs normalizing command output.
    """

    enabled: bool = True
    command: List[str] = Field(default_factory=lambda: list(DEFAULT_COMMAND))
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    aliases: List[Tuple[str, str]] = Field(default_factory=lambda: list(DEFAULT_ALIASES))

    @field_validator("command")
    @classmethod
    def _command_not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("probe.command must name an executable")
        return value


class ExtensionSettings(MimeGuessBaseModel):
    """Extension table options.

    Attributes:
        overrides: Extra or replacement ``extension -> mime`` entries.
    """

    overrides: Dict[str, str] = Field(default_factory=dict)


class LoggingSettings(MimeGuessBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown logging level '{value}'")
        return normalized


class CLIOptions(MimeGuessBaseModel):
    """CLI behavior defaults.

    Attributes:
        json_default: Whether `detect` emits JSON unless told otherwise.
    """

    json_default: bool = False


class MimeGuessConfig(MimeGuessBaseModel):
    """Top-level configuration struct for mimeguess.

    Attributes:
        probe: External classifier settings.
        extensions: Extension table settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    probe: ProbeSettings = Field(default_factory=ProbeSettings)
    extensions: ExtensionSettings = Field(default_factory=ExtensionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "MimeGuessBaseModel",
    "ProbeSettings",
    "ExtensionSettings",
    "LoggingSettings",
    "CLIOptions",
    "MimeGuessConfig",
]
