"""Configuration models for the mailbox text-encoding layer."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import EscapeMode, SanitizeOptions
from .utils.path_sanitizer import FORBIDDEN_CHARS


class SanitizerConfig(BaseModel):
    """Filesystem naming rules applied when folders are mirrored to disk."""

    replacement: str = Field(default="_", description="Character substituted for forbidden characters.")
    windows_compat: bool = Field(default=True, description="Also enforce Windows reserved names and trailing dots.")
    max_length: int = Field(default=255, ge=16, le=4096, description="Maximum UTF-8 byte length of a file name.")
    default_name: str = Field(default="unnamed", description="Name used when sanitizing leaves nothing.")

    @model_validator(mode="after")
    def _validate_replacement(self) -> "SanitizerConfig":
        if len(self.replacement) != 1:
            raise ConfigurationError("sanitizer.replacement must be exactly one character")
        if self.replacement in FORBIDDEN_CHARS or ord(self.replacement) < 0x20:
            raise ConfigurationError(f"sanitizer.replacement {self.replacement!r} is itself a forbidden character")
        if not self.default_name.strip():
            raise ConfigurationError("sanitizer.default_name must not be blank")
        return self

    def to_options(self) -> SanitizeOptions:
        return SanitizeOptions(
            replacement=self.replacement,
            windows_compat=self.windows_compat,
            max_length=self.max_length,
            default_name=self.default_name,
        )


class CodecSettings(BaseSettings):
    """Top-level configuration container for the server."""

    model_config = SettingsConfigDict(
        env_prefix="MAIL_CODEC_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    debug_escape_mode: EscapeMode = Field(
        default=EscapeMode.MIXED, description="How non-ASCII text is rendered in diagnostic output."
    )
    debug_max_length: int = Field(default=200, gt=3, description="Maximum length of a rendered diagnostic string.")
    default_delimiter: str = Field(default="/", description="Hierarchy delimiter assumed when a row has none.")
    sanitizer: SanitizerConfig = Field(default_factory=SanitizerConfig, description="Filesystem naming rules.")

    config_path: Path | None = Field(
        default=None,
        description="Resolved path used to load configuration (for diagnostics).",
        exclude=True,
    )

    @model_validator(mode="after")
    def _validate_delimiter(self) -> "CodecSettings":
        if len(self.default_delimiter) != 1:
            raise ConfigurationError("default_delimiter must be a single character")
        return self


def load_settings(config_path: Path | None = None, overrides: dict[str, Any] | None = None) -> CodecSettings:
    """Load configuration from YAML on disk combined with environment overrides."""

    base_data: dict[str, Any] = {}
    resolved_path: Path | None = None
    if config_path:
        resolved_path = Path(config_path).expanduser().resolve()
        if not resolved_path.exists():
            raise ConfigurationError(f"Configuration file not found: {resolved_path}")
        try:
            with resolved_path.open("r", encoding="utf-8") as handle:
                base_data = yaml.safe_load(handle.read()) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Unable to parse configuration file {resolved_path}: {exc}") from exc
        if not isinstance(base_data, dict):
            raise ConfigurationError(f"Configuration file {resolved_path} must contain a mapping")
    if overrides:
        base_data.update(overrides)

    settings = CodecSettings(**base_data)
    settings.config_path = resolved_path
    return settings
