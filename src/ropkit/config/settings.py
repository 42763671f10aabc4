"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from ropkit.config import get_settings
    >>> settings = get_settings()
    >>> settings.capture.log_faults
    True
    >>> settings.codec.format
    'json'

    # Or with environment variables:
    # ROPKIT_LOG_LEVEL=DEBUG
    # ROPKIT_CAPTURE_INCLUDE_TRACEBACK=false
    # ROPKIT_CODEC_FORMAT=msgpack
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ROPKIT_LOG_",
        extra="ignore",
    )

    level: LogLevel = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class CaptureSettings(BaseSettings):
    """How captured faults are reported at the Result boundary."""

    model_config = SettingsConfigDict(
        env_prefix="ROPKIT_CAPTURE_",
        extra="ignore",
    )

    log_faults: bool = Field(default=True, description="Emit a log event for every captured fault")
    log_level: LogLevel = Field(default="DEBUG", description="Level of the 'fault captured' event")
    include_traceback: bool = Field(default=True, description="Keep formatted tracebacks on Fault.details")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class CodecSettings(BaseSettings):
    """Wire codec defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROPKIT_CODEC_",
        extra="ignore",
    )

    format: Literal["json", "msgpack"] = Field(default="json", description="Default format for dumps/loads")

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v


class RopkitSettings(BaseSettings):
    """Root settings for ropkit.

    Loads configuration from environment variables with ROPKIT_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        ROPKIT_DEBUG=true
        ROPKIT_LOG_FORMAT=json
        ROPKIT_CAPTURE_LOG_FAULTS=false
        ROPKIT_CODEC_FORMAT=msgpack
    """

    model_config = SettingsConfigDict(
        env_prefix="ROPKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    codec: CodecSettings = Field(default_factory=CodecSettings)

    @computed_field
    @property
    def effective_log_level(self) -> LogLevel:
        """DEBUG when debug mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> RopkitSettings:
    """Get the global settings instance (cached).

    Example:
        >>> settings = get_settings()
        >>> settings.debug
        False
    """
    return RopkitSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
