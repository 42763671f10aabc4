"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    CaptureSettings,
    CodecSettings,
    LoggingSettings,
    RopkitSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "CaptureSettings",
    "CodecSettings",
    "LoggingSettings",
    "RopkitSettings",
    "clear_settings_cache",
    "get_settings",
]
