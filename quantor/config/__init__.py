"""Configuration package."""

from quantor.config.settings import (
    ApiSettings,
    AppSettings,
    CacheSettings,
    GeminiSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "CacheSettings",
    "GeminiSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
