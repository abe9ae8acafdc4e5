"""Configuration package."""

from kubera.config.settings import (
    AppSettings,
    PriceFeedSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "PriceFeedSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
