"""Configuration package."""

from shopbook.config.settings import (
    AppSettings,
    PricingSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "PricingSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
