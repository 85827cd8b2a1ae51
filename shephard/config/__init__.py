"""Configuration package."""

from shephard.config.settings import (
    AppSettings,
    Settings,
    StoreSettings,
    SupabaseSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "Settings",
    "StoreSettings",
    "SupabaseSettings",
    "get_settings",
    "validate_all_settings",
]
