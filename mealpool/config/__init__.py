"""Configuration package."""

from mealpool.config.settings import (
    AppSettings,
    SettlementSettings,
    Settings,
    StorageSettings,
    TransferMode,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "SettlementSettings",
    "Settings",
    "StorageSettings",
    "TransferMode",
    "get_settings",
    "validate_all_settings",
]
