"""
Configuration Management for mealpool

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Calculators stay pure and take their options as arguments; the
orchestration layer reads these settings and passes them down.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransferMode(str, Enum):
    """
    How net positions are turned into payments at month close.

    PEER: minimal point-to-point transfers between members.
    MANAGER: every member settles with the manager directly.
    """
    PEER = "peer"
    MANAGER = "manager"


class SettlementSettings(BaseSettings):
    """Settlement engine options."""

    model_config = SettingsConfigDict(
        env_prefix="MEALPOOL_SETTLEMENT_",
        extra="ignore"
    )

    transfer_mode: TransferMode = Field(
        default=TransferMode.PEER,
        description="Which transfer list the final settlement produces"
    )
    include_manager_in_shares: bool = Field(
        default=True,
        description="Whether an active manager takes part in meal-share allocation"
    )
    currency_symbol: str = Field(
        default="৳",
        min_length=1,
        max_length=5,
        description="Symbol used when formatting amounts for display"
    )
    max_guest_meals_per_entry: int = Field(
        default=20,
        ge=1,
        description="Guest count above which a meal entry is flagged for review"
    )


class StorageSettings(BaseSettings):
    """Ledger repository configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MEALPOOL_STORAGE_",
        extra="ignore"
    )

    data_path: str = Field(
        default="mealpool-data.json",
        description="Path of the JSON file backing the ledger"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for transient file I/O failures"
    )

    @field_validator('data_path')
    @classmethod
    def validate_data_path(cls, v: str) -> str:
        """The parent directory must exist; the file itself is created on save."""
        parent = Path(v).expanduser().parent
        if not parent.exists():
            raise ValueError(f"Directory for ledger file does not exist: {parent}")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG level regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level for the structured logger"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def settlement(self) -> SettlementSettings:
        return SettlementSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an `<name>_error`
    entry describing each failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("settlement", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
