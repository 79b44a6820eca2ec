"""
Configuration Management for Shopbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every knob the shop owner (or a test) can turn is visible in one place
and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SHOPBOOK_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Which key-value store backs the collections"
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding one JSON document per storage key"
    )
    key_prefix: str = Field(
        default="cloudify",
        min_length=1,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$",
        description="Prefix for storage keys (e.g. cloudify-sales)"
    )
    max_item_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Largest document a single key may hold (local storage quota)"
    )
    audit_max_events: int = Field(
        default=2000,
        ge=0,
        description="How many audit events are kept, in the audit collection and in memory"
    )

    @field_validator('key_prefix')
    @classmethod
    def strip_trailing_dash(cls, v: str) -> str:
        """Keys are built as '<prefix>-<collection>', so drop a trailing dash."""
        return v.rstrip("-")


class PricingSettings(BaseSettings):
    """Unit prices used to suggest sale amounts and backend revenue."""

    model_config = SettingsConfigDict(
        env_prefix="SHOPBOOK_PRICING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    refill_unit_price: float = Field(
        default=100.0,
        gt=0,
        description="Suggested selling price of one refill"
    )
    coil_unit_price: float = Field(
        default=800.0,
        gt=0,
        description="Suggested selling price of one coil"
    )
    refill_backend_rate: float = Field(
        default=60.0,
        ge=0,
        description="Backend (cost-side) revenue per refill"
    )
    coil_backend_rate: float = Field(
        default=600.0,
        ge=0,
        description="Backend (cost-side) revenue per coil"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHOPBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    currency: str = Field(
        default="PKR",
        min_length=1,
        max_length=5,
        description="Currency label shown next to amounts"
    )

    # Privileged views. This is a UX gate, not access control.
    dashboard_password: str = Field(
        default="cloudify",
        description="Password for the dashboard (totals) view"
    )
    reports_password: str = Field(
        default="cloudify",
        description="Password for the complete reports view"
    )

    # Validation thresholds
    phone_digit_count: Optional[int] = Field(
        default=None,
        ge=1,
        le=20,
        description="Exact number of digits a customer phone must have (unset = any)"
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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def pricing(self) -> PricingSettings:
        return PricingSettings()

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

    Returns a dict of {setting_name: is_valid}, plus '<name>_error'
    entries describing what failed. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "pricing", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
