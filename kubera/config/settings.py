"""
Configuration Management for Kubera

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, price refresh cadence and the first-run seed are the
only knobs the ledger core exposes, and all of them are validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KUBERA_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".kubera",
        description="Directory holding one JSON file per storage key"
    )
    document_key: str = Field(
        default="KUBERA_DATA",
        min_length=1,
        description="Storage key of the single ledger document"
    )

    # Retry policy for transient write failures
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per backend write before giving up"
    )

    @field_validator('document_key')
    @classmethod
    def validate_document_key(cls, v: str) -> str:
        """Keys become file names, so path separators are not allowed."""
        if "/" in v or "\\" in v:
            raise ValueError(f"Storage key must not contain path separators: {v}")
        return v


class PriceFeedSettings(BaseSettings):
    """Price refresh configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KUBERA_PRICES_",
        extra="ignore"
    )

    refresh_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How often held tickers are re-quoted"
    )
    seed: Optional[int] = Field(
        default=None,
        description="Seed for the mock price feed (None = nondeterministic)"
    )


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

    # First-run seed
    default_categories: str = Field(
        default="Groceries,Dining Out,Travel,Shopping,House,Health,Learning",
        description="Comma-separated expense categories seeded on first run"
    )
    default_currency: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="Currency listed first in a freshly seeded document"
    )

    # Dashboard
    top_categories_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many categories the spending breakdown shows"
    )

    @property
    def default_categories_list(self) -> list[str]:
        """Get seeded categories as a list, dropping blanks and duplicates."""
        seen: list[str] = []
        for name in self.default_categories.split(","):
            name = name.strip()
            if name and name not in seen:
                seen.append(name)
        return seen


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def prices(self) -> PriceFeedSettings:
        return PriceFeedSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each section that failed to load.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "prices", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
