"""
Configuration Management for Grandma Points

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location and key layout live next to the app-level switches
so the whole persisted footprint is visible in one place.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GRANDMA_POINTS_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["json", "memory"] = Field(
        default="json",
        description="Storage backend: a JSON file on disk, or in-memory only"
    )
    data_file: str = Field(
        default="~/.grandma_points/store.json",
        description="Path to the JSON file used by the json backend"
    )

    # Key layout within the store
    roster_key: str = Field(
        default="kids",
        min_length=1,
        description="Key holding the ordered list of child names"
    )
    calculations_key_prefix: str = Field(
        default="calculations_",
        min_length=1,
        description="Prefix of the per-child record collection keys"
    )

    @field_validator('data_file')
    @classmethod
    def expand_data_file(cls, v: str) -> str:
        """Expand ~ so the path is usable as-is."""
        return str(Path(v).expanduser())

    @property
    def data_path(self) -> Path:
        return Path(self.data_file)


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Standard library log level used by the app entry point"
    )

    # Display
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol shown in front of amounts"
    )

    # Deleting a child leaves its records in place unless this is set
    purge_records_on_kid_delete: bool = Field(
        default=False,
        description="Also delete a child's records when the child is removed"
    )

    audit_history_size: int = Field(
        default=200,
        ge=0,
        le=10000,
        description="How many recent audit events are kept in memory"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        storage = settings.storage
        results["storage"] = True
        if storage.backend == "json":
            parent = storage.data_path.parent
            if parent.exists() and not parent.is_dir():
                results["storage"] = False
                results["storage_error"] = f"{parent} is not a directory"
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
