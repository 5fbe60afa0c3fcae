"""Ledger settings using Pydantic for environment-based configuration."""
import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WalletSettings(BaseSettings):
    """Ledger settings loaded from WALLET_* environment variables."""

    # Parallel aggregation
    worker_count: int = Field(
        default_factory=lambda: os.cpu_count() or 4,
        ge=1,
        description="Default number of aggregation workers",
    )

    # File codec
    dump_dir: str = Field(default=".", description="Default directory for dump export/import")
    history_records_per_file: int = Field(
        default=100, ge=1, description="Max payment records per history dump file"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Render logs as JSON")

    model_config = SettingsConfigDict(
        env_prefix="WALLET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()


@lru_cache()
def get_settings() -> WalletSettings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return WalletSettings()
