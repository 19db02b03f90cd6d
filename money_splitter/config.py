"""
Configuration for Money Splitter.

Values come from environment variables prefixed with ``MONEY_SPLITTER_``,
e.g. ``MONEY_SPLITTER_STORE_PATH=/tmp/bills.json``.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="MONEY_SPLITTER_",
        extra="ignore"
    )

    store_path: Path = Field(
        default=Path.home() / ".money_splitter" / "bills.json",
        description="JSON file holding saved bills"
    )
    store_key: str = Field(
        default="bills",
        min_length=1,
        description="Key the bill list is stored under"
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level"
    )
    currency_symbol: str = Field(
        default="$",
        description="Symbol shown in front of amounts"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
