"""
Centralized settings for the pricing engine and its API.

Values are read from PRICING_* environment variables (or a .env file),
e.g. PRICING_DATA_DIR, PRICING_DEFAULT_MINIMUM_MARGIN_PERCENT.
"""
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_package_root() -> Path:
    """Directory of the contract_pricing package."""
    return Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings with sensible defaults."""

    # Catalog CSV directory used by the API
    data_dir: Path = Field(default_factory=lambda: get_package_root() / 'data' / 'sample')

    # Global minimum margin when neither the price list item nor the product sets one
    default_minimum_margin_percent: Optional[Decimal] = None

    # Margin health thresholds
    margin_warning_threshold: Decimal = Decimal("10")
    margin_healthy_threshold: Decimal = Decimal("20")

    log_level: str = "INFO"

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False

    model_config = SettingsConfigDict(
        env_prefix="PRICING_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
