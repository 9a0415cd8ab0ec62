# src/viberate/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Supports environment variables with validation and an optional .env file.

Files that USE this module:
- viberate.app (builds all services from settings)
- tests.test_settings (unit tests)

Files that this module USES:
- viberate.shared.validators (validation functions for settings)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from datetime import timedelta  # Durations derived from minute/second settings
from pathlib import Path  # Object-oriented filesystem paths
from typing import Annotated, Optional  # Type hints for optional and annotated values

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict  # Settings management with Pydantic

from viberate.domain.models import CURRENCY_CATALOG
from viberate.shared.validators import (
    validate_api_key,  # Validate credential format
    validate_bot_token,  # Validate Telegram bot token format
    validate_currency_code,  # Validate ISO-4217-like codes
)

DEFAULT_PROXY_URL = "https://vibe-exchange-server.vercel.app/api/exchange-rate"
DEFAULT_DIRECT_URL = "https://v6.exchangerate-api.com/v6"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Telegram front-end ---
    bot_token: str = Field(default="", alias="BOT_TOKEN")

    # --- Rate provider ---
    rate_provider: str = Field(default="proxy", alias="RATE_PROVIDER")  # "proxy" or "direct"
    rates_base_url: Optional[str] = Field(default=None, alias="RATES_BASE_URL")
    app_auth_key: str = Field(default="", alias="APP_AUTH_KEY")  # Bearer token for the proxy
    exchange_rate_api_key: str = Field(default="", alias="EXCHANGE_RATE_API_KEY")  # Direct upstream key
    pivot_currency: str = Field(default="USD", alias="PIVOT_CURRENCY")
    currency_codes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(CURRENCY_CATALOG), alias="CURRENCY_CODES"
    )

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)

    # --- Cache and refresh policy ---
    cache_validity_minutes: int = Field(default=60, alias="CACHE_VALIDITY_MINUTES", ge=1, le=1440)
    refresh_interval_seconds: int = Field(default=30, alias="REFRESH_INTERVAL_SECONDS", ge=1, le=86400)
    stale_after_seconds: Optional[int] = Field(default=None, alias="STALE_AFTER_SECONDS", ge=1)
    min_fetch_interval_hours: float = Field(default=0.0, alias="MIN_FETCH_INTERVAL_HOURS", ge=0.0)

    # --- Persistence ---
    rates_cache_file: Path = Field(default=Path("./data/rates_cache.json"), alias="RATES_CACHE_FILE")
    favorites_file: Path = Field(default=Path("./data/favorites.json"), alias="FAVORITES_FILE")
    max_favorites: int = Field(default=5, alias="MAX_FAVORITES", ge=1, le=50)

    # --- Logging (for server deployment) ---
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    # Computed properties for convenience
    @property
    def base_url(self) -> str:
        """Provider base URL, defaulting per provider kind."""
        if self.rates_base_url:
            return self.rates_base_url
        return DEFAULT_DIRECT_URL if self.rate_provider == "direct" else DEFAULT_PROXY_URL

    @property
    def cache_validity(self) -> timedelta:
        return timedelta(minutes=self.cache_validity_minutes)

    @property
    def refresh_interval(self) -> timedelta:
        return timedelta(seconds=self.refresh_interval_seconds)

    @property
    def stale_after(self) -> timedelta:
        """Age at which the scheduler asks for a refresh (defaults to the refresh interval)."""
        if self.stale_after_seconds is None:
            return self.refresh_interval
        return timedelta(seconds=self.stale_after_seconds)

    @property
    def min_fetch_interval(self) -> timedelta:
        return timedelta(hours=self.min_fetch_interval_hours)

    @field_validator("bot_token")
    @classmethod
    def validate_bot_token(cls, v: str) -> str:
        """Validate bot token format (empty is allowed; checked at startup)."""
        if v and not validate_bot_token(v):
            raise ValueError("Invalid BOT_TOKEN format")
        return v

    @field_validator("app_auth_key", "exchange_rate_api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate credential format (empty means not configured)."""
        if v and not validate_api_key(v, min_length=8):
            raise ValueError("Invalid API key format")
        return v

    @field_validator("rate_provider")
    @classmethod
    def validate_rate_provider(cls, v: str) -> str:
        v = v.lower()
        if v not in ("proxy", "direct"):
            raise ValueError("RATE_PROVIDER must be 'proxy' or 'direct'")
        return v

    @field_validator("pivot_currency")
    @classmethod
    def validate_pivot(cls, v: str) -> str:
        v = v.upper()
        if not validate_currency_code(v):
            raise ValueError("PIVOT_CURRENCY must be a three-letter currency code")
        return v

    @field_validator("currency_codes", mode="before")
    @classmethod
    def split_currency_codes(cls, v):
        """Accept a comma-separated string such as "USD,EUR,GBP"."""
        if isinstance(v, str):
            v = [part for part in v.split(",") if part.strip()]
        return v

    @field_validator("currency_codes")
    @classmethod
    def validate_currency_codes(cls, v: list[str]) -> list[str]:
        codes = [code.strip().upper() for code in v]
        bad = [code for code in codes if not validate_currency_code(code)]
        if bad:
            raise ValueError(f"Invalid currency codes in CURRENCY_CODES: {bad}")
        return codes


# Global settings instance
settings = Settings()
