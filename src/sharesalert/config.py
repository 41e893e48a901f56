"""Application configuration loaded from environment variables.

Nested settings use a double-underscore delimiter, for example
``SHARESALERT_CACHE__MAX_SIZE=500`` or ``SHARESALERT_API__BASE_URL=...``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheConfig(BaseModel):
    """Response cache settings. TTLs are expressed in minutes."""

    enabled: bool = True
    max_size: int | None = Field(default=None, gt=0)
    stock_list_ttl: float = Field(default=2.0, gt=0)
    stock_ttl: float = Field(default=1.0, gt=0)
    stock_details_ttl: float = Field(default=5.0, gt=0)
    alert_list_ttl: float = Field(default=1.0, gt=0)


class ApiConfig(BaseModel):
    """Alert API connection settings."""

    base_url: str = "http://localhost:8080/api/v1"
    timeout: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=1)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class IndicatorConfig(BaseModel):
    """Indicator periods and synthetic history length."""

    rsi_period: int = Field(default=14, gt=0)
    sma_period: int = Field(default=20, gt=0)
    ema_period: int = Field(default=12, gt=0)
    synthetic_days: int = Field(default=30, ge=0)
    memo_size: int = Field(default=256, gt=0)


class LoggingConfig(BaseModel):
    """Logging output settings."""

    level: str = "INFO"
    format: Literal["json", "text"] = "text"


class Config(BaseSettings):
    """Top-level settings for the sharesalert package."""

    model_config = SettingsConfigDict(
        env_prefix="SHARESALERT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config()
