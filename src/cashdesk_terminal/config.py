"""Configuration surface for the cash-desk terminal client."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_POLL_MAX_ATTEMPTS = 60
DEFAULT_POLL_INTERVAL_MS = 2000  # 60 x 2s = 2 minutes


class TerminalSettings(BaseSettings):
    """Cash-desk terminal configuration, read from ``CASHDESK_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="CASHDESK_",
        env_file=".env",
        extra="ignore",
    )

    # Cash-desk API
    api_url: str = ""
    api_key: str = ""
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    # Polling
    poll_max_attempts: int = Field(default=DEFAULT_POLL_MAX_ATTEMPTS, ge=0)
    poll_interval_ms: int = Field(default=DEFAULT_POLL_INTERVAL_MS, ge=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = False

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def is_configured(self) -> bool:
        """True when both the API URL and the API key are set."""
        return bool(self.api_url and self.api_key)


@lru_cache(maxsize=1)
def get_settings() -> TerminalSettings:
    """Return a cached settings instance to avoid repeated environment reads."""
    return TerminalSettings()
