"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from REKOR_TAIL_* environment variables
  - Fall back to a .env file at the project root
  - Validate types and constraints at startup

The command line only carries the polling interval (`--interval`); when given
it overrides REKOR_TAIL_INTERVAL_SECONDS. Everything else has a working default,
so the tool runs against the public log with no configuration at all.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rekor_tail.adapters.http_client import DEFAULT_LOG_URL, DEFAULT_USER_AGENT

# Resolved against the project root so settings load regardless of the working directory.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Explicit keyword arguments (the CLI override)
      2. Environment variables
      3. .env file
      4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="REKOR_TAIL_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_url: str = Field(default=DEFAULT_LOG_URL, description="Base URL of the transparency log")
    interval_seconds: int = Field(default=3, ge=0, description="Sleep between polling cycles")
    http_timeout_seconds: int = Field(default=30, ge=1)
    max_batch_size: int = Field(
        default=0,
        ge=0,
        description="Split retrieval requests into chunks of this many indices (0 = one request)",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Render diagnostics as JSON lines")

    @field_validator("log_url")
    @classmethod
    def validate_log_url(cls, value: str) -> str:
        """Require an absolute http(s) URL; the trailing slash is dropped."""
        parsed = urlparse(value.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Log URL must be an absolute http(s) URL, got {value!r}")
        return value.strip().rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Log level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}")
        return level
