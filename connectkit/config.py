"""
Library Configuration — Process-wide settings for connectkit.

The settings manage:
  - Logging (level, JSON output)
  - HTTP transport (timeouts, retry attempts)
  - Failure policy (transport errors, strict extraction)
  - Paging defaults and manifest discovery
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectKitSettings(BaseSettings):
    """Library-wide settings. Vendor credentials are read by each connector."""

    model_config = SettingsConfigDict(
        env_prefix="CONNECTKIT_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Runtime ──────────────────────────────────────────────────────
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    json_logs: bool = False

    # ── HTTP Transport ───────────────────────────────────────────────
    http_timeout_seconds: float = Field(default=30.0, gt=0)
    http_connect_timeout_seconds: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=1)

    # ── Failure Policy ───────────────────────────────────────────────
    transport_error_policy: Literal["raise", "empty"] = "raise"
    strict_extraction: bool = False

    # ── Paging ───────────────────────────────────────────────────────
    default_page_size: int = Field(default=50, ge=1)

    # ── Manifests ────────────────────────────────────────────────────
    manifests_dir: str = "manifests"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> ConnectKitSettings:
    """Singleton accessor — parsed once, cached forever."""
    return ConnectKitSettings()
