"""Configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global settings.

    Only credentials, endpoints and output options come from the environment.
    TTLs, weight tables and the rate-limit interval are engine constants.
    """

    model_config = SettingsConfigDict(
        env_prefix="EV_ODDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── The Odds API ────────────────────────────────────────────────────────
    odds_api_key: str = Field(default="", description="The Odds API key")
    odds_api_base_url: str = Field(default="https://api.the-odds-api.com/v4")
    odds_api_timeout_seconds: float = Field(default=30.0)

    # ── Cache store ─────────────────────────────────────────────────────────
    redis_url: str = Field(default="", description="Cache store URL (empty disables caching)")
    redis_token: str = Field(default="", description="Cache store password / REST token")

    # ── Degraded mode ───────────────────────────────────────────────────────
    fallback_flag_file: str = Field(
        default=".ev_odds_fallback",
        description="Durable flag marking that the upstream quota was exhausted",
    )

    # ── Output ──────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="'console' or 'json'")

    # ── Helpers ─────────────────────────────────────────────────────────────

    @property
    def odds_api_configured(self) -> bool:
        return bool(self.odds_api_key)

    @property
    def cache_configured(self) -> bool:
        return bool(self.redis_url)

    @property
    def fallback_flag_path(self) -> Path:
        return Path(self.fallback_flag_file)


def get_settings(**overrides) -> Settings:  # type: ignore
    """Factory with optional overrides."""
    return Settings(**overrides)
