# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for credentials, feature flags and tunable thresholds.
A Settings instance is handed to the pipeline explicitly; nothing in the
package reads feature flags from module globals.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Collaborator credentials (empty = stage skipped) ===
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    tmdb_api_key: str = ""
    streaming_availability_api_key: str = ""
    youtube_api_key: str = ""

    # === LLM backends ===
    vision_provider: str = "anthropic"
    vision_model: str = "claude-sonnet-4-5"
    text_provider: str = "openai"
    text_model: str = "gpt-4o-mini"
    prefer_vision_backend: bool = True
    llm_temperature: float = 0.1
    llm_max_tokens_image: int = 1000
    llm_max_tokens_text: int = 800

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["memory", "json", "sqlite", "redis"] = "memory"
    cache_root: Path = Path("~/.reelfinder/cache")
    cache_redis_url: str = ""
    cache_refresh_sources: bool = False

    # === Resilient fetch ===
    retry_max_attempts: int = 3
    retry_initial_delay_s: float = 1.0
    # False = 4xx responses (other than 408/429) fail fast instead of retrying
    retry_client_errors: bool = True

    # === Outbound HTTP ===
    http_timeout_s: float = 10.0
    http_user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    page_context_max_chars: int = 3000

    # === Matching thresholds ===
    catalog_accept_threshold: float = 0.75
    streaming_match_threshold: float = 0.6
    streaming_year_bonus: float = 0.1
    watch_region: str = "US"
    streaming_country: str = "us"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # === HTTP server ===
    cors_origins: str = "*"
    server_host: str = "0.0.0.0"
    server_port: int = 8000

    # --- Validators ---

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        for name in (
            "catalog_accept_threshold",
            "streaming_match_threshold",
            "streaming_year_bonus",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                errors.append(f"{name.upper()} must be within [0, 1], got {value}")

        if self.retry_max_attempts < 1:
            errors.append("RETRY_MAX_ATTEMPTS must be >= 1")

        if self.retry_initial_delay_s < 0:
            errors.append("RETRY_INITIAL_DELAY_S must be >= 0")

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def configured_collaborators(self) -> dict[str, bool]:
        """Report which upstream services have credentials."""
        return {
            "anthropic": bool(self.anthropic_api_key),
            "openai": bool(self.openai_api_key),
            "tmdb": bool(self.tmdb_api_key),
            "streaming_availability": bool(self.streaming_availability_api_key),
            "youtube": bool(self.youtube_api_key),
        }


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or one-off runs).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
