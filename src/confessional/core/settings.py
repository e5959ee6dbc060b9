"""Application settings and configuration.

This module defines all configuration options for the Confessional service.
Settings are loaded from environment variables with sensible defaults.
"""

from datetime import timedelta
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Confessional", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Storage backend: "memory" keeps everything in-process, "database" uses SQLAlchemy
    store_backend: Literal["memory", "database"] = Field(default="memory", alias="STORE_BACKEND")
    database_url: str = Field(default="sqlite:///./confessional.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Confession lifecycle
    confession_ttl_hours: float = Field(default=72, gt=0, alias="CONFESSION_TTL_HOURS")
    delete_on_read: bool = Field(default=False, alias="DELETE_ON_READ")
    max_ciphertext_length: int = Field(default=1_000_000, gt=0, alias="MAX_CIPHERTEXT_LENGTH")
    # 0 disables the cap on live confessions held by the in-memory store.
    max_live_confessions: int = Field(default=0, ge=0, alias="MAX_LIVE_CONFESSIONS")
    client_clock_skew_seconds: int = Field(
        default=900,
        ge=0,
        alias="CLIENT_CLOCK_SKEW_SECONDS",
    )

    # Background purge of expired confessions
    expiry_sweep_interval_seconds: float = Field(
        default=60.0,
        alias="EXPIRY_SWEEP_INTERVAL_SECONDS",
    )
    expiry_sweep_batch_size: int = Field(default=500, gt=0, alias="EXPIRY_SWEEP_BATCH_SIZE")

    # Anonymized metrics
    # 0 keeps every sample; otherwise the oldest samples are dropped first.
    metrics_capacity: int = Field(default=0, ge=0, alias="METRICS_CAPACITY")
    crisis_threshold: int = Field(default=10, ge=0, alias="CRISIS_THRESHOLD")
    crisis_window_hours: float = Field(default=24, gt=0, alias="CRISIS_WINDOW_HOURS")

    # Per-client rate limiting for the public API
    rate_limit_requests: int = Field(default=100, gt=0, alias="RATE_LIMIT_REQUESTS")
    rate_limit_window_seconds: int = Field(
        default=15 * 60,
        gt=0,
        alias="RATE_LIMIT_WINDOW_SECONDS",
    )

    # Supportive AI responder
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    ai_model: str = Field(default="claude-3-5-sonnet-20241022", alias="AI_MODEL")
    ai_base_url: str = Field(default="https://api.anthropic.com", alias="AI_BASE_URL")
    ai_timeout_seconds: float = Field(default=15.0, gt=0, alias="AI_TIMEOUT_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def confession_ttl(self) -> timedelta:
        """Return the confession time-to-live as a timedelta."""
        return timedelta(hours=self.confession_ttl_hours)

    @property
    def crisis_window(self) -> timedelta:
        """Return the trailing window used by the crisis heuristic."""
        return timedelta(hours=self.crisis_window_hours)

    @property
    def client_clock_skew(self) -> timedelta:
        """Return how far a caller timestamp may drift from server time."""
        return timedelta(seconds=self.client_clock_skew_seconds)


settings = Settings()
