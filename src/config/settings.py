"""Application settings using Pydantic Settings for environment-based configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the driver sentiment alert engine.

    All settings can be overridden via environment variables.
    Prefix is not used to allow standard env var names (e.g., REDIS_URL).
    Alert thresholds live in ``AlertConfig`` (``ALERTS_`` prefix).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # Sentiment backend
    backend_base_url: str = "http://localhost:8080/api"
    backend_api_token: str | None = None
    backend_timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)

    # HTTP retry configuration
    max_http_retries: int = Field(default=3, ge=0, le=10)
    max_backoff_seconds: float = Field(default=60.0, ge=1.0, le=300.0)

    # Local alert bucket
    alert_store: Literal["memory", "redis"] = "memory"
    redis_url: RedisDsn = Field(default="redis://localhost:6379/0")
    redis_alerts_key: str = "alerts:generated"

    # Periodic monitor (started by the API lifespan when enabled)
    monitor_enabled: bool = False
    monitor_interval_seconds: float = Field(default=30.0, gt=0.0)

    # Observability
    metrics_port: int = 8000

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8001
    api_keys: str | None = None  # Comma-separated; unset disables auth
    cors_origins: str = "*"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def uses_redis_store(self) -> bool:
        """Check if generated alerts are kept in Redis."""
        return self.alert_store == "redis"

    @property
    def api_key_list(self) -> list[str]:
        """Configured API keys, empty when auth is disabled."""
        if not self.api_keys:
            return []
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
