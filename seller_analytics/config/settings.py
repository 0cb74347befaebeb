"""
Seller Analytics Aggregation Engine
Settings

One pydantic-settings section per collaborator: the upstream dashboard API,
the per-store fan-out, the Redis result cache and logging. Every field can be
set from the environment or a ``.env`` file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "staging", "production", "testing")


class UpstreamSettings(BaseSettings):
    """Marketplace dashboard REST API"""

    model_config = SettingsConfigDict(env_prefix="UPSTREAM_")

    base_url: str = Field(default="http://localhost:8080", description="Dashboard API base URL")
    api_token: Optional[SecretStr] = Field(default=None, description="Bearer token for the dashboard API")
    timeout_seconds: float = Field(default=30.0, description="Per-request timeout")
    max_retries: int = Field(default=3, description="Attempts for transient failures")
    default_marketplace_id: int = Field(default=1, description="Marketplace used when a store has none")


class AggregationSettings(BaseSettings):
    """Per-store fan-out and aggregation behaviour"""

    model_config = SettingsConfigDict(env_prefix="AGGREGATION_")

    max_concurrency: int = Field(default=8, description="Concurrent per-store fetches")
    store_timeout_seconds: float = Field(default=20.0, description="Timeout for one store's fetch")
    cache_ttl_seconds: int = Field(default=300, description="Result memoization TTL")
    strict_weekday_range: bool = Field(
        default=True,
        description="Reject day-of-week input that lies outside the query range",
    )


class RedisSettings(BaseSettings):
    """Redis holding memoized dashboard results"""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    url: Optional[str] = Field(default=None, alias="REDIS_URL", description="Full URL, wins over host/port")
    host: str = Field(default="localhost")
    port: int = Field(default=6379)
    db: int = Field(default=0)
    password: Optional[SecretStr] = Field(default=None)
    namespace: str = Field(default="seller-analytics", description="Key prefix for cached results")
    max_connections: int = Field(default=20)
    socket_timeout: float = Field(default=5.0, description="Seconds before a cache call gives up")

    def get_url(self) -> str:
        """``REDIS_URL`` when set, otherwise built from host, port, db and password"""
        if self.url:
            return self.url
        auth = f":{self.password.get_secret_value()}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class LoggingSettings(BaseSettings):
    """structlog output"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="json or text")


class Settings(BaseSettings):
    """
    Root settings.

    Sections are read independently, each with its own env prefix; only the
    application-level fields below are read without one.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="seller-analytics", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    version: str = Field(default="1.0.0")

    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    monitoring: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        env = v.strip().lower()
        if env not in ENVIRONMENTS:
            raise ValueError(f"APP_ENV must be one of {', '.join(ENVIRONMENTS)}, got {v!r}")
        return env


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, read once"""
    return Settings()
