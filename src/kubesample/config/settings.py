"""
Application settings using Pydantic.

Provides environment-based configuration loading with KUBESAMPLE_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Cluster identity; overrides the config file when set
    cluster_name: str | None = None
    k8s_version: str | None = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Sink
    sink_url: str | None = None
    http_timeout: float = 30.0

    # Reported integration metadata
    integration_name: str = "com.newrelic.kubernetes"
    integration_version: str = "0.1.0"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "KUBESAMPLE_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
