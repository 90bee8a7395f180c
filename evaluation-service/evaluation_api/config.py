from __future__ import annotations

import sys
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EVALUATIONS_")

    # Database
    database_url: str = "sqlite:///./evaluations.db"
    log_sql: bool = False
    seed_on_startup: bool = True

    # Server
    environment: str = "development"
    log_level: str = "info"
    log_format: str = "json"
    allow_cors_origins: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # Rate limiting
    evaluation_rate_limit: str = "30/minute"
    sentiment_rate_limit_requests: int = 5
    sentiment_rate_limit_window_seconds: float = 60.0
    rate_limit_sweep_seconds: float = 300.0

    # Sentiment provider (text analytics)
    sentiment_endpoint: str = ""
    sentiment_api_key: str = ""
    sentiment_language: str = "es"
    sentiment_timeout_seconds: float = 15.0
    sentiment_cache_ttl_seconds: float = 900.0
    sentiment_cache_max_size: int = 100

    @field_validator("sentiment_api_key")
    @classmethod
    def validate_sentiment_api_key(cls, v: str, info) -> str:
        """Refuse to start outside development with an endpoint but no key."""
        env = info.data.get("environment", "development")
        endpoint = info.data.get("sentiment_endpoint", "")
        if env != "development" and endpoint and not v:
            print(
                "\nFATAL: EVALUATIONS_SENTIMENT_ENDPOINT is set but "
                "EVALUATIONS_SENTIMENT_API_KEY is empty.\n",
                file=sys.stderr,
            )
            raise ValueError(
                "Sentiment API key is required when a sentiment endpoint is configured. "
                "Set EVALUATIONS_SENTIMENT_API_KEY env var."
            )
        return v

    @property
    def diagnostics_enabled(self) -> bool:
        """Error responses carry internal detail only outside production."""
        return self.environment != "production"

    @property
    def sentiment_configured(self) -> bool:
        return bool(self.sentiment_endpoint and self.sentiment_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Module-level singleton for convenience
settings = get_settings()
