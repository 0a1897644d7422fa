"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_url: str = "sqlite:///./ghost_streak.db"
    database_timeout_seconds: float = 10.0
    default_restrictions_per_round: int = 2
    unlimited_restriction_weight: int = 3
    catalog_cache_ttl_seconds: int = 60
    seed_catalog: bool = True
    random_seed: int | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
