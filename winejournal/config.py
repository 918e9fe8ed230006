"""
Runtime configuration for the wine journal API.

Values come from the process environment first and then from the ``.env``
file in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]

ENV_PATH = BASE_DIR / ".env"

# Platform-provided variables win over .env defaults
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="Wine Journal API", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Tokens are minted by the identity provider and verified with a shared secret.
    jwt_secret_key: str | None = Field(default=None, alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expires_minutes: int = Field(default=1440, alias="JWT_EXPIRES_MINUTES")

    # Relationship engine
    relationship_lookup_timeout: float = Field(default=5.0, gt=0, alias="RELATIONSHIP_LOOKUP_TIMEOUT")
    relationship_lookup_workers: int = Field(default=8, ge=1, le=64, alias="RELATIONSHIP_LOOKUP_WORKERS")
    legacy_comments_scope: bool = Field(default=True, alias="LEGACY_COMMENTS_SCOPE")

    # Feed paging
    feed_default_limit: int = Field(default=30, ge=1, alias="FEED_DEFAULT_LIMIT")
    feed_max_limit: int = Field(default=50, ge=1, alias="FEED_MAX_LIMIT")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
