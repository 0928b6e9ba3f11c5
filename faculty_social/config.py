"""
Runtime configuration helpers for the engagement backend.

Loads DATABASE_URL and the remaining variables from the environment, falling
back to the .env file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    database_url: str = Field(default="sqlite+pysqlite:///./faculty_social.db", alias="DATABASE_URL")

    app_name: str = Field(default="Faculty Social", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    public_base_url: str = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")
    profile_path_template: str = Field(default="/portfolio/{subject_id}.html", alias="PROFILE_PATH_TEMPLATE")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Engagement behaviour
    store_timeout_seconds: float = Field(default=20.0, gt=0, alias="STORE_TIMEOUT_SECONDS")
    comment_page_limit: int = Field(default=50, ge=1, le=200, alias="COMMENT_PAGE_LIMIT")

    # Identity
    identity_store_path: Path = Field(default=BASE_DIR / ".identity.json", alias="IDENTITY_STORE_PATH")
    identity_token_algorithm: str = Field(default="HS256", alias="IDENTITY_TOKEN_ALGORITHM")
    identity_token_minutes: int = Field(default=60, alias="IDENTITY_TOKEN_MINUTES")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
