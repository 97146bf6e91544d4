"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: SecretStr | None = None
    gitlab_token: SecretStr | None = None
    bitbucket_token: SecretStr | None = None
    bitbucket_host: str = "bitbucket.org"
    bitbucket_api_url: str = "https://api.bitbucket.org/2.0"
    http_timeout: float = 30.0
    page_size: int = 100
    source_extension: str = ".php"
    max_concurrent_fetches: int = 10
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
