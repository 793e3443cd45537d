"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    dsn: str = Field(
        default="sqlite+aiosqlite:///./search_cache.db",
        description="SQLAlchemy async DSN for the local result cache.",
    )
    echo: bool = False


class GitHubSettings(BaseModel):
    base_url: AnyHttpUrl = Field(default="https://api.github.com")
    api_token: SecretStr | None = None
    per_page: int = Field(default=30, ge=1, le=100)
    request_timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    max_attempts: int = Field(default=3, ge=1, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0)

    @field_validator("api_token", mode="before")
    @classmethod
    def _empty_token_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class DebounceSettings(BaseModel):
    quiet_period_seconds: float = Field(default=0.5, ge=0, le=10)


class ConnectivitySettings(BaseModel):
    probe_url: AnyHttpUrl = Field(default="https://api.github.com")
    interval_seconds: float = Field(default=5.0, gt=0)
    timeout_seconds: float = Field(default=3.0, gt=0, le=60)


class SearchSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    environment: Literal["dev", "staging", "prod"] = "dev"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    debounce: DebounceSettings = Field(default_factory=DebounceSettings)
    connectivity: ConnectivitySettings = Field(default_factory=ConnectivitySettings)


@lru_cache
def get_settings() -> SearchSettings:
    """Return cached settings instance."""

    return SearchSettings()


__all__ = [
    "ConnectivitySettings",
    "DatabaseSettings",
    "DebounceSettings",
    "GitHubSettings",
    "SearchSettings",
    "get_settings",
]
