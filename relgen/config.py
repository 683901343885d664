"""
Configuration settings for relgen.

Uses Pydantic Settings to load environment variables for logging, the eager
pairing policy, and the connection defaults used by the CLI `fetch` command.
The compiler pipeline itself reads nothing from here except the pairing policy.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Eager loading: what to do with fetched rows that match no input parent
    pairing_anomaly_policy: Literal["drop", "raise"] = Field(
        "drop", alias="RELGEN_PAIRING_ANOMALY"
    )

    # Database (CLI only; accessors always receive a caller-owned store)
    db_backend: str = Field("sqlite", alias="DB_BACKEND")
    db_dsn: str = Field(":memory:", alias="DB_DSN")
    db_connect_attempts: int = Field(3, alias="DB_CONNECT_ATTEMPTS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
