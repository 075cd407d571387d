"""
Configuration Module
====================

Process settings read from the environment (and an optional ``.env``).

Scoring rules that analysts edit at runtime, such as the employee
allow-list and the insight thresholds, live in the YAML file at
``scoring_config_path`` instead, so they can be hot-reloaded.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = {"development", "staging", "production"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """QA Insights service settings. Field names map to upper-case env vars."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ========== Service ==========
    app_name: str = Field(default="qa-insights", description="Service name")
    app_version: str = Field(default="1.0.0", description="Reported in /health and the OpenAPI doc")
    environment: str = Field(default="development", description="development, staging or production")
    debug: bool = Field(default=False, description="Echo SQL statements")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== HTTP ==========
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Dashboard front-ends allowed to call the API"
    )

    # ========== Interaction store ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/qa_insights",
        description="SQLAlchemy async URL of the interaction store"
    )
    db_pool_size: int = Field(default=5, ge=1, description="Pooled connections")
    db_max_overflow: int = Field(default=10, ge=0, description="Connections allowed beyond the pool")

    # ========== Scoring ==========
    scoring_config_path: Path = Field(
        default=Path("scoring_config.yaml"),
        description="YAML file holding the employee allow-list and insight thresholds"
    )
    refresh_interval_seconds: int = Field(
        default=300,
        ge=0,
        description="Seconds between scheduled snapshot refreshes; 0 disables the job"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ENVIRONMENTS:
            raise ValueError(f"environment must be one of {sorted(ENVIRONMENTS)}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)}")
        return level


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
