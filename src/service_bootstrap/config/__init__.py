"""
Configuration Module
====================

Settings for the helpers themselves, loaded with pydantic-settings.

Application values are read through `service_bootstrap.env.EnvReader`;
this module only covers logging and connection pool tuning.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ========== Constants ==========

# Environment variable holding the full database connection string
DATABASE_URL_ENV = "PG_CONN"

# HTTP header carrying the trace identifier
TRACE_ID_HEADER = "X-Trace-ID"


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    environment: str = Field(default="development", description="Environment name")

    # ========== Logging ==========
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=True, description="Emit JSON structured logs")

    # ========== Database Pool ==========
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)
    db_pool_pre_ping: bool = Field(
        default=True,
        description="Verify pooled connections before handing them out"
    )
    db_echo: bool = Field(default=False, description="Echo SQL statements")
    db_connect_timeout: Optional[float] = Field(
        default=10.0,
        description="Seconds allowed for the startup ping (unset for no deadline)",
        gt=0
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings", "DATABASE_URL_ENV", "TRACE_ID_HEADER"]
