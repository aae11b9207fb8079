"""Centralized configuration management for the acceptance harness.

This module implements the harness configuration using Pydantic Settings,
providing type-safe values with validation and environment variable support.

Features:
- **Type safety**: All configuration values are validated and typed
- **Environment variables**: Supports .env files and environment overrides
- **Nested configuration**: Uses __ delimiter for sections, e.g.
  ``CONTAINER_CONFIG__LOG_DIR=/tmp/container-logs``
- **Caching**: Configuration is cached for the lifetime of the test process

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in project root
3. Default values in model definitions

The container log directory is deliberately *not* checked for absoluteness
here. That check is a startup precondition owned by the pytest plugin, which
aborts the whole run when it fails.
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.constants import (
    LOOPBACK_HOST,
    PING_TIMEOUT_SECONDS,
    RUNTIME_BINARY,
    STOP_GRACE_PERIOD_SECONDS,
)


class LogConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        Field(
            default="INFO",
            description="Logging level",
        )
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )


class ContainerConfig(BaseModel):
    """Container runtime settings used by the lifecycle controller."""

    runtime_binary: str = Field(
        default=RUNTIME_BINARY,
        min_length=1,
        description="Container runtime executable invoked for logs/stop/kill",
    )
    log_dir: str = Field(
        default="",
        description="Absolute directory for container logs; empty disables capture",
    )
    stop_grace_period_seconds: int = Field(
        default=STOP_GRACE_PERIOD_SECONDS,
        gt=0,
        description="Grace period passed to the runtime's graceful stop",
    )

    @field_validator("log_dir", mode="before")
    @classmethod
    def none_to_empty(cls, v: str | None) -> str:
        """Treat an unset log directory as disabled."""
        _ = cls
        if v is None:
            return ""
        return v


class ReadinessConfig(BaseModel):
    """Settings for the pool readiness probe."""

    host: str = Field(
        default=LOOPBACK_HOST,
        description="Host the probed pool connects to",
    )
    ping_timeout_seconds: float = Field(
        default=PING_TIMEOUT_SECONDS,
        gt=0,
        le=60,
        description="Upper bound on the liveness probe, in seconds",
    )
    pool_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Number of connections to maintain in the probed pool",
    )
    max_overflow: int = Field(
        default=0,
        ge=0,
        le=50,
        description="Maximum overflow connections above pool_size",
    )


class Settings(BaseSettings):
    """Main settings class for the harness."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = Field(default="acceptance-harness", description="Harness name")
    app_version: str = Field(default="0.1.0", description="Harness version")
    environment: Literal["development", "ci"] = Field(
        default="development",
        description="Where the test process is running",
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )
    container_config: ContainerConfig = Field(
        default_factory=ContainerConfig, description="Container runtime configuration"
    )
    readiness_config: ReadinessConfig = Field(
        default_factory=ReadinessConfig, description="Readiness probe configuration"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Most CI providers export CI=true
        if os.getenv("CI", "").lower() in {"1", "true"}:
            return "json"
        if self.environment == "ci":
            return "json"
        return "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
