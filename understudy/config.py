"""Configuration loading for the understudy test-double library.

This module provides centralized configuration management:
- Load settings from UNDERSTUDY_* environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Configure library logging for debugging test doubles
"""

import logging
import sys
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_prefix="UNDERSTUDY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # pytest integration
    auto_reset: bool = Field(
        default=True,
        description="Reset every live double after each test (pytest plugin)",
    )

    # Verification reports
    max_reported_calls: int = Field(
        default=10,
        description="Recorded calls listed in a verification failure message",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Log stub declarations, unmatched calls and resets",
    )

    @field_validator("max_reported_calls")
    @classmethod
    def validate_max_reported_calls(cls, v: int) -> int:
        """Ensure at least one call is reported."""
        if v <= 0:
            raise ValueError("max_reported_calls must be positive")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load library settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings shared by the facade and the pytest plugin."""
    return load_settings()


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure logging for the ``understudy`` logger hierarchy.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.WARNING)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_str))

    logger = logging.getLogger("understudy")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


__all__ = ["Settings", "configure_logging", "get_settings", "load_settings"]
