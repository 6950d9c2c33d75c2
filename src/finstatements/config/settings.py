# src/finstatements/config/settings.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Finstatements Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration for the statement normalization service.
    Only outer layers (CLI, wiring) read it; use cases receive plain values
    through their constructors.

Design:
    - Pydantic v2 BaseSettings; unknown env keys are ignored so provider
      settings (``TWELVEDATA_*``) can share one ``.env`` file.
    - Explicit field declarations with constrained types and ranges.
    - Singleton accessor `get_settings()` with LRU cache.
    - Safe, structured logging (no secrets).
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    CI = "ci"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Typed configuration for the normalization service."""

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment.",
        validation_alias="ENVIRONMENT",
    )
    log_level: str | None = Field(
        default=None,
        description="Root log level override (DEBUG, INFO, ...).",
        validation_alias="LOG_LEVEL",
    )
    service_name: str = Field(
        default="finstatements",
        min_length=1,
        description="Service name used in logs.",
        validation_alias="SERVICE_NAME",
    )
    annual_window_years: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Number of annual periods shown.",
        validation_alias="ANNUAL_WINDOW_YEARS",
    )
    quarterly_window_quarters: int = Field(
        default=6,
        ge=1,
        le=40,
        description="Number of quarterly periods shown.",
        validation_alias="QUARTERLY_WINDOW_QUARTERS",
    )
    price_lookup_enabled: bool = Field(
        default=False,
        description="Annotate results with the latest stock price (needs TWELVEDATA_API_KEY).",
        validation_alias="PRICE_LOOKUP_ENABLED",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}.")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = Settings()
    except ValidationError as exc:
        logger.exception("Invalid application configuration")
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    logger.info(
        "Settings initialized",
        extra={
            "environment": settings.environment.value,
            "service_name": settings.service_name,
            "annual_window_years": settings.annual_window_years,
            "quarterly_window_quarters": settings.quarterly_window_quarters,
            "price_lookup_enabled": settings.price_lookup_enabled,
        },
    )
    return settings
