# src/finstatements/infrastructure/external_apis/twelvedata/settings.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Pydantic settings for the Twelve Data price client."""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class TwelveDataSettings(BaseSettings):
    """Configuration for the Twelve Data client.

    Environment variables (with ``model_config.env_prefix``):

    * ``TWELVEDATA_BASE_URL``
    * ``TWELVEDATA_API_KEY``
    * ``TWELVEDATA_TIMEOUT_S``
    * ``TWELVEDATA_MAX_RETRIES``
    """

    base_url: str = Field(
        "https://api.twelvedata.com",
        description="Base URL for the Twelve Data REST API.",
    )
    api_key: SecretStr = Field(
        ...,
        description="Twelve Data API key.",
    )
    timeout_s: float = Field(
        5.0,
        gt=0,
        description="Per-request timeout in seconds.",
    )
    max_retries: int = Field(
        2,
        ge=0,
        le=10,
        description="Maximum number of retry attempts for retryable failures.",
    )

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="TWELVEDATA_",
        extra="ignore",
    )
