# src/finstatements/adapters/gateways/twelvedata_price_gateway.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Twelve Data price gateway.

Purpose:
    Implement the domain ``PriceGateway`` port over ``TwelveDataClient``,
    mapping provider failures to ``None`` so a missing price never aborts a
    normalization run.

Layer:
    adapters/gateways
"""

from __future__ import annotations

import logging
from decimal import Decimal

from finstatements.domain.exceptions.statements import PriceUnavailableError
from finstatements.infrastructure.external_apis.twelvedata.client import TwelveDataClient

logger = logging.getLogger(__name__)


class TwelveDataPriceGateway:
    """``PriceGateway`` backed by the Twelve Data ``/price`` endpoint."""

    def __init__(self, client: TwelveDataClient) -> None:
        self._client = client

    async def fetch_price(self, symbol: str) -> Decimal | None:
        """Return the latest price, or ``None`` when it cannot be fetched."""
        try:
            return await self._client.get_price(symbol)
        except PriceUnavailableError as exc:
            logger.info(
                "statements.price.unavailable",
                extra={"symbol": symbol, "reason": exc.details.get("reason")},
            )
            return None
