# src/finstatements/domain/interfaces/gateways/price_gateway.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Latest stock price gateway interface.

Layer:
    domain

Notes:
    The price is an optional annotation on the statements result. Providers
    report unavailability by returning ``None``; they must not fail the
    normalization run.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class PriceGateway(Protocol):
    """Protocol for latest-price lookups."""

    async def fetch_price(self, symbol: str) -> Decimal | None:
        """Return the latest price for ``symbol`` or ``None`` if unavailable."""
