# src/finstatements/infrastructure/external_apis/twelvedata/client.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Twelve Data transport client (latest price), resilient and async.

This transport provides:

* Async HTTP (httpx) with per-request timeout.
* Jittered exponential retries (bounded) on transport errors, 429 and 5xx.
* Deterministic mapping of every failure to ``PriceUnavailableError``.
* A Prometheus counter of requests by outcome.

Endpoint:
    ``GET {base_url}/price?symbol=AAPL&apikey=...`` returning
    ``{"price": "189.84000"}``. Errors may also arrive as HTTP 200 with
    ``{"status": "error", "code": 404, "message": "..."}``.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Final

import httpx

from finstatements.domain.exceptions.statements import PriceUnavailableError
from finstatements.infrastructure.external_apis.twelvedata.settings import TwelveDataSettings
from finstatements.infrastructure.logging.logger import get_json_logger, get_run_id
from finstatements.infrastructure.observability.metrics import get_price_requests_total
from finstatements.infrastructure.resilience.retry import RetryPolicy, retry_async

logger = get_json_logger(__name__)

_DEFAULT_BASE_BACKOFF: Final[float] = 0.25
_DEFAULT_MAX_BACKOFF: Final[float] = 2.0

_DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json",
    "User-Agent": "finstatements-twelvedata-client/1.0",
}


def _unavailable(reason: str, *, retryable: bool, **details: Any) -> PriceUnavailableError:
    return PriceUnavailableError(
        f"Price unavailable: {reason}.",
        details={"reason": reason, "retryable": retryable, **details},
    )


def _is_retryable(exc_or_result: Exception | Decimal) -> bool:
    return isinstance(exc_or_result, PriceUnavailableError) and bool(
        exc_or_result.details.get("retryable")
    )


def _parse_price(payload: Any, symbol: str) -> Decimal:
    if not isinstance(payload, Mapping):
        raise _unavailable("bad_shape", retryable=False, symbol=symbol)
    if payload.get("status") == "error":
        code = payload.get("code")
        raise _unavailable(
            "provider_error",
            retryable=code == 429,
            symbol=symbol,
            code=code,
            message=payload.get("message"),
        )
    raw = payload.get("price")
    try:
        price = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise _unavailable("bad_price", retryable=False, symbol=symbol) from None
    if raw is None or not price.is_finite():
        raise _unavailable("bad_price", retryable=False, symbol=symbol)
    return price


class TwelveDataClient:
    """Resilient transport client for the Twelve Data ``/price`` endpoint."""

    def __init__(
        self,
        settings: TwelveDataSettings,
        *,
        http: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Provider settings loaded from environment or DI.
            http: Optional shared ``httpx.AsyncClient``. If omitted, a client
                is created and owned by this instance.
            retry_policy: Optional retry configuration; built from
                ``settings.max_retries`` when omitted.
        """
        self._settings = settings
        self._base_url = settings.base_url.rstrip("/")
        self._timeout = float(settings.timeout_s)
        self._owns_client = http is None
        self._client = http or httpx.AsyncClient(
            timeout=self._timeout,
            headers=_DEFAULT_HEADERS.copy(),
        )
        self._retry = retry_policy or RetryPolicy(
            total=settings.max_retries,
            base=_DEFAULT_BASE_BACKOFF,
            cap=_DEFAULT_MAX_BACKOFF,
            jitter=True,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance owns it."""
        if self._owns_client:
            await self._client.aclose()

    async def get_price(self, symbol: str) -> Decimal:
        """Return the latest price for ``symbol``.

        Raises:
            PriceUnavailableError: On any transport, provider or shape error
                once retries are exhausted.
        """
        ticker = symbol.strip().upper()
        if not ticker:
            raise _unavailable("empty_symbol", retryable=False)

        url = f"{self._base_url}/price"
        params = {"symbol": ticker, "apikey": self._settings.api_key.get_secret_value()}
        headers: dict[str, str] = {}
        run_id = get_run_id()
        if run_id:
            headers["X-Request-ID"] = run_id

        async def _call() -> Decimal:
            try:
                response = await self._client.get(
                    url, params=params, headers=headers, timeout=self._timeout
                )
            except httpx.TimeoutException as exc:
                raise _unavailable("timeout", retryable=True, symbol=ticker) from exc
            except httpx.RequestError as exc:
                raise _unavailable("transport", retryable=True, symbol=ticker) from exc

            status = response.status_code
            if status == 429 or status >= 500:
                raise _unavailable("http_status", retryable=True, symbol=ticker, status=status)
            if status >= 400:
                raise _unavailable("http_status", retryable=False, symbol=ticker, status=status)
            try:
                payload = response.json()
            except ValueError as exc:
                raise _unavailable("non_json", retryable=False, symbol=ticker) from exc
            return _parse_price(payload, ticker)

        start = time.perf_counter()
        try:
            price = await retry_async(_call, policy=self._retry, retry_on=_is_retryable)
        except PriceUnavailableError as exc:
            get_price_requests_total().labels(outcome="error").inc()
            logger.warning(
                "twelvedata.price.unavailable",
                extra={
                    "symbol": ticker,
                    "reason": exc.details.get("reason"),
                    "elapsed_s": round(time.perf_counter() - start, 4),
                },
            )
            raise
        get_price_requests_total().labels(outcome="success").inc()
        return price
