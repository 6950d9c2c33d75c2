# tests/unit/infrastructure/external_apis/twelvedata/test_twelvedata_client.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT

from __future__ import annotations

from collections.abc import AsyncIterator
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
import respx

from finstatements.domain.exceptions.statements import PriceUnavailableError
from finstatements.infrastructure.external_apis.twelvedata.client import TwelveDataClient
from finstatements.infrastructure.external_apis.twelvedata.settings import TwelveDataSettings
from finstatements.infrastructure.logging.logger import run_context
from finstatements.infrastructure.resilience.retry import RetryPolicy

_HOST = "api.twelvedata.com"


@pytest_asyncio.fixture
async def client() -> AsyncIterator[TwelveDataClient]:
    http = httpx.AsyncClient()
    settings = TwelveDataSettings(api_key="test-key")
    policy = RetryPolicy(total=2, base=0.0, cap=0.0, jitter=False)
    yield TwelveDataClient(settings, http=http, retry_policy=policy)
    await http.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_returns_decimal_price(client: TwelveDataClient) -> None:
    route = respx.get(host=_HOST, path="/price").mock(
        return_value=httpx.Response(200, json={"price": "189.84000"})
    )

    with run_context(company="AAPL", run_id="run-123"):
        price = await client.get_price(" aapl ")

    assert price == Decimal("189.84000")
    request = route.calls.last.request
    assert request.url.params["symbol"] == "AAPL"
    assert request.url.params["apikey"] == "test-key"
    assert request.headers["X-Request-ID"] == "run-123"


@pytest.mark.asyncio
@respx.mock
async def test_retries_server_errors(client: TwelveDataClient) -> None:
    route = respx.get(host=_HOST, path="/price").mock(
        side_effect=[httpx.Response(503), httpx.Response(200, json={"price": "10.5"})]
    )

    assert await client.get_price("AAPL") == Decimal("10.5")
    assert route.call_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_rate_limit_exhausts_retry_budget(client: TwelveDataClient) -> None:
    route = respx.get(host=_HOST, path="/price").mock(return_value=httpx.Response(429))

    with pytest.raises(PriceUnavailableError) as exc_info:
        await client.get_price("AAPL")

    assert route.call_count == 3
    assert exc_info.value.details["reason"] == "http_status"
    assert exc_info.value.details["retryable"] is True


@pytest.mark.asyncio
@respx.mock
async def test_timeouts_are_retried_then_reported(client: TwelveDataClient) -> None:
    route = respx.get(host=_HOST, path="/price").mock(side_effect=httpx.ConnectTimeout("slow"))

    with pytest.raises(PriceUnavailableError) as exc_info:
        await client.get_price("AAPL")

    assert route.call_count == 3
    assert exc_info.value.details["reason"] == "timeout"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("response", "reason"),
    [
        (httpx.Response(404), "http_status"),
        (httpx.Response(200, text="<html>oops</html>"), "non_json"),
        (httpx.Response(200, json=["189.84"]), "bad_shape"),
        (httpx.Response(200, json={"price": "abc"}), "bad_price"),
        (httpx.Response(200, json={"symbol": "AAPL"}), "bad_price"),
        (
            httpx.Response(200, json={"status": "error", "code": 400, "message": "invalid symbol"}),
            "provider_error",
        ),
    ],
)
@respx.mock
async def test_non_retryable_failures(
    client: TwelveDataClient,
    response: httpx.Response,
    reason: str,
) -> None:
    route = respx.get(host=_HOST, path="/price").mock(return_value=response)

    with pytest.raises(PriceUnavailableError) as exc_info:
        await client.get_price("AAPL")

    assert route.call_count == 1
    assert exc_info.value.details["reason"] == reason
    assert exc_info.value.details["retryable"] is False


@pytest.mark.asyncio
@respx.mock
async def test_provider_rate_limit_body_is_retried(client: TwelveDataClient) -> None:
    route = respx.get(host=_HOST, path="/price").mock(
        side_effect=[
            httpx.Response(200, json={"status": "error", "code": 429, "message": "slow down"}),
            httpx.Response(200, json={"price": "1.00"}),
        ]
    )

    assert await client.get_price("AAPL") == Decimal("1.00")
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_empty_symbol_is_rejected_without_request(client: TwelveDataClient) -> None:
    with pytest.raises(PriceUnavailableError) as exc_info:
        await client.get_price("  ")
    assert exc_info.value.details["reason"] == "empty_symbol"


@pytest.mark.asyncio
async def test_aclose_leaves_shared_client_open() -> None:
    http = httpx.AsyncClient()
    client = TwelveDataClient(TwelveDataSettings(api_key="k"), http=http)

    await client.aclose()

    assert not http.is_closed
    await http.aclose()


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TWELVEDATA_API_KEY", "env-key")
    monkeypatch.setenv("TWELVEDATA_MAX_RETRIES", "4")

    settings = TwelveDataSettings()

    assert settings.api_key.get_secret_value() == "env-key"
    assert settings.max_retries == 4
    assert settings.base_url == "https://api.twelvedata.com"
    assert "env-key" not in repr(settings)
