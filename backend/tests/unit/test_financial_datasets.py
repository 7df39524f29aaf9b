"""Unit tests for the Financial Datasets client."""

import json

import httpx
import pytest

from finsight.infrastructure.external.financial_datasets import (
    FinancialDatasetsClient,
    StatementKind,
)


def client_with(handler, api_key="fd-key") -> FinancialDatasetsClient:
    client = FinancialDatasetsClient(api_key, base_url="https://api.test")
    client._client = httpx.AsyncClient(
        base_url=client.base_url,
        transport=httpx.MockTransport(handler),
    )
    return client


@pytest.mark.asyncio
async def test_missing_key_returns_error_without_request():
    client = FinancialDatasetsClient(None)

    result = await client.get_price_snapshot("AAPL")

    assert "error" in result
    assert client._client is None


@pytest.mark.asyncio
async def test_statements_drop_unset_filters():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"income_statements": [{"revenue": 1}]})

    client = client_with(handler)
    result = await client.get_statements(StatementKind.INCOME_STATEMENTS, "AAPL", period="annual", limit=2)
    await client.close()

    assert result == {"income_statements": [{"revenue": 1}]}
    params = dict(seen[0].url.params)
    assert seen[0].url.path == "/financials/income-statements/"
    assert params == {"ticker": "AAPL", "period": "annual", "limit": "2"}


@pytest.mark.asyncio
async def test_search_posts_filters():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"search_results": []})

    client = client_with(handler)
    filters = [{"field": "revenue", "operator": "gt", "value": 50_000_000_000}]
    await client.search_by_filters(filters, limit=3)

    body = json.loads(seen[0].content)
    assert seen[0].method == "POST"
    assert body["filters"] == filters
    assert body["limit"] == 3
    assert body["order_by"] == "-report_period"


@pytest.mark.asyncio
async def test_non_200_is_returned_in_band():
    client = client_with(lambda request: httpx.Response(401, text="invalid api key"))

    result = await client.get_price_snapshot("AAPL")

    assert result["error"] == "API error: 401"
    assert result["status"] == 401
    assert result["detail"] == "invalid api key"


@pytest.mark.asyncio
async def test_transport_error_is_returned_in_band():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = client_with(handler)

    result = await client.get_prices("AAPL", "2024-01-01", "2024-02-01")

    assert result["error"].startswith("Request failed")


@pytest.mark.asyncio
async def test_non_object_payload_is_wrapped():
    client = client_with(lambda request: httpx.Response(200, json=[1, 2]))

    assert await client.get_price_snapshot("AAPL") == {"data": [1, 2]}


@pytest.mark.asyncio
async def test_close_is_idempotent():
    client = client_with(lambda request: httpx.Response(200, json={}))

    await client.close()
    await client.close()

    assert client._client is None


@pytest.mark.asyncio
async def test_no_client_side_timeout_by_default():
    client = FinancialDatasetsClient("fd-key")

    http_client = await client._get_client()
    try:
        assert client.timeout is None
        assert http_client.timeout == httpx.Timeout(None)
    finally:
        await client.close()
