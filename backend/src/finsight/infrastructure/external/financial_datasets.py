"""Financial Datasets client for prices, filings and stock screening.

API: https://docs.financialdatasets.ai/

Non-200 responses are returned as an ``{"error": ...}`` object instead of
raised, so the language model sees the failure as an ordinary tool result.
There is no client-side timeout by default: calls run inside a chat turn and
are cut off by the turn's deadline.
"""

from enum import StrEnum
from typing import Any

import httpx

from finsight.shared.logging import get_logger

logger = get_logger(__name__)

FINANCIAL_DATASETS_BASE_URL = "https://api.financialdatasets.ai"
ERROR_BODY_LIMIT = 500


class StatementKind(StrEnum):
    """Endpoints that share the ticker/period/limit query shape."""

    INCOME_STATEMENTS = "/financials/income-statements/"
    BALANCE_SHEETS = "/financials/balance-sheets/"
    CASH_FLOW_STATEMENTS = "/financials/cash-flow-statements/"
    FINANCIAL_METRICS = "/financial-metrics/"


class FinancialDatasetsClient:
    """Thin async client for the Financial Datasets REST API."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = FINANCIAL_DATASETS_BASE_URL,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Accept": "application/json",
                    "X-API-Key": self.api_key or "",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.api_key:
            return {"error": "Financial Datasets API key is not configured"}

        if params is not None:
            params = {key: value for key, value in params.items() if value is not None}

        client = await self._get_client()
        try:
            response = await client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("market_data_request_failed", path=path, error=str(exc))
            return {"error": f"Request failed: {exc}"}

        if response.status_code != 200:
            detail = response.text[:ERROR_BODY_LIMIT]
            logger.warning(
                "market_data_api_error",
                path=path,
                status=response.status_code,
                body=detail,
            )
            return {
                "error": f"API error: {response.status_code}",
                "status": response.status_code,
                "detail": detail,
            }

        try:
            data = response.json()
        except ValueError:
            return {"error": "API returned a non-JSON response", "status": response.status_code}
        return data if isinstance(data, dict) else {"data": data}

    async def get_price_snapshot(self, ticker: str) -> dict[str, Any]:
        return await self._request("GET", "/prices/snapshot", params={"ticker": ticker})

    async def get_prices(
        self,
        ticker: str,
        start_date: str,
        end_date: str,
        interval: str = "day",
        interval_multiplier: int = 1,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            "/prices/",
            params={
                "ticker": ticker,
                "start_date": start_date,
                "end_date": end_date,
                "interval": interval,
                "interval_multiplier": interval_multiplier,
            },
        )

    async def get_statements(
        self,
        kind: StatementKind,
        ticker: str,
        period: str = "ttm",
        limit: int = 1,
        report_period_lte: str | None = None,
        report_period_gte: str | None = None,
    ) -> dict[str, Any]:
        """Fetch income statements, balance sheets, cash flows or metrics."""
        return await self._request(
            "GET",
            kind.value,
            params={
                "ticker": ticker,
                "period": period,
                "limit": limit,
                "report_period_lte": report_period_lte,
                "report_period_gte": report_period_gte,
            },
        )

    async def search_by_filters(
        self,
        filters: list[dict[str, Any]],
        period: str = "ttm",
        limit: int = 5,
        order_by: str = "-report_period",
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/financials/search/",
            json={
                "filters": filters,
                "period": period,
                "limit": limit,
                "order_by": order_by,
            },
        )
