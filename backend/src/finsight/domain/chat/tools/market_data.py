"""Market data tools backed by the Financial Datasets API."""

from typing import Any

from finsight.domain.chat.stream import DataStream, EventType
from finsight.domain.chat.tools.models import (
    FinancialStatementsInput,
    GetCurrentStockPriceInput,
    GetStockPricesInput,
    SearchStocksByFiltersInput,
)
from finsight.infrastructure.external.financial_datasets import (
    FinancialDatasetsClient,
    StatementKind,
)

SEARCH_LOADING_MESSAGE = "Searching for stocks matching your criteria..."


class MarketDataTools:
    def __init__(self, client: FinancialDatasetsClient, stream: DataStream) -> None:
        self.client = client
        self.stream = stream

    async def get_current_stock_price(self, params: GetCurrentStockPriceInput) -> dict[str, Any]:
        return await self.client.get_price_snapshot(params.ticker)

    async def get_stock_prices(self, params: GetStockPricesInput) -> dict[str, Any]:
        return await self.client.get_prices(
            params.ticker,
            params.start_date,
            params.end_date,
            interval=params.interval.value,
            interval_multiplier=params.interval_multiplier,
        )

    async def _statements(
        self, kind: StatementKind, params: FinancialStatementsInput
    ) -> dict[str, Any]:
        return await self.client.get_statements(
            kind,
            params.ticker,
            period=params.period.value,
            limit=params.limit,
            report_period_lte=params.report_period_lte,
            report_period_gte=params.report_period_gte,
        )

    async def get_income_statements(self, params: FinancialStatementsInput) -> dict[str, Any]:
        return await self._statements(StatementKind.INCOME_STATEMENTS, params)

    async def get_balance_sheets(self, params: FinancialStatementsInput) -> dict[str, Any]:
        return await self._statements(StatementKind.BALANCE_SHEETS, params)

    async def get_cash_flow_statements(self, params: FinancialStatementsInput) -> dict[str, Any]:
        return await self._statements(StatementKind.CASH_FLOW_STATEMENTS, params)

    async def get_financial_metrics(self, params: FinancialStatementsInput) -> dict[str, Any]:
        return await self._statements(StatementKind.FINANCIAL_METRICS, params)

    async def search_stocks_by_filters(self, params: SearchStocksByFiltersInput) -> dict[str, Any]:
        """Screen stocks, bracketing the call with tool-loading events."""
        self.stream.write(
            EventType.TOOL_LOADING,
            {
                "tool": "searchStocksByFilters",
                "isLoading": True,
                "message": SEARCH_LOADING_MESSAGE,
            },
        )
        try:
            return await self.client.search_by_filters(
                [item.model_dump(mode="json") for item in params.filters],
                period=params.period.value,
                limit=params.limit,
                order_by=params.order_by.value,
            )
        finally:
            self.stream.write(
                EventType.TOOL_LOADING,
                {"tool": "searchStocksByFilters", "isLoading": False, "message": None},
            )
