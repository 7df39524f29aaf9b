"""Unit tests for tool validation, dispatch and duplicate suppression."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from finsight.domain.chat.tool_registry import ToolCallCache, ToolRegistry, input_schema
from finsight.domain.chat.tools.documents import DocumentTools
from finsight.domain.chat.tools.market_data import MarketDataTools
from finsight.domain.chat.tools.models import SearchStocksByFiltersInput

ALL_TOOLS = {
    "getCurrentStockPrice",
    "getStockPrices",
    "getIncomeStatements",
    "getBalanceSheets",
    "getCashFlowStatements",
    "getFinancialMetrics",
    "searchStocksByFilters",
    "createDocument",
    "updateDocument",
    "requestSuggestions",
}


@pytest.fixture
def registry(market_data, data_stream):
    documents = MagicMock(spec=DocumentTools)
    documents.create_document = AsyncMock(return_value={"id": "doc-1"})
    return ToolRegistry(market=MarketDataTools(market_data, data_stream), documents=documents)


class TestToolCallCache:
    def test_key_is_order_independent(self):
        assert ToolCallCache.key("t", {"a": 1, "b": 2}) == ToolCallCache.key("t", {"b": 2, "a": 1})

    def test_first_call_executes_repeat_does_not(self):
        cache = ToolCallCache()

        assert cache.should_execute("getBalanceSheets", {"ticker": "AAPL"}) is True
        assert cache.should_execute("getBalanceSheets", {"ticker": "AAPL"}) is False
        assert cache.should_execute("getBalanceSheets", {"ticker": "MSFT"}) is True
        assert len(cache) == 2


class TestDefinitions:
    def test_every_tool_is_defined(self, registry):
        definitions = registry.definitions()

        assert {definition.name for definition in definitions} == ALL_TOOLS
        assert all(definition.description for definition in definitions)

    def test_schemas_are_inlined(self):
        schema = input_schema(SearchStocksByFiltersInput)

        assert "$defs" not in schema
        filter_schema = schema["properties"]["filters"]["items"]
        assert "revenue" in filter_schema["properties"]["field"]["enum"]

    def test_request_suggestions_uses_camel_case_alias(self, registry):
        definition = next(d for d in registry.definitions() if d.name == "requestSuggestions")

        assert "documentId" in definition.input_schema["properties"]


class TestExecute:
    @pytest.mark.asyncio
    async def test_executes_valid_call(self, registry, market_data):
        execution = await registry.execute("getCurrentStockPrice", {"ticker": "aapl"})

        assert execution.error is None
        assert execution.payload == {"snapshot": {"ticker": "AAPL", "price": 190.5}}
        market_data.get_price_snapshot.assert_awaited_once_with("AAPL")

    @pytest.mark.asyncio
    async def test_empty_filter_list_is_rejected_before_network(self, registry, market_data, data_stream):
        execution = await registry.execute("searchStocksByFilters", {"filters": []})

        assert execution.skipped is False
        assert "Invalid input for searchStocksByFilters" in execution.payload["error"]
        market_data.search_by_filters.assert_not_called()
        assert data_stream._queue.empty()

    @pytest.mark.asyncio
    async def test_duplicate_call_is_skipped(self, registry, market_data):
        first = await registry.execute("getBalanceSheets", {"ticker": "AAPL", "period": "annual"})
        second = await registry.execute("getBalanceSheets", {"period": "annual", "ticker": "AAPL"})

        assert first.skipped is False
        assert second.skipped is True
        assert second.payload is None
        market_data.get_statements.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_defaults_count_towards_duplicate_key(self, registry, market_data):
        await registry.execute("getIncomeStatements", {"ticker": "AAPL"})
        repeat = await registry.execute(
            "getIncomeStatements", {"ticker": "AAPL", "period": "ttm", "limit": 1}
        )

        assert repeat.skipped is True
        market_data.get_statements.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_different_parameters_both_execute(self, registry, market_data):
        await registry.execute("getCurrentStockPrice", {"ticker": "AAPL"})
        await registry.execute("getCurrentStockPrice", {"ticker": "MSFT"})

        assert market_data.get_price_snapshot.await_count == 2

    @pytest.mark.asyncio
    async def test_invalid_arguments_return_error(self, registry, market_data):
        execution = await registry.execute(
            "searchStocksByFilters",
            {"filters": [{"field": "favourite_colour", "operator": "gt", "value": 1}]},
        )

        assert execution.error is not None
        assert "Invalid input for searchStocksByFilters" in execution.payload["error"]
        market_data.search_by_filters.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_call_does_not_poison_cache(self, registry):
        await registry.execute("getStockPrices", {"ticker": "AAPL", "start_date": "yesterday"})

        assert len(registry.cache) == 0

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        execution = await registry.execute("getWeather", {})

        assert execution.error.startswith("Unknown tool: getWeather")

    @pytest.mark.asyncio
    async def test_handler_exception_becomes_error(self, registry, market_data):
        market_data.get_price_snapshot.side_effect = RuntimeError("socket closed")

        execution = await registry.execute("getCurrentStockPrice", {"ticker": "AAPL"})

        assert execution.payload == {"error": "socket closed"}

    @pytest.mark.asyncio
    async def test_market_error_passes_through_in_band(self, registry, market_data):
        market_data.get_price_snapshot.return_value = {"error": "API error: 404", "status": 404}

        execution = await registry.execute("getCurrentStockPrice", {"ticker": "ZZZZ"})

        assert execution.error is None
        assert execution.payload["status"] == 404
