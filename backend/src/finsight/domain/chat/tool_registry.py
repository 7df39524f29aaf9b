"""Tool registry for the chat turn.

Maps tool names to input models and handlers, validates arguments, and skips
repeated calls with identical parameters within one request.
"""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finsight.domain.chat.tools import models
from finsight.domain.chat.tools.documents import DocumentTools
from finsight.domain.chat.tools.market_data import MarketDataTools
from finsight.infrastructure.ai.base import ToolDefinition
from finsight.observability.metrics import TOOL_CALLS
from finsight.shared.exceptions import ToolError

logger = logging.getLogger(__name__)


@dataclass
class ToolExecution:
    """Result of executing (or skipping) a tool."""

    tool_name: str
    tool_input: dict[str, Any]
    result: Any = None
    error: str | None = None
    skipped: bool = False

    @property
    def payload(self) -> Any:
        """What the model sees as the tool result."""
        if self.error is not None:
            return {"error": self.error}
        return self.result


class ToolCallCache:
    """Request-scoped record of (tool, parameters) pairs already attempted."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    @staticmethod
    def key(tool_name: str, params: dict[str, Any]) -> str:
        return json.dumps({"toolName": tool_name, "params": params}, sort_keys=True, default=str)

    def should_execute(self, tool_name: str, params: dict[str, Any]) -> bool:
        """Return True the first time a pair is seen, False for every repeat."""
        key = self.key(tool_name, params)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __len__(self) -> int:
        return len(self._seen)


def _resolve_refs(schema: Any, defs: dict[str, Any]) -> Any:
    """Recursively inline ``$ref`` references in a JSON schema."""
    if isinstance(schema, dict):
        if "$ref" in schema:
            ref_name = schema["$ref"].split("/")[-1]
            if ref_name in defs:
                resolved = _resolve_refs(dict(defs[ref_name]), defs)
                for key, value in schema.items():
                    if key != "$ref":
                        resolved[key] = value
                return resolved
            return schema
        return {key: _resolve_refs(value, defs) for key, value in schema.items()}
    if isinstance(schema, list):
        return [_resolve_refs(item, defs) for item in schema]
    return schema


def input_schema(model: type[BaseModel]) -> dict[str, Any]:
    schema = model.model_json_schema(by_alias=True)
    defs = schema.pop("$defs", {})
    schema.pop("title", None)
    return _resolve_refs(schema, defs)


@lru_cache(maxsize=1)
def _tool_handlers() -> dict[str, tuple[type[BaseModel], str, str, str]]:
    # Strategy dict: tool_name -> (InputModel, toolset, handler_name, description)
    return {
        "getCurrentStockPrice": (
            models.GetCurrentStockPriceInput,
            "market",
            "get_current_stock_price",
            "Use this tool to get the current price snapshot of a stock only",
        ),
        "getStockPrices": (
            models.GetStockPricesInput,
            "market",
            "get_stock_prices",
            "Use this tool to get stock prices for a company over a time period",
        ),
        "getIncomeStatements": (
            models.FinancialStatementsInput,
            "market",
            "get_income_statements",
            "Get the income statements of a company",
        ),
        "getBalanceSheets": (
            models.FinancialStatementsInput,
            "market",
            "get_balance_sheets",
            "Get the balance sheets of a company",
        ),
        "getCashFlowStatements": (
            models.FinancialStatementsInput,
            "market",
            "get_cash_flow_statements",
            "Get the cash flow statements of a company",
        ),
        "getFinancialMetrics": (
            models.FinancialStatementsInput,
            "market",
            "get_financial_metrics",
            "Get the financial metrics of a company. These financial metrics are derived "
            "metrics like P/E ratio, operating income, etc. that cannot be found in the "
            "income statement, balance sheet, or cash flow statement.",
        ),
        "searchStocksByFilters": (
            models.SearchStocksByFiltersInput,
            "market",
            "search_stocks_by_filters",
            "Search for stocks based on financial criteria. Use this tool when asked to find "
            "or screen stocks based on financial metrics like revenue, net income, debt, etc. "
            'Examples: "stocks with revenue > 50B", "companies with positive net income", '
            '"find stocks with low debt". Compare metrics with greater than (gt), less than '
            "(lt), equal to (eq), and their inclusive variants (gte, lte).",
        ),
        "createDocument": (
            models.CreateDocumentInput,
            "documents",
            "create_document",
            "Create a document for a writing activity. This tool will call other functions "
            "that will generate the contents of the document based on the title and kind.",
        ),
        "updateDocument": (
            models.UpdateDocumentInput,
            "documents",
            "update_document",
            "Update a document with the given description.",
        ),
        "requestSuggestions": (
            models.RequestSuggestionsInput,
            "documents",
            "request_suggestions",
            "Request suggestions for a document",
        ),
    }


class ToolRegistry:
    """The tool set bound into one chat turn."""

    def __init__(self, market: MarketDataTools, documents: DocumentTools) -> None:
        self._toolsets: dict[str, Any] = {"market": market, "documents": documents}
        self.cache = ToolCallCache()

    def definitions(self) -> list[ToolDefinition]:
        return [
            ToolDefinition(name=name, description=description, input_schema=input_schema(model))
            for name, (model, _, _, description) in _tool_handlers().items()
        ]

    async def execute(self, tool_name: str, tool_input: dict[str, Any]) -> ToolExecution:
        """Execute a single tool and return the result.

        Invalid arguments, unknown tools and failing handlers all come back as
        ``ToolExecution.error``; a repeated call comes back skipped with a
        ``None`` result.
        """
        handlers = _tool_handlers()
        if tool_name not in handlers:
            TOOL_CALLS.labels(tool="unknown", outcome="invalid").inc()
            available = ", ".join(handlers)
            return ToolExecution(
                tool_name=tool_name,
                tool_input=tool_input,
                error=f"Unknown tool: {tool_name}. Available tools: {available}",
            )

        input_model, toolset, handler_name, _ = handlers[tool_name]
        try:
            params = input_model.model_validate(tool_input)
        except PydanticValidationError as e:
            TOOL_CALLS.labels(tool=tool_name, outcome="invalid").inc()
            logger.info("Rejected %s arguments: %s", tool_name, e.errors())
            return ToolExecution(
                tool_name=tool_name,
                tool_input=tool_input,
                error=f"Invalid input for {tool_name}: {e}. Please check the parameters.",
            )

        canonical = params.model_dump(mode="json", by_alias=True)
        if not self.cache.should_execute(tool_name, canonical):
            TOOL_CALLS.labels(tool=tool_name, outcome="skipped").inc()
            logger.info("Skipping duplicate %s call: %s", tool_name, canonical)
            return ToolExecution(tool_name=tool_name, tool_input=canonical, skipped=True)

        handler = getattr(self._toolsets[toolset], handler_name)
        logger.debug("Executing tool %s with input %s", tool_name, canonical)
        try:
            result = await handler(params)
        except ToolError as e:
            TOOL_CALLS.labels(tool=tool_name, outcome="error").inc()
            logger.info("Tool %s returned an error: %s", tool_name, e.message)
            return ToolExecution(tool_name=tool_name, tool_input=canonical, error=e.message)
        except Exception as e:
            TOOL_CALLS.labels(tool=tool_name, outcome="error").inc()
            logger.exception("Error executing tool %s", tool_name)
            return ToolExecution(tool_name=tool_name, tool_input=canonical, error=str(e))

        outcome = "error" if isinstance(result, dict) and "error" in result else "executed"
        TOOL_CALLS.labels(tool=tool_name, outcome=outcome).inc()
        return ToolExecution(tool_name=tool_name, tool_input=canonical, result=result)
