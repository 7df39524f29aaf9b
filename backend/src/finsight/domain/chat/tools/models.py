"""Pydantic models for tool input validation.

The JSON schemas of these models are what the language model sees as tool
parameters, so field descriptions are written for the model.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finsight.infrastructure.external.stock_filters import VALID_STOCK_SEARCH_FILTERS

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ============================================================================
# Enums
# ============================================================================


class PriceInterval(str, Enum):
    SECOND = "second"
    MINUTE = "minute"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ReportPeriod(str, Enum):
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    TTM = "ttm"


class FilterOperator(str, Enum):
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"


class SearchOrder(str, Enum):
    NEWEST_FIRST = "-report_period"
    OLDEST_FIRST = "report_period"


class DocumentKindInput(str, Enum):
    TEXT = "text"
    CODE = "code"


def _check_date(value: str | None) -> str | None:
    if value is not None and not _DATE_RE.match(value):
        raise ValueError("Dates must use the YYYY-MM-DD format")
    return value


# ============================================================================
# Market data
# ============================================================================


class _TickerInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    ticker: str = Field(
        ...,
        description="The ticker of the company (e.g. AAPL, MSFT)",
        min_length=1,
        max_length=12,
    )

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        return v.upper()


class GetCurrentStockPriceInput(_TickerInput):
    """Latest price snapshot for one ticker."""


class GetStockPricesInput(_TickerInput):
    """Price history for one ticker."""

    start_date: str = Field(..., description="The start date of the price data (YYYY-MM-DD)")
    end_date: str = Field(..., description="The end date of the price data (YYYY-MM-DD)")
    interval: PriceInterval = Field(
        default=PriceInterval.DAY,
        description="The interval of the price data",
    )
    interval_multiplier: int = Field(
        default=1,
        description="The multiplier of the interval (e.g. 5 with minute for 5-minute bars)",
        ge=1,
        le=1000,
    )

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_date(v) or v


class FinancialStatementsInput(_TickerInput):
    """Shared shape of the statement and metrics tools."""

    period: ReportPeriod = Field(
        default=ReportPeriod.TTM,
        description="The period of the statements to return",
    )
    limit: int = Field(
        default=1,
        description="The number of periods to return",
        ge=1,
        le=40,
    )
    report_period_lte: str | None = Field(
        default=None,
        description="Only return reports on or before this date (YYYY-MM-DD)",
    )
    report_period_gte: str | None = Field(
        default=None,
        description="Only return reports on or after this date (YYYY-MM-DD)",
    )

    @field_validator("report_period_lte", "report_period_gte")
    @classmethod
    def validate_report_date(cls, v: str | None) -> str | None:
        return _check_date(v)


class StockFilter(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    field: str = Field(
        ...,
        description="Financial metric to compare",
        json_schema_extra={"enum": list(VALID_STOCK_SEARCH_FILTERS)},
    )
    operator: FilterOperator = Field(..., description="Comparison operator")
    value: float = Field(..., description="Value to compare against")

    @field_validator("field")
    @classmethod
    def validate_field(cls, v: str) -> str:
        if v not in VALID_STOCK_SEARCH_FILTERS:
            raise ValueError(f"Unsupported filter field: {v}")
        return v


class SearchStocksByFiltersInput(BaseModel):
    """Screen stocks on financial criteria."""

    model_config = ConfigDict(extra="forbid")

    filters: list[StockFilter] = Field(
        ...,
        description=(
            "The filters to search for (e.g. [{field: 'net_income', operator: 'gt', "
            "value: 1000000000}, {field: 'revenue', operator: 'gt', value: 50000000000}])"
        ),
        min_length=1,
        max_length=10,
    )
    period: ReportPeriod = Field(
        default=ReportPeriod.TTM,
        description="The period of the financial metrics to compare",
    )
    limit: int = Field(default=5, description="The number of stocks to return", ge=1, le=100)
    order_by: SearchOrder = Field(
        default=SearchOrder.NEWEST_FIRST,
        description="The order of the stocks to return",
    )


# ============================================================================
# Documents
# ============================================================================


class CreateDocumentInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str = Field(..., description="Title (and topic) of the document", min_length=1, max_length=500)
    kind: DocumentKindInput = Field(..., description="Whether to write prose or code")


class UpdateDocumentInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    id: str = Field(..., description="The ID of the document to update")
    description: str = Field(
        ...,
        description="The description of changes that need to be made",
        min_length=1,
    )


class RequestSuggestionsInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid", populate_by_name=True)

    document_id: str = Field(
        ...,
        alias="documentId",
        description="The ID of the document to request edits",
    )


# ============================================================================
# Structured generation outputs
# ============================================================================


class TaskOutput(BaseModel):
    task_name: str = Field(..., min_length=1)
    task_class: str = Field(..., alias="class", min_length=1)


class CodeOutput(BaseModel):
    code: str


class SuggestionOutput(BaseModel):
    original_sentence: str = Field(..., alias="originalSentence", description="The original sentence")
    suggested_sentence: str = Field(..., alias="suggestedSentence", description="The suggested sentence")
    description: str = Field(..., description="The description of the suggestion")
