"""External data providers."""

from finsight.infrastructure.external.financial_datasets import (
    FINANCIAL_DATASETS_BASE_URL,
    FinancialDatasetsClient,
    StatementKind,
)

__all__ = ["FINANCIAL_DATASETS_BASE_URL", "FinancialDatasetsClient", "StatementKind"]
