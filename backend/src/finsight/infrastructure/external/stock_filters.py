"""Fields accepted by the Financial Datasets stock screener."""

VALID_STOCK_SEARCH_FILTERS: tuple[str, ...] = (
    # Income statement
    "revenue",
    "cost_of_revenue",
    "gross_profit",
    "operating_expense",
    "operating_income",
    "interest_expense",
    "ebit",
    "income_tax_expense",
    "net_income",
    "net_income_common_stock",
    "earnings_per_share",
    "earnings_per_share_diluted",
    "dividends_per_common_share",
    "weighted_average_shares",
    "research_and_development",
    # Balance sheet
    "total_assets",
    "current_assets",
    "cash_and_equivalents",
    "inventory",
    "trade_and_non_trade_receivables",
    "non_current_assets",
    "property_plant_and_equipment",
    "goodwill_and_intangible_assets",
    "total_liabilities",
    "current_liabilities",
    "non_current_liabilities",
    "total_debt",
    "current_debt",
    "non_current_debt",
    "shareholders_equity",
    "retained_earnings",
    "outstanding_shares",
    # Cash flow statement
    "net_cash_flow_from_operations",
    "net_cash_flow_from_investing",
    "net_cash_flow_from_financing",
    "capital_expenditure",
    "free_cash_flow",
    "share_based_compensation",
    "dividends_and_other_cash_distributions",
    "issuance_or_purchase_of_equity_shares",
)
