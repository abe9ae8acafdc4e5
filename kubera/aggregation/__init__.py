"""Aggregation package."""

from kubera.aggregation.engine import (
    Prices,
    as_price_lookup,
    category_totals,
    current_price,
    financial_summary,
    held_tickers,
    holding_gain_loss,
    holding_value,
    monthly_expenses,
    monthly_total,
    net_debt,
    net_worth,
    portfolio_gain_loss,
    portfolio_value,
    sorted_expenses,
    top_categories,
)

__all__ = [
    "Prices",
    "as_price_lookup",
    "category_totals",
    "current_price",
    "financial_summary",
    "held_tickers",
    "holding_gain_loss",
    "holding_value",
    "monthly_expenses",
    "monthly_total",
    "net_debt",
    "net_worth",
    "portfolio_gain_loss",
    "portfolio_value",
    "sorted_expenses",
    "top_categories",
]
