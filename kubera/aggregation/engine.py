"""
Aggregation Engine

DESIGN DECISION: Every number on the dashboard is computed here by pure
functions of (document, price lookup, explicit month/year).
Nothing reads the clock and nothing touches storage, so:
1. The same document always produces the same totals
2. Tests need no mocking of time or I/O
3. A real quote source can replace the mock one without changes here

Net worth is:
    + balances of every asset that is neither Debt nor Portfolio
    + holdings of every Portfolio asset at current price
    - balances of every Debt asset
    + sum of assets_ledger value changes
    - sum of debts_ledger value changes

Net debt is Debt balances plus debts_ledger changes, never netted against
assets.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Optional, Union

from kubera.models.ledger import (
    Asset,
    Expense,
    FinancialSummary,
    Holding,
    LedgerDocument,
)
from kubera.services.prices import PriceLookup


ZERO = Decimal("0")

Prices = Union[PriceLookup, Mapping[str, Decimal], None]


def as_price_lookup(prices: Prices) -> PriceLookup:
    """
    Normalize the accepted price inputs into a PriceLookup.

    Accepts None (no prices known), a mapping of ticker to price, or any
    callable such as a PriceCache.
    """
    if prices is None:
        return lambda ticker: None

    if isinstance(prices, Mapping):
        table = {str(ticker).upper(): price for ticker, price in prices.items()}

        def lookup(ticker: str) -> Optional[Decimal]:
            return table.get(ticker.upper())

        return lookup

    return prices


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# =============================================================================
# EXPENSES
# =============================================================================

def monthly_expenses(doc: LedgerDocument, month: int, year: int) -> list[Expense]:
    """
    Expenses whose timestamp falls in the given calendar month (UTC).

    Returned in document order.
    """
    return [
        expense
        for expense in doc.expenses
        if expense.timestamp.year == year and expense.timestamp.month == month
    ]


def monthly_total(doc: LedgerDocument, month: int, year: int) -> Decimal:
    """Sum of amounts spent in the given month."""
    return sum((expense.amount for expense in monthly_expenses(doc, month, year)), ZERO)


def category_totals(doc: LedgerDocument, month: int, year: int) -> dict[str, Decimal]:
    """Per-category sums for the month, keyed in first-encountered order."""
    totals: dict[str, Decimal] = {}
    for expense in monthly_expenses(doc, month, year):
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
    return totals


def top_categories(
    doc: LedgerDocument,
    month: int,
    year: int,
    n: int = 5,
) -> list[tuple[str, Decimal]]:
    """
    The n categories with the highest spend in the month.

    Sorted by total descending; equal totals keep first-encountered order.
    """
    if n <= 0:
        return []
    totals = category_totals(doc, month, year)
    # sorted() is stable, also with reverse=True
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return ranked[:n]


def sorted_expenses(doc: LedgerDocument) -> list[Expense]:
    """All expenses, newest first."""
    return sorted(doc.expenses, key=lambda expense: expense.timestamp, reverse=True)


# =============================================================================
# PORTFOLIO
# =============================================================================

def current_price(holding: Holding, prices: Prices = None) -> Decimal:
    """Current price of a holding, falling back to its purchase price."""
    price = as_price_lookup(prices)(holding.ticker)
    if price is None:
        return holding.purchase_price
    return _to_decimal(price)


def holding_value(holding: Holding, prices: Prices = None) -> Decimal:
    return holding.shares * current_price(holding, prices)


def holding_gain_loss(holding: Holding, prices: Prices = None) -> Decimal:
    return holding.shares * (current_price(holding, prices) - holding.purchase_price)


def portfolio_value(asset: Asset, prices: Prices = None) -> Decimal:
    """Market value of a Portfolio asset. Its balance field is ignored."""
    lookup = as_price_lookup(prices)
    return sum((holding_value(h, lookup) for h in asset.holdings or []), ZERO)


def portfolio_gain_loss(asset: Asset, prices: Prices = None) -> Decimal:
    """Unrealized gain (positive) or loss (negative) across all lots."""
    lookup = as_price_lookup(prices)
    return sum((holding_gain_loss(h, lookup) for h in asset.holdings or []), ZERO)


def held_tickers(doc: LedgerDocument) -> list[str]:
    """Distinct tickers held across all Portfolio assets, in first-held order."""
    tickers: list[str] = []
    for asset in doc.portfolio_assets():
        for holding in asset.holdings or []:
            if holding.ticker not in tickers:
                tickers.append(holding.ticker)
    return tickers


# =============================================================================
# NET WORTH
# =============================================================================

def net_worth(doc: LedgerDocument, prices: Prices = None) -> Decimal:
    """Everything owned minus everything owed."""
    lookup = as_price_lookup(prices)

    total = ZERO
    for asset in doc.assets:
        if asset.is_portfolio:
            total += portfolio_value(asset, lookup)
        elif asset.is_debt:
            total -= asset.balance
        else:
            total += asset.balance

    total += sum((entry.value_change for entry in doc.assets_ledger), ZERO)
    total -= sum((entry.value_change for entry in doc.debts_ledger), ZERO)
    return total


def net_debt(doc: LedgerDocument) -> Decimal:
    """Total outstanding debt."""
    debt_balances = sum((asset.balance for asset in doc.assets if asset.is_debt), ZERO)
    return debt_balances + sum((entry.value_change for entry in doc.debts_ledger), ZERO)


def financial_summary(
    doc: LedgerDocument,
    month: int,
    year: int,
    prices: Prices = None,
    n: int = 5,
) -> FinancialSummary:
    """Everything the home dashboard shows, for one month."""
    lookup = as_price_lookup(prices)
    return FinancialSummary(
        month=month,
        year=year,
        monthly_spend=monthly_total(doc, month, year),
        net_worth=net_worth(doc, lookup),
        net_debt=net_debt(doc),
        top_categories=top_categories(doc, month, year, n),
    )
