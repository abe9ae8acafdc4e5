"""
Tests for the aggregation engine.

All functions are pure, so these build documents directly.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from kubera.aggregation import (
    as_price_lookup,
    category_totals,
    financial_summary,
    held_tickers,
    holding_gain_loss,
    monthly_expenses,
    monthly_total,
    net_debt,
    net_worth,
    portfolio_gain_loss,
    portfolio_value,
    sorted_expenses,
    top_categories,
)
from kubera.models.ledger import Asset, Expense, Holding, LedgerDocument, LedgerEntry
from kubera.services.prices import PriceCache


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


class TestMonthlyExpenses:
    """Tests for month filtering and category totals."""

    def test_monthly_total(self, january_document):
        assert monthly_total(january_document, 1, 2024) == Decimal("50")
        assert monthly_total(january_document, 2, 2024) == Decimal("25")

    def test_empty_month_is_zero(self, january_document):
        assert monthly_total(january_document, 3, 2024) == Decimal("0")
        assert top_categories(january_document, 3, 2024) == []

    def test_same_month_other_year_excluded(self, january_document):
        assert monthly_expenses(january_document, 1, 2023) == []

    def test_month_boundaries_are_utc(self):
        doc = LedgerDocument(expenses=[
            Expense(amount=Decimal("1"), category="A", timestamp=utc(2024, 1, 31, 23)),
            Expense(amount=Decimal("2"), category="A", timestamp=utc(2024, 2, 1, 0)),
        ])
        assert monthly_total(doc, 1, 2024) == Decimal("1")
        assert monthly_total(doc, 2, 2024) == Decimal("2")

    def test_top_categories(self, january_document):
        assert top_categories(january_document, 1, 2024) == [
            ("Groceries", Decimal("40")),
            ("Dining Out", Decimal("10")),
        ]

    def test_top_categories_limit(self, january_document):
        assert top_categories(january_document, 1, 2024, n=1) == [("Groceries", Decimal("40"))]
        assert top_categories(january_document, 1, 2024, n=0) == []

    def test_ties_keep_first_encountered_order(self):
        doc = LedgerDocument(expenses=[
            Expense(amount=Decimal("5"), category="Travel", timestamp=utc(2024, 1, 1)),
            Expense(amount=Decimal("5"), category="Health", timestamp=utc(2024, 1, 2)),
            Expense(amount=Decimal("9"), category="House", timestamp=utc(2024, 1, 3)),
        ])
        assert [name for name, _ in top_categories(doc, 1, 2024)] == [
            "House", "Travel", "Health",
        ]

    def test_category_totals_sum_to_monthly_total(self, january_document):
        totals = category_totals(january_document, 1, 2024)
        assert sum(totals.values()) == monthly_total(january_document, 1, 2024)

    def test_decimal_sums_are_exact(self):
        doc = LedgerDocument(expenses=[
            Expense(amount=Decimal("0.1"), category="A", timestamp=utc(2024, 1, 1))
            for _ in range(3)
        ])
        assert monthly_total(doc, 1, 2024) == Decimal("0.3")

    def test_sorted_expenses_newest_first(self, january_document):
        dates = [e.timestamp for e in sorted_expenses(january_document)]
        assert dates == sorted(dates, reverse=True)
        # The document itself keeps insertion order
        assert january_document.expenses[0].amount == Decimal("40")


class TestPortfolio:
    """Tests for holdings valuation."""

    def test_value_and_gain(self, portfolio_asset):
        prices = {"AAPL": Decimal("120")}
        assert portfolio_value(portfolio_asset, prices) == Decimal("1200")
        assert portfolio_gain_loss(portfolio_asset, prices) == Decimal("200")

    def test_loss_is_negative(self, portfolio_asset):
        assert portfolio_gain_loss(portfolio_asset, {"AAPL": Decimal("90")}) == Decimal("-100")

    def test_unknown_price_falls_back_to_purchase_price(self, portfolio_asset):
        assert portfolio_value(portfolio_asset) == Decimal("1000")
        assert portfolio_gain_loss(portfolio_asset, {"MSFT": Decimal("1")}) == Decimal("0")

    def test_balance_is_ignored(self):
        asset = Asset(name="Stocks", type="Portfolio", balance=Decimal("99999"))
        assert portfolio_value(asset, {}) == Decimal("0")

    def test_price_lookup_from_cache(self, portfolio_asset):
        cache = PriceCache({"aapl": Decimal("110")})
        assert portfolio_value(portfolio_asset, cache) == Decimal("1100")

    def test_price_lookup_from_callable(self):
        holding = Holding(ticker="TSLA", shares=Decimal("2"), purchase_price=Decimal("200"))
        assert holding_gain_loss(holding, lambda ticker: Decimal("250")) == Decimal("100")

    def test_mapping_lookup_is_case_insensitive(self):
        lookup = as_price_lookup({"msft": 300})
        assert lookup("MSFT") == 300
        assert as_price_lookup(None)("MSFT") is None

    def test_held_tickers(self, portfolio_asset):
        other = Asset(
            name="Groww",
            type="Portfolio",
            holdings=[
                Holding(ticker="MSFT", shares=Decimal("1"), purchase_price=Decimal("300")),
                Holding(ticker="AAPL", shares=Decimal("1"), purchase_price=Decimal("160")),
            ],
        )
        doc = LedgerDocument(assets=[portfolio_asset, other])
        assert held_tickers(doc) == ["AAPL", "MSFT"]


class TestNetWorth:
    """Tests for net worth and net debt."""

    @pytest.fixture
    def balance_sheet(self):
        return LedgerDocument(assets=[
            Asset(name="HDFC", type="Savings", balance=Decimal("1000")),
            Asset(name="Card", type="Debt", balance=Decimal("300")),
        ])

    def test_net_worth_and_debt(self, balance_sheet):
        assert net_worth(balance_sheet) == Decimal("700")
        assert net_debt(balance_sheet) == Decimal("300")

    def test_empty_document(self):
        doc = LedgerDocument.seeded()
        assert net_worth(doc) == Decimal("0")
        assert net_debt(doc) == Decimal("0")

    def test_free_form_type_counts_as_asset(self, balance_sheet):
        balance_sheet.assets.append(Asset(name="Flat", type="Property", balance=Decimal("5000")))
        assert net_worth(balance_sheet) == Decimal("5700")

    def test_portfolio_counts_at_market_value(self, balance_sheet, portfolio_asset):
        balance_sheet.assets.append(portfolio_asset)
        assert net_worth(balance_sheet, {"AAPL": Decimal("120")}) == Decimal("1900")
        assert net_worth(balance_sheet) == Decimal("1700")

    def test_ledgers_count(self, balance_sheet):
        balance_sheet.assets_ledger.append(LedgerEntry(label="Bonus", value_change=Decimal("500")))
        balance_sheet.debts_ledger.append(LedgerEntry(label="Loan", value_change=Decimal("200")))
        assert net_worth(balance_sheet) == Decimal("1000")
        assert net_debt(balance_sheet) == Decimal("500")

    def test_order_of_records_does_not_matter(self, balance_sheet, portfolio_asset):
        balance_sheet.assets.extend([
            portfolio_asset,
            Asset(name="Flat", type="Property", balance=Decimal("5000")),
        ])
        balance_sheet.assets_ledger.extend([
            LedgerEntry(label="Bonus", value_change=Decimal("500")),
            LedgerEntry(label="Sold bike", value_change=Decimal("-120.50")),
        ])
        balance_sheet.debts_ledger.extend([
            LedgerEntry(label="Loan", value_change=Decimal("200")),
            LedgerEntry(label="Repaid", value_change=Decimal("-75")),
        ])
        prices = {"AAPL": Decimal("120")}
        expected = net_worth(balance_sheet, prices)

        reordered = balance_sheet.model_copy(update={
            "assets": list(reversed(balance_sheet.assets)),
            "assets_ledger": list(reversed(balance_sheet.assets_ledger)),
            "debts_ledger": list(reversed(balance_sheet.debts_ledger)),
        })

        assert net_worth(reordered, prices) == expected
        assert net_debt(reordered) == net_debt(balance_sheet)

    def test_adding_debt_lowers_net_worth(self, balance_sheet):
        before = net_worth(balance_sheet)
        balance_sheet.assets.append(Asset(name="Loan", type="Debt", balance=Decimal("50")))
        assert net_worth(balance_sheet) == before - Decimal("50")

    def test_financial_summary(self, january_document, portfolio_asset):
        january_document.assets.append(portfolio_asset)
        summary = financial_summary(january_document, 1, 2024, {"AAPL": Decimal("120")})

        assert summary.monthly_spend == Decimal("50")
        assert summary.net_worth == Decimal("1200")
        assert summary.net_debt == Decimal("0")
        assert summary.top_categories[0] == ("Groceries", Decimal("40"))

    def test_financial_summary_does_not_mutate(self, january_document):
        before = january_document.model_dump()
        financial_summary(january_document, 1, 2024)
        assert january_document.model_dump() == before
