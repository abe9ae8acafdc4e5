"""
Tests for Kubera

Test strategy:
1. Unit tests for models, validation and aggregation
2. Store and ledger tests against in-memory and temp-dir storage
3. No real quote source in tests (seeded mock feed or stubs)
"""

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest
from pydantic import ValidationError as PydanticValidationError

from kubera.activity import ActivityLogger
from kubera.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)
from kubera.models.ledger import (
    DEFAULT_CATEGORIES,
    Asset,
    AssetType,
    Expense,
    Holding,
    LedgerDocument,
    LedgerEntry,
    LedgerSide,
    NetWorthSnapshot,
)


class TestExpenseModel:
    """Tests for the Expense model."""

    def test_expense_creation(self):
        """Test Expense gets an id and a UTC timestamp."""
        expense = Expense(amount=Decimal("12.50"), category="Groceries")
        assert expense.id
        assert expense.amount == Decimal("12.50")
        assert expense.timestamp.tzinfo is not None
        assert expense.description is None

    def test_expense_ids_are_unique(self):
        ids = {Expense(amount=Decimal("1"), category="X").id for _ in range(100)}
        assert len(ids) == 100

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(PydanticValidationError):
            Expense(amount=Decimal("-1"), category="Groceries")

    def test_expense_rejects_nan(self):
        with pytest.raises(PydanticValidationError):
            Expense(amount=Decimal("NaN"), category="Groceries")

    def test_expense_accepts_legacy_field_names(self):
        """Test value/name/date written by older versions are read."""
        expense = Expense.model_validate({
            "id": "exp_1704441600000",
            "name": "Vegetables",
            "value": 40,
            "category": "Groceries",
            "date": "2024-01-05T10:00:00.000Z",
        })
        assert expense.amount == Decimal("40")
        assert expense.description == "Vegetables"
        assert expense.timestamp == datetime(2024, 1, 5, 10, tzinfo=timezone.utc)

    def test_expense_serializes_canonical_names(self):
        expense = Expense.model_validate({"value": 5, "category": "Travel", "name": "Bus"})
        dumped = json.loads(expense.model_dump_json(by_alias=True))
        assert "amount" in dumped
        assert "value" not in dumped
        assert dumped["description"] == "Bus"

    def test_naive_timestamp_is_treated_as_utc(self):
        expense = Expense(amount=Decimal("1"), category="X", timestamp=datetime(2024, 3, 1, 9))
        assert expense.timestamp == datetime(2024, 3, 1, 9, tzinfo=timezone.utc)

    def test_offset_timestamp_is_converted_to_utc(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        expense = Expense(
            amount=Decimal("1"),
            category="X",
            timestamp=datetime(2024, 2, 1, 2, 0, tzinfo=ist),
        )
        # 02:00 IST on 1 Feb is still 31 Jan in UTC
        assert expense.timestamp.month == 1
        assert expense.timestamp.day == 31

    def test_blank_description_becomes_none(self):
        expense = Expense(amount=Decimal("1"), category="X", description="   ")
        assert expense.description is None


class TestAssetModels:
    """Tests for Asset and Holding."""

    def test_holding_ticker_upper_case(self):
        holding = Holding(ticker=" aapl ", shares=Decimal("1"), purchase_price=Decimal("10"))
        assert holding.ticker == "AAPL"

    def test_holding_serializes_purchase_price_camel_case(self):
        holding = Holding(ticker="MSFT", shares=Decimal("2"), purchase_price=Decimal("300"))
        dumped = holding.model_dump(by_alias=True)
        assert dumped["purchasePrice"] == Decimal("300")
        assert "purchase_price" not in dumped

    def test_holding_reads_camel_case(self):
        holding = Holding.model_validate({"ticker": "TSLA", "shares": 3, "purchasePrice": 210.5})
        assert holding.purchase_price == Decimal("210.5")

    def test_holding_rejects_zero_shares(self):
        with pytest.raises(PydanticValidationError):
            Holding(ticker="AAPL", shares=Decimal("0"), purchase_price=Decimal("10"))

    def test_portfolio_asset_gets_empty_holdings(self):
        asset = Asset(name="Brokerage", type="Portfolio")
        assert asset.holdings == []
        assert asset.is_portfolio

    def test_non_portfolio_asset_has_no_holdings(self):
        asset = Asset(name="Savings", type="Savings", balance=Decimal("100"))
        assert asset.holdings is None
        assert not asset.is_portfolio
        assert not asset.is_debt

    def test_asset_type_enum_is_stored_as_string(self):
        asset = Asset(name="Card", type=AssetType.DEBT, balance=Decimal("50"))
        assert asset.type == "Debt"
        assert type(asset.type) is str
        assert asset.is_debt

    def test_free_form_asset_type(self):
        asset = Asset(name="Flat", type="Property", balance=Decimal("5000000"))
        assert asset.type == "Property"


class TestLedgerDocument:
    """Tests for the persisted document model."""

    def test_seeded_document(self):
        doc = LedgerDocument.seeded()
        assert doc.categories == DEFAULT_CATEGORIES
        assert "INR" in doc.currency_supported
        assert doc.expenses == []
        assert doc.last_updated is None

    def test_seeded_document_with_custom_categories(self):
        doc = LedgerDocument.seeded(["Rent", "Fuel"])
        assert doc.categories == ["Rent", "Fuel"]

    def test_seeded_default_currency_listed_first(self):
        assert LedgerDocument.seeded(currency="usd").currency_supported == ["USD", "INR"]
        assert LedgerDocument.seeded(currency="EUR").currency_supported == ["EUR", "INR", "USD"]

    def test_seeded_categories_are_copied(self):
        doc = LedgerDocument.seeded()
        doc.categories.append("Pets")
        assert "Pets" not in DEFAULT_CATEGORIES

    def test_null_collections_become_empty(self):
        """Test a half-initialized document still loads."""
        doc = LedgerDocument.model_validate({
            "categories": None,
            "expenses": None,
            "assets_ledger": None,
        })
        assert doc.categories == []
        assert doc.expenses == []
        assert doc.assets_ledger == []
        assert doc.net_worth_history == []

    def test_unknown_fields_survive_round_trip(self):
        doc = LedgerDocument.model_validate({"theme": "dark"})
        again = LedgerDocument.model_validate_json(doc.to_json())
        assert again.model_extra == {"theme": "dark"}

    def test_ledger_side_lookup(self):
        entry = LedgerEntry(label="Loan taken", value_change=Decimal("1000"))
        doc = LedgerDocument(debts_ledger=[entry])
        assert doc.ledger(LedgerSide.DEBT) == [entry]
        assert doc.ledger("asset") == []

    def test_find_asset(self, portfolio_asset):
        doc = LedgerDocument(assets=[portfolio_asset])
        assert doc.find_asset(portfolio_asset.id) is portfolio_asset
        assert doc.find_asset("missing") is None

    def test_snapshot_is_immutable(self):
        snapshot = NetWorthSnapshot(value=Decimal("100"))
        with pytest.raises(PydanticValidationError):
            snapshot.value = Decimal("200")

    def test_snapshot_reads_legacy_date(self):
        snapshot = NetWorthSnapshot.model_validate(
            {"id": "1700000000000", "date": "2023-11-14T22:13:20.000Z", "value": 1234.5}
        )
        assert snapshot.timestamp.year == 2023
        assert snapshot.value == Decimal("1234.5")


class TestActivityModels:
    """Tests for activity events and the logger."""

    def test_activity_event_creation(self):
        event = ActivityEvent(
            event_type=ActivityEventType.EXPENSE_ADDED,
            description="Expense added",
        )
        assert event.severity == ActivitySeverity.INFO

    def test_activity_event_to_log_dict(self):
        event = ActivityEventBuilder.expense_added("abc", "40", "Groceries")
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "expense_added"
        assert log_dict["entity_id"] == "abc"
        assert log_dict["details"]["category"] == "Groceries"

    def test_builder_holding_added(self):
        event = ActivityEventBuilder.holding_added("asset1", "AAPL", "10", True)
        assert event.entity_type == "asset"
        assert event.details["created_portfolio"] is True

    def test_logger_stamps_session_id(self):
        logger = ActivityLogger()
        logger._logger = Mock()
        event = logger.log(ActivityEventBuilder.category_added("Pets"))
        assert event.session_id == logger.session_id
        logger._logger.info.assert_called_once()

    def test_logger_routes_by_severity(self):
        logger = ActivityLogger()
        logger._logger = Mock()
        logger.log_persistence_failed("save", "disk full")
        logger.log_validation_failed("add_expense", [])
        logger._logger.error.assert_called_once()
        logger._logger.warning.assert_called_once()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
