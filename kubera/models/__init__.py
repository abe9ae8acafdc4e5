"""
Data Models Package

This package contains all Pydantic models used in Kubera.
Everything stored in the ledger document must conform to these schemas.
"""

from kubera.models.ledger import (
    DEFAULT_ASSET_CATEGORIES,
    DEFAULT_CATEGORIES,
    DEFAULT_CURRENCIES,
    DEFAULT_DEBT_CATEGORIES,
    DEFAULT_PORTFOLIO_NAME,
    Asset,
    AssetType,
    Expense,
    FinancialSummary,
    Holding,
    LedgerDocument,
    LedgerEntry,
    LedgerSide,
    NetWorthSnapshot,
    ValidationIssue,
    new_record_id,
    utc_now,
)
from kubera.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Seed
    "DEFAULT_ASSET_CATEGORIES",
    "DEFAULT_CATEGORIES",
    "DEFAULT_CURRENCIES",
    "DEFAULT_DEBT_CATEGORIES",
    "DEFAULT_PORTFOLIO_NAME",
    # Ledger models
    "Asset",
    "AssetType",
    "Expense",
    "FinancialSummary",
    "Holding",
    "LedgerDocument",
    "LedgerEntry",
    "LedgerSide",
    "NetWorthSnapshot",
    "ValidationIssue",
    "new_record_id",
    "utc_now",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
