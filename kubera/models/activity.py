"""
Activity Models for Kubera

Every ledger mutation produces one structured log line describing what
changed. This provides:
1. Debugging information when a number on the dashboard looks wrong
2. A local trace of what the session did to the document

DESIGN DECISION: Activity events are log output only. They are never
written to the ledger document; the only persisted history is the
net worth snapshot list.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from kubera.models.ledger import utc_now


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Store lifecycle
    DOCUMENT_SEEDED = "document_seeded"
    LEGACY_MIGRATED = "legacy_migrated"
    DOCUMENT_CLEARED = "document_cleared"
    PERSISTENCE_FAILED = "persistence_failed"

    # Expenses and categories
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"
    CATEGORY_ADDED = "category_added"

    # Assets
    ASSET_ADDED = "asset_added"
    ASSET_UPDATED = "asset_updated"
    ASSET_DELETED = "asset_deleted"
    HOLDING_ADDED = "holding_added"

    # Signed ledgers
    LEDGER_ENTRY_ADDED = "ledger_entry_added"
    LEDGER_ENTRY_DELETED = "ledger_entry_deleted"

    # Snapshots
    SNAPSHOT_APPENDED = "snapshot_appended"

    # Input and prices
    VALIDATION_FAILED = "validation_failed"
    PRICES_REFRESHED = "prices_refreshed"
    PRICE_QUOTE_FAILED = "price_quote_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of record (e.g., 'expense', 'asset', 'snapshot')"
    )
    entity_id: Optional[str] = None

    # Groups the events of one session
    session_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "session_id": str(self.session_id) if self.session_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.expense_added(expense_id, "40.00", "Groceries")
    """

    @staticmethod
    def document_seeded(key: str, migrated: bool) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_SEEDED,
            entity_type="document",
            entity_id=key,
            description=f"First-run document created under {key}",
            details={"migrated_legacy_data": migrated},
        )

    @staticmethod
    def legacy_migrated(key: str, counts: dict[str, int]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEGACY_MIGRATED,
            entity_type="document",
            entity_id=key,
            description="Folded legacy multi-key data into the ledger document",
            details=counts,
        )

    @staticmethod
    def document_cleared(key: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DOCUMENT_CLEARED,
            severity=ActivitySeverity.WARNING,
            entity_type="document",
            entity_id=key,
            description=f"All stored data removed for {key}",
        )

    @staticmethod
    def persistence_failed(operation: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PERSISTENCE_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="document",
            description=f"Store {operation} failed",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def expense_added(expense_id: str, amount: str, category: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense of {amount} added to {category}",
            details={"amount": amount, "category": category},
        )

    @staticmethod
    def expense_deleted(expense_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense deleted",
        )

    @staticmethod
    def category_added(name: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=name,
            description=f"Category added: {name}",
        )

    @staticmethod
    def asset_added(asset_id: str, name: str, asset_type: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ASSET_ADDED,
            entity_type="asset",
            entity_id=asset_id,
            description=f"{asset_type} asset added: {name}",
            details={"type": asset_type},
        )

    @staticmethod
    def asset_updated(asset_id: str, fields: list[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ASSET_UPDATED,
            entity_type="asset",
            entity_id=asset_id,
            description="Asset updated",
            details={"fields": fields},
        )

    @staticmethod
    def asset_deleted(asset_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ASSET_DELETED,
            entity_type="asset",
            entity_id=asset_id,
            description="Asset deleted",
        )

    @staticmethod
    def holding_added(
        asset_id: str,
        ticker: str,
        shares: str,
        created_portfolio: bool,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.HOLDING_ADDED,
            entity_type="asset",
            entity_id=asset_id,
            description=f"Holding added: {shares} x {ticker}",
            details={
                "ticker": ticker,
                "shares": shares,
                "created_portfolio": created_portfolio,
            },
        )

    @staticmethod
    def ledger_entry_added(entry_id: str, side: str, value_change: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEDGER_ENTRY_ADDED,
            entity_type=f"{side}_ledger_entry",
            entity_id=entry_id,
            description=f"{side.capitalize()} ledger changed by {value_change}",
            details={"side": side, "value_change": value_change},
        )

    @staticmethod
    def ledger_entry_deleted(entry_id: str, side: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEDGER_ENTRY_DELETED,
            entity_type=f"{side}_ledger_entry",
            entity_id=entry_id,
            description=f"{side.capitalize()} ledger entry deleted",
        )

    @staticmethod
    def snapshot_appended(snapshot_id: str, value: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SNAPSHOT_APPENDED,
            entity_type="snapshot",
            entity_id=snapshot_id,
            description=f"Net worth snapshot recorded: {value}",
            details={"value": value},
        )

    @staticmethod
    def validation_failed(operation: str, issues: list[dict]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            description=f"Rejected input for {operation}",
            details={"operation": operation, "issues": issues},
        )

    @staticmethod
    def prices_refreshed(tickers: list[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PRICES_REFRESHED,
            severity=ActivitySeverity.DEBUG,
            entity_type="price_cache",
            description=f"Refreshed {len(tickers)} prices",
            details={"tickers": tickers},
        )

    @staticmethod
    def price_quote_failed(ticker: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PRICE_QUOTE_FAILED,
            severity=ActivitySeverity.WARNING,
            entity_type="price_cache",
            entity_id=ticker,
            description=f"Could not quote {ticker}",
            error_message=error_message,
        )
