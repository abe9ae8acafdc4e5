"""
Core Data Models for Kubera

These models define the schema of the single persisted ledger document
and of every record inside it. They are designed to:
1. Enforce types at the storage boundary (a bad document fails loudly)
2. Accept the field names written by older app versions
3. Serialize back to the canonical JSON layout

DESIGN DECISION: Money is always Decimal. Binary floats never enter
the ledger, so sums over many small expenses stay exact.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    """Generate a record id that is unique for the lifetime of the store."""
    return uuid4().hex


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps were written as UTC ISO strings by the mobile app
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AssetType(str, Enum):
    """
    Asset types with special meaning for net worth.

    Any other string is a valid asset type too (e.g. "Property") and is
    counted as a plain positive holding.
    """
    SAVINGS = "Savings"
    HSA = "HSA"
    DEBT = "Debt"
    PORTFOLIO = "Portfolio"


class LedgerSide(str, Enum):
    """Which signed ledger an entry belongs to."""
    ASSET = "asset"
    DEBT = "debt"


# =============================================================================
# FIRST-RUN SEED
# =============================================================================

DEFAULT_CATEGORIES = [
    "Groceries",
    "Dining Out",
    "Travel",
    "Shopping",
    "House",
    "Health",
    "Learning",
]
DEFAULT_ASSET_CATEGORIES = [
    "Savings A/C",
    "Checkings A/C",
    "Stocks",
    "Bonds",
    "Property",
    "Vehicle",
]
DEFAULT_DEBT_CATEGORIES = ["Credit Card", "Loan", "Owing"]
DEFAULT_CURRENCIES = ["INR", "USD"]

DEFAULT_PORTFOLIO_NAME = "Stocks"

# Text limits shared by the models and the input validator
NAME_MAX_LENGTH = 200
CATEGORY_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
TICKER_MAX_LENGTH = 15


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Expense(BaseModel):
    """
    A single recorded expense.

    Older app versions stored `value`, `name` and `date`; those names are
    accepted on read and written back as `amount`, `description` and
    `timestamp`.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Unique expense ID"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("amount", "value"),
        description="Amount spent, in the document currency"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=CATEGORY_MAX_LENGTH,
        description="Spending category"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=DESCRIPTION_MAX_LENGTH,
        validation_alias=AliasChoices("description", "name"),
        description="Free-text note"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("timestamp", "date"),
        description="Creation time (UTC, immutable)"
    )

    @field_validator('description')
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('timestamp')
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return _as_utc(v)


class Holding(BaseModel):
    """
    One purchase lot of a security inside a Portfolio asset.

    Lots are never merged: buying AAPL twice gives two holdings.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    ticker: str = Field(
        ...,
        min_length=1,
        max_length=TICKER_MAX_LENGTH,
        description="Ticker symbol (upper case)"
    )
    shares: Decimal = Field(
        ...,
        gt=0,
        description="Number of shares in this lot"
    )
    purchase_price: Decimal = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("purchase_price", "purchasePrice"),
        serialization_alias="purchasePrice",
        description="Price per share when the lot was bought"
    )

    @field_validator('ticker')
    @classmethod
    def upper_case_ticker(cls, v: str) -> str:
        return v.upper()


class Asset(BaseModel):
    """
    Something the user owns or owes.

    The meaning of `balance` depends on `type`:
    - Debt: outstanding amount (subtracted from net worth)
    - Portfolio: ignored, value comes from holdings x current price
    - anything else: positive holding
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Unique asset ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        description="Display name"
    )
    type: str = Field(
        ...,
        min_length=1,
        max_length=CATEGORY_MAX_LENGTH,
        description="Savings, HSA, Debt, Portfolio or a free-form category"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Current balance (not authoritative for Portfolio)"
    )
    holdings: Optional[list[Holding]] = Field(
        default=None,
        description="Purchase lots, present only for Portfolio assets"
    )

    @field_validator('type', mode='before')
    @classmethod
    def unwrap_asset_type(cls, v: Any) -> Any:
        if isinstance(v, Enum):
            return v.value
        return v

    @model_validator(mode='after')
    def portfolio_has_holdings(self) -> 'Asset':
        """Portfolio assets always carry a (possibly empty) holdings list."""
        if self.is_portfolio and self.holdings is None:
            self.holdings = []
        return self

    @property
    def is_portfolio(self) -> bool:
        return self.type == AssetType.PORTFOLIO.value

    @property
    def is_debt(self) -> bool:
        return self.type == AssetType.DEBT.value


class LedgerEntry(BaseModel):
    """A signed value change on the asset side or the debt side."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_record_id,
        min_length=1
    )
    label: str = Field(
        ...,
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        description="What changed (e.g. 'Salary credited')"
    )
    value_change: Decimal = Field(
        ...,
        description="Signed change in value"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=CATEGORY_MAX_LENGTH,
        description="Asset or debt category this entry belongs to"
    )
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator('timestamp')
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return _as_utc(v)


class NetWorthSnapshot(BaseModel):
    """Immutable point-in-time net worth."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id, min_length=1)
    timestamp: datetime = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("timestamp", "date"),
    )
    value: Decimal

    @field_validator('timestamp')
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return _as_utc(v)


# =============================================================================
# THE PERSISTED DOCUMENT
# =============================================================================

_COLLECTION_FIELDS = (
    "categories",
    "asset_categories",
    "debt_categories",
    "currency_supported",
    "expenses",
    "assets_ledger",
    "debts_ledger",
    "assets",
    "net_worth_history",
)


class LedgerDocument(BaseModel):
    """
    The single document stored under one key.

    CRITICAL: This is the unit of persistence. Every mutation replaces the
    whole document; there is no partial update.

    Unknown top-level fields are kept so a newer app version's data
    survives a round trip through an older one.
    """
    model_config = ConfigDict(extra="allow")

    last_updated: Optional[datetime] = Field(
        default=None,
        description="Stamped by the store on every save"
    )

    categories: list[str] = Field(default_factory=list)
    asset_categories: list[str] = Field(default_factory=list)
    debt_categories: list[str] = Field(default_factory=list)
    currency_supported: list[str] = Field(default_factory=list)

    expenses: list[Expense] = Field(default_factory=list)
    assets_ledger: list[LedgerEntry] = Field(default_factory=list)
    debts_ledger: list[LedgerEntry] = Field(default_factory=list)
    assets: list[Asset] = Field(default_factory=list)
    net_worth_history: list[NetWorthSnapshot] = Field(default_factory=list)

    @field_validator(*_COLLECTION_FIELDS, mode='before')
    @classmethod
    def missing_collection_is_empty(cls, v: Any) -> Any:
        # A document read before full initialization may carry nulls
        return [] if v is None else v

    @field_validator('last_updated')
    @classmethod
    def normalize_last_updated(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v) if v else None

    @classmethod
    def seeded(
        cls,
        categories: Optional[list[str]] = None,
        currency: Optional[str] = None,
    ) -> 'LedgerDocument':
        """
        Build the first-run document.

        The default currency, when given, is listed first in
        currency_supported.
        """
        currencies = list(DEFAULT_CURRENCIES)
        if currency:
            currency = currency.upper()
            currencies = [currency] + [c for c in currencies if c != currency]
        return cls(
            categories=list(categories if categories is not None else DEFAULT_CATEGORIES),
            asset_categories=list(DEFAULT_ASSET_CATEGORIES),
            debt_categories=list(DEFAULT_DEBT_CATEGORIES),
            currency_supported=currencies,
        )

    def ledger(self, side: LedgerSide) -> list[LedgerEntry]:
        """Get the signed ledger for one side."""
        if LedgerSide(side) is LedgerSide.ASSET:
            return self.assets_ledger
        return self.debts_ledger

    def find_asset(self, asset_id: str) -> Optional[Asset]:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None

    def portfolio_assets(self) -> list[Asset]:
        return [asset for asset in self.assets if asset.is_portfolio]

    def to_json(self) -> str:
        """Serialize with the canonical on-disk field names."""
        return self.model_dump_json(by_alias=True)


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class FinancialSummary(BaseModel):
    """
    What the home dashboard shows for one calendar month.

    Derived on demand, never persisted.
    """

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)
    monthly_spend: Decimal
    net_worth: Decimal
    net_debt: Decimal
    top_categories: list[tuple[str, Decimal]] = Field(default_factory=list)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem with user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_a_number', 'not_positive')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
