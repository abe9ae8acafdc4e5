"""
Shared fixtures.

Every test runs against its own temporary data directory and a fresh
settings cache, so nothing ever touches ~/.kubera.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from kubera.config import get_settings
from kubera.ledger import LedgerModel
from kubera.models.ledger import Asset, Expense, Holding, LedgerDocument
from kubera.services.storage import InMemoryStorage, PersistenceError, RecordStore


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point storage at a temp dir and reload settings for each test."""
    monkeypatch.setenv("KUBERA_STORAGE_DATA_DIR", str(tmp_path / "data"))
    for name in (
        "KUBERA_STORAGE_DOCUMENT_KEY",
        "KUBERA_STORAGE_RETRY_ATTEMPTS",
        "KUBERA_PRICES_REFRESH_INTERVAL_SECONDS",
        "KUBERA_PRICES_SEED",
        "DEFAULT_CATEGORIES",
        "DEFAULT_CURRENCY",
        "TOP_CATEGORIES_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FlakyStorage(InMemoryStorage):
    """In-memory storage whose writes can be switched off."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        super().__init__(initial)
        self.fail_writes = False
        self.write_count = 0

    async def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceError("disk full")
        self.write_count += 1
        await super().set_item(key, value)


class SlowStorage(InMemoryStorage):
    """Yields to the event loop on every call, so interleavings are real."""

    async def get_item(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        return await super().get_item(key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        await super().set_item(key, value)


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def store(storage):
    return RecordStore(storage, key="KUBERA_DATA")


@pytest.fixture
def ledger(store):
    return LedgerModel(store)


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def january_document():
    """Three expenses across January and February 2024."""
    return LedgerDocument(
        categories=["Groceries", "Dining Out"],
        expenses=[
            Expense(amount=Decimal("40"), category="Groceries", timestamp=utc(2024, 1, 5)),
            Expense(amount=Decimal("10"), category="Dining Out", timestamp=utc(2024, 1, 10)),
            Expense(amount=Decimal("25"), category="Groceries", timestamp=utc(2024, 2, 1)),
        ],
    )


@pytest.fixture
def portfolio_asset():
    return Asset(
        name="Stocks",
        type="Portfolio",
        holdings=[Holding(ticker="AAPL", shares=Decimal("10"), purchase_price=Decimal("100"))],
    )


@pytest.fixture
def slow_ledger():
    """Ledger over storage that yields on every call."""
    return LedgerModel(RecordStore(SlowStorage(), key="KUBERA_DATA"))
