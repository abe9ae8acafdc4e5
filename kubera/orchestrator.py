"""
Session Orchestrator for Kubera

Ties the components together for one app session:
1. RecordStore over a key-value backend
2. LedgerModel (the only writer of the document)
3. SnapshotHistory (writes through the ledger's lock)
4. PriceCache + PriceRefresher (in-memory only, never persisted)

DESIGN DECISION: There is no global ledger. The UI layer creates one
KuberaSession and passes it to whatever screen needs it.

Flow:
    user action -> session.ledger mutation -> store write
    screen focus -> session.summary(...) -> aggregation on the saved document
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from kubera.activity import ActivityLogger
from kubera.aggregation import financial_summary, held_tickers, portfolio_gain_loss
from kubera.config import get_settings
from kubera.history import SnapshotHistory
from kubera.ledger import LedgerModel
from kubera.models.ledger import FinancialSummary, NetWorthSnapshot
from kubera.services.prices import (
    MockPriceFeed,
    PriceCache,
    PriceFeedInterface,
    PriceRefresher,
)
from kubera.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    RecordStore,
)


class KuberaSession:
    """
    One running instance of the app.

    Usage:
        async with create_app_components() as session:
            await session.ledger.add_expense("40", "Groceries")
            summary = session.current_summary()
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorageInterface] = None,
        price_feed: Optional[PriceFeedInterface] = None,
        price_cache: Optional[PriceCache] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        settings = get_settings()
        app_settings = settings.app
        self._top_n = app_settings.top_categories_limit

        self.activity = activity_logger or ActivityLogger()
        self.store = RecordStore(
            storage or JsonFileStorage(),
            default_categories=app_settings.default_categories_list,
            default_currency=app_settings.default_currency,
            activity_logger=self.activity,
        )
        self.ledger = LedgerModel(self.store, activity_logger=self.activity)
        self.history = SnapshotHistory(self.ledger, activity_logger=self.activity)
        self.prices = price_cache or PriceCache()
        self.refresher = PriceRefresher(
            price_feed or MockPriceFeed(seed=settings.prices.seed),
            self.prices,
            self._held_tickers,
            activity_logger=self.activity,
        )

    def _held_tickers(self) -> list[str]:
        if not self.ledger.loaded:
            return []
        return held_tickers(self.ledger.document)

    async def start(self, refresh_prices: bool = True) -> "KuberaSession":
        """
        Load (or seed) the document and start the price refresher.
        """
        await self.ledger.refresh()
        if refresh_prices:
            await self.refresher.refresh_once()
            self.refresher.start()
        return self

    async def close(self) -> None:
        await self.refresher.stop()

    async def __aenter__(self) -> "KuberaSession":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def summary(self, month: int, year: int) -> FinancialSummary:
        """Dashboard figures for a month, at the cached prices."""
        return financial_summary(
            self.ledger.document, month, year, self.prices, self._top_n
        )

    def current_summary(self, now: Optional[datetime] = None) -> FinancialSummary:
        """Dashboard figures for the current UTC month."""
        now = now or datetime.now(timezone.utc)
        return self.summary(now.month, now.year)

    def portfolio_gain_loss(self, asset_id: str) -> Optional[Decimal]:
        """Unrealized gain of one Portfolio asset, or None if there is no such asset."""
        asset = self.ledger.document.find_asset(asset_id)
        if asset is None or not asset.is_portfolio:
            return None
        return portfolio_gain_loss(asset, self.prices)

    async def snapshot_net_worth(self) -> NetWorthSnapshot:
        """Record today's net worth at the cached prices."""
        return await self.history.record_net_worth(self.prices)

    async def clear_all_data(self) -> None:
        """Wipe the store and start over from a freshly seeded document."""
        await self.ledger.clear()


def create_app_components(
    in_memory: bool = False,
    storage: Optional[KeyValueStorageInterface] = None,
    price_feed: Optional[PriceFeedInterface] = None,
) -> KuberaSession:
    """
    Factory function to create a session.

    Args:
        in_memory: Keep everything in memory (nothing touches the disk).
                   Ignored when `storage` is given.
        storage: Explicit key-value backend
        price_feed: Quote source (defaults to the mock feed)

    Returns:
        An unstarted session; await session.start() or use `async with`
    """
    if storage is None and in_memory:
        storage = InMemoryStorage()
    return KuberaSession(storage=storage, price_feed=price_feed)
