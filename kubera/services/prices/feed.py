"""
Price Feed

DESIGN DECISION: Aggregation never talks to a market-data source directly.
It receives a PriceLookup, a plain callable from ticker to price. The
PriceCache is the lookup used by the app; the PriceRefresher fills it in
the background from any PriceFeedInterface.

CRITICAL: Nothing in this module writes to the ledger store. Prices are
session state only.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional

import structlog

from kubera.activity import ActivityLogger
from kubera.config import get_settings
from kubera.models.activity import ActivityEventBuilder


# ticker -> current price, or None when the ticker is unknown
PriceLookup = Callable[[str], Optional[Decimal]]


class PriceFeedInterface(ABC):
    """Source of current prices."""

    @abstractmethod
    async def quote(self, ticker: str) -> Decimal:
        """
        Get the current price for a ticker.

        Raises:
            PriceFeedError: If no price can be produced
        """
        pass


class PriceFeedError(Exception):
    """A quote could not be fetched."""
    pass


class MockPriceFeed(PriceFeedInterface):
    """
    Random prices around fixed bases, standing in for a real quote API.

    Known tickers move within a band above their base price; anything
    else gets a price between 100 and 1000.
    """

    # ticker -> (base, band width)
    BASE_PRICES: dict[str, tuple[int, int]] = {
        "AAPL": (150, 50),
        "GOOGL": (2500, 200),
        "TSLA": (200, 100),
        "MSFT": (300, 50),
        "AMZN": (3200, 300),
    }
    FALLBACK_BAND = (100, 900)

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    async def quote(self, ticker: str) -> Decimal:
        base, band = self.BASE_PRICES.get(ticker.upper(), self.FALLBACK_BAND)
        price = base + self._random.random() * band
        return Decimal(str(round(price, 2)))


class PriceCache:
    """
    In-memory ticker -> price map.

    Instances are callable, so a cache can be passed anywhere a
    PriceLookup is expected.
    """

    def __init__(self, prices: Optional[Mapping[str, Decimal]] = None):
        self._prices: dict[str, Decimal] = {}
        if prices:
            self.update(prices)

    def get(self, ticker: str) -> Optional[Decimal]:
        return self._prices.get(ticker.upper())

    def __call__(self, ticker: str) -> Optional[Decimal]:
        return self.get(ticker)

    def __contains__(self, ticker: str) -> bool:
        return ticker.upper() in self._prices

    def __len__(self) -> int:
        return len(self._prices)

    def set(self, ticker: str, price: Decimal) -> None:
        self._prices[ticker.upper()] = Decimal(price)

    def update(self, prices: Mapping[str, Decimal]) -> None:
        for ticker, price in prices.items():
            self.set(ticker, price)

    def snapshot(self) -> dict[str, Decimal]:
        """Copy of the current prices."""
        return dict(self._prices)


class PriceRefresher:
    """
    Periodically re-quotes every held ticker into a PriceCache.

    Usage:
        refresher = PriceRefresher(feed, cache, lambda: held_tickers(ledger.document))
        refresher.start()
        ...
        await refresher.stop()
    """

    def __init__(
        self,
        feed: PriceFeedInterface,
        cache: PriceCache,
        tickers: Callable[[], Iterable[str]],
        interval_seconds: Optional[float] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._feed = feed
        self._cache = cache
        self._tickers = tickers
        self._interval = interval_seconds or get_settings().prices.refresh_interval_seconds
        self._activity = activity_logger or ActivityLogger()
        self._task: Optional[asyncio.Task] = None
        self._logger = structlog.get_logger("kubera.prices")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_once(self) -> dict[str, Decimal]:
        """
        Quote every held ticker once.

        Tickers whose quote fails keep their previous cached price.

        Returns:
            The prices fetched in this round
        """
        fetched: dict[str, Decimal] = {}
        for ticker in sorted({t.upper() for t in self._tickers()}):
            try:
                fetched[ticker] = await self._feed.quote(ticker)
            except Exception as e:
                self._activity.log(ActivityEventBuilder.price_quote_failed(ticker, str(e)))
                continue

        self._cache.update(fetched)
        self._activity.log(ActivityEventBuilder.prices_refreshed(list(fetched)))
        return fetched

    def start(self) -> asyncio.Task:
        """Start refreshing in the background (idempotent)."""
        if not self.running:
            self._task = asyncio.create_task(self._run(), name="kubera-price-refresh")
        return self._task

    async def stop(self) -> None:
        """Stop the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        self._logger.info("price_refresh_started", interval_seconds=self._interval)
        while True:
            try:
                await self.refresh_once()
            except Exception:
                # A failed round keeps the previous prices; try again next tick
                self._logger.exception("price_refresh_failed")
            await asyncio.sleep(self._interval)
