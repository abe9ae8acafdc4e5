"""Price feed package."""

from kubera.services.prices.feed import (
    MockPriceFeed,
    PriceCache,
    PriceFeedError,
    PriceFeedInterface,
    PriceLookup,
    PriceRefresher,
)

__all__ = [
    "MockPriceFeed",
    "PriceCache",
    "PriceFeedError",
    "PriceFeedInterface",
    "PriceLookup",
    "PriceRefresher",
]
