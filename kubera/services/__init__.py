"""Services package."""

from kubera.services.prices import (
    MockPriceFeed,
    PriceCache,
    PriceFeedError,
    PriceFeedInterface,
    PriceLookup,
    PriceRefresher,
)
from kubera.services.storage import (
    CorruptDocumentError,
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    PersistenceError,
    RecordStore,
    StorageError,
)

__all__ = [
    # Price services
    "MockPriceFeed",
    "PriceCache",
    "PriceFeedError",
    "PriceFeedInterface",
    "PriceLookup",
    "PriceRefresher",
    # Storage services
    "CorruptDocumentError",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorageInterface",
    "PersistenceError",
    "RecordStore",
    "StorageError",
]
