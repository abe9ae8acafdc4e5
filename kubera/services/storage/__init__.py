"""
Storage Services Package

Provides the abstract key-value interface, a file-backed and an in-memory
implementation, and the RecordStore that owns the ledger document.
"""

from kubera.services.storage.interface import (
    CorruptDocumentError,
    KeyValueStorageInterface,
    PersistenceError,
    StorageError,
)
from kubera.services.storage.json_file import JsonFileStorage
from kubera.services.storage.memory import InMemoryStorage
from kubera.services.storage.record_store import LEGACY_KEYS, RecordStore

__all__ = [
    # Interfaces
    "KeyValueStorageInterface",
    # Exceptions
    "CorruptDocumentError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
    # Document store
    "LEGACY_KEYS",
    "RecordStore",
]
