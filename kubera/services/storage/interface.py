"""
Abstract Storage Interface

DESIGN DECISION: The ledger is persisted through a plain async key-value
interface, the same shape as a phone's local key-value store.
This allows us to:
1. Keep the file-backed store for the real app
2. Use in-memory storage for testing
3. Swap in another backend without touching the ledger logic

Values are opaque strings. Serialization belongs to the RecordStore,
not to the backend.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for key-value storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored string, or None if the key was never written

        Raises:
            PersistenceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        CRITICAL: Implementations must be overwrite-or-fail. A failed
        write leaves the previous value readable.

        Args:
            key: Storage key
            value: String to store

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """
    Reading or writing the store failed.

    The previously saved document is still intact.
    """
    pass


class CorruptDocumentError(PersistenceError):
    """Stored data exists but could not be decoded into a document."""
    pass
