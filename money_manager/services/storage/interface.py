"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON file backend for Google Sheets (or anything else)
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from storage implementation

The interface is intentionally tiny - a key-value store.
The whole collection lives under one key; there are no per-record keys.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for an async key-value store.

    Values are lists of JSON-compatible record dicts.
    """

    @abstractmethod
    async def load(self, key: str) -> Optional[list[dict]]:
        """
        Load the value stored under a key.

        Args:
            key: The namespace key

        Returns:
            The stored records, or None if nothing is stored

        Raises:
            StorageConnectionError: If the backend is unavailable
            CorruptDataError: If the stored value cannot be decoded
        """
        pass

    @abstractmethod
    async def save(self, key: str, records: list[dict]) -> bool:
        """
        Overwrite the value stored under a key.

        Args:
            key: The namespace key
            records: The complete collection to store

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass


class CorruptDataError(StorageError):
    """The stored value exists but cannot be decoded."""
    pass
