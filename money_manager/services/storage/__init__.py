"""
Storage Services Package

Provides an abstract key-value interface and concrete implementations.
The JSON file backend is the default; Google Sheets and in-memory
backends implement the same interface and are swappable.
"""

from money_manager.services.storage.interface import (
    CorruptDataError,
    KeyValueStorageInterface,
    StorageConnectionError,
    StorageError,
)
from money_manager.services.storage.memory import InMemoryKeyValueStorage
from money_manager.services.storage.json_file import JsonFileKeyValueStorage
from money_manager.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStorage,
)

__all__ = [
    # Interface
    "KeyValueStorageInterface",
    # Exceptions
    "CorruptDataError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStorage",
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
]
