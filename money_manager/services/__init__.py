"""Services package."""

from money_manager.services.persistence import (
    PersistenceError,
    PersistenceGateway,
    create_gateway,
    create_storage,
)
from money_manager.services.storage import (
    CorruptDataError,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStorage,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Persistence
    "PersistenceError",
    "PersistenceGateway",
    "create_gateway",
    "create_storage",
    # Storage services
    "CorruptDataError",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStorage",
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
    "KeyValueStorageInterface",
    "StorageConnectionError",
    "StorageError",
]
