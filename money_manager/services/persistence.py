"""
Persistence Gateway

The single boundary between the ledger and durable storage.

- Loads and saves the WHOLE collection under one fixed key
- Converts between Transaction records and the stored record format
- Serializes its own saves, so the last save called is the last
  save completed (last writer wins on the full snapshot)

Every failure is raised as PersistenceError. Deciding what to do
about it (log and carry on) is the LedgerStore's job.
"""

import asyncio
from typing import Optional, Sequence

from pydantic import ValidationError

from money_manager.config import DEFAULT_STORAGE_KEY, LedgerSettings, get_settings
from money_manager.log import get_logger
from money_manager.models import Transaction
from money_manager.services.storage import (
    GoogleSheetsKeyValueStorage,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    StorageError,
)


class PersistenceError(Exception):
    """Loading or saving the ledger failed."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class PersistenceGateway:
    """Async load/save of the full transaction collection."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        key: str = DEFAULT_STORAGE_KEY,
    ):
        self._storage = storage
        self._key = key
        self._save_lock = asyncio.Lock()
        self._logger = get_logger(__name__)

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> Optional[list[Transaction]]:
        """
        Load the persisted collection.

        Returns:
            Records in stored order, or None if nothing was ever saved

        Raises:
            PersistenceError: If storage is unavailable or a record is corrupt
        """
        try:
            records = await self._storage.load(self._key)
        except StorageError as e:
            raise PersistenceError("load", str(e)) from e

        if records is None:
            return None

        try:
            transactions = [Transaction.from_record(record) for record in records]
        except ValidationError as e:
            raise PersistenceError(
                "load", f"stored record is invalid: {e.error_count()} error(s)"
            ) from e

        ids = [t.id for t in transactions]
        if len(ids) != len(set(ids)):
            raise PersistenceError("load", "stored records have duplicate ids")

        self._logger.debug("ledger_records_read", key=self._key, count=len(transactions))
        return transactions

    async def save(self, transactions: Sequence[Transaction]) -> bool:
        """
        Overwrite the persisted collection with a snapshot.

        Raises:
            PersistenceError: If the write fails
        """
        records = [t.to_record() for t in transactions]
        async with self._save_lock:
            try:
                saved = await self._storage.save(self._key, records)
            except StorageError as e:
                raise PersistenceError("save", str(e)) from e

        self._logger.debug("ledger_records_written", key=self._key, count=len(records))
        return saved


def create_storage(settings: Optional[LedgerSettings] = None) -> KeyValueStorageInterface:
    """Build the storage backend selected in settings."""
    settings = settings or get_settings().ledger

    if settings.storage_backend == "memory":
        return InMemoryKeyValueStorage()
    if settings.storage_backend == "google_sheets":
        return GoogleSheetsKeyValueStorage()
    return JsonFileKeyValueStorage(
        settings.data_dir,
        retry_attempts=settings.save_retry_attempts,
    )


def create_gateway(settings: Optional[LedgerSettings] = None) -> PersistenceGateway:
    """Build a gateway over the configured backend and key."""
    settings = settings or get_settings().ledger
    return PersistenceGateway(create_storage(settings), key=settings.storage_key)
