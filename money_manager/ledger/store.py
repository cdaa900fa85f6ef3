"""
Ledger Store

DESIGN DECISION: The LedgerStore is the ONLY owner of the transaction
collection. Everything else gets read-only snapshots.

GUARANTEES:
- Ids are unique, monotonically assigned and never reused
- next_id is always greater than every id ever seen in this session
- Updates replace whole records in place (same position, same id)
- In-memory state is the source of truth; a failed save never rolls
  back a mutation

Mutations are synchronous. Each one schedules a save (fire-and-forget)
and notifies refresh listeners so views can be re-derived.
"""

import asyncio
from typing import Callable, Optional

from money_manager.ledger.scheduler import SaveScheduler
from money_manager.log import get_logger
from money_manager.models import Transaction, TransactionFields
from money_manager.services.persistence import PersistenceError, PersistenceGateway


RefreshListener = Callable[["LedgerStore"], None]


class LedgerStore:
    """
    Authoritative in-memory transaction collection.

    Mutating methods must be called from inside a running event loop,
    because they schedule an asynchronous save.
    """

    def __init__(self, gateway: PersistenceGateway):
        self._gateway = gateway
        self._transactions: list[Transaction] = []
        self._next_id = 1
        self._listeners: list[RefreshListener] = []
        self._saver: SaveScheduler[tuple[Transaction, ...]] = SaveScheduler(self._write)
        self._initialized = False
        self._logger = get_logger(__name__)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        """Read-only snapshot in insertion order."""
        return tuple(self._transactions)

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def pending_save(self) -> bool:
        return self._saver.busy

    def get(self, transaction_id: int) -> Optional[Transaction]:
        """Find a record by id."""
        index = self._index_of(transaction_id)
        return None if index is None else self._transactions[index]

    def __len__(self) -> int:
        return len(self._transactions)

    # -------------------------------------------------------------------------
    # Refresh notification
    # -------------------------------------------------------------------------

    def subscribe(self, listener: RefreshListener) -> None:
        """Register a callback invoked after every load and mutation."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: RefreshListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify_refresh(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> int:
        """
        Load the persisted collection.

        A load failure is recovered: the store starts empty and stays usable.

        Returns:
            Number of records loaded
        """
        try:
            loaded = await self._gateway.load()
        except PersistenceError as e:
            self._logger.error(
                "ledger_load_failed",
                key=self._gateway.key,
                error=str(e),
            )
            loaded = None

        self._transactions = list(loaded) if loaded else []
        self._next_id = (
            max(t.id for t in self._transactions) + 1 if self._transactions else 1
        )
        self._initialized = True

        self._logger.info(
            "ledger_loaded",
            count=len(self._transactions),
            next_id=self._next_id,
        )
        self._notify_refresh()
        return len(self._transactions)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, fields: TransactionFields) -> Transaction:
        """
        Append a new record built from validated fields.

        Returns:
            The stored record, carrying its newly assigned id
        """
        self._require_loop()
        transaction = Transaction.from_fields(self._next_id, fields)
        self._next_id += 1
        self._transactions.append(transaction)

        self._logger.info(
            "transaction_added",
            transaction_id=transaction.id,
            category=transaction.category.value,
            amount=str(transaction.amount),
        )
        self._after_mutation()
        return transaction

    def update(self, transaction_id: int, fields: TransactionFields) -> Optional[Transaction]:
        """
        Replace a record in place with a fresh one carrying the same id.

        Returns:
            The new record, or None if the id no longer exists
        """
        self._require_loop()
        index = self._index_of(transaction_id)
        if index is None:
            self._logger.debug("transaction_update_skipped", transaction_id=transaction_id)
            return None

        transaction = Transaction.from_fields(transaction_id, fields)
        self._transactions[index] = transaction

        self._logger.info("transaction_updated", transaction_id=transaction_id)
        self._after_mutation()
        return transaction

    def delete(self, transaction_id: int) -> bool:
        """
        Remove a record. Confirmation is the caller's responsibility.

        Returns:
            True if a record was removed
        """
        self._require_loop()
        index = self._index_of(transaction_id)
        if index is None:
            self._logger.debug("transaction_delete_skipped", transaction_id=transaction_id)
            removed = False
        else:
            del self._transactions[index]
            self._logger.info("transaction_deleted", transaction_id=transaction_id)
            removed = True

        self._after_mutation()
        return removed

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def persist(self) -> bool:
        """
        Write the current collection now.

        Returns:
            True if the write succeeded. Failures are logged, not raised.
        """
        return await self._write(self.transactions)

    async def flush(self) -> None:
        """Wait for any scheduled saves to finish."""
        await self._saver.flush()

    async def _write(self, snapshot: tuple[Transaction, ...]) -> bool:
        try:
            saved = await self._gateway.save(snapshot)
        except PersistenceError as e:
            self._logger.error(
                "ledger_save_failed",
                key=self._gateway.key,
                count=len(snapshot),
                error=str(e),
            )
            return False

        if not saved:
            self._logger.error(
                "ledger_save_failed",
                key=self._gateway.key,
                count=len(snapshot),
                error="storage reported the write as not saved",
            )
        return saved

    @staticmethod
    def _require_loop() -> None:
        """Fail before any state changes when no event loop can run the save."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError(
                "LedgerStore mutations must be called from a running event loop"
            ) from None

    def _after_mutation(self) -> None:
        self._saver.schedule(self.transactions)
        self._notify_refresh()

    def _index_of(self, transaction_id: int) -> Optional[int]:
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                return index
        return None
