"""
Main Orchestrator for Money Manager

This module ties the components together behind the surface a UI needs:

1. Submit a form (validate → add or update)
2. Delete a transaction (only with a confirmed request)
3. Change filters / sort order
4. Read the current view (rows + summary)

DESIGN DECISION: The orchestrator holds no ledger data of its own.
The LedgerStore owns the collection; the orchestrator subscribes to
its refresh signal and re-derives the view every time, so the
rendered rows and totals can never drift from the store.
"""

import datetime as dt
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from money_manager.config import Settings, get_settings
from money_manager.ledger import LedgerStore
from money_manager.log import get_logger
from money_manager.models import (
    LedgerSummary,
    SortMode,
    Transaction,
    TransactionCategory,
    ValidationResult,
)
from money_manager.queries import LedgerQuery, summarize
from money_manager.services import PersistenceGateway, create_gateway
from money_manager.validation import TransactionValidator


class DeleteRequest(BaseModel):
    """
    A request to delete one transaction.

    The UI sets `confirmed` only after the user has agreed in its
    confirmation dialog. Unconfirmed requests are ignored.
    """

    model_config = ConfigDict(frozen=True)

    transaction_id: int = Field(..., gt=0)
    confirmed: bool = False


class LedgerView(BaseModel):
    """Everything a UI needs to render the ledger screen."""

    model_config = ConfigDict(frozen=True)

    rows: list[Transaction] = Field(default_factory=list)
    summary: LedgerSummary = Field(default_factory=LedgerSummary)
    query: LedgerQuery = Field(default_factory=LedgerQuery)
    caption: str = ""

    @property
    def is_empty(self) -> bool:
        """True when the UI should show its "no transactions" placeholder."""
        return not self.rows


RenderCallback = Callable[[LedgerView], None]


class MoneyManager:
    """
    The ledger application core.

    Usage:
        manager = MoneyManager(store)
        await manager.start()
        result = manager.submit({"amount": "12.50", ...})
        manager.view.rows
    """

    def __init__(
        self,
        store: LedgerStore,
        validator: Optional[TransactionValidator] = None,
        on_render: Optional[RenderCallback] = None,
    ):
        self._store = store
        self._validator = validator or TransactionValidator()
        self._on_render = on_render
        self._query = LedgerQuery()
        self._view = LedgerView()
        self._logger = get_logger(__name__)
        self._store.subscribe(self._refresh)

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def query(self) -> LedgerQuery:
        return self._query

    @property
    def view(self) -> LedgerView:
        """The most recently derived view."""
        return self._view

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> LedgerView:
        """Load persisted data and derive the first view."""
        await self._store.initialize()
        return self._view

    async def shutdown(self) -> None:
        """Wait for outstanding saves and stop listening to the store."""
        await self._store.flush()
        self._store.unsubscribe(self._refresh)

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    def validate(self, form: Mapping[str, Any]) -> ValidationResult:
        return self._validator.validate(form)

    def submit(self, form: Mapping[str, Any]) -> ValidationResult:
        """
        Handle a submitted transaction form.

        A form with an `id` updates that transaction; otherwise a new
        one is added. Nothing is mutated if validation fails.
        """
        result = self._validator.validate(form)
        if not result.is_valid:
            self._logger.info(
                "form_rejected",
                failed_fields=sorted(result.failed_fields),
            )
            return result

        try:
            transaction_id = self._parse_id(form.get("id"))
        except ValueError:
            # Same as an update whose target vanished
            self._logger.warning("form_id_invalid", raw_id=str(form.get("id")))
            return result

        if transaction_id is None:
            self._store.add(result.fields)
        else:
            self._store.update(transaction_id, result.fields)
        return result

    def delete(self, request: DeleteRequest) -> bool:
        """
        Delete a transaction if the request was confirmed.

        Returns:
            True if a record was removed
        """
        if not request.confirmed:
            self._logger.debug(
                "delete_not_confirmed",
                transaction_id=request.transaction_id,
            )
            return False
        return self._store.delete(request.transaction_id)

    def set_filters(
        self,
        category_filter: Union[str, TransactionCategory, None] = None,
        date_filter: Union[dt.date, str, None] = None,
        sort_mode: Union[SortMode, str, None] = None,
    ) -> LedgerView:
        """
        Replace the current filter and sort selection.

        Raises:
            pydantic.ValidationError: If a filter value cannot be parsed
        """
        self._query = LedgerQuery(
            category_filter=category_filter if category_filter is not None else "all",
            date_filter=date_filter,
            sort_mode=sort_mode,
        )
        self._refresh(self._store)
        return self._view

    def form_values_for(self, transaction_id: int) -> Optional[dict[str, str]]:
        """
        Raw form values to prefill the edit form.

        Returns:
            Form values, or None if the transaction no longer exists
        """
        transaction = self._store.get(transaction_id)
        if transaction is None:
            return None
        return {
            "id": str(transaction.id),
            "amount": str(transaction.amount),
            "date": transaction.date.isoformat(),
            "category": transaction.category.value,
            "subCategory": transaction.sub_category,
            "description": transaction.description,
        }

    # -------------------------------------------------------------------------
    # View derivation
    # -------------------------------------------------------------------------

    def _refresh(self, store: LedgerStore) -> None:
        transactions = store.transactions
        self._view = LedgerView(
            rows=self._query.apply(transactions),
            summary=summarize(transactions),
            query=self._query,
            caption=self._query.describe(),
        )
        if self._on_render is not None:
            self._on_render(self._view)

    @staticmethod
    def _parse_id(raw: Any) -> Optional[int]:
        if raw is None:
            return None
        text = str(raw).strip()
        if not text:
            return None
        return int(text)


def create_app_components(
    settings: Optional[Settings] = None,
    gateway: Optional[PersistenceGateway] = None,
    on_render: Optional[RenderCallback] = None,
) -> MoneyManager:
    """
    Factory function to create the application core.

    Args:
        settings: Settings to build the storage backend from
        gateway: Use this gateway instead of building one
        on_render: Called with each newly derived view

    Returns:
        A MoneyManager that still needs `await manager.start()`
    """
    settings = settings or get_settings()
    if gateway is None:
        gateway = create_gateway(settings.ledger)

    store = LedgerStore(gateway)
    return MoneyManager(store, on_render=on_render)
