"""Ledger store package."""

from money_manager.ledger.scheduler import SaveScheduler
from money_manager.ledger.store import LedgerStore, RefreshListener

__all__ = ["LedgerStore", "RefreshListener", "SaveScheduler"]
