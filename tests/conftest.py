"""
Shared fixtures for Money Manager tests.

No test touches a real backend: storage is in-memory, a temp
directory, or a mock.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from money_manager.models import Transaction, TransactionCategory, TransactionFields
from money_manager.services.storage import (
    CorruptDataError,
    InMemoryKeyValueStorage,
    KeyValueStorageInterface,
    StorageConnectionError,
)


TODAY = date(2024, 6, 15)


def build_fields(**overrides) -> TransactionFields:
    values = {
        "amount": Decimal("100.00"),
        "date": date(2024, 1, 1),
        "category": TransactionCategory.EXPENSE,
        "sub_category": "groceries",
        "description": "",
    }
    values.update(overrides)
    return TransactionFields(**values)


def build_transaction(transaction_id: int, **overrides) -> Transaction:
    return Transaction.from_fields(transaction_id, build_fields(**overrides))


class FailingStorage(KeyValueStorageInterface):
    """Storage whose loads and/or saves always fail."""

    def __init__(self, fail_load: bool = True, fail_save: bool = True, corrupt: bool = False):
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.corrupt = corrupt
        self.save_attempts = 0

    async def load(self, key: str) -> Optional[list[dict]]:
        if self.corrupt:
            raise CorruptDataError("not JSON")
        if self.fail_load:
            raise StorageConnectionError("storage offline")
        return None

    async def save(self, key: str, records: list[dict]) -> bool:
        self.save_attempts += 1
        if self.fail_save:
            raise StorageConnectionError("storage offline")
        return True


class SlowStorage(InMemoryKeyValueStorage):
    """In-memory storage that records every save and takes a moment to finish."""

    def __init__(self, delay: float = 0.01, initial=None):
        super().__init__(initial)
        self.delay = delay
        self.saved_snapshots: list[list[dict]] = []

    async def save(self, key: str, records: list[dict]) -> bool:
        self.saved_snapshots.append(records)
        await asyncio.sleep(self.delay)
        return await super().save(key, records)


@pytest.fixture
def make_fields():
    return build_fields


@pytest.fixture
def make_transaction():
    return build_transaction


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    return [
        build_transaction(1, amount=Decimal("1000"), date=date(2024, 1, 1),
                          category=TransactionCategory.INCOME, sub_category="salary"),
        build_transaction(2, amount=Decimal("200"), date=date(2024, 1, 2),
                          category=TransactionCategory.EXPENSE, sub_category="groceries"),
        build_transaction(3, amount=Decimal("50.25"), date=date(2024, 1, 2),
                          category=TransactionCategory.EXPENSE, sub_category="shopping"),
        build_transaction(4, amount=Decimal("300"), date=date(2023, 12, 31),
                          category=TransactionCategory.INCOME, sub_category="bonus"),
    ]
