"""
In-Memory Storage Implementation

Used for tests and for running without any durable backend.
Values are deep-copied on the way in and out so callers can
never alias the stored collection.
"""

import copy
from typing import Optional

from money_manager.services.storage.interface import KeyValueStorageInterface


class InMemoryKeyValueStorage(KeyValueStorageInterface):
    """Dict-backed key-value storage."""

    def __init__(self, initial: Optional[dict[str, list[dict]]] = None):
        self._data: dict[str, list[dict]] = copy.deepcopy(initial) if initial else {}

    async def load(self, key: str) -> Optional[list[dict]]:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    async def save(self, key: str, records: list[dict]) -> bool:
        self._data[key] = copy.deepcopy(records)
        return True

    def keys(self) -> list[str]:
        return list(self._data)
