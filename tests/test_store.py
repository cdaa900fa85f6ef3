"""Tests for the LedgerStore and its save scheduling."""

import asyncio
import random
from datetime import date
from decimal import Decimal

import pytest

from money_manager.config import DEFAULT_STORAGE_KEY
from money_manager.ledger import LedgerStore, SaveScheduler
from money_manager.models import TransactionCategory
from money_manager.services import (
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    PersistenceGateway,
)

from conftest import FailingStorage, SlowStorage, build_fields, build_transaction


class DecliningStorage(InMemoryKeyValueStorage):
    """Storage that reports every write as not saved."""

    async def save(self, key: str, records: list[dict]) -> bool:
        return False


def make_store(storage=None) -> tuple[LedgerStore, object]:
    storage = storage if storage is not None else InMemoryKeyValueStorage()
    return LedgerStore(PersistenceGateway(storage)), storage


def seeded_storage(*transactions) -> InMemoryKeyValueStorage:
    return InMemoryKeyValueStorage({
        DEFAULT_STORAGE_KEY: [t.to_record() for t in transactions],
    })


class TestInitialize:
    """Tests for loading the store."""

    def test_empty_storage(self):
        store, _ = make_store()
        assert asyncio.run(store.initialize()) == 0
        assert store.transactions == ()
        assert store.next_id == 1
        assert store.initialized is True

    def test_loads_records_and_next_id(self):
        storage = seeded_storage(build_transaction(3), build_transaction(7), build_transaction(5))
        store, _ = make_store(storage)

        assert asyncio.run(store.initialize()) == 3
        assert [t.id for t in store.transactions] == [3, 7, 5]
        assert store.next_id == 8

    def test_stored_empty_list(self):
        store, _ = make_store(InMemoryKeyValueStorage({DEFAULT_STORAGE_KEY: []}))
        asyncio.run(store.initialize())
        assert store.next_id == 1

    @pytest.mark.parametrize("storage", [
        FailingStorage(),
        FailingStorage(corrupt=True),
        InMemoryKeyValueStorage({DEFAULT_STORAGE_KEY: [{"id": "x"}]}),
    ])
    def test_load_failure_is_recovered(self, storage):
        """A broken backend leaves a usable, empty store."""
        store, _ = make_store(storage)
        refreshes = []
        store.subscribe(refreshes.append)

        async def scenario():
            await store.initialize()
            return store.add(build_fields())

        added = asyncio.run(scenario())
        assert added.id == 1
        assert store.next_id == 2
        assert len(refreshes) == 2

    @pytest.mark.parametrize("payload", [
        b"{not json",
        b'[{"id": 1, "note": "\xff\xfe"}]',
        b"[" * 100000 + b"]" * 100000,
        b'{"id": 1}',
        b'[{"id": 1, "amount": "-3", "date": "2024-01-01", '
        b'"category": "expense", "subCategory": "rent"}]',
    ], ids=["invalid-json", "invalid-utf8", "too-deeply-nested", "not-a-list", "invalid-record"])
    def test_corrupt_file_on_disk_is_recovered(self, tmp_path, payload):
        """A corrupt data file leaves a usable, empty, initialized store."""
        storage = JsonFileKeyValueStorage(tmp_path)
        storage.path_for(DEFAULT_STORAGE_KEY).write_bytes(payload)
        store, _ = make_store(storage)
        refreshes = []
        store.subscribe(refreshes.append)

        async def scenario():
            loaded = await store.initialize()
            added = store.add(build_fields())
            await store.flush()
            return loaded, added

        loaded, added = asyncio.run(scenario())
        assert loaded == 0
        assert store.initialized is True
        assert added.id == 1
        assert len(refreshes) == 2
        assert [r["id"] for r in asyncio.run(storage.load(DEFAULT_STORAGE_KEY))] == [1]

    def test_always_notifies(self):
        store, _ = make_store()
        refreshes = []
        store.subscribe(refreshes.append)
        asyncio.run(store.initialize())
        assert refreshes == [store]


class TestMutations:
    """Tests for add, update and delete."""

    def test_add_assigns_sequential_ids_and_saves(self):
        store, storage = make_store()

        async def scenario():
            await store.initialize()
            first = store.add(build_fields(amount=Decimal("10")))
            second = store.add(build_fields(amount=Decimal("20")))
            await store.flush()
            return first, second

        first, second = asyncio.run(scenario())
        assert (first.id, second.id) == (1, 2)
        assert store.next_id == 3
        stored = asyncio.run(storage.load(DEFAULT_STORAGE_KEY))
        assert [r["id"] for r in stored] == [1, 2]

    def test_add_continues_after_loaded_ids(self):
        store, _ = make_store(seeded_storage(build_transaction(41)))

        async def scenario():
            await store.initialize()
            return store.add(build_fields())

        assert asyncio.run(scenario()).id == 42

    def test_update_replaces_whole_record_in_place(self):
        store, storage = make_store()

        async def scenario():
            await store.initialize()
            store.add(build_fields(description="first"))
            original = store.add(build_fields(description="second", amount=Decimal("5")))
            store.add(build_fields(description="third"))
            updated = store.update(original.id, build_fields(
                amount=Decimal("999"),
                date=date(2023, 5, 5),
                category=TransactionCategory.INCOME,
                sub_category="bonus",
            ))
            await store.flush()
            return original, updated

        original, updated = asyncio.run(scenario())
        assert updated.id == original.id
        assert updated.amount == Decimal("999")
        assert updated.category == TransactionCategory.INCOME
        assert updated.description == ""
        assert [t.id for t in store.transactions] == [1, 2, 3]
        assert store.get(original.id) == updated
        stored = asyncio.run(storage.load(DEFAULT_STORAGE_KEY))
        assert stored[1]["subCategory"] == "bonus"

    def test_update_missing_id_is_noop(self):
        store, storage = make_store(SlowStorage())
        refreshes = []

        async def scenario():
            await store.initialize()
            store.subscribe(refreshes.append)
            result = store.update(99, build_fields())
            await store.flush()
            return result

        assert asyncio.run(scenario()) is None
        assert store.transactions == ()
        assert refreshes == []
        assert storage.saved_snapshots == []

    def test_delete_removes_exactly_one(self):
        store, _ = make_store()

        async def scenario():
            await store.initialize()
            for n in range(1, 5):
                store.add(build_fields(amount=Decimal(n)))
            before = store.transactions
            removed = store.delete(2)
            return before, removed

        before, removed = asyncio.run(scenario())
        assert removed is True
        assert store.transactions == (before[0], before[2], before[3])

    def test_delete_missing_id(self):
        store, _ = make_store()
        refreshes = []

        async def scenario():
            await store.initialize()
            store.add(build_fields())
            store.subscribe(refreshes.append)
            return store.delete(12)

        assert asyncio.run(scenario()) is False
        assert len(store) == 1
        assert len(refreshes) == 1

    def test_ids_are_never_reused(self):
        store, _ = make_store()

        async def scenario():
            await store.initialize()
            store.add(build_fields())
            last = store.add(build_fields())
            store.delete(last.id)
            return store.add(build_fields())

        assert asyncio.run(scenario()).id == 3

    def test_random_operations_keep_ids_unique(self):
        """Any mix of mutations keeps ids unique and below next_id."""
        rng = random.Random(20240101)
        store, _ = make_store()
        issued = []

        async def scenario():
            await store.initialize()
            for _ in range(200):
                op = rng.choice(["add", "add", "update", "delete"])
                if op == "add":
                    issued.append(store.add(build_fields(amount=Decimal(rng.randint(1, 500)))).id)
                elif op == "update" and issued:
                    store.update(rng.choice(issued), build_fields(description="edited"))
                elif op == "delete" and issued:
                    store.delete(rng.choice(issued))
            await store.flush()

        asyncio.run(scenario())
        current = [t.id for t in store.transactions]
        assert len(current) == len(set(current))
        assert len(issued) == len(set(issued))
        assert all(i <= store.next_id - 1 for i in issued)

    def test_mutations_outside_event_loop_change_nothing(self):
        """Without a running loop a mutation fails before touching state."""
        store, _ = make_store(seeded_storage(build_transaction(1)))
        asyncio.run(store.initialize())
        refreshes = []
        store.subscribe(refreshes.append)
        before = store.transactions

        with pytest.raises(RuntimeError):
            store.add(build_fields())
        with pytest.raises(RuntimeError):
            store.update(1, build_fields(description="changed"))
        with pytest.raises(RuntimeError):
            store.delete(1)

        assert store.transactions == before
        assert store.next_id == 2
        assert refreshes == []

    def test_snapshot_is_read_only(self):
        store, _ = make_store()

        async def scenario():
            await store.initialize()
            store.add(build_fields())

        asyncio.run(scenario())
        snapshot = store.transactions
        assert isinstance(snapshot, tuple)
        with pytest.raises(AttributeError):
            snapshot.append(build_transaction(2))


class TestPersistence:
    """Tests for saving behaviour."""

    def test_failed_save_keeps_memory_state(self):
        storage = FailingStorage(fail_load=False)
        store, _ = make_store(storage)

        async def scenario():
            await store.initialize()
            store.add(build_fields())
            await store.flush()
            return await store.persist()

        assert asyncio.run(scenario()) is False
        assert len(store) == 1
        assert storage.save_attempts == 2

    def test_unsaved_write_is_reported(self):
        """A backend that declines the write makes persist report failure."""
        store, _ = make_store(DecliningStorage())

        async def scenario():
            await store.initialize()
            return await store.persist()

        assert asyncio.run(scenario()) is False

    def test_persist_writes_current_state(self):
        store, storage = make_store(seeded_storage(build_transaction(1)))

        async def scenario():
            await store.initialize()
            return await store.persist()

        assert asyncio.run(scenario()) is True
        assert [r["id"] for r in asyncio.run(storage.load(DEFAULT_STORAGE_KEY))] == [1]

    def test_burst_of_mutations_is_coalesced(self):
        """Mutations made back to back cost a single write of the final state."""
        storage = SlowStorage()
        store, _ = make_store(storage)

        async def scenario():
            await store.initialize()
            for _ in range(5):
                store.add(build_fields())
            assert store.pending_save is True
            await store.flush()

        asyncio.run(scenario())
        assert store.pending_save is False
        assert [len(s) for s in storage.saved_snapshots] == [5]

    def test_newest_snapshot_supersedes_queued_one(self):
        storage = SlowStorage()
        store, _ = make_store(storage)

        async def scenario():
            await store.initialize()
            store.add(build_fields())
            await asyncio.sleep(0)  # first save is now in flight
            store.add(build_fields())
            store.add(build_fields())
            store.delete(1)
            await store.flush()

        asyncio.run(scenario())
        assert [[r["id"] for r in s] for s in storage.saved_snapshots] == [[1], [2, 3]]
        assert [r["id"] for r in asyncio.run(storage.load(DEFAULT_STORAGE_KEY))] == [2, 3]


class TestSaveScheduler:
    """Tests for the single-slot scheduler on its own."""

    def test_flush_without_work(self):
        scheduler = SaveScheduler(lambda snapshot: asyncio.sleep(0))
        asyncio.run(scheduler.flush())
        assert scheduler.busy is False

    def test_schedule_after_idle_starts_new_worker(self):
        written = []

        async def save(snapshot):
            written.append(snapshot)

        async def scenario():
            scheduler = SaveScheduler(save)
            scheduler.schedule("a")
            await scheduler.flush()
            scheduler.schedule("b")
            scheduler.schedule("c")
            await scheduler.flush()

        asyncio.run(scenario())
        assert written == ["a", "c"]
