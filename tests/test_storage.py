from __future__ import annotations

import asyncio
import sqlite3
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest

from platehandler.exceptions import StorageError
from platehandler.storage import SharedPlateStore, SqlitePlateStore


class _Clock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.5
        return self.now


class _BlockingClock:
    """Holds the first caller inside the transaction until released."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def __call__(self) -> float:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.entered.set()
        self.release.wait(5)
        with self._guard:
            self.active -= 1
        return 1_700_000_000.0


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SqlitePlateStore]:
    store = SqlitePlateStore(tmp_path / "plates.db", clock=_Clock())
    yield store
    store.close()


def test_repeat_sightings_keep_one_plate_and_append_spottings(store: SqlitePlateStore, tmp_path: Path) -> None:
    store.record_sighting("ABC123")
    store.record_sighting("ABC123")

    conn = sqlite3.connect(tmp_path / "plates.db")
    try:
        assert conn.execute("SELECT COUNT(*) FROM plate WHERE id = 'ABC123'").fetchone()[0] == 1
        assert conn.execute("SELECT COUNT(*) FROM spotting WHERE plate_id = 'ABC123'").fetchone()[0] == 2
    finally:
        conn.close()

    spottings = store.list_spottings("ABC123")
    assert [s.timestamp for s in spottings] == [1_700_000_001.5, 1_700_000_003.0]


def test_record_sighting_returns_stored_name(store: SqlitePlateStore) -> None:
    assert store.record_sighting("ABC123") is None

    store.set_name("ABC123", "Alice")

    assert store.record_sighting("ABC123") == "Alice"
    assert store.record_sighting("XYZ789") is None
    record = store.get_plate("ABC123")
    assert record is not None
    assert record.name == "Alice"


def test_set_name_for_unknown_plate_is_a_noop(store: SqlitePlateStore) -> None:
    store.set_name("NOPE", "Bob")

    assert store.get_plate("NOPE") is None


def test_sqlite_failures_are_contained(store: SqlitePlateStore) -> None:
    store.close()

    assert store.record_sighting("ABC123") is None
    store.set_name("ABC123", "Alice")
    with pytest.raises(StorageError):
        store.get_plate("ABC123")


def test_unopenable_database_raises_storage_error(tmp_path: Path) -> None:
    with pytest.raises(StorageError):
        SqlitePlateStore(tmp_path / "missing" / "plates.db")


@pytest.mark.asyncio
async def test_shared_store_serializes_gateway_calls(store: SqlitePlateStore) -> None:
    shared = SharedPlateStore(store)

    assert await shared.record_sighting("ABC123") is None
    await shared.set_name("ABC123", "Alice")

    assert await shared.record_sighting("ABC123") == "Alice"
    assert len(store.list_spottings("ABC123")) == 2


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_let_next_write_overlap(tmp_path: Path) -> None:
    clock = _BlockingClock()
    store = SqlitePlateStore(tmp_path / "plates.db", clock=clock)
    shared = SharedPlateStore(store)
    loop = asyncio.get_running_loop()
    try:
        first = asyncio.create_task(shared.record_sighting("AAA111"))
        assert await loop.run_in_executor(None, clock.entered.wait, 5)
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        # The cancelled call's executor thread still holds the connection.
        second = asyncio.create_task(shared.record_sighting("BBB222"))
        await asyncio.sleep(0.05)
        clock.release.set()
        assert await asyncio.wait_for(second, timeout=5) is None

        assert clock.max_active == 1
        assert len(store.list_spottings("AAA111")) == 1
        assert len(store.list_spottings("BBB222")) == 1
    finally:
        clock.release.set()
        store.close()
