"""SQLite storage for known plates and their spotting history.

Two tables::

    plate(id TEXT PRIMARY KEY, name TEXT)
    spotting(plate_id TEXT -> plate.id, timestamp REAL)

``plate`` rows are created on first sighting and only ever gain a name;
``spotting`` is append-only.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from platehandler.exceptions import StorageError
from platehandler.models.plate import PlateRecord, Spotting

_logger = logging.getLogger(__name__)

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS plate (id TEXT NOT NULL PRIMARY KEY, name TEXT) WITHOUT ROWID",
    "CREATE TABLE IF NOT EXISTS spotting ("
    "plate_id TEXT NOT NULL, timestamp REAL NOT NULL, "
    "FOREIGN KEY(plate_id) REFERENCES plate(id))",
)


class StorageGateway(Protocol):
    """Structural storage interface used by the notifier and event router.

    Implementations contain their own failures: a broken write is logged
    and reported as "no name", never raised to the caller.
    """

    def record_sighting(self, plate_id: str) -> str | None:
        ...

    def set_name(self, plate_id: str, name: str) -> None:
        ...


class SqlitePlateStore:
    """:class:`StorageGateway` backed by a single SQLite connection."""

    def __init__(
        self,
        path: str | Path,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = str(path)
        self._clock = clock
        # Executor threads keep running after the awaiting task is cancelled,
        # so the connection is guarded here as well as in SharedPlateStore.
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(self._path, check_same_thread=False)
            with self._conn:
                for statement in _SCHEMA:
                    self._conn.execute(statement)
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to open plate database {self._path}: {exc}") from exc
        _logger.info("Opened plate database %s", self._path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Gateway interface
    # ------------------------------------------------------------------

    def record_sighting(self, plate_id: str) -> str | None:
        """Insert the plate if new, append a spotting, return the plate's name."""
        try:
            return self._record_sighting(plate_id)
        except StorageError:
            _logger.error("Error updating database for spotted plate %s", plate_id, exc_info=True)
            return None

    def set_name(self, plate_id: str, name: str) -> None:
        """Set the human-assigned name of an existing plate."""
        try:
            updated = self._update_name(plate_id, name)
        except StorageError:
            _logger.error("Unable to set name to %r for plate %r", name, plate_id, exc_info=True)
            return
        if not updated:
            _logger.error("Unable to set name to %r for unknown plate %r", name, plate_id)
            return
        _logger.info("Stored name %r for plate %s", name, plate_id)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_plate(self, plate_id: str) -> PlateRecord | None:
        try:
            with self._lock:
                row = self._conn.execute("SELECT id, name FROM plate WHERE id = ?", (plate_id,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to read plate {plate_id}: {exc}") from exc
        if row is None:
            return None
        return PlateRecord(id=row[0], name=row[1])

    def list_spottings(self, plate_id: str) -> list[Spotting]:
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT plate_id, timestamp FROM spotting WHERE plate_id = ? ORDER BY timestamp",
                    (plate_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to read spottings for {plate_id}: {exc}") from exc
        return [Spotting(plate_id=row[0], timestamp=row[1]) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record_sighting(self, plate_id: str) -> str | None:
        try:
            with self._lock:
                with self._conn:
                    self._conn.execute("INSERT OR IGNORE INTO plate(id) VALUES (?)", (plate_id,))
                    self._conn.execute(
                        "INSERT INTO spotting(plate_id, timestamp) VALUES (?, ?)",
                        (plate_id, self._clock()),
                    )
                row = self._conn.execute("SELECT name FROM plate WHERE id = ?", (plate_id,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to record sighting of {plate_id}: {exc}") from exc
        return row[0] if row is not None else None

    def _update_name(self, plate_id: str, name: str) -> bool:
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute("UPDATE plate SET name = ? WHERE id = ?", (name, plate_id))
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to update plate {plate_id}: {exc}") from exc
        return cursor.rowcount > 0


class SharedPlateStore:
    """Serializes access to one gateway from the inbound and notifier paths.

    The blocking gateway calls run in the default executor while the lock
    is held, so at most one storage operation is in flight at a time.
    """

    def __init__(self, gateway: StorageGateway) -> None:
        self._gateway = gateway
        self._lock = asyncio.Lock()

    async def record_sighting(self, plate_id: str) -> str | None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self._gateway.record_sighting, plate_id)

    async def set_name(self, plate_id: str, name: str) -> None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._gateway.set_name, plate_id, name)
