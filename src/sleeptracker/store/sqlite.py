"""SQLite-backed night store.

``sqlite3`` is blocking, so every statement runs on a worker thread via
:func:`asyncio.to_thread`.  One connection is shared by all calls and
guarded by a lock; SQLite connections must not be used concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from sleeptracker.exceptions import SleepNightNotFoundError, SleepTrackerStoreError
from sleeptracker.models import SleepNight

_logger = logging.getLogger(__name__)

T = TypeVar("T")

TABLE_NAME = "daily_sleep_quality_table"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    nightId INTEGER PRIMARY KEY AUTOINCREMENT,
    start_time_milli INTEGER NOT NULL,
    end_time_milli INTEGER NOT NULL,
    quality_rating INTEGER NOT NULL DEFAULT -1
)
"""

_COLUMNS = "nightId, start_time_milli, end_time_milli, quality_rating"


def _row_to_night(row: sqlite3.Row) -> SleepNight:
    return SleepNight(
        night_id=row["nightId"],
        start_time_milli=row["start_time_milli"],
        end_time_milli=row["end_time_milli"],
        sleep_quality=row["quality_rating"],
    )


class SqliteSleepNightStore:
    """:class:`~sleeptracker.store.base.SleepNightStore` on an SQLite file.

    Parameters
    ----------
    path : str or Path
        Database file.  ``":memory:"`` gives a private in-memory database
        that lives as long as the store.
    timeout : float
        Seconds to wait on a locked database before failing.
    """

    def __init__(self, path: str | Path, *, timeout: float = 5.0) -> None:
        self._path = str(path)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def path(self) -> str:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        if self._closed:
            raise SleepTrackerStoreError("Store is closed", operation="connect")
        if self._conn is None:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._path, timeout=self._timeout, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute(_SCHEMA)
            conn.commit()
            self._conn = conn
            _logger.debug("Opened sleep database path=%s", self._path)
        return self._conn

    def _execute(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        with self._lock:
            conn = self._connect()
            try:
                with conn:
                    return fn(conn)
            except sqlite3.Error as exc:
                raise SleepTrackerStoreError(f"{operation} failed: {exc}", operation=operation) from exc

    async def _run(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        return await asyncio.to_thread(self._execute, operation, fn)

    async def insert(self, night: SleepNight) -> SleepNight:
        def _insert(conn: sqlite3.Connection) -> int:
            params: tuple[Any, ...]
            if night.night_id is None:
                sql = f"INSERT INTO {TABLE_NAME} (start_time_milli, end_time_milli, quality_rating) VALUES (?, ?, ?)"
                params = (night.start_time_milli, night.end_time_milli, night.sleep_quality)
            else:
                sql = f"INSERT INTO {TABLE_NAME} ({_COLUMNS}) VALUES (?, ?, ?, ?)"
                params = (night.night_id, night.start_time_milli, night.end_time_milli, night.sleep_quality)
            cursor = conn.execute(sql, params)
            return int(cursor.lastrowid or 0)

        night_id = await self._run("insert", _insert)
        _logger.debug("Inserted night id=%s", night_id)
        return night.model_copy(update={"night_id": night_id})

    async def update(self, night: SleepNight) -> None:
        if night.night_id is None:
            raise SleepNightNotFoundError(None)

        def _update(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                f"UPDATE {TABLE_NAME} SET start_time_milli = ?, end_time_milli = ?, quality_rating = ? "
                "WHERE nightId = ?",
                (night.start_time_milli, night.end_time_milli, night.sleep_quality, night.night_id),
            )
            return cursor.rowcount

        if await self._run("update", _update) == 0:
            raise SleepNightNotFoundError(night.night_id)
        _logger.debug("Updated night id=%s", night.night_id)

    async def get(self, night_id: int) -> SleepNight | None:
        def _get(conn: sqlite3.Connection) -> sqlite3.Row | None:
            return conn.execute(f"SELECT {_COLUMNS} FROM {TABLE_NAME} WHERE nightId = ?", (night_id,)).fetchone()

        row = await self._run("get", _get)
        return _row_to_night(row) if row is not None else None

    async def clear(self) -> None:
        def _clear(conn: sqlite3.Connection) -> int:
            return conn.execute(f"DELETE FROM {TABLE_NAME}").rowcount

        deleted = await self._run("clear", _clear)
        _logger.debug("Cleared %d night(s)", deleted)

    async def get_tonight(self) -> SleepNight | None:
        def _latest(conn: sqlite3.Connection) -> sqlite3.Row | None:
            return conn.execute(f"SELECT {_COLUMNS} FROM {TABLE_NAME} ORDER BY nightId DESC LIMIT 1").fetchone()

        row = await self._run("get_tonight", _latest)
        return _row_to_night(row) if row is not None else None

    async def get_all_nights(self) -> list[SleepNight]:
        def _all(conn: sqlite3.Connection) -> list[sqlite3.Row]:
            return conn.execute(f"SELECT {_COLUMNS} FROM {TABLE_NAME} ORDER BY nightId DESC").fetchall()

        rows = await self._run("get_all_nights", _all)
        return [_row_to_night(row) for row in rows]

    async def close(self) -> None:
        def _close() -> None:
            with self._lock:
                self._closed = True
                if self._conn is not None:
                    self._conn.close()
                    self._conn = None

        await asyncio.to_thread(_close)
        _logger.debug("Closed sleep database path=%s", self._path)
