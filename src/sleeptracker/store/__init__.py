"""Night persistence.

The tracker only talks to :class:`SleepNightStore`; the concrete stores
here are interchangeable behind it.
"""

from __future__ import annotations

from sleeptracker.config import SleepTrackerConfig
from sleeptracker.store.base import SleepNightStore
from sleeptracker.store.memory import InMemorySleepNightStore
from sleeptracker.store.sqlite import SqliteSleepNightStore


def create_store(config: SleepTrackerConfig) -> SleepNightStore:
    """Build the store *config* asks for: SQLite when a path is set, else in-memory."""
    if config.database_path is None:
        return InMemorySleepNightStore()
    return SqliteSleepNightStore(config.database_path, timeout=config.sqlite_timeout)


__all__ = [
    "InMemorySleepNightStore",
    "SleepNightStore",
    "SqliteSleepNightStore",
    "create_store",
]
