"""Process-local store, used for tests and when no database is configured."""

from __future__ import annotations

import logging

from sleeptracker.exceptions import SleepNightNotFoundError, SleepTrackerStoreError
from sleeptracker.models import SleepNight

_logger = logging.getLogger(__name__)


class InMemorySleepNightStore:
    """Dict-backed :class:`~sleeptracker.store.base.SleepNightStore`.

    Identifiers are assigned from a counter that is never reset, so ids
    stay unique across :meth:`clear` calls just like an SQLite rowid
    with ``AUTOINCREMENT``.
    """

    def __init__(self, nights: list[SleepNight] | None = None) -> None:
        self._nights: dict[int, SleepNight] = {}
        self._next_id = 1
        for night in nights or []:
            self._put_new(night)

    def _put_new(self, night: SleepNight) -> SleepNight:
        # Seeding renumbers colliding ids; insert() rejects them instead.
        night_id = night.night_id
        if night_id is None or night_id in self._nights:
            night_id = self._next_id
        stored = night.model_copy(update={"night_id": night_id})
        self._nights[night_id] = stored
        self._next_id = max(self._next_id, night_id + 1)
        return stored

    async def insert(self, night: SleepNight) -> SleepNight:
        if night.night_id is not None and night.night_id in self._nights:
            raise SleepTrackerStoreError(f"insert failed: night {night.night_id} already exists", operation="insert")
        stored = self._put_new(night)
        _logger.debug("Inserted night id=%s", stored.night_id)
        return stored

    async def update(self, night: SleepNight) -> None:
        if night.night_id is None or night.night_id not in self._nights:
            raise SleepNightNotFoundError(night.night_id)
        self._nights[night.night_id] = night
        _logger.debug("Updated night id=%s", night.night_id)

    async def get(self, night_id: int) -> SleepNight | None:
        return self._nights.get(night_id)

    async def clear(self) -> None:
        _logger.debug("Clearing %d night(s)", len(self._nights))
        self._nights.clear()

    async def get_tonight(self) -> SleepNight | None:
        if not self._nights:
            return None
        return self._nights[max(self._nights)]

    async def get_all_nights(self) -> list[SleepNight]:
        return [self._nights[night_id] for night_id in sorted(self._nights, reverse=True)]

    async def close(self) -> None:
        return None
