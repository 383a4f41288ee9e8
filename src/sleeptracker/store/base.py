"""Store contract the tracker relies on."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sleeptracker.models import SleepNight


@runtime_checkable
class SleepNightStore(Protocol):
    """Persistence for :class:`SleepNight` records.

    Implementations order nights by identifier, so "latest" means the
    most recently inserted night.
    """

    async def insert(self, night: SleepNight) -> SleepNight:
        """Persist *night* and return it with its assigned ``night_id``."""

    async def update(self, night: SleepNight) -> None:
        """Replace the stored night that has the same ``night_id``."""

    async def get(self, night_id: int) -> SleepNight | None:
        """Return the night with *night_id*, or ``None``."""

    async def clear(self) -> None:
        """Delete every night."""

    async def get_tonight(self) -> SleepNight | None:
        """Return the most recently inserted night, or ``None`` when empty."""

    async def get_all_nights(self) -> list[SleepNight]:
        """Return all nights, newest first."""

    async def close(self) -> None:
        """Release any resources held by the store."""
