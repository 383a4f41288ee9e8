"""Sleep tracking state coordinator.

:class:`SleepTracker` sits between a UI and a :class:`SleepNightStore`.
User actions (start, stop, clear) are scheduled as tasks in the
tracker's own :class:`TaskScope`; each one writes to the store, reloads
what it changed, and republishes the observable state the UI binds to.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Coroutine, Sequence
from typing import Any

from sleeptracker.config import SleepTrackerConfig
from sleeptracker.formatting import format_nights
from sleeptracker.models import SleepNight, now_milli
from sleeptracker.signals import LiveValue, map_signal
from sleeptracker.store import SleepNightStore, create_store
from sleeptracker.tasks import TaskScope

_logger = logging.getLogger(__name__)

NightsFormatter = Callable[[Sequence[SleepNight]], str]


class SleepTracker:
    """Observable state and user actions for tracking one night at a time.

    Usage::

        async with SleepTracker(store) as tracker:
            tracker.stop_available.subscribe(render_stop_button)
            await tracker.start_tracking()

    Actions return the scheduled :class:`asyncio.Task`; awaiting it is
    optional.  Actions run one at a time, in the order they were called.

    Parameters
    ----------
    store : SleepNightStore
        Where nights are persisted.
    formatter : callable, optional
        Renders the night list for :attr:`nights_text`.  Defaults to
        :func:`~sleeptracker.formatting.format_nights`.
    clock : callable, optional
        Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        store: SleepNightStore,
        *,
        formatter: NightsFormatter | None = None,
        clock: Callable[[], int] = now_milli,
    ) -> None:
        self._store = store
        self._owns_store = False
        self._clock = clock
        self._formatter: NightsFormatter = formatter or format_nights
        self._scope = TaskScope("sleep-tracker")
        self._lock = asyncio.Lock()
        self._initialized = False
        self._opened = False

        self._tonight: LiveValue[SleepNight | None] = LiveValue(name="tonight")
        self._nights: LiveValue[list[SleepNight]] = LiveValue(name="nights")
        self._navigation_target: LiveValue[SleepNight | None] = LiveValue(None, name="navigation_target")
        self._notification_pending: LiveValue[bool] = LiveValue(False, name="notification_pending")

        self._start_available = map_signal(self._tonight, lambda night: night is None, name="start_available")
        self._stop_available = map_signal(self._tonight, lambda night: night is not None, name="stop_available")
        self._clear_available = map_signal(self._nights, lambda nights: len(nights) > 0, name="clear_available")
        self._nights_text = map_signal(self._nights, self._formatter, name="nights_text")

    @classmethod
    def from_config(cls, config: SleepTrackerConfig, *, clock: Callable[[], int] = now_milli) -> SleepTracker:
        """Build a tracker on the store *config* describes.

        The tracker owns that store and closes it in :meth:`close`.
        """
        tracker = cls(
            create_store(config),
            formatter=functools.partial(format_nights, tz=config.tz),
            clock=clock,
        )
        tracker._owns_store = True
        return tracker

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SleepTracker:
        return await self.open()

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def open(self) -> SleepTracker:
        """Load tonight and the night list from the store.  Runs once."""
        if not self._opened:
            self._opened = True
            await self._launch(self._initialize(), "initialize")
        return self

    async def join(self) -> None:
        """Wait for every action scheduled so far to finish."""
        await self._scope.join()

    async def close(self) -> None:
        """Cancel all outstanding work.  Further actions raise :class:`~sleeptracker.exceptions.SleepTrackerClosedError`."""
        if self._scope.cancelled:
            return
        self._scope.cancel()
        await self._scope.join()
        if self._owns_store:
            await self._store.close()
        _logger.debug("Sleep tracker closed")

    @property
    def is_closed(self) -> bool:
        return self._scope.cancelled

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def start_available(self) -> LiveValue[bool]:
        """``True`` while no night is being tracked."""
        return self._start_available

    @property
    def stop_available(self) -> LiveValue[bool]:
        """``True`` while a night is being tracked."""
        return self._stop_available

    @property
    def clear_available(self) -> LiveValue[bool]:
        """``True`` when the store holds at least one night."""
        return self._clear_available

    @property
    def nights_text(self) -> LiveValue[str]:
        return self._nights_text

    @property
    def nights(self) -> LiveValue[list[SleepNight]]:
        """All nights, newest first."""
        return self._nights

    @property
    def navigation_target(self) -> LiveValue[SleepNight | None]:
        """The night that was just stopped, until :meth:`acknowledge_navigation`."""
        return self._navigation_target

    @property
    def notification_pending(self) -> LiveValue[bool]:
        """Set after a clear, until :meth:`acknowledge_notification`."""
        return self._notification_pending

    @property
    def tonight(self) -> SleepNight | None:
        """The night currently being tracked, if any."""
        return self._tonight.value if self._tonight.is_set else None

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def start_tracking(self) -> asyncio.Task[None]:
        """Open a new night starting now.  Ignored while a night is already open."""
        return self._launch(self._start_tracking(), "start_tracking")

    def stop_tracking(self) -> asyncio.Task[None]:
        """Close the open night now.  Does nothing when no night is open."""
        return self._launch(self._stop_tracking(), "stop_tracking")

    def clear_all(self) -> asyncio.Task[None]:
        """Delete every night and raise the notification flag."""
        return self._launch(self._clear_all(), "clear_all")

    def acknowledge_navigation(self) -> None:
        self._navigation_target.set(None)

    def acknowledge_notification(self) -> None:
        self._notification_pending.set(False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _launch(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[None]:
        return self._scope.launch(coro, name=f"sleep-tracker-{name}")

    async def _tonight_from_store(self) -> SleepNight | None:
        night = await self._store.get_tonight()
        if night is not None and not night.is_open:
            # The latest night is already finished; nothing is being tracked.
            night = None
        return night

    async def _refresh_nights(self) -> None:
        self._nights.set(await self._store.get_all_nights())

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        self._tonight.set(await self._tonight_from_store())
        await self._refresh_nights()
        self._initialized = True
        _logger.debug("Sleep tracker initialized tonight=%s", self.tonight)

    async def _initialize(self) -> None:
        async with self._lock:
            await self._ensure_initialized()

    async def _start_tracking(self) -> None:
        async with self._lock:
            await self._ensure_initialized()
            current = self._tonight.value
            if current is not None:
                _logger.debug("Start ignored, night id=%s is already open", current.night_id)
                return
            start = self._clock()
            await self._store.insert(SleepNight(start_time_milli=start, end_time_milli=start))
            self._tonight.set(await self._tonight_from_store())
            await self._refresh_nights()
            _logger.debug("Started tracking night=%s", self.tonight)

    async def _stop_tracking(self) -> None:
        async with self._lock:
            await self._ensure_initialized()
            current = self._tonight.value
            if current is None:
                return
            stopped = current.stopped_at(self._clock())
            await self._store.update(stopped)
            self._tonight.set(await self._tonight_from_store())
            await self._refresh_nights()
            _logger.debug("Stopped tracking night id=%s", stopped.night_id)
            self._navigation_target.set(stopped)

    async def _clear_all(self) -> None:
        async with self._lock:
            await self._store.clear()
            self._tonight.set(None)
            self._initialized = True
            await self._refresh_nights()
            _logger.debug("Cleared all nights")
            self._notification_pending.set(True)
