from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from sleeptracker.config import SleepTrackerConfig
from sleeptracker.exceptions import SleepTrackerClosedError, SleepTrackerStoreError
from sleeptracker.models import SleepNight
from sleeptracker.store import InMemorySleepNightStore
from sleeptracker.tracker import SleepTracker


@dataclass
class FakeClock:
    now: int = 1_000_000
    step: int = 60_000

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@dataclass
class RecordingStore(InMemorySleepNightStore):
    """In-memory store that counts calls and can be told to fail or block."""

    calls: dict[str, int] = field(default_factory=dict)
    fail_on: str | None = None
    gate: asyncio.Event | None = None

    def __post_init__(self) -> None:
        InMemorySleepNightStore.__init__(self)

    async def _enter(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_on == name:
            raise SleepTrackerStoreError(f"{name} failed", operation=name)

    async def insert(self, night: SleepNight) -> SleepNight:
        await self._enter("insert")
        return await super().insert(night)

    async def update(self, night: SleepNight) -> None:
        await self._enter("update")
        await super().update(night)

    async def clear(self) -> None:
        await self._enter("clear")
        await super().clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.mark.asyncio
async def test_open_on_empty_store(store: RecordingStore, clock: FakeClock) -> None:
    async with SleepTracker(store, clock=clock) as tracker:
        assert tracker.tonight is None
        assert tracker.start_available.value is True
        assert tracker.stop_available.value is False
        assert tracker.clear_available.value is False
        assert tracker.navigation_target.value is None
        assert tracker.notification_pending.value is False
        assert tracker.nights.value == []


@pytest.mark.asyncio
async def test_signals_unset_before_open(store: RecordingStore) -> None:
    tracker = SleepTracker(store)
    assert not tracker.start_available.is_set
    assert tracker.tonight is None
    await tracker.close()


@pytest.mark.asyncio
async def test_open_picks_up_open_night(store: RecordingStore) -> None:
    await store.insert(SleepNight(start_time_milli=500))

    async with SleepTracker(store) as tracker:
        assert tracker.tonight is not None
        assert tracker.tonight.start_time_milli == 500
        assert tracker.stop_available.value is True
        assert tracker.start_available.value is False


@pytest.mark.asyncio
async def test_open_ignores_closed_latest_night(store: RecordingStore) -> None:
    await store.insert(SleepNight(start_time_milli=500, end_time_milli=900))

    async with SleepTracker(store) as tracker:
        assert tracker.tonight is None
        assert tracker.start_available.value is True
        assert tracker.clear_available.value is True


@pytest.mark.asyncio
async def test_start_then_stop_then_acknowledge(store: RecordingStore, clock: FakeClock) -> None:
    async with SleepTracker(store, clock=clock) as tracker:
        await tracker.start_tracking()

        nights = await store.get_all_nights()
        assert len(nights) == 1
        assert nights[0].is_open
        assert tracker.tonight == nights[0]
        assert tracker.start_available.value is False
        assert tracker.stop_available.value is True
        assert tracker.clear_available.value is True

        await tracker.stop_tracking()

        stopped = await store.get_tonight()
        assert stopped is not None
        assert stopped.end_time_milli > stopped.start_time_milli
        assert tracker.navigation_target.value == stopped
        assert tracker.tonight is None
        assert tracker.start_available.value is True
        assert tracker.stop_available.value is False

        tracker.acknowledge_navigation()
        assert tracker.navigation_target.value is None
        # Reading again without another stop still yields nothing.
        assert tracker.navigation_target.value is None


@pytest.mark.asyncio
async def test_navigation_target_delivered_once(store: RecordingStore, clock: FakeClock) -> None:
    async with SleepTracker(store, clock=clock) as tracker:
        targets: list[SleepNight | None] = []
        tracker.navigation_target.subscribe(targets.append)

        await tracker.start_tracking()
        await tracker.stop_tracking()
        tracker.acknowledge_navigation()
        await tracker.stop_tracking()  # nothing open any more

        assert len(targets) == 3
        assert targets[0] is None
        assert targets[1] is not None and not targets[1].is_open
        assert targets[2] is None


@pytest.mark.asyncio
async def test_stop_without_open_night_is_noop(store: RecordingStore) -> None:
    await store.insert(SleepNight(start_time_milli=500, end_time_milli=900))
    calls_before = dict(store.calls)

    async with SleepTracker(store) as tracker:
        before = (
            tracker.start_available.value,
            tracker.stop_available.value,
            tracker.clear_available.value,
            tracker.nights_text.value,
        )

        await tracker.stop_tracking()

        after = (
            tracker.start_available.value,
            tracker.stop_available.value,
            tracker.clear_available.value,
            tracker.nights_text.value,
        )
        assert after == before
        assert tracker.navigation_target.value is None
    assert store.calls == calls_before
    assert [night.end_time_milli for night in await store.get_all_nights()] == [900]


@pytest.mark.asyncio
async def test_repeated_start_keeps_single_open_night(store: RecordingStore, clock: FakeClock) -> None:
    async with SleepTracker(store, clock=clock) as tracker:
        await tracker.start_tracking()
        await tracker.start_tracking()
        await tracker.start_tracking()

        nights = await store.get_all_nights()
        assert len(nights) == 1
        assert store.calls["insert"] == 1
        assert sum(night.is_open for night in nights) == 1


@pytest.mark.asyncio
async def test_stop_in_same_millisecond_still_closes(store: RecordingStore) -> None:
    frozen = FakeClock(step=0)
    async with SleepTracker(store, clock=frozen) as tracker:
        await tracker.start_tracking()
        await tracker.stop_tracking()

        night = await store.get_tonight()
        assert night is not None
        assert not night.is_open
        assert tracker.start_available.value is True


@pytest.mark.asyncio
async def test_clear_all_resets_everything(store: RecordingStore, clock: FakeClock) -> None:
    await store.insert(SleepNight(start_time_milli=100, end_time_milli=200))
    await store.insert(SleepNight(start_time_milli=300))

    async with SleepTracker(store, clock=clock) as tracker:
        assert tracker.stop_available.value is True

        await tracker.clear_all()

        assert await store.get_all_nights() == []
        assert tracker.start_available.value is True
        assert tracker.stop_available.value is False
        assert tracker.clear_available.value is False
        assert tracker.notification_pending.value is True

        tracker.acknowledge_notification()
        assert tracker.notification_pending.value is False


@pytest.mark.asyncio
async def test_clear_after_arbitrary_actions(store: RecordingStore, clock: FakeClock) -> None:
    async with SleepTracker(store, clock=clock) as tracker:
        for action in (
            tracker.start_tracking,
            tracker.stop_tracking,
            tracker.start_tracking,
            tracker.clear_all,
            tracker.start_tracking,
        ):
            action()
        tracker.clear_all()
        await tracker.join()

        assert tracker.start_available.value is True
        assert tracker.stop_available.value is False
        assert tracker.clear_available.value is False


@pytest.mark.asyncio
async def test_actions_run_in_call_order(store: RecordingStore, clock: FakeClock) -> None:
    async with SleepTracker(store, clock=clock) as tracker:
        start = tracker.start_tracking()
        stop = tracker.stop_tracking()
        await asyncio.gather(start, stop)

        nights = await store.get_all_nights()
        assert len(nights) == 1
        assert not nights[0].is_open
        assert tracker.navigation_target.value == nights[0]


@pytest.mark.asyncio
async def test_nights_text_follows_store(store: RecordingStore, clock: FakeClock) -> None:
    rendered: list[int] = []

    def _formatter(nights: list[SleepNight]) -> str:
        rendered.append(len(nights))
        return f"{len(nights)} night(s)"

    async with SleepTracker(store, clock=clock, formatter=_formatter) as tracker:
        assert tracker.nights_text.value == "0 night(s)"
        await tracker.start_tracking()
        assert tracker.nights_text.value == "1 night(s)"
        await tracker.clear_all()
        assert tracker.nights_text.value == "0 night(s)"

    assert rendered == [0, 1, 0]


@pytest.mark.asyncio
async def test_formatter_failure_fails_the_action(store: RecordingStore, clock: FakeClock) -> None:
    def _formatter(nights: list[SleepNight]) -> str:
        if nights:
            raise RuntimeError("cannot render")
        return "no nights"

    async with SleepTracker(store, clock=clock, formatter=_formatter) as tracker:
        with pytest.raises(RuntimeError, match="cannot render"):
            await tracker.start_tracking()

        assert len(tracker.nights.value) == 1
        assert tracker.nights_text.value == "no nights"

        # The lock was released, so later actions still run.
        await tracker.clear_all()
        assert tracker.nights_text.value == "no nights"
        assert tracker.notification_pending.value is True


@pytest.mark.asyncio
async def test_store_failure_propagates_to_awaiting_caller(store: RecordingStore, clock: FakeClock) -> None:
    async with SleepTracker(store, clock=clock) as tracker:
        store.fail_on = "insert"

        with pytest.raises(SleepTrackerStoreError):
            await tracker.start_tracking()

        assert tracker.start_available.value is True
        assert await store.get_all_nights() == []

        # A failed action does not wedge later ones.
        store.fail_on = None
        await tracker.start_tracking()
        assert tracker.stop_available.value is True


@pytest.mark.asyncio
async def test_close_cancels_in_flight_actions(store: RecordingStore, clock: FakeClock) -> None:
    tracker = await SleepTracker(store, clock=clock).open()
    store.gate = asyncio.Event()

    pending = tracker.start_tracking()
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert store.calls.get("insert") == 1

    await tracker.close()
    await tracker.close()

    assert pending.cancelled()
    assert tracker.is_closed
    assert await store.get_all_nights() == []
    with pytest.raises(SleepTrackerClosedError):
        tracker.start_tracking()
    with pytest.raises(SleepTrackerClosedError):
        tracker.clear_all()


@pytest.mark.asyncio
async def test_actions_before_open_load_state_first(store: RecordingStore, clock: FakeClock) -> None:
    await store.insert(SleepNight(start_time_milli=500))
    tracker = SleepTracker(store, clock=clock)
    try:
        await tracker.start_tracking()
        # The stored open night was loaded first, so nothing new was inserted.
        assert store.calls.get("insert", 0) == 1
        assert tracker.stop_available.value is True
    finally:
        await tracker.close()


@pytest.mark.asyncio
async def test_from_config_survives_restart(tmp_path: Path, clock: FakeClock) -> None:
    config = SleepTrackerConfig(database_path=str(tmp_path / "sleep.db"))

    async with SleepTracker.from_config(config, clock=clock) as tracker:
        await tracker.start_tracking()

    async with SleepTracker.from_config(config, clock=clock) as tracker:
        assert tracker.stop_available.value is True
        await tracker.stop_tracking()
        assert tracker.navigation_target.value is not None
        assert "Hours slept:" in tracker.nights_text.value

    async with SleepTracker.from_config(config, clock=clock) as tracker:
        assert tracker.start_available.value is True
        assert tracker.clear_available.value is True
