from __future__ import annotations

import pytest

from sleeptracker.signals import UNSET, LiveValue, map_signal


def test_unset_value_does_not_deliver_on_subscribe() -> None:
    live: LiveValue[int] = LiveValue()
    seen: list[int] = []

    live.subscribe(seen.append)

    assert live.value is UNSET
    assert not live.is_set
    assert seen == []


def test_subscriber_gets_current_value_then_changes() -> None:
    live = LiveValue(1)
    seen: list[int] = []

    live.subscribe(seen.append)
    live.set(2)
    live.set(3)

    assert seen == [1, 2, 3]


def test_equal_value_does_not_notify() -> None:
    live = LiveValue(False)
    seen: list[bool] = []
    live.subscribe(seen.append)

    live.set(False)
    live.set(True)
    live.set(True)

    assert seen == [False, True]


def test_unsubscribe_stops_delivery() -> None:
    live = LiveValue(0)
    seen: list[int] = []
    unsubscribe = live.subscribe(seen.append)

    unsubscribe()
    unsubscribe()  # second call is harmless
    live.set(5)

    assert seen == [0]
    assert live.subscriber_count == 0


def test_failing_subscriber_does_not_block_others() -> None:
    live = LiveValue(0)
    seen: list[int] = []

    def _boom(_value: int) -> None:
        raise RuntimeError("subscriber bug")

    live.subscribe(_boom)
    live.subscribe(seen.append)
    live.set(7)

    assert seen == [0, 7]
    assert live.value == 7


def test_map_signal_tracks_source() -> None:
    source: LiveValue[str | None] = LiveValue()
    derived = map_signal(source, lambda value: value is None)

    assert not derived.is_set

    source.set(None)
    assert derived.value is True

    source.set("night")
    assert derived.value is False


def test_map_signal_only_notifies_on_derived_change() -> None:
    source = LiveValue([1])
    derived = map_signal(source, lambda values: len(values) > 0)
    seen: list[bool] = []
    derived.subscribe(seen.append)

    source.set([1, 2])
    source.set([])

    assert seen == [True, False]


def test_map_signal_transform_failure_reaches_setter() -> None:
    source = LiveValue(1)
    seen: list[int] = []
    source.subscribe(seen.append)

    def _reject_negative(value: int) -> str:
        if value < 0:
            raise ValueError("negative")
        return str(value)

    derived = map_signal(source, _reject_negative)

    with pytest.raises(ValueError, match="negative"):
        source.set(-1)

    assert source.value == -1
    assert derived.value == "1"
    assert seen == [1]

    source.set(2)
    assert derived.value == "2"
    assert seen == [1, 2]
