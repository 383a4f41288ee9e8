"""Observable values for the presentation layer.

A :class:`LiveValue` holds the latest value of some piece of UI state and
pushes every change to its subscribers.  :func:`map_signal` derives a new
value from an existing one; the derived value recomputes whenever its
source changes, so a UI only ever reads, never computes.

Subscribers are plain callables invoked synchronously on the thread (and
event loop) that performed the update.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class _Unset:
    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()
"""Marker for a :class:`LiveValue` that has never been assigned."""


class LiveValue(Generic[T]):
    """A value that notifies subscribers whenever it changes.

    Setting a value equal to the current one is not a change and does not
    notify.  A new subscriber immediately receives the current value
    unless the value is still :data:`UNSET`.
    """

    def __init__(self, value: T = UNSET, *, name: str = "") -> None:
        self._value: T = value
        self._name = name
        self._subscribers: list[Callable[[T], None]] = []
        self._bindings: list[Callable[[T], None]] = []

    def __repr__(self) -> str:
        label = f" {self._name}" if self._name else ""
        return f"<LiveValue{label} value={self._value!r}>"

    @property
    def value(self) -> T:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._value is not UNSET

    def set(self, value: T) -> None:
        """Assign *value*, notifying subscribers if it differs from the current one."""
        if self._value is not UNSET and self._value == value:
            return
        self._value = value
        self._notify()

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register *callback* and return a function that unregisters it."""
        self._subscribers.append(callback)
        if self._value is not UNSET:
            self._deliver(callback, self._value)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _bind(self, update: Callable[[T], None]) -> None:
        """Register a derived-value update.

        Unlike subscribers, bindings are not isolated: a failing update
        propagates out of :meth:`set` to whoever changed the value.
        """
        self._bindings.append(update)
        if self._value is not UNSET:
            update(self._value)

    def _notify(self) -> None:
        value = self._value
        for update in list(self._bindings):
            update(value)
        # Iterate over a copy: callbacks may unsubscribe themselves.
        for callback in list(self._subscribers):
            self._deliver(callback, value)

    def _deliver(self, callback: Callable[[T], None], value: T) -> None:
        try:
            callback(value)
        except Exception:
            _logger.debug("Subscriber of %r failed", self, exc_info=True)


def map_signal(source: LiveValue[T], transform: Callable[[T], R], *, name: str = "") -> LiveValue[R]:
    """Derive a :class:`LiveValue` from *source* through *transform*.

    The derived value stays :data:`UNSET` until *source* has a value, then
    tracks it for as long as *source* lives.  An exception raised by
    *transform* propagates out of the ``source.set`` call that triggered it
    and leaves the derived value unchanged.
    """
    derived: LiveValue[R] = LiveValue(name=name)
    source._bind(lambda value: derived.set(transform(value)))
    return derived
