"""Sleep night record and quality rating.

A night is *open* (tracking in progress) while its end timestamp equals
its start timestamp.  There is no separate flag: stopping a night moves
the end timestamp forward, and that alone closes it.
"""

from __future__ import annotations

import enum
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def now_milli() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class SleepQuality(enum.IntEnum):
    """Quality rating a user gives a night after waking up.

    Values without a mapped member resolve to ``UNRATED``.
    """

    UNRATED = -1
    VERY_BAD = 0
    POOR = 1
    SO_SO = 2
    OK = 3
    PRETTY_GOOD = 4
    EXCELLENT = 5

    @classmethod
    def _missing_(cls, value: object) -> SleepQuality:
        return cls.UNRATED

    @property
    def label(self) -> str:
        return _QUALITY_LABELS[self]


_QUALITY_LABELS: dict[SleepQuality, str] = {
    SleepQuality.UNRATED: "--",
    SleepQuality.VERY_BAD: "Very bad",
    SleepQuality.POOR: "Poor",
    SleepQuality.SO_SO: "So-so",
    SleepQuality.OK: "OK",
    SleepQuality.PRETTY_GOOD: "Pretty good",
    SleepQuality.EXCELLENT: "Excellent",
}


class SleepNight(BaseModel):
    """One tracked sleep interval.

    Parameters
    ----------
    night_id : int or None
        Identifier assigned by the store on insert.  ``None`` until the
        night has been persisted.
    start_time_milli : int
        Epoch milliseconds when tracking started.
    end_time_milli : int
        Epoch milliseconds when tracking stopped.  Equal to
        ``start_time_milli`` while the night is still open, which is also
        what omitting it gives.
    sleep_quality : int
        Rating on the :class:`SleepQuality` scale, ``-1`` until rated.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    night_id: int | None = None
    start_time_milli: int = Field(default_factory=now_milli)
    end_time_milli: int
    sleep_quality: int = -1

    @model_validator(mode="before")
    @classmethod
    def _default_end_to_start(cls, values: Any) -> Any:
        # A fresh night is open: a missing or None end defaults to start.
        if not isinstance(values, dict) or values.get("end_time_milli") is not None:
            return values
        merged = dict(values)
        if merged.get("start_time_milli") is None:
            merged["start_time_milli"] = now_milli()
        merged["end_time_milli"] = merged["start_time_milli"]
        return merged

    @model_validator(mode="after")
    def _check_order(self) -> SleepNight:
        if self.end_time_milli < self.start_time_milli:
            raise ValueError("end_time_milli must not precede start_time_milli")
        return self

    @property
    def is_open(self) -> bool:
        """Whether tracking for this night is still in progress."""
        return self.end_time_milli == self.start_time_milli

    @property
    def duration_milli(self) -> int:
        return self.end_time_milli - self.start_time_milli

    @property
    def quality(self) -> SleepQuality:
        return SleepQuality(self.sleep_quality)

    def stopped_at(self, end_time_milli: int) -> SleepNight:
        """Return a closed copy of this night ending at *end_time_milli*.

        The end is clamped to at least one millisecond after the start so
        that a closed night can never read as open.
        """
        end = max(end_time_milli, self.start_time_milli + 1)
        return self.model_copy(update={"end_time_milli": end})
