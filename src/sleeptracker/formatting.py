"""Plain-text rendering of sleep nights for display."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo

from sleeptracker.models import SleepNight

TITLE = "Here is your sleep data"

_ONE_MINUTE_MILLIS = 60 * 1000
_ONE_HOUR_MILLIS = 60 * _ONE_MINUTE_MILLIS


def convert_milli_to_date_string(time_milli: int, tz: tzinfo = UTC) -> str:
    """Render an epoch-millisecond timestamp as e.g. ``Monday Jan-05-2026 Time: 22:41``."""
    moment = datetime.fromtimestamp(time_milli / 1000, tz=tz)
    return moment.strftime("%A %b-%d-%Y Time: %H:%M")


def convert_duration_to_formatted(start_time_milli: int, end_time_milli: int) -> str:
    """Short human duration between two timestamps, in the largest whole unit."""
    duration = end_time_milli - start_time_milli
    if duration < _ONE_MINUTE_MILLIS:
        return f"{duration // 1000} seconds"
    if duration < _ONE_HOUR_MILLIS:
        return f"{duration // _ONE_MINUTE_MILLIS} minutes"
    return f"{duration // _ONE_HOUR_MILLIS} hours"


def _hours_slept(duration_milli: int) -> str:
    seconds = duration_milli // 1000
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def format_nights(nights: Iterable[SleepNight], *, tz: tzinfo = UTC) -> str:
    """Render *nights* (in the order given) as a block of display text.

    An open night only shows its start time.
    """
    lines = [TITLE]
    for night in nights:
        lines.append("")
        lines.append(f"Start:\t{convert_milli_to_date_string(night.start_time_milli, tz)}")
        if night.is_open:
            continue
        lines.append(f"End:\t{convert_milli_to_date_string(night.end_time_milli, tz)}")
        lines.append(f"Quality:\t{night.quality.label}")
        lines.append(f"Hours slept:\t{_hours_slept(night.duration_milli)}")
    return "\n".join(lines)
