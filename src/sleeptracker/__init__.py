"""sleeptracker - Async state coordinator for sleep tracking UIs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sleeptracker")
except PackageNotFoundError:
    __version__ = "0+local"
from sleeptracker.config import SleepTrackerConfig
from sleeptracker.exceptions import (
    SleepNightNotFoundError,
    SleepTrackerClosedError,
    SleepTrackerConfigError,
    SleepTrackerError,
    SleepTrackerStoreError,
)
from sleeptracker.formatting import format_nights
from sleeptracker.models import SleepNight, SleepQuality
from sleeptracker.signals import LiveValue, map_signal
from sleeptracker.store import InMemorySleepNightStore, SleepNightStore, SqliteSleepNightStore, create_store
from sleeptracker.tracker import SleepTracker

__all__ = [
    "__version__",
    "InMemorySleepNightStore",
    "LiveValue",
    "SleepNight",
    "SleepNightNotFoundError",
    "SleepNightStore",
    "SleepQuality",
    "SleepTracker",
    "SleepTrackerClosedError",
    "SleepTrackerConfig",
    "SleepTrackerConfigError",
    "SleepTrackerError",
    "SleepTrackerStoreError",
    "SqliteSleepNightStore",
    "create_store",
    "format_nights",
    "map_signal",
]
