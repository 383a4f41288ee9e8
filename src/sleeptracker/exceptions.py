"""Custom exception hierarchy for sleeptracker."""

from __future__ import annotations


class SleepTrackerError(Exception):
    """Base exception for all sleeptracker errors."""


class SleepTrackerConfigError(SleepTrackerError):
    """Invalid or missing configuration."""


class SleepTrackerStoreError(SleepTrackerError):
    """Persistence failure (database unavailable, constraint violation, ...)."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
    ) -> None:
        self.operation = operation
        super().__init__(message)


class SleepNightNotFoundError(SleepTrackerStoreError):
    """Update targeted a night id the store does not know."""

    def __init__(self, night_id: int | None, *, operation: str = "update") -> None:
        self.night_id = night_id
        super().__init__(f"Sleep night {night_id!r} not found", operation=operation)


class SleepTrackerClosedError(SleepTrackerError):
    """Action requested on a tracker that has already been closed.

    Raised by every user action once :meth:`SleepTracker.close` has run,
    since the task scope that would execute the action is cancelled.
    """
