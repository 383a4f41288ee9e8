"""Tracker configuration for sleeptracker."""

from __future__ import annotations

import dataclasses
import os
from datetime import UTC, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sleeptracker.exceptions import SleepTrackerConfigError


def _env_str(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclasses.dataclass(frozen=True)
class SleepTrackerConfig:
    """Tracker configuration.

    Parameters
    ----------
    database_path : str or None
        Path of the SQLite database file.  ``None`` selects the
        in-memory store (nothing survives the process).
    time_zone : str
        IANA time zone used when rendering night timestamps.
    sqlite_timeout : float
        Seconds SQLite waits on a locked database before failing.
    """

    database_path: str | None = None
    time_zone: str = "UTC"
    sqlite_timeout: float = 5.0

    def __post_init__(self) -> None:
        if self.sqlite_timeout < 0:
            raise SleepTrackerConfigError(f"sqlite_timeout must be >= 0, got {self.sqlite_timeout!r}")
        try:
            self.tz  # noqa: B018
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise SleepTrackerConfigError(f"Unknown time zone {self.time_zone!r}") from exc

    @property
    def tz(self) -> tzinfo:
        """The configured time zone as a ``tzinfo``."""
        if self.time_zone.upper() == "UTC":
            return UTC
        return ZoneInfo(self.time_zone)

    @classmethod
    def from_env(cls, **overrides: Any) -> SleepTrackerConfig:
        """Create configuration from environment variables.

        Reads ``SLEEPTRACKER_DATABASE_PATH``, ``SLEEPTRACKER_TIME_ZONE``
        and ``SLEEPTRACKER_SQLITE_TIMEOUT``.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SleepTrackerConfig
            Populated configuration.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        database_path = _env_str(env.get("SLEEPTRACKER_DATABASE_PATH"))
        if database_path is not None:
            config_kwargs["database_path"] = database_path

        time_zone = _env_str(env.get("SLEEPTRACKER_TIME_ZONE"))
        if time_zone is not None:
            config_kwargs["time_zone"] = time_zone

        # sqlite_timeout is numeric, handle separately
        timeout_env = _env_str(env.get("SLEEPTRACKER_SQLITE_TIMEOUT"))
        if timeout_env is not None and "sqlite_timeout" not in overrides:
            try:
                config_kwargs["sqlite_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise SleepTrackerConfigError(f"SLEEPTRACKER_SQLITE_TIMEOUT is not a number: {timeout_env!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
