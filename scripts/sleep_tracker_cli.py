#!/usr/bin/env python3
"""Drive a sleep tracker from the command line.

Each invocation opens the tracker on the configured database, performs
one action, prints the resulting state and exits.  Because the database
persists between runs, ``start`` in one run and ``stop`` in the next
behave like pressing the buttons in the app.

Usage
-----
::

    export SLEEPTRACKER_DATABASE_PATH="$HOME/.local/share/sleep.db"
    python scripts/sleep_tracker_cli.py start
    python scripts/sleep_tracker_cli.py stop
    python scripts/sleep_tracker_cli.py show --json

Options::

    --database PATH     Override SLEEPTRACKER_DATABASE_PATH
    --time-zone ZONE    Override SLEEPTRACKER_TIME_ZONE
    --json              Output machine-readable JSON
    --verbose, -v       Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from sleeptracker import SleepTracker, SleepTrackerConfig, SleepTrackerError  # noqa: E402
from sleeptracker.formatting import convert_duration_to_formatted  # noqa: E402


def _state(tracker: SleepTracker) -> dict[str, Any]:
    target = tracker.navigation_target.value
    return {
        "tonight": tracker.tonight.model_dump() if tracker.tonight is not None else None,
        "start_available": tracker.start_available.value,
        "stop_available": tracker.stop_available.value,
        "clear_available": tracker.clear_available.value,
        "just_stopped": target.model_dump() if target is not None else None,
        "just_stopped_duration": (
            convert_duration_to_formatted(target.start_time_milli, target.end_time_milli) if target is not None else None
        ),
        "cleared": tracker.notification_pending.value,
        "nights": [night.model_dump() for night in tracker.nights.value],
    }


async def run(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {}
    if args.database:
        overrides["database_path"] = args.database
    if args.time_zone:
        overrides["time_zone"] = args.time_zone
    config = SleepTrackerConfig.from_env(**overrides)
    if config.database_path is None:
        print("warning: no database configured, nothing will be kept", file=sys.stderr)

    async with SleepTracker.from_config(config) as tracker:
        if args.action == "start":
            if not tracker.start_available.value:
                print("A night is already being tracked.", file=sys.stderr)
            await tracker.start_tracking()
        elif args.action == "stop":
            if not tracker.stop_available.value:
                print("No night is being tracked.", file=sys.stderr)
            await tracker.stop_tracking()
        elif args.action == "clear":
            await tracker.clear_all()

        if args.json_mode:
            print(json.dumps(_state(tracker), indent=2))
        else:
            print(tracker.nights_text.value)
            target = tracker.navigation_target.value
            if target is not None:
                slept = convert_duration_to_formatted(target.start_time_milli, target.end_time_milli)
                print(f"\nNight recorded, you slept {slept}. Rate it in the app.")
                tracker.acknowledge_navigation()
            if tracker.notification_pending.value:
                print("\nAll sleep data has been deleted.")
                tracker.acknowledge_notification()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Start, stop or clear sleep tracking.")
    parser.add_argument("action", choices=["start", "stop", "clear", "show"])
    parser.add_argument("--database", help="SQLite database file (default: SLEEPTRACKER_DATABASE_PATH)")
    parser.add_argument("--time-zone", help="IANA time zone for displayed times")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        sys.exit(asyncio.run(run(args)))
    except SleepTrackerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
