"""Task scope bound to the lifetime of an owner object.

Every coroutine launched through a :class:`TaskScope` is tracked until it
finishes.  Cancelling the scope cancels everything still running and
refuses new work, so an owner can tear down all of its background
activity in one call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

from sleeptracker.exceptions import SleepTrackerClosedError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskScope:
    """Cancellation scope for fire-and-forget tasks.

    The scope never retrieves a task's exception itself: a failure is
    re-raised to whoever awaits the task returned by :meth:`launch`, and
    a failure nobody awaits is reported by asyncio's own
    "exception was never retrieved" handling.
    """

    def __init__(self, name: str = "scope") -> None:
        self._name = name
        self._tasks: set[asyncio.Task[Any]] = set()
        self._cancelled = False

    def __repr__(self) -> str:
        return f"<TaskScope {self._name} active={len(self._tasks)} cancelled={self._cancelled}>"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> int:
        """Number of launched tasks that have not finished yet."""
        return len(self._tasks)

    def launch(self, coro: Coroutine[Any, Any, T], *, name: str | None = None) -> asyncio.Task[T]:
        """Schedule *coro* on the running loop as a task owned by this scope."""
        if self._cancelled:
            coro.close()
            raise SleepTrackerClosedError(f"Task scope {self._name!r} has been cancelled")
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def join(self) -> None:
        """Wait until every task launched so far (and any they launch) has finished.

        Failures are not raised here; they surface through the tasks
        themselves.
        """
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    def cancel(self) -> None:
        """Cancel all outstanding tasks.  Only the first call has an effect."""
        if self._cancelled:
            return
        self._cancelled = True
        pending = [task for task in self._tasks if not task.done()]
        _logger.debug("Cancelling scope %s with %d pending task(s)", self._name, len(pending))
        for task in pending:
            task.cancel()
