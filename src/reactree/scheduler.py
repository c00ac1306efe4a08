"""Schedulers: who decides when "end of the current turn" is.

A store never flushes on its own clock. It hands a flush task to a scheduler
and the hosting application's loop runs it. Tests drive ticks by hand with
ManualScheduler; asyncio hosts use AsyncioScheduler; UI toolkits plug in
their own "call later" via CallbackScheduler.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Callable, Protocol

from reactree.errors import UnsettledError

logger = logging.getLogger("reactree.scheduler")

Task = Callable[[], None]


class Scheduler(Protocol):
    def enqueue(self, task: Task) -> None: ...


class ManualScheduler:
    """Queues tasks until the host calls run_pending()/run_until_idle()."""

    def __init__(self) -> None:
        self._queue: deque[Task] = deque()

    @property
    def pending_count(self) -> int:
        """Number of tasks waiting to run. Useful for testing."""
        return len(self._queue)

    def enqueue(self, task: Task) -> None:
        self._queue.append(task)

    def run_pending(self) -> int:
        """Run one tick: only tasks queued before this call. Returns how many ran.

        A task that raises ends the tick; the tasks after it stay queued.
        """
        batch = list(self._queue)
        self._queue.clear()
        ran = 0
        try:
            for task in batch:
                ran += 1
                task()
        finally:
            self._queue.extendleft(reversed(batch[ran:]))
        return ran

    def run_until_idle(self, max_ticks: int = 100) -> int:
        """Run ticks until nothing is queued. Returns the number of ticks."""
        ticks = 0
        while self._queue:
            if ticks >= max_ticks:
                raise UnsettledError(f"still busy after {max_ticks} ticks")
            self.run_pending()
            ticks += 1
        return ticks


class AsyncioScheduler:
    """Runs tasks with loop.call_soon, on the next pass of the event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def enqueue(self, task: Task) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_soon(task)


class CallbackScheduler:
    """Adapts any "call this later" function, e.g. App.call_later."""

    def __init__(self, call_later: Callable[[Task], object]) -> None:
        self._call_later = call_later

    def enqueue(self, task: Task) -> None:
        self._call_later(task)


def default_scheduler() -> Scheduler:
    """AsyncioScheduler on the running loop if there is one, else ManualScheduler."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop; flushes must be driven manually")
        return ManualScheduler()
    return AsyncioScheduler(loop)
