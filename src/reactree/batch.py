"""Notification batching: one flush per turn, however many writes.

notify(path) queues an entry for the written path, every ancestor prefix and
the root, all tagged with the path that actually changed. The first notify of
a turn hands a flush to the scheduler; later ones in the same turn only add
entries. The flush reads values fresh, so every callback sees all writes made
during the turn.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, NamedTuple

from reactree._anchor import MISSING, Anchor
from reactree.path import Path
from reactree.scheduler import Scheduler

logger = logging.getLogger("reactree.batch")


class PendingNotification(NamedTuple):
    queue_key: str
    update_path: Path


class NotificationBatcher:
    """Accumulates pending notifications and delivers them in one pass."""

    def __init__(
        self,
        anchor: Anchor,
        scheduler: Scheduler,
        read: Callable[[Path], Any],
    ) -> None:
        self._anchor = anchor
        self._scheduler = scheduler
        self._read = read
        # Keyed by (queue key, update key): a path written twice in one turn
        # notifies each listener once; distinct update paths never merge.
        self._pending: dict[tuple[str, str], PendingNotification] = {}
        self._scheduled = False

    @property
    def scheduled(self) -> bool:
        return self._scheduled

    @property
    def pending_count(self) -> int:
        """Number of queued notifications. Useful for testing."""
        return len(self._pending)

    def notify(self, path: Path) -> None:
        update_key = path.key
        for prefix in path.prefixes():
            queue_key = prefix.key
            self._pending.setdefault(
                (queue_key, update_key), PendingNotification(queue_key, path)
            )
        logger.debug("Queued %s (%d pending)", update_key or "<root>", len(self._pending))
        if not self._scheduled:
            self._scheduled = True
            self._scheduler.enqueue(self.flush)

    def flush(self) -> int:
        """Deliver everything queued so far. Returns the number of callbacks run.

        Notifications raised by callbacks belong to the next flush. If a
        callback raises, the entry it was serving is dropped and the entries
        after it go back to the front of the queue for another flush.
        """
        self._scheduled = False
        batch = list(self._pending.items())
        self._pending.clear()

        calls = 0
        done = 0
        try:
            for _, entry in batch:
                done += 1
                callbacks = self._anchor.listeners_for(entry.queue_key)
                if not callbacks:
                    continue
                value = self._read(entry.update_path)
                if value is MISSING:
                    value = None
                for callback in callbacks:
                    callback(value, entry.update_path)
                    calls += 1
        finally:
            if done < len(batch):
                self._requeue(batch[done:])
        if batch:
            logger.debug("Flushed %d notifications, %d callbacks", len(batch), calls)
        return calls

    def _requeue(self, rest: list[tuple[tuple[str, str], PendingNotification]]) -> None:
        logger.debug("Flush interrupted; requeueing %d notifications", len(rest))
        self._pending = {**dict(rest), **self._pending}
        if not self._scheduled:
            self._scheduled = True
            self._scheduler.enqueue(self.flush)
