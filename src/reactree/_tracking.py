"""Dependency tracking, the heart of computed properties.

A compute function receives a root handle bound to a DependencyTracker. Every
read made through that handle (or any child of it) records its path key.
The tracker is an explicit object passed along the read path rather than an
ambient "current computation", so two computations never see each other's
reads, even when one is defined from inside the other.

Capture covers one synchronous call. A coroutine result is started eagerly
on the running loop, so the reads its body makes before the first await are
captured too; later reads are not.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any, Callable

from reactree.handle import PathHandle
from reactree.path import Path

if TYPE_CHECKING:
    from reactree.store import Store


class DependencyTracker:
    """Collects the path keys read during one computation window."""

    __slots__ = ("_keys", "_closed")

    def __init__(self) -> None:
        self._keys: dict[str, None] = {}  # ordered set
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dependencies(self) -> frozenset[str]:
        return frozenset(self._keys)

    def ordered(self) -> list[str]:
        """Dependencies in first-read order."""
        return list(self._keys)

    def record(self, path: Path) -> None:
        if not self._closed:
            self._keys[path.key] = None

    def close(self) -> None:
        self._closed = True


def _start_eagerly(coro: Any) -> asyncio.Task:
    """Run coro up to its first suspension now; the rest runs as a task."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        raise RuntimeError("async compute functions need a running event loop") from None
    return asyncio.eager_task_factory(loop, coro)


def track(store: Store, fn: Callable[[Any], Any]) -> tuple[Any, DependencyTracker]:
    """Call fn(root handle) and capture what it reads synchronously.

    A coroutine result comes back as an already started task. Exceptions from
    fn propagate; the tracker is closed either way.
    """
    tracker = DependencyTracker()
    try:
        result = fn(PathHandle(store, Path(), tracker))
        if inspect.iscoroutine(result):
            result = _start_eagerly(result)
    finally:
        tracker.close()
    return result, tracker
