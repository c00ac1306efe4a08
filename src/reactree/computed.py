"""Computed properties — tree values derived from other tree values.

Assigning a callable to a path defines a computed property there. The
function is called with a tracking root handle; the paths it reads become its
dependencies, and a change to any of them re-runs it against the live store.

Dependencies are rebuilt on every run: a function that stops reading a path
stops being subscribed to it.

Awaitable results are written when they resolve. Each run bumps a generation
counter, and a result that resolves after a newer run has started is dropped
instead of overwriting the newer value.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable

from reactree._tracking import track
from reactree.errors import ComputeError
from reactree.path import Path

if TYPE_CHECKING:
    from reactree.store import Store

logger = logging.getLogger("reactree.computed")

ComputeFn = Callable[[Any], Any]


class ComputedMeta:
    """What the store knows about one computed path. Read-only for callers."""

    __slots__ = (
        "path",
        "compute_fn",
        "dependencies",
        "is_async",
        "generation",
        "last_value",
        "error",
    )

    def __init__(self, path: Path, compute_fn: ComputeFn) -> None:
        self.path = path
        self.compute_fn = compute_fn
        self.dependencies: frozenset[str] = frozenset()
        self.is_async = False
        self.generation = 0
        self.last_value: Any = None
        self.error: BaseException | None = None

    def __repr__(self) -> str:
        deps = ", ".join(sorted(self.dependencies))
        return f"ComputedMeta({self.path.key!r}, deps=[{deps}], async={self.is_async})"


class ComputedProperty:
    """Owns one computed path: evaluation, subscriptions, async results."""

    __slots__ = ("_store", "meta", "_unsubscribers", "_callback", "_disposed")

    def __init__(self, store: Store, path: Path, fn: ComputeFn) -> None:
        self._store = store
        self.meta = ComputedMeta(path, fn)
        self._unsubscribers: dict[str, Callable[[], None]] = {}
        # One callback object for the property's lifetime.
        self._callback = self._on_dependency_changed
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def start(self) -> None:
        """First evaluation. Failures propagate to whoever assigned the function."""
        self._evaluate()

    def _evaluate(self) -> None:
        meta = self.meta
        result, tracker = track(self._store, meta.compute_fn)
        meta.generation += 1
        meta.error = None
        self._rewire(tracker.ordered())

        if inspect.isawaitable(result):
            meta.is_async = True
            self._await(result, meta.generation)
        else:
            meta.is_async = False
            self._commit(result)

    def _rewire(self, keys: list[str]) -> None:
        """Subscribe to exactly keys, dropping edges from the previous run."""
        own = self.meta.path.key
        wanted = [k for k in keys if k != own]
        for key in list(self._unsubscribers):
            if key not in wanted:
                self._unsubscribers.pop(key)()
        for key in wanted:
            if key not in self._unsubscribers:
                self._unsubscribers[key] = self._store._subscribe(
                    Path.parse(key), self._callback
                )
        self.meta.dependencies = frozenset(wanted)

    def _commit(self, value: Any) -> None:
        self.meta.last_value = value
        self._store._set(self.meta.path, value)

    def _await(self, awaitable: Any, generation: int) -> None:
        future = asyncio.ensure_future(awaitable)
        self._store._keep_task(future)
        future.add_done_callback(functools.partial(self._resolved, generation))

    def _resolved(self, generation: int, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if self._disposed or generation != self.meta.generation:
            logger.debug(
                "Dropping stale result for %s (generation %d, current %d)",
                self.meta.path.key, generation, self.meta.generation,
            )
            return
        if exc is not None:
            self._failed(exc)
            return
        self._commit(future.result())

    def _on_dependency_changed(self, value: Any, update_path: Path) -> None:
        if self._disposed:
            return
        logger.debug("Recomputing %s after %s changed", self.meta.path.key, update_path.key)
        try:
            self._evaluate()
        except Exception as exc:
            self._failed(exc)

    def _failed(self, exc: BaseException) -> None:
        self.meta.error = exc
        if self._store.on_compute_error == "raise":
            raise ComputeError(self.meta.path, exc) from exc
        logger.error(
            "Computed %s failed; keeping last value", self.meta.path.key, exc_info=exc
        )

    def dispose(self) -> None:
        """Stop recomputing. A pending async result is discarded."""
        self._disposed = True
        self.meta.generation += 1
        for unsubscribe in self._unsubscribers.values():
            unsubscribe()
        self._unsubscribers.clear()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"ComputedProperty({self.meta.path.key!r}, {state})"
