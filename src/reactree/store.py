"""Store — a path-addressed reactive state tree.

The store owns the tree. Callers get PathHandles (store.root, store.at(),
store["key"]) and read, write and subscribe through them. Writes go through
_set/_delete, which notify the batcher; the batcher flushes once per turn on
the injected scheduler.

    store = Store({"user": {"first": "Bob", "last": "Smith"}})
    store["user"]["full"] = lambda s: f"{s['user']['first']} {s['user']['last']}"
    store["user"]["full"].get()  # "Bob Smith"
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, Mapping

from reactree._anchor import Anchor, Listener
from reactree.batch import NotificationBatcher
from reactree.computed import ComputedMeta, ComputedProperty, ComputeFn
from reactree.debug import Debug
from reactree.handle import PathHandle
from reactree.path import Key, Path
from reactree.scheduler import Scheduler, default_scheduler

logger = logging.getLogger("reactree.store")

COMPUTE_ERROR_POLICIES = ("log", "raise")


class Store:
    """Reactive state tree with path subscriptions and computed properties."""

    def __init__(
        self,
        initial: Mapping[str, Any] | None = None,
        *,
        scheduler: Scheduler | None = None,
        on_compute_error: str = "log",
    ) -> None:
        if on_compute_error not in COMPUTE_ERROR_POLICIES:
            raise ValueError(
                f"on_compute_error must be one of {COMPUTE_ERROR_POLICIES}, "
                f"got {on_compute_error!r}"
            )
        self.on_compute_error = on_compute_error
        self._anchor = Anchor(dict(initial) if initial is not None else None)
        self._scheduler = scheduler if scheduler is not None else default_scheduler()
        self._batcher = NotificationBatcher(self._anchor, self._scheduler, self._get)
        self._computeds: dict[str, ComputedProperty] = {}
        self._tasks: set[asyncio.Future] = set()
        self._debug = Debug(self)

    # --- Handles ---

    @property
    def root(self) -> PathHandle:
        return PathHandle(self, Path())

    def at(self, path: Path | str | Iterable[Key]) -> PathHandle:
        """Handle for a Path, a dotted string ("user.items.0") or a key sequence."""
        return PathHandle(self, Path.of(path))

    def __getitem__(self, key: Key) -> PathHandle:
        return self.root.child(key)

    def __setitem__(self, key: Key, value: Any) -> None:
        self.root.child(key).set(value)

    def __delitem__(self, key: Key) -> None:
        self.root.child(key).delete()

    def update(self, values: Mapping[str, Any]) -> None:
        """Set several dotted paths at once. They notify in the same flush."""
        for path, value in values.items():
            self.at(path).set(value)

    # --- Primitives ---

    def _get(self, path: Path) -> Any:
        return self._anchor.read(path)

    def _set(self, path: Path, value: Any) -> None:
        if self._anchor.write(path, value):
            self._notify(path)

    def _delete(self, path: Path) -> None:
        if self._anchor.remove(path):
            self._notify(path)

    def _subscribe(self, path: Path, callback: Listener) -> Callable[[], None]:
        return self._anchor.add_listener(path.key, callback)

    def _notify(self, path: Path) -> None:
        self._batcher.notify(path)

    # --- Computed properties ---

    def define_computed(self, path: Path | str | Iterable[Key], fn: ComputeFn) -> ComputedProperty:
        """Install fn as the computed definition at path, replacing any earlier one."""
        path = Path.of(path)
        if not path:
            raise ValueError("computed properties need a non-root path")

        previous = self._computeds.pop(path.key, None)
        if previous is not None:
            previous.dispose()

        prop = ComputedProperty(self, path, fn)
        self._computeds[path.key] = prop
        self._place_meta(path, prop.meta)
        try:
            prop.start()
        except Exception:
            prop.dispose()
            del self._computeds[path.key]
            self._drop_meta(path)
            raise
        logger.debug(
            "Defined computed %s (deps: %s)", path.key, ", ".join(sorted(prop.meta.dependencies))
        )
        return prop

    def _place_meta(self, path: Path, meta: ComputedMeta) -> None:
        node = self._anchor.computed
        for key in path[:-1]:
            nxt = node.get(key)
            if not isinstance(nxt, dict):
                nxt = node[key] = {}
            node = nxt
        node[path[-1]] = meta

    def _drop_meta(self, path: Path) -> None:
        node: Any = self._anchor.computed
        for key in path[:-1]:
            node = node.get(key) if isinstance(node, dict) else None
        if isinstance(node, dict):
            node.pop(path[-1], None)

    def _keep_task(self, future: asyncio.Future) -> None:
        """Hold a reference to a pending async computation until it finishes."""
        self._tasks.add(future)
        future.add_done_callback(self._tasks.discard)

    # --- Flushing ---

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def pending_count(self) -> int:
        return self._batcher.pending_count

    def flush(self) -> int:
        """Deliver pending notifications now instead of waiting for the scheduler."""
        return self._batcher.flush()

    # --- Debugging ---

    @property
    def debug(self) -> Debug:
        return self._debug

    def snapshot(self) -> Any:
        return self._debug.state()

    def dispose(self) -> None:
        """Stop every computed property. Values and subscribers stay."""
        for prop in self._computeds.values():
            prop.dispose()
        logger.debug("Disposed %d computed properties", len(self._computeds))
        self._computeds.clear()

    def __repr__(self) -> str:
        return f"Store({len(self._computeds)} computed, {self.pending_count} pending)"
