"""Path handles — the only way callers touch a store's state tree.

A PathHandle is a small value object holding (store, path). Navigation is
explicit (child(key) or handle[key]); every read goes back to the store, so
a handle never goes stale. Handles passed into compute functions also carry
a DependencyTracker and record each read they make.

All state lives in the store's anchor; handles are thin and disposable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator

from reactree._anchor import MISSING
from reactree.arrays import ArrayMutations
from reactree.path import Key, Path

if TYPE_CHECKING:
    from reactree._tracking import DependencyTracker
    from reactree.computed import ComputedMeta
    from reactree.debug import Debug
    from reactree.store import Store


class PathHandle(ArrayMutations):
    """Read/write/subscribe access to one location in a store.

    With nothing stored, str() and format() give a placeholder such as
    "Placeholder(user.name)" and never raise. int() and float() must return a
    number, so they raise TypeError naming the placeholder instead.
    """

    __slots__ = ("_store", "_path", "_tracker")

    def __init__(
        self,
        store: Store,
        path: Path,
        tracker: DependencyTracker | None = None,
    ) -> None:
        self._store = store
        self._path = path
        self._tracker = tracker

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Any:
        """Fetch the raw value (MISSING if absent), recording the dependency."""
        if self._tracker is not None:
            self._tracker.record(self._path)
        return self._store._get(self._path)

    # --- Reads ---

    def get(self, default: Any = None) -> Any:
        """Current value, or default when nothing is stored here."""
        value = self._read()
        return default if value is MISSING else value

    @property
    def value(self) -> Any:
        return self.get()

    def keys(self) -> list[Key]:
        """Keys of the dict (or indices of the list) stored here."""
        value = self._read()
        if isinstance(value, dict):
            return list(value)
        if isinstance(value, list):
            return list(range(len(value)))
        return []

    # --- Writes ---

    def set(self, value: Any) -> None:
        """Write value. A callable installs a computed property instead."""
        if isinstance(value, PathHandle):
            value = value.get()
        if callable(value):
            self._store.define_computed(self._path, value)
        else:
            self._store._set(self._path, value)

    def delete(self) -> None:
        self._store._delete(self._path)

    # --- Navigation ---

    def child(self, key: Key) -> PathHandle:
        return PathHandle(self._store, self._path.child(key), self._tracker)

    def __getitem__(self, key: Key) -> PathHandle:
        return self.child(key)

    def __setitem__(self, key: Key, value: Any) -> None:
        self.child(key).set(value)

    def __delitem__(self, key: Key) -> None:
        self.child(key).delete()

    def __iter__(self) -> Iterator[PathHandle]:
        return (self.child(key) for key in self.keys())

    def __contains__(self, key: Key) -> bool:
        return self.child(key)._read() is not MISSING

    # --- Subscriptions ---

    def subscribe(self, callback: Callable[[Any, Path], None]) -> Callable[[], None]:
        """Call callback(value, update_path) after changes here or below.

        Returns an unsubscribe function; calling it twice is harmless.
        """
        return self._store._subscribe(self._path, callback)

    # --- Introspection ---

    @property
    def meta(self) -> ComputedMeta | None:
        return self._store.debug.computed_meta(self._path)

    @property
    def debug(self) -> Debug:
        return self._store.debug

    # --- Coercion ---

    def _placeholder(self) -> str:
        return f"Placeholder({self._path.key})"

    def __str__(self) -> str:
        value = self._read()
        return self._placeholder() if value is MISSING else str(value)

    def __format__(self, spec: str) -> str:
        value = self._read()
        return format(self._placeholder() if value is MISSING else value, spec)

    def __int__(self) -> int:
        value = self._read()
        if value is MISSING:
            raise TypeError(f"{self._placeholder()} has no value to convert")
        return int(value)

    def __float__(self) -> float:
        value = self._read()
        if value is MISSING:
            raise TypeError(f"{self._placeholder()} has no value to convert")
        return float(value)

    def __repr__(self) -> str:
        value = self._store._get(self._path)
        return f"PathHandle({self._path.key!r}, {value!r})"
