"""In-place list mutators for path handles.

Each mutator applies the native list operation to the list stored at the
handle's path, then issues exactly one notification for that path carrying
the whole list. Per-index writes (handle[i] = v) go through the ordinary set
primitive instead and notify at the index path.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Callable, Iterable

from reactree.errors import NotAListError

if TYPE_CHECKING:
    from reactree.path import Path
    from reactree.store import Store


class ArrayMutations:
    """Mixin for PathHandle. Requires _store and _path."""

    __slots__ = ()

    _store: Store
    _path: Path

    def _list(self) -> list:
        value = self._store._get(self._path)
        if not isinstance(value, list):
            raise NotAListError(self._path, value)
        return value

    def _changed(self) -> None:
        self._store._notify(self._path)

    def append(self, item: Any) -> None:
        self._list().append(item)
        self._changed()

    def extend(self, items: Iterable[Any]) -> None:
        self._list().extend(items)
        self._changed()

    def insert(self, index: int, item: Any) -> None:
        self._list().insert(index, item)
        self._changed()

    def appendleft(self, item: Any) -> None:
        self._list().insert(0, item)
        self._changed()

    def pop(self, index: int = -1) -> Any:
        result = self._list().pop(index)
        self._changed()
        return result

    def popleft(self) -> Any:
        result = self._list().pop(0)
        self._changed()
        return result

    def remove(self, item: Any) -> None:
        self._list().remove(item)
        self._changed()

    def clear(self) -> None:
        self._list().clear()
        self._changed()

    def splice(self, start: int, delete_count: int | None = None, *items: Any) -> list:
        """Remove delete_count items at start, insert items there. Returns removed.

        Negative start counts from the end; both bounds are clamped.
        """
        target = self._list()
        n = len(target)
        start = max(n + start, 0) if start < 0 else min(start, n)
        if delete_count is None:
            delete_count = n - start
        end = start + max(0, min(delete_count, n - start))
        removed = target[start:end]
        target[start:end] = items
        self._changed()
        return removed

    def sort(
        self,
        key: Callable[[Any], Any] | None = None,
        reverse: bool = False,
        cmp: Callable[[Any, Any], int] | None = None,
    ) -> None:
        """Sort in place. cmp takes a two-argument comparator instead of key."""
        if cmp is not None:
            key = functools.cmp_to_key(cmp)
        self._list().sort(key=key, reverse=reverse)
        self._changed()

    def reverse(self) -> None:
        self._list().reverse()
        self._changed()
