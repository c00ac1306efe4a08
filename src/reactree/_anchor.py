"""Data anchor — plain Python structures that hold a store's reactive state.

One Anchor per Store: the state tree, the listener registry, and the computed
metadata tree. Separating data from behavior means handles, the batcher and
the computed engine stay thin; they only ever reach the tree through here.
"""

from __future__ import annotations

import copy
from typing import Any, Callable

from reactree.path import Key, Path, is_index

Listener = Callable[[Any, Path], None]


class _Missing:
    """Marker for "no value at this path"."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def _index(node: list, key: Key) -> int | None:
    if isinstance(key, str):
        if not is_index(key):
            return None
        key = int(key)
    if not isinstance(key, int):
        return None
    return key if 0 <= key < len(node) else None


def _dict_key(node: dict, key: Key) -> Key:
    """The key already present in node for this path segment, else key itself.

    Path keys compare by their string form, so "1" may address a dict keyed
    by the int 1 and vice versa.
    """
    if key in node:
        return key
    if isinstance(key, int):
        alt: Key | None = str(key)
    else:
        alt = int(key) if is_index(key) else None
    return alt if alt is not None and alt in node else key


def _lookup(node: Any, key: Key) -> Any:
    if isinstance(node, dict):
        return node.get(_dict_key(node, key), MISSING)
    if isinstance(node, list):
        i = _index(node, key)
        return MISSING if i is None else node[i]
    return MISSING


class Anchor:
    """State tree + listener registry + computed metadata for one store."""

    __slots__ = ("state", "listeners", "computed")

    def __init__(self, initial: dict | None = None) -> None:
        self.state: Any = copy.deepcopy(initial) if initial is not None else {}
        self.listeners: dict[str, list[Listener]] = {}
        self.computed: dict = {}  # mirrors state shape; leaves are ComputedMeta

    # --- Tree primitives ---

    def read(self, path: Path) -> Any:
        """Walk from the root. Any gap yields MISSING; nothing is created."""
        node = self.state
        for key in path:
            node = _lookup(node, key)
            if node is MISSING:
                return MISSING
        return node

    def write(self, path: Path, value: Any) -> bool:
        """Store value at path, creating intermediate dicts. True if it changed."""
        if not path:
            if self.state is value or self.state == value:
                return False
            self.state = value
            return True

        node = self.state
        for key in path[:-1]:
            nxt = _lookup(node, key)
            if nxt is MISSING:
                if isinstance(node, list):
                    raise IndexError(f"index {key!r} out of range at {path.key}")
                if not isinstance(node, dict):
                    raise TypeError(f"cannot create {key!r} inside {type(node).__name__}")
                nxt = node[key] = {}
            elif not isinstance(nxt, (dict, list)):
                raise TypeError(
                    f"cannot write {path.key}: {key!r} holds {type(nxt).__name__}"
                )
            node = nxt

        last = path[-1]
        old = _lookup(node, last)
        if old is value or (old is not MISSING and old == value):
            return False

        if isinstance(node, list):
            i = int(last)
            if i == len(node):
                node.append(value)
            elif 0 <= i < len(node):
                node[i] = value
            else:
                raise IndexError(f"index {i} out of range at {path.key}")
        elif isinstance(node, dict):
            node[_dict_key(node, last)] = value
        else:
            raise TypeError(f"cannot write {path.key}: parent is {type(node).__name__}")
        return True

    def remove(self, path: Path) -> bool:
        """Delete the value at path. False only when the parent is absent."""
        if not path:
            self.state = {}
            return True
        parent = self.read(path.parent)
        if not isinstance(parent, (dict, list)):
            return False
        last = path[-1]
        if isinstance(parent, list):
            i = _index(parent, last)
            if i is not None:
                del parent[i]
        else:
            parent.pop(_dict_key(parent, last), None)
        return True

    # --- Listener registry ---

    def add_listener(self, key: str, callback: Listener) -> Callable[[], None]:
        bucket = self.listeners.setdefault(key, [])
        if callback not in bucket:
            bucket.append(callback)

        def _unsubscribe() -> None:
            self.remove_listener(key, callback)

        return _unsubscribe

    def remove_listener(self, key: str, callback: Listener) -> None:
        bucket = self.listeners.get(key)
        if not bucket:
            return
        try:
            bucket.remove(callback)
        except ValueError:
            pass  # already removed
        if not bucket:
            del self.listeners[key]

    def listeners_for(self, key: str) -> list[Listener]:
        return list(self.listeners.get(key, ()))
