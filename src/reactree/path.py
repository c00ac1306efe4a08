"""Paths — immutable key sequences that address a location in the state tree.

Two paths are the same location when their joined string forms match, so
("items", 1) and ("items", "1") share listeners and compare equal.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Union

Key = Union[str, int]


def is_index(part: str) -> bool:
    """Is part a list index segment: ASCII digits only."""
    return part.isdecimal() and part.isascii()


class Path(tuple):
    """An ordered, immutable sequence of str/int keys.

    A Path also compares equal to a plain tuple or list with the same joined
    form, for convenient asserts. Hashing follows the joined form, which a
    plain tuple does not, so use Paths (not tuples) as dict and set keys.
    """

    __slots__ = ()

    def __new__(cls, keys: Iterable[Key] = ()) -> Path:
        return super().__new__(cls, keys)

    @classmethod
    def parse(cls, text: str) -> Path:
        """Split a dotted string. All-digit segments become list indices."""
        if not text:
            return cls()
        return cls(int(part) if is_index(part) else part for part in text.split("."))

    @classmethod
    def of(cls, value: Path | str | Iterable[Key]) -> Path:
        if isinstance(value, Path):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        return cls(value)

    @property
    def key(self) -> str:
        """Canonical listener key. The root path is ""."""
        return ".".join(str(k) for k in self)

    @property
    def parent(self) -> Path:
        return Path(self[:-1])

    def child(self, key: Key) -> Path:
        return Path((*self, key))

    def prefixes(self) -> Iterator[Path]:
        """Yield this path, then each ancestor, ending with the root."""
        for i in range(len(self), -1, -1):
            yield Path(self[:i])

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (tuple, list)):
            return self.key == ".".join(str(k) for k in other)
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"Path({self.key!r})"


ROOT = Path()
