"""Debug surface — read-only views of a store for developers.

Walks the computed metadata tree, which sits beside the state tree, so
inspecting computed paths never reads or records state. Nothing here is used
by binding logic.
"""

from __future__ import annotations

import copy
import io
from typing import TYPE_CHECKING, Any, Iterator

from rich.console import Console
from rich.pretty import Pretty
from rich.text import Text
from rich.tree import Tree

from reactree.computed import ComputedMeta
from reactree.path import Path

if TYPE_CHECKING:
    from reactree.store import Store


class Debug:
    """Introspection for one store."""

    __slots__ = ("_store",)

    def __init__(self, store: Store) -> None:
        self._store = store

    def _walk(self, node: dict) -> Iterator[ComputedMeta]:
        for value in node.values():
            if isinstance(value, ComputedMeta):
                yield value
            elif isinstance(value, dict):
                yield from self._walk(value)

    def computed_meta(self, path: Path | str) -> ComputedMeta | None:
        node: Any = self._store._anchor.computed
        for key in Path.of(path):
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node if isinstance(node, ComputedMeta) else None

    def inspect_computed(self) -> list[dict[str, Any]]:
        """One record per computed path, in tree order."""
        return [
            {
                "path": meta.path.key,
                "dependencies": sorted(meta.dependencies),
                "is_async": meta.is_async,
                "last_value": meta.last_value,
                "error": meta.error,
            }
            for meta in self._walk(self._store._anchor.computed)
        ]

    def computed_tree(self) -> Tree:
        root = Tree("Computed properties")

        def _add(branch: Tree, node: dict) -> None:
            for key, value in node.items():
                if isinstance(value, ComputedMeta):
                    leaf = branch.add(Text(f"- {key}"))
                    deps = ", ".join(sorted(value.dependencies))
                    leaf.add(Text(f"deps: [{deps}]"))
                    leaf.add(Text(f"async: {value.is_async}"))
                    if value.error is not None:
                        leaf.add(Text(f"error: {value.error!r}"))
                elif isinstance(value, dict):
                    _add(branch.add(Text(f"{key}:")), value)

        _add(root, self._store._anchor.computed)
        return root

    def format_computed_tree(self) -> str:
        buffer = io.StringIO()
        console = Console(file=buffer, color_system=None, width=120, highlight=False)
        console.print(self.computed_tree())
        return buffer.getvalue()

    def print_computed_tree(self, console: Console | None = None) -> None:
        (console or Console()).print(self.computed_tree())

    def state(self) -> Any:
        """A deep copy of the raw state tree."""
        return copy.deepcopy(self._store._anchor.state)

    def print_state(self, console: Console | None = None) -> None:
        (console or Console()).print(Pretty(self.state()))
