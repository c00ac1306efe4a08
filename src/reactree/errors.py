"""Exceptions raised by reactree.

Reads never raise for missing data; these cover the few cases that do fail.
"""

from __future__ import annotations

from reactree._anchor import MISSING


class ReactreeError(Exception):
    """Base class for reactree errors."""


class ComputeError(ReactreeError):
    """A computed property failed while recomputing under the "raise" policy."""

    def __init__(self, path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"computed {path.key or '<root>'} failed: {cause!r}")


class NotAListError(ReactreeError, TypeError):
    """An array mutator was called on a path whose value is not a list."""

    def __init__(self, path, value) -> None:
        self.path = path
        held = "nothing" if value is MISSING else type(value).__name__
        super().__init__(f"{path.key or '<root>'} holds {held}, not a list")


class UnsettledError(ReactreeError, RuntimeError):
    """ManualScheduler.run_until_idle() kept finding new work."""
