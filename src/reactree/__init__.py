"""reactree: a path-addressed reactive state tree for Python UIs."""

from importlib.metadata import version as _version

__version__ = _version("reactree")

from reactree.path import Path
from reactree.store import Store
from reactree.handle import PathHandle
from reactree.computed import ComputedMeta, ComputedProperty
from reactree.batch import NotificationBatcher, PendingNotification
from reactree.scheduler import (
    AsyncioScheduler,
    CallbackScheduler,
    ManualScheduler,
    Scheduler,
    default_scheduler,
)
from reactree.debug import Debug
from reactree.errors import ComputeError, NotAListError, ReactreeError, UnsettledError
# textual NOT auto-imported: opt-in only

__all__ = [
    "Path",
    "Store",
    "PathHandle",
    "ComputedMeta",
    "ComputedProperty",
    "NotificationBatcher",
    "PendingNotification",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    "CallbackScheduler",
    "default_scheduler",
    "Debug",
    "ReactreeError",
    "ComputeError",
    "NotAListError",
    "UnsettledError",
]
