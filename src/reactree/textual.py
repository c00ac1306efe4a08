"""Textual integration for reactree. Opt-in, requires textual.

Binds store paths to widgets: store changes update the widget, and for
editable widgets, widget changes write back to the store. The kind of widget
is resolved once at bind time; updates never re-inspect the widget type.

Guards carried by every binding: updates are skipped while the app is not
running or is paused for widget replacement, NoMatches from widget queries is
swallowed, and calls from other threads are marshaled with call_from_thread.
"""

from __future__ import annotations

import enum
import functools
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable

from textual import events
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widgets import (
    Button,
    Checkbox,
    Input,
    Label,
    ProgressBar,
    RadioButton,
    RadioSet,
    Select,
    Static,
    Switch,
)

from reactree._anchor import MISSING
from reactree.handle import PathHandle
from reactree.scheduler import CallbackScheduler

logger = logging.getLogger("reactree.textual")

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


class BindKind(enum.Enum):
    """How a widget is driven. Resolved once per binding."""

    TEXT = "text"  # Static/Label: update(str), one-way
    INPUT = "input"  # Input.value, two-way
    NUMERIC_INPUT = "numeric_input"  # Input(type="integer"|"number"), two-way, numbers in the store
    TOGGLE = "toggle"  # Checkbox/RadioButton/Switch.value, two-way
    NUMBER = "number"  # ProgressBar progress, one-way
    SELECT = "select"  # Select.value, two-way
    RADIO = "radio"  # RadioSet: the pressed button's token, two-way
    PRESS = "press"  # MomentaryButton.pressed, widget -> store only

    @property
    def watched_attribute(self) -> str | None:
        """Widget attribute to watch for widget -> store writes.

        RadioSet bindings watch each of their buttons instead.
        """
        if self in (BindKind.TEXT, BindKind.NUMBER, BindKind.RADIO):
            return None
        return "pressed" if self is BindKind.PRESS else "value"


class MomentaryButton(Button):
    """A Button whose pressed attribute is True only while the mouse holds it down."""

    pressed: reactive[bool] = reactive(False, init=False)

    def on_mouse_down(self, event: events.MouseDown) -> None:
        self.pressed = True

    def on_mouse_up(self, event: events.MouseUp) -> None:
        self.pressed = False

    def on_leave(self, event: events.Leave) -> None:
        self.pressed = False


# Subclasses before their bases: Label, Checkbox and RadioButton are Statics.
_KINDS: list[tuple[type, BindKind]] = [
    (MomentaryButton, BindKind.PRESS),
    (RadioSet, BindKind.RADIO),
    (Checkbox, BindKind.TOGGLE),
    (RadioButton, BindKind.TOGGLE),
    (Switch, BindKind.TOGGLE),
    (Input, BindKind.INPUT),
    (Select, BindKind.SELECT),
    (ProgressBar, BindKind.NUMBER),
    (Label, BindKind.TEXT),
    (Static, BindKind.TEXT),
]

_NUMERIC_INPUT_TYPES = ("integer", "number")


def resolve_kind(widget: object) -> BindKind | None:
    for widget_type, kind in _KINDS:
        if isinstance(widget, widget_type):
            if kind is BindKind.INPUT and getattr(widget, "type", "text") in _NUMERIC_INPUT_TYPES:
                return BindKind.NUMERIC_INPUT
            return kind
    return None


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_number(text: str) -> int | float | None:
    """int if text is a whole number, else float; None when it is neither."""
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def radio_token(index: int, button: Any) -> str | int:
    """The store value for one button of a RadioSet: its name, else id, else index."""
    if button.name is not None:
        return button.name
    if button.id is not None:
        return button.id
    return index


def _apply(kind: BindKind, widget: Any, value: Any) -> None:
    if kind is BindKind.TEXT:
        widget.update(_as_text(value))
    elif kind in (BindKind.INPUT, BindKind.NUMERIC_INPUT):
        widget.value = _as_text(value)
    elif kind is BindKind.TOGGLE:
        widget.value = bool(value)
    elif kind is BindKind.NUMBER:
        if value is not None:
            widget.update(progress=float(value))
    elif kind is BindKind.SELECT:
        if value is not None:
            widget.value = value


def _select(buttons: list[Any], value: Any) -> None:
    if value is None:
        return
    for index, button in enumerate(buttons):
        button.value = radio_token(index, button) == value


def _read_back(kind: BindKind, new_value: Any, current: Any) -> Any:
    """Store value for a widget-side change, or MISSING to skip the write."""
    if kind is BindKind.INPUT:
        # The widget echoing a value we just pushed must not turn it into text.
        return MISSING if new_value == _as_text(current) else new_value
    if kind is BindKind.NUMERIC_INPUT:
        number = parse_number(new_value)
        return MISSING if number is None else number
    if kind in (BindKind.TOGGLE, BindKind.PRESS):
        return bool(new_value)
    return new_value


def _seed(kind: BindKind, widget: Any, buttons: list[Any]) -> Any:
    """The widget's own value, used when nothing is stored yet (MISSING: no seed)."""
    if kind in (BindKind.INPUT, BindKind.TOGGLE):
        return widget.value
    if kind is BindKind.NUMERIC_INPUT:
        number = parse_number(widget.value)
        return MISSING if number is None else number
    if kind is BindKind.PRESS:
        return False
    if kind is BindKind.RADIO:
        for index, button in enumerate(buttons):
            if button.value:
                return radio_token(index, button)
    return MISSING


@contextmanager
def pause(app):
    """Suspend bound updates during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def scheduler_for(app) -> CallbackScheduler:
    """A store scheduler that flushes on the app's message loop."""
    return CallbackScheduler(app.call_later)


def _noop() -> None:
    pass


def bind(
    app,
    handle: PathHandle,
    widget: Any,
    *,
    kind: BindKind | None = None,
) -> Callable[[], None]:
    """Keep widget in sync with the value at handle's path.

    Returns an unbind function for widget teardown. Widgets of a type with no
    known binding are reported with a warning and left alone.

    A RadioSet stores the token of its pressed button (see radio_token); its
    buttons are collected once, so bind it after it is mounted.
    """
    kind = kind or resolve_kind(widget)
    if kind is None:
        logger.warning(
            "Cannot bind %s: unsupported widget type %s",
            handle.path.key or "<root>", type(widget).__name__,
        )
        return _noop

    _main = threading.get_ident()
    bound = [True]
    buttons = list(widget.query(RadioButton)) if kind is BindKind.RADIO else []

    def _guarded(value: Any) -> None:
        if not bound[0] or not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value: Any) -> None:
        try:
            if kind is BindKind.RADIO:
                _select(buttons, value)
            else:
                _apply(kind, widget, value)
        except NoMatches:
            pass

    current = handle.get()
    if current is not None:
        _guarded(current)
    else:
        seed = _seed(kind, widget, buttons)
        if seed is not MISSING:
            handle.set(seed)

    unsubscribe = handle.subscribe(lambda value, update_path: _guarded(handle.get()))

    def _written(new_value: Any) -> None:
        if not bound[0]:
            return
        value = _read_back(kind, new_value, handle.get())
        if value is not MISSING:
            handle.set(value)

    def _picked(token: str | int, checked: bool) -> None:
        if bound[0] and checked:
            handle.set(token)

    attribute = kind.watched_attribute
    if kind is BindKind.RADIO:
        for index, button in enumerate(buttons):
            token = radio_token(index, button)
            app.watch(button, "value", functools.partial(_picked, token), init=False)
    elif attribute is not None:
        app.watch(widget, attribute, _written, init=False)

    logger.debug("Bound %s to %s as %s", handle.path.key, type(widget).__name__, kind.name)

    def _unbind() -> None:
        bound[0] = False
        unsubscribe()

    return _unbind
