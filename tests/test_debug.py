"""Tests for the debug surface."""

import io

from rich.console import Console

from reactree import ManualScheduler, Store


def make(initial=None):
    return Store(initial, scheduler=ManualScheduler())


def profile_store():
    s = make({"user": {"first": "Bob", "last": "Smith"}, "n": 2})
    s["user"]["full"] = lambda st: f"{st['user']['first']} {st['user']['last']}"
    s["square"] = lambda st: st["n"].get() ** 2
    return s


class TestInspect:
    def test_inspect_computed(self):
        s = profile_store()
        records = s.debug.inspect_computed()
        assert records == [
            {
                "path": "user.full",
                "dependencies": ["user.first", "user.last"],
                "is_async": False,
                "last_value": "Bob Smith",
                "error": None,
            },
            {
                "path": "square",
                "dependencies": ["n"],
                "is_async": False,
                "last_value": 4,
                "error": None,
            },
        ]

    def test_computed_meta_by_dotted_path(self):
        s = profile_store()
        assert s.debug.computed_meta("user.full").path == ("user", "full")
        assert s.debug.computed_meta("user.first") is None
        assert s.debug.computed_meta("nope.deeper") is None

    def test_inspection_records_no_dependencies(self):
        s = profile_store()
        before = s.pending_count
        s.debug.inspect_computed()
        s.debug.format_computed_tree()
        assert s.pending_count == before
        assert s["square"].meta.dependencies == frozenset({"n"})


class TestComputedTree:
    def test_format(self):
        text = profile_store().debug.format_computed_tree()
        assert "Computed properties" in text
        assert "user:" in text
        assert "- full" in text
        assert "deps: [user.first, user.last]" in text
        assert "- square" in text
        assert "async: False" in text

    def test_print_to_console(self):
        buffer = io.StringIO()
        console = Console(file=buffer, color_system=None, width=100)
        profile_store().debug.print_computed_tree(console)
        assert "deps: [n]" in buffer.getvalue()


class TestState:
    def test_state_is_a_copy(self):
        s = make({"items": [1, 2]})
        snap = s.debug.state()
        snap["items"].append(3)
        assert s["items"].get() == [1, 2]
        assert s.snapshot() == {"items": [1, 2]}

    def test_print_state(self):
        buffer = io.StringIO()
        console = Console(file=buffer, color_system=None, width=100)
        make({"user": {"name": "Alice"}}).debug.print_state(console)
        assert "Alice" in buffer.getvalue()
