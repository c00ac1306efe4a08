"""Tests for dependency tracking."""

import pytest

from reactree import ManualScheduler, Path, Store
from reactree._tracking import DependencyTracker, track


def make(initial=None):
    return Store(initial, scheduler=ManualScheduler())


class TestDependencyTracker:
    def test_records_in_first_read_order(self):
        t = DependencyTracker()
        t.record(Path(("b",)))
        t.record(Path(("a",)))
        t.record(Path(("b",)))
        assert t.ordered() == ["b", "a"]
        assert t.dependencies == frozenset({"a", "b"})

    def test_closed_tracker_ignores_reads(self):
        t = DependencyTracker()
        t.close()
        t.record(Path(("a",)))
        assert t.closed
        assert t.dependencies == frozenset()


class TestTrack:
    def test_captures_reads_through_handle(self):
        s = make({"a": 1, "b": {"c": 2}})
        result, tracker = track(s, lambda st: st["a"].get() + st["b"]["c"].get())
        assert result == 3
        assert tracker.dependencies == frozenset({"a", "b.c"})

    def test_navigation_alone_is_not_a_read(self):
        s = make({"a": {"b": 1}})
        _, tracker = track(s, lambda st: st["a"]["b"])
        assert tracker.dependencies == frozenset()

    def test_reads_outside_the_handle_are_ignored(self):
        s = make({"a": 1, "b": 2})
        _, tracker = track(s, lambda st: st["a"].get() + s["b"].get())
        assert tracker.dependencies == frozenset({"a"})

    def test_nested_tracking_is_isolated(self):
        s = make({"outer": 1, "inner": 2})
        inner = []

        def outer_fn(st):
            inner.append(track(s, lambda st2: st2["inner"].get())[1])
            return st["outer"].get()

        _, tracker = track(s, outer_fn)
        assert tracker.dependencies == frozenset({"outer"})
        assert inner[0].dependencies == frozenset({"inner"})

    def test_tracker_closed_after_failure(self):
        s = make()
        seen = []

        def fail(st):
            seen.append(st)
            raise KeyError("x")

        with pytest.raises(KeyError):
            track(s, fail)
        seen[0]["late"].get()
        assert seen[0]._tracker.closed
        assert seen[0]._tracker.dependencies == frozenset()
