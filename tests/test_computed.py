"""Tests for computed properties."""

import asyncio
import logging

import pytest

from reactree import AsyncioScheduler, ComputeError, ManualScheduler, Store


def make(initial=None, **kwargs):
    scheduler = ManualScheduler()
    return Store(initial, scheduler=scheduler, **kwargs), scheduler


def full_name(s):
    return f"{s['user']['first']} {s['user']['last']}"


class TestComputed:
    def test_computes_on_definition(self):
        s, scheduler = make()
        calls = []
        s["user"]["full"].subscribe(lambda v, p: calls.append((v, p)))
        s["user"]["first"] = "Bob"
        s["user"]["last"] = "Smith"
        s["user"]["full"] = full_name

        assert s["user"]["full"].get() == "Bob Smith"
        scheduler.run_until_idle()
        assert calls == [("Bob Smith", ("user", "full"))]

    def test_records_dependencies(self):
        s, _ = make({"user": {"first": "Bob", "last": "Smith"}})
        s["user"]["full"] = full_name
        meta = s["user"]["full"].meta
        assert meta.dependencies == frozenset({"user.first", "user.last"})
        assert meta.is_async is False
        assert meta.last_value == "Bob Smith"

    def test_recomputes_when_dependency_changes(self):
        s, scheduler = make({"user": {"first": "Bob", "last": "Smith"}})
        s["user"]["full"] = full_name
        scheduler.run_until_idle()
        calls = []
        s["user"]["full"].subscribe(lambda v, p: calls.append((v, p)))

        s["user"]["first"] = "Jim"
        scheduler.run_until_idle()
        assert s["user"]["full"].get() == "Jim Smith"
        assert calls == [("Jim Smith", ("user", "full"))]

    def test_dependencies_follow_control_flow(self):
        runs = []

        def pick(s):
            runs.append(1)
            return s["a"].get() if s["flag"].get() else s["b"].get()

        s, scheduler = make({"flag": True, "a": 1, "b": 2})
        s["out"] = pick
        assert s["out"].meta.dependencies == frozenset({"flag", "a"})

        s["flag"] = False
        scheduler.run_until_idle()
        assert s["out"].get() == 2
        assert s["out"].meta.dependencies == frozenset({"flag", "b"})

        count = len(runs)
        s["a"] = 100
        scheduler.run_until_idle()
        assert len(runs) == count  # no longer subscribed to a
        assert s["out"].get() == 2

    def test_chained_computed(self):
        s, scheduler = make({"n": 3})
        s["doubled"] = lambda st: st["n"].get() * 2
        s["quadrupled"] = lambda st: st["doubled"].get() * 2
        assert s["quadrupled"].get() == 12
        s["n"] = 5
        scheduler.run_until_idle()
        assert s["quadrupled"].get() == 20

    def test_own_path_is_not_a_dependency(self):
        s, _ = make({"step": 1})
        s["total"] = lambda st: st["total"].get(0) + st["step"].get()
        assert s["total"].meta.dependencies == frozenset({"step"})
        assert s["total"].get() == 1

    def test_redefinition_replaces_previous(self):
        s, scheduler = make({"a": 1, "b": 10})
        s["c"] = lambda st: st["a"].get() * 2
        s["c"] = lambda st: st["b"].get() * 2
        assert s["c"].get() == 20

        s["a"] = 5
        scheduler.run_until_idle()
        assert s["c"].get() == 20

        s["b"] = 11
        scheduler.run_until_idle()
        assert s["c"].get() == 22

    def test_dispose_stops_recomputing(self):
        s, scheduler = make({"n": 1})
        s["double"] = lambda st: st["n"].get() * 2
        s.dispose()
        s["n"] = 4
        scheduler.run_until_idle()
        assert s["double"].get() == 2

    def test_root_computed_rejected(self):
        s, _ = make()
        with pytest.raises(ValueError):
            s.root.set(lambda st: 1)


class TestComputeFailures:
    def test_definition_failure_propagates(self):
        s, scheduler = make()
        with pytest.raises(ZeroDivisionError):
            s["bad"] = lambda st: 1 / 0
        assert s["bad"].meta is None
        assert s["bad"].get() is None
        assert scheduler.pending_count == 0

    def test_recompute_failure_logged_and_last_value_kept(self, caplog):
        s, scheduler = make({"d": 1})
        s["q"] = lambda st: 10 / st["d"].get()
        s["d"] = 0
        with caplog.at_level(logging.ERROR, logger="reactree.computed"):
            scheduler.run_until_idle()
        assert s["q"].get() == 10.0
        assert isinstance(s["q"].meta.error, ZeroDivisionError)
        assert "keeping last value" in caplog.text

        s["d"] = 5
        scheduler.run_until_idle()
        assert s["q"].get() == 2.0
        assert s["q"].meta.error is None

    def test_failure_does_not_break_unrelated_listeners(self):
        s, scheduler = make({"d": 1, "other": 0})
        s["q"] = lambda st: 10 / st["d"].get()
        calls = []
        s["other"].subscribe(lambda v, p: calls.append(v))
        s["d"] = 0
        s["other"] = 1
        scheduler.run_until_idle()
        assert calls == [1]

    def test_raise_policy(self):
        s, scheduler = make({"d": 1}, on_compute_error="raise")
        s["q"] = lambda st: 10 / st["d"].get()
        s["d"] = 0
        with pytest.raises(ComputeError) as excinfo:
            scheduler.run_until_idle()
        assert isinstance(excinfo.value.__cause__, ZeroDivisionError)
        assert excinfo.value.path == ("q",)


class TestDeferredComputed:
    @pytest.mark.asyncio
    async def test_resolution_written_and_notified(self):
        s = Store({"user": {"id": 1}}, scheduler=AsyncioScheduler())
        calls = []
        s["user"]["name"].subscribe(lambda v, p: calls.append((v, p)))

        async def fetch(user_id):
            await asyncio.sleep(0.01)
            return "Async Alice"

        s["user"]["name"] = lambda st: fetch(st["user"]["id"].get())
        assert s["user"]["name"].get() is None
        assert s["user"]["name"].meta.is_async is True
        assert s["user"]["name"].meta.dependencies == frozenset({"user.id"})

        await asyncio.sleep(0.05)
        assert s["user"]["name"].get() == "Async Alice"
        assert calls == [("Async Alice", ("user", "name"))]

    @pytest.mark.asyncio
    async def test_dependency_change_reruns(self):
        s = Store({"id": 1}, scheduler=AsyncioScheduler())

        async def fetch(user_id):
            await asyncio.sleep(0)
            return f"user-{user_id}"

        s["name"] = lambda st: fetch(st["id"].get())
        await asyncio.sleep(0.01)
        assert s["name"].get() == "user-1"

        s["id"] = 2
        await asyncio.sleep(0.01)
        assert s["name"].get() == "user-2"

    @pytest.mark.asyncio
    async def test_stale_result_is_dropped(self):
        s = Store({"q": "slow"}, scheduler=AsyncioScheduler())
        delays = {"slow": 0.05, "fast": 0.0}

        async def search(term):
            await asyncio.sleep(delays[term])
            return f"result:{term}"

        s["r"] = lambda st: search(st["q"].get())
        s["q"] = "fast"
        await asyncio.sleep(0.1)
        assert s["r"].get() == "result:fast"

    @pytest.mark.asyncio
    async def test_reads_before_first_await_are_tracked(self):
        s = Store({"user": {"name": "Alice"}, "x": 1}, scheduler=AsyncioScheduler())

        async def greet(st):
            name = st["user"]["name"].get()
            await asyncio.sleep(0)
            st["x"].get()  # after the first await: not a dependency
            return f"Async {name}"

        s["greeting"] = greet
        assert s["greeting"].meta.dependencies == frozenset({"user.name"})
        await asyncio.sleep(0.01)
        assert s["greeting"].get() == "Async Alice"

        s["user"]["name"] = "Bob"
        await asyncio.sleep(0.01)
        assert s["greeting"].get() == "Async Bob"

        s["x"] = 2
        await asyncio.sleep(0.01)
        assert s["greeting"].meta.dependencies == frozenset({"user.name"})

    @pytest.mark.asyncio
    async def test_coroutine_without_await_resolves(self):
        s = Store({"x": 1}, scheduler=AsyncioScheduler())

        async def body(st):
            return st["x"].get() * 10

        s["y"] = body
        assert s["y"].meta.dependencies == frozenset({"x"})
        await asyncio.sleep(0.01)
        assert s["y"].get() == 10

        s["x"] = 2
        await asyncio.sleep(0.01)
        assert s["y"].get() == 20

    def test_coroutine_needs_running_loop(self):
        s, _ = make({"x": 1})

        async def body(st):
            return st["x"].get()

        with pytest.raises(RuntimeError, match="running event loop"):
            s["y"] = body
        assert s["y"].meta is None

    @pytest.mark.asyncio
    async def test_async_failure_logged(self, caplog):
        s = Store({"x": 1}, scheduler=AsyncioScheduler())

        async def boom(value):
            raise RuntimeError("backend down")

        with caplog.at_level(logging.ERROR, logger="reactree.computed"):
            s["y"] = lambda st: boom(st["x"].get())
            await asyncio.sleep(0.01)
        assert s["y"].get() is None
        assert isinstance(s["y"].meta.error, RuntimeError)
        assert "backend down" in caplog.text
