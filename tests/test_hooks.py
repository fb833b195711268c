"""Tests for the Hooks facade.

Tests cover:
- Handler registration, removal and once
- Interceptor registration, removal and validation
- Deferred emission and chronological ordering of nested events
- Sync and async callbacks
- Statistics
"""

import asyncio

import pytest

from hookstack import (
    CircularDependencyError,
    ConflictError,
    DuplicateIdError,
    Hooks,
    MissingDependencyError,
    NotFoundError,
)


def recorder():
    calls = []

    def handler(data, name):
        calls.append((data, name))

    return calls, handler


# =============================================================================
# Handlers
# =============================================================================


class TestHandlers:
    @pytest.mark.asyncio
    async def test_handler_observes_payload(self):
        hooks = Hooks()
        calls, handler = recorder()
        hooks.on("x", handler)

        hooks.emit("x", 1)
        await hooks.drain()

        assert calls == [(1, "x")]

    @pytest.mark.asyncio
    async def test_emit_is_deferred(self):
        hooks = Hooks()
        calls, handler = recorder()
        hooks.on("x", handler)

        hooks.emit("x", 1)
        assert calls == []

        await hooks.drain()
        assert calls == [(1, "x")]

    @pytest.mark.asyncio
    async def test_emit_with_no_listeners(self):
        hooks = Hooks()
        assert hooks.emit("nobody-listens") is hooks
        await hooks.drain()

    @pytest.mark.asyncio
    async def test_multiple_handlers_in_registration_order(self):
        hooks = Hooks()
        order = []
        hooks.on("x", lambda data, name: order.append("first"))
        hooks.on("x", lambda data, name: order.append("second"))

        hooks.emit("x")
        await hooks.drain()

        assert order == ["first", "second"]

    @pytest.mark.asyncio
    async def test_disjoint_names_do_not_cross(self):
        hooks = Hooks()
        calls1, handler1 = recorder()
        calls2, handler2 = recorder()
        hooks.on("test1", handler1).on("test2", handler2)

        hooks.emit("test1", "a")
        await hooks.drain()

        assert calls1 == [("a", "test1")]
        assert calls2 == []

    @pytest.mark.asyncio
    async def test_filter_handler_after_named(self):
        hooks = Hooks()
        order = []
        hooks.on(lambda name: name.startswith("user."), lambda data, name: order.append(("any", name)))
        hooks.on("user.created", lambda data, name: order.append(("named", name)))

        hooks.emit("user.created").emit("order.created")
        await hooks.drain()

        assert order == [("named", "user.created"), ("any", "user.created")]

    @pytest.mark.asyncio
    async def test_on_complete_runs_before_handlers(self):
        hooks = Hooks()
        order = []
        hooks.on("x", lambda data, name: order.append(("handler", data)))

        hooks.emit("x", 3, lambda data, name: order.append(("done", data)))
        await hooks.drain()

        assert order == [("done", 3), ("handler", 3)]

    @pytest.mark.asyncio
    async def test_off_removes_one_instance(self):
        hooks = Hooks()
        count = []

        def handler(data, name):
            count.append(1)

        hooks.on("x", handler).on("x", handler)
        assert hooks.off("x", handler) is hooks

        hooks.emit("x")
        await hooks.drain()

        assert len(count) == 1

    def test_off_unknown_handler_raises(self):
        hooks = Hooks()
        with pytest.raises(NotFoundError):
            hooks.off("x", lambda data, name: None)

    def test_off_filter_needs_same_filter(self):
        hooks = Hooks()
        calls, handler = recorder()
        hooks.on(lambda name: True, handler)

        with pytest.raises(NotFoundError):
            hooks.off(lambda name: True, handler)

    @pytest.mark.asyncio
    async def test_once_fires_once(self):
        hooks = Hooks()
        calls, handler = recorder()
        assert hooks.once("x", handler) is hooks

        hooks.emit("x", 1)
        hooks.emit("x", 2)
        await hooks.drain()

        assert calls == [(1, "x")]

    @pytest.mark.asyncio
    async def test_off_cancels_once(self):
        hooks = Hooks()
        calls, handler = recorder()
        hooks.once("x", handler)
        hooks.off("x", handler)

        hooks.emit("x", 1)
        await hooks.drain()

        assert calls == []
        with pytest.raises(NotFoundError):
            hooks.off("x", handler)

    @pytest.mark.asyncio
    async def test_async_handler(self):
        hooks = Hooks()
        calls = []

        async def handler(data, name):
            await asyncio.sleep(0)
            calls.append(data)

        hooks.on("x", handler)
        hooks.emit("x", "payload")
        await hooks.drain()

        assert calls == ["payload"]

    @pytest.mark.asyncio
    async def test_handler_exception_surfaces_from_drain(self):
        hooks = Hooks()
        calls, handler = recorder()

        def broken(data, name):
            raise ValueError("handler failed")

        hooks.on("x", broken).on("x", handler)
        hooks.emit("x", 1)

        with pytest.raises(ValueError, match="handler failed"):
            await hooks.drain()
        assert calls == []

        # errors are reported once
        await hooks.drain()

    @pytest.mark.asyncio
    async def test_stored_errors_are_bounded(self):
        hooks = Hooks(max_stored_errors=10)

        def broken(data, name):
            raise ValueError(f"failure {data}")

        hooks.on("x", broken)
        for i in range(25):
            hooks.emit("x", i)

        with pytest.raises(ValueError, match="failure 15"):
            await hooks.drain()

        stats = hooks.get_stats()
        assert stats.callback_errors == 25
        assert stats.errors_dropped == 15

        # the retained errors were cleared by the drain
        await hooks.drain()


# =============================================================================
# Interceptors
# =============================================================================


class TestInterceptors:
    @pytest.mark.asyncio
    async def test_interceptor_runs_without_handler(self):
        hooks = Hooks()
        seen = []

        def interceptor(data, advance, name):
            seen.append(data)
            advance(data)

        hooks.inject("x", "spy", interceptor)
        hooks.emit("x", 7)
        await hooks.drain()

        assert seen == [7]

    @pytest.mark.asyncio
    async def test_interceptors_change_data(self):
        hooks = Hooks()
        calls, handler = recorder()
        hooks.inject("x", "plus-one", lambda d, advance, name: advance(d + 1))
        hooks.inject("x", "times-ten", lambda d, advance, name: advance(d * 10))
        hooks.on("x", handler)

        hooks.emit("x", 1)
        await hooks.drain()

        assert calls == [(20, "x")]

    @pytest.mark.asyncio
    async def test_order_follows_conditions_as_they_change(self):
        hooks = Hooks()
        results = []
        hooks.on("x", lambda d, name: results.append(d))

        hooks.inject("x", "add-one", lambda d, advance, name: advance(d + 1), {"before": "two"})
        hooks.emit("x", 1)
        await hooks.drain()

        hooks.inject("x", "times-ten", lambda d, advance, name: advance(d * 10), {"after": "add-one"})
        hooks.emit("x", 1)
        await hooks.drain()

        hooks.inject(
            "x", "plus-one-tenth", lambda d, advance, name: advance(d + 0.1), {"before": "times-ten"}
        )
        hooks.emit("x", 1)
        await hooks.drain()

        hooks.remove("x", "times-ten")
        hooks.emit("x", 1)
        await hooks.drain()

        assert results == [2, 20, pytest.approx(21), pytest.approx(2.1)]

    @pytest.mark.asyncio
    async def test_buckets_run_pre_mid_post(self):
        hooks = Hooks()
        calls, handler = recorder()
        hooks.inject("x", "post", lambda d, advance, name: advance(d + ["post"]), {"order": "post"})
        hooks.inject("x", "mid", lambda d, advance, name: advance(d + ["mid"]))
        hooks.inject("x", "pre", lambda d, advance, name: advance(d + ["pre"]), {"order": "pre"})
        hooks.on("x", handler)

        hooks.emit("x", [])
        await hooks.drain()

        assert calls == [(["pre", "mid", "post"], "x")]

    @pytest.mark.asyncio
    async def test_filter_interceptor_applies_to_matching_names(self):
        hooks = Hooks()
        calls, handler = recorder()
        hooks.inject(lambda name: name.endswith(".price"), "tax", lambda d, advance, name: advance(d * 2))
        hooks.on(lambda name: True, handler)

        hooks.emit("book.price", 10).emit("book.title", 10)
        await hooks.drain()

        assert calls == [(20, "book.price"), (10, "book.title")]

    @pytest.mark.asyncio
    async def test_withheld_continuation_cancels_event(self):
        hooks = Hooks()
        calls, handler = recorder()
        done = []
        hooks.inject("x", "gate", lambda d, advance, name: advance(d) if d > 0 else None)
        hooks.on("x", handler)

        hooks.emit("x", -1, lambda d, name: done.append(d))
        hooks.emit("x", 5)
        await hooks.drain()

        assert calls == [(5, "x")]
        assert done == []

    @pytest.mark.asyncio
    async def test_async_interceptor(self):
        hooks = Hooks()
        calls, handler = recorder()

        async def slow_double(data, advance, name):
            await asyncio.sleep(0)
            advance(data * 2)

        hooks.inject("x", "slow", slow_double)
        hooks.inject("x", "plus-one", lambda d, advance, name: advance(d + 1), {"after": "slow"})
        hooks.on("x", handler)

        hooks.emit("x", 4)
        await hooks.drain()

        assert calls == [(9, "x")]

    def test_inject_returns_self(self):
        hooks = Hooks()
        assert hooks.inject("x", "a", lambda d, advance, name: None) is hooks

    @pytest.mark.parametrize("bad_id", [2, None, ("a", "b")])
    def test_inject_rejects_non_string_id(self, bad_id):
        hooks = Hooks()
        with pytest.raises(TypeError, match="interceptor_id"):
            hooks.inject("x", bad_id, lambda d, advance, name: None)

    def test_inject_duplicate_id_raises(self):
        hooks = Hooks()
        hooks.inject("x", "a", lambda d, advance, name: None)
        with pytest.raises(DuplicateIdError):
            hooks.inject("x", "a", lambda d, advance, name: None)

    def test_inject_duplicate_across_named_and_filter(self):
        hooks = Hooks()
        hooks.inject("x", "a", lambda d, advance, name: None)
        hooks.inject(lambda name: True, "a", lambda d, advance, name: None)

        with pytest.raises(DuplicateIdError):
            hooks.validate("x")

    def test_remove(self):
        hooks = Hooks()
        hooks.inject("x", "a", lambda d, advance, name: None)

        assert hooks.remove("x", "a") is hooks
        with pytest.raises(NotFoundError):
            hooks.remove("x", "a")

    def test_remove_filter_interceptor(self):
        hooks = Hooks()
        hooks.inject(lambda name: True, "a", lambda d, advance, name: None, {"conflicts": "b"})
        hooks.inject("x", "b", lambda d, advance, name: None)
        with pytest.raises(ConflictError):
            hooks.validate()

        hooks.remove(lambda name: True, "a")
        hooks.validate()

    def test_transform_runs_chain_immediately(self):
        hooks = Hooks()
        hooks.inject("test", "test", lambda d, advance, name: advance(d + 1))
        results = []

        assert hooks.transform("test", 1, results.append) is hooks
        hooks.transform("not-test", 1, results.append)

        assert results == [2, 1]


# =============================================================================
# Validation
# =============================================================================


class TestValidate:
    def test_validate_returns_self(self):
        hooks = Hooks()
        assert hooks.validate() is hooks

    def test_conflict_detected_once_both_registered(self):
        hooks = Hooks()
        hooks.inject("x", "C", lambda d, advance, name: None, {"conflicts": "D"})
        hooks.validate("x")

        hooks.inject("x", "D", lambda d, advance, name: None)
        with pytest.raises(ConflictError):
            hooks.validate("x")

    def test_missing_dependency_until_added(self):
        hooks = Hooks()
        hooks.inject("test", "one", lambda d, advance, name: None, {"depends": "two"})
        with pytest.raises(MissingDependencyError):
            hooks.validate()

        hooks.inject("test", "two", lambda d, advance, name: None)
        hooks.validate()

    def test_validate_all_covers_every_name(self):
        hooks = Hooks()
        hooks.inject("fine", "a", lambda d, advance, name: None)
        hooks.inject("broken", "b", lambda d, advance, name: None, {"after": "c"})
        hooks.inject("broken", "c", lambda d, advance, name: None, {"after": "b"})

        hooks.validate("fine")
        with pytest.raises(CircularDependencyError):
            hooks.validate()

    @pytest.mark.asyncio
    async def test_emit_raises_ordering_errors_synchronously(self):
        hooks = Hooks()
        calls, handler = recorder()
        hooks.on("test", handler)
        hooks.inject("test", "one", lambda d, advance, name: advance(d), {"before": "two"})
        hooks.inject("test", "two", lambda d, advance, name: advance(d), {"before": "three", "after": "one"})
        hooks.inject("test", "three", lambda d, advance, name: advance(d), {"before": "one"})

        with pytest.raises(CircularDependencyError):
            hooks.emit("test")
        await hooks.drain()

        assert calls == []
        assert hooks.get_stats().events_emitted == 0

    def test_emit_requires_running_loop(self):
        hooks = Hooks()
        with pytest.raises(RuntimeError):
            hooks.emit("x")


# =============================================================================
# Scheduling and statistics
# =============================================================================


class TestScheduling:
    @pytest.mark.asyncio
    async def test_nested_emits_are_chronological(self):
        hooks = Hooks()
        log = []

        def on_a(data, name):
            log.append("a:start")
            hooks.emit("b")
            log.append("a:end")

        hooks.on("a", on_a)
        hooks.on("a", lambda data, name: log.append("a:second"))
        hooks.on("b", lambda data, name: log.append("b"))
        hooks.on("c", lambda data, name: log.append("c"))

        hooks.emit("a")
        hooks.emit("c")
        await hooks.drain()

        assert log == ["a:start", "a:end", "a:second", "c", "b"]

    @pytest.mark.asyncio
    async def test_emissions_keep_fifo_order(self):
        hooks = Hooks()
        seen = []
        hooks.on(lambda name: True, lambda data, name: seen.append(data))

        for i in range(10):
            hooks.emit(f"event-{i % 3}", i)
        await hooks.drain()

        assert seen == list(range(10))

    @pytest.mark.asyncio
    async def test_stats_track_cache_use(self):
        hooks = Hooks()
        hooks.inject("x", "a", lambda d, advance, name: advance(d))
        hooks.on("x", lambda data, name: None)

        hooks.emit("x").emit("x")
        hooks.inject("y", "b", lambda d, advance, name: advance(d))
        hooks.emit("x")
        await hooks.drain()

        stats = hooks.get_stats()
        assert stats.events_emitted == 3
        assert stats.chains_completed == 3
        assert stats.handlers_invoked == 3
        assert stats.resolutions == 1
        assert stats.cache_hits == 2

    @pytest.mark.asyncio
    async def test_filter_injection_forces_reresolution(self):
        hooks = Hooks()
        hooks.inject("x", "a", lambda d, advance, name: advance(d))
        hooks.validate("x")

        hooks.inject(lambda name: name == "z", "b", lambda d, advance, name: advance(d))
        hooks.validate("x")

        assert hooks.get_stats().resolutions == 2

    @pytest.mark.asyncio
    async def test_stats_are_a_snapshot(self):
        hooks = Hooks()
        stats = hooks.get_stats()
        hooks.emit("x")
        await hooks.drain()

        assert stats.events_emitted == 0
        assert hooks.get_stats().events_emitted == 1
