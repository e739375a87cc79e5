"""
Tests for the resource cache state machine.

The cache holds futures for in-flight reads, so each test runs inside
its own event loop.
"""

import asyncio

from quantor.data.cache import EntryState, ResourceCache


def _new_future():
    return asyncio.get_running_loop().create_future()


class TestResourceCache:
    """Tests for cache transitions and freshness."""

    def test_unknown_key_is_empty(self, harness):
        cache = ResourceCache(300, harness.clock)
        assert cache.state("/api/budgets") == EntryState.EMPTY
        assert cache.get_fresh("/api/budgets") == (False, None)
        assert "/api/budgets" not in cache

    def test_resolve_makes_entry_fresh(self, harness, run):
        cache = ResourceCache(300, harness.clock)

        async def scenario():
            pending = _new_future()
            cache.begin("/api/budgets", pending)
            assert cache.state("/api/budgets") == EntryState.LOADING
            assert cache.resolve("/api/budgets", pending, [1, 2]) is True

        run(scenario())
        assert cache.state("/api/budgets") == EntryState.FRESH
        assert cache.get_fresh("/api/budgets") == (True, [1, 2])

    def test_freshness_window_expires(self, harness, run):
        cache = ResourceCache(300, harness.clock)

        async def scenario():
            pending = _new_future()
            cache.begin("/api/dashboard", pending)
            cache.resolve("/api/dashboard", pending, {"totalBalance": 1})

        run(scenario())
        harness.clock.advance(299)
        assert cache.get_fresh("/api/dashboard")[0] is True
        harness.clock.advance(1)
        assert cache.get_fresh("/api/dashboard")[0] is False

    def test_reject_records_error(self, harness, run):
        cache = ResourceCache(300, harness.clock)
        error = RuntimeError("boom")

        async def scenario():
            pending = _new_future()
            cache.begin("/api/budgets", pending)
            cache.reject("/api/budgets", pending, error)

        run(scenario())
        entry = cache.peek("/api/budgets")
        assert entry.state == EntryState.ERRORED
        assert entry.error is error
        assert entry.pending is None
        assert cache.get_fresh("/api/budgets") == (False, None)

    def test_invalidate_drops_settled_entry(self, harness, run):
        cache = ResourceCache(300, harness.clock)

        async def scenario():
            pending = _new_future()
            cache.begin("/api/budgets", pending)
            cache.resolve("/api/budgets", pending, [])

        run(scenario())
        assert cache.invalidate("/api/budgets", "/api/never-read") == ["/api/budgets"]
        assert cache.state("/api/budgets") == EntryState.EMPTY

    def test_invalidate_while_loading_supersedes(self, harness, run):
        """Test that a read invalidated in flight is not cached."""
        cache = ResourceCache(300, harness.clock)

        async def scenario():
            pending = _new_future()
            cache.begin("/api/budgets", pending)
            cache.invalidate("/api/budgets")
            assert cache.peek("/api/budgets").superseded
            return cache.resolve("/api/budgets", pending, ["stale"])

        assert run(scenario()) is False
        assert cache.state("/api/budgets") == EntryState.EMPTY

    def test_resolve_ignores_foreign_future(self, harness, run):
        """Test that only the registered in-flight read can settle an entry."""
        cache = ResourceCache(300, harness.clock)

        async def scenario():
            current = _new_future()
            cache.begin("/api/budgets", current)
            return cache.resolve("/api/budgets", _new_future(), ["other"])

        assert run(scenario()) is False
        assert cache.state("/api/budgets") == EntryState.LOADING

    def test_clear_forgets_everything(self, harness, run):
        cache = ResourceCache(300, harness.clock)

        async def scenario():
            for key in ("/api/budgets", "/api/dashboard"):
                pending = _new_future()
                cache.begin(key, pending)
                cache.resolve(key, pending, key)

        run(scenario())
        assert len(cache) == 2
        cache.clear()
        assert len(cache) == 0
        assert list(cache) == []
