"""
Unit tests for the read-through helpers in isolation.

The loaders here are plain coroutines; the database is not involved.
"""

import json

import pytest

from adtime.core.cache.read_through import (
    TrustingReadThrough,
    ValidatedReadThrough,
    invalidate_keys,
)


class Loader:
    """Async loader that counts calls."""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.value


def numbers(cache):
    return ValidatedReadThrough(
        cache,
        name="number",
        ttl_seconds=60,
        encode=json.dumps,
        decode=json.loads,
        validate=lambda n: n > 0,
        on_invalid_source=lambda n: ValueError(f"bad {n}"),
    )


class TestValidatedReadThrough:
    async def test_miss_loads_and_populates(self, cache):
        loader = Loader(5)

        assert await numbers(cache).get("n", loader) == 5
        assert await cache.get("n") == "5"
        assert loader.calls == 1

    async def test_hit_skips_loader(self, cache):
        await cache.set("n", "7")
        loader = Loader(5)

        assert await numbers(cache).get("n", loader) == 7
        assert loader.calls == 0

    async def test_invalid_cached_value_is_a_miss(self, cache):
        await cache.set("n", "-3")
        loader = Loader(5)

        assert await numbers(cache).get("n", loader) == 5
        assert loader.calls == 1

    async def test_invalid_source_value_raises_and_is_not_cached(self, cache):
        with pytest.raises(ValueError, match="bad -1"):
            await numbers(cache).get("n", Loader(-1))

        assert await cache.get("n") is None

    async def test_loader_errors_propagate(self, cache):
        async def boom():
            raise LookupError("missing")

        with pytest.raises(LookupError):
            await numbers(cache).get("n", boom)


class TestTrustingReadThrough:
    async def test_returns_cached_value_without_validation(self, cache):
        helper = TrustingReadThrough(
            cache, name="stats", ttl_seconds=60, encode=json.dumps, decode=json.loads
        )
        await cache.set("s", json.dumps({"total": -1}))
        loader = Loader({"total": 10})

        assert await helper.get("s", loader) == {"total": -1}
        assert loader.calls == 0

    async def test_decode_failure_recomputes(self, cache):
        helper = TrustingReadThrough(
            cache, name="stats", ttl_seconds=60, encode=json.dumps, decode=json.loads
        )
        await cache.set("s", "garbage{")

        assert await helper.get("s", Loader({"total": 10})) == {"total": 10}
        assert json.loads(await cache.get("s")) == {"total": 10}


class TestInvalidateKeys:
    async def test_counts_removed_keys(self, cache):
        await cache.set("a", "1")

        assert await invalidate_keys(cache, "a", "b") == 1
        assert await cache.get("a") is None

    async def test_failures_are_swallowed_and_logged(self, cache, caplog):
        await cache.set("a", "1")
        cache.fail("DEL")

        assert await invalidate_keys(cache, "a") == 0
        assert "Cache invalidation failed" in caplog.text
