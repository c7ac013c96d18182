"""Tests for core/cache.py (cache-aside accessor).

Tests cover:
- make_cache_key(): deterministic, order-insensitive, distinct per operation/params
- CacheTTL.from_settings(): TTLs read from settings
- CacheAside.get_or_compute():
    - miss computes, stores with the TTL and returns the value
    - hit returns the stored value without computing
    - entry expires after its TTL
    - Redis read failure degrades to a miss
    - Redis write failure still returns the computed value
    - corrupt entry is treated as a miss
    - compute errors propagate and nothing is cached
    - disabled cache bypasses Redis
- CacheAside.ping(): CacheError when Redis is down or not configured
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from content_warehouse.config.settings import Settings
from content_warehouse.core.cache import (
    OP_ITEM,
    OP_LIST,
    OP_SEARCH,
    OP_STATS,
    CacheAside,
    CacheTTL,
    make_cache_key,
)
from content_warehouse.core.exceptions import CacheError, ContentNotFoundError
from tests.fakes import FakeRedis


# ---------------------------------------------------------------------------
# make_cache_key()
# ---------------------------------------------------------------------------


class TestMakeCacheKey:
    def test_key_is_operation_prefixed_canonical_json(self) -> None:
        key = make_cache_key(OP_SEARCH, {"q": "python", "type": None, "page": 1, "limit": 20})
        assert key == 'search:{"limit":20,"page":1,"q":"python","type":null}'

    def test_parameter_order_does_not_change_key(self) -> None:
        first = make_cache_key(OP_LIST, {"type": "video", "page": 1, "limit": 50})
        second = make_cache_key(OP_LIST, {"limit": 50, "page": 1, "type": "video"})
        assert first == second

    def test_different_params_give_different_keys(self) -> None:
        assert make_cache_key(OP_LIST, {"page": 1}) != make_cache_key(OP_LIST, {"page": 2})
        assert make_cache_key(OP_SEARCH, {"q": "a"}) != make_cache_key(OP_SEARCH, {"q": "b"})

    def test_same_params_different_operations_do_not_collide(self) -> None:
        params = {"id": 1}
        keys = {make_cache_key(op, params) for op in (OP_LIST, OP_ITEM, OP_SEARCH, OP_STATS)}
        assert len(keys) == 4

    def test_no_params(self) -> None:
        assert make_cache_key(OP_STATS) == "stats:{}"

    def test_non_ascii_text_kept(self) -> None:
        assert make_cache_key(OP_SEARCH, {"q": "søerne"}) == 'search:{"q":"søerne"}'


class TestCacheTTL:
    def test_defaults(self) -> None:
        ttl = CacheTTL()
        assert (ttl.list, ttl.content, ttl.search, ttl.stats) == (300, 600, 300, 120)

    def test_from_settings(self) -> None:
        settings = Settings(
            _env_file=None,
            cache_ttl_list=1,
            cache_ttl_content=2,
            cache_ttl_search=3,
            cache_ttl_stats=4,
        )
        assert CacheTTL.from_settings(settings) == CacheTTL(list=1, content=2, search=3, stats=4)


# ---------------------------------------------------------------------------
# get_or_compute()
# ---------------------------------------------------------------------------


class TestGetOrCompute:
    @pytest.mark.asyncio
    async def test_miss_computes_and_stores(self, fake_redis: FakeRedis, cache: CacheAside) -> None:
        compute = AsyncMock(return_value={"count": 1})

        result = await cache.get_or_compute("stats:{}", 120, compute, operation=OP_STATS)

        assert result == {"count": 1}
        compute.assert_awaited_once()
        assert fake_redis.setex_calls == [("stats:{}", 120, '{"count":1}')]

    @pytest.mark.asyncio
    async def test_hit_skips_compute(self, fake_redis: FakeRedis, cache: CacheAside) -> None:
        compute = AsyncMock(return_value={"count": 1})
        await cache.get_or_compute("stats:{}", 120, compute)

        second = AsyncMock(return_value={"count": 2})
        result = await cache.get_or_compute("stats:{}", 120, second)

        assert result == {"count": 1}
        second.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hit_equals_miss_result(self, cache: CacheAside) -> None:
        payload = {"results": [{"id": 1, "title": "Ærø", "tags": ["a"]}], "count": 1}
        miss = await cache.get_or_compute("k", 60, AsyncMock(return_value=payload))
        hit = await cache.get_or_compute("k", 60, AsyncMock())
        assert hit == miss

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, fake_redis: FakeRedis, cache: CacheAside) -> None:
        await cache.get_or_compute("k", 300, AsyncMock(return_value="old"))

        fake_redis.now = 299
        assert await cache.get_or_compute("k", 300, AsyncMock(return_value="new")) == "old"

        fake_redis.now = 300
        assert await cache.get_or_compute("k", 300, AsyncMock(return_value="new")) == "new"

    @pytest.mark.asyncio
    async def test_read_failure_degrades_to_compute(
        self, fake_redis: FakeRedis, cache: CacheAside
    ) -> None:
        fake_redis.down = True
        compute = AsyncMock(return_value=[1, 2, 3])

        result = await cache.get_or_compute("k", 60, compute)

        assert result == [1, 2, 3]
        compute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_failure_still_returns_value(
        self, fake_redis: FakeRedis, cache: CacheAside
    ) -> None:
        fake_redis.fail_writes = True

        result = await cache.get_or_compute("k", 60, AsyncMock(return_value={"ok": True}))

        assert result == {"ok": True}
        assert fake_redis.keys_stored() == []

    @pytest.mark.asyncio
    async def test_corrupt_entry_treated_as_miss(
        self, fake_redis: FakeRedis, cache: CacheAside
    ) -> None:
        fake_redis.put_raw("k", "{not json")
        compute = AsyncMock(return_value={"fresh": True})

        result = await cache.get_or_compute("k", 60, compute)

        assert result == {"fresh": True}
        assert json.loads(fake_redis.setex_calls[-1][2]) == {"fresh": True}

    @pytest.mark.asyncio
    async def test_compute_error_propagates_and_nothing_cached(
        self, fake_redis: FakeRedis, cache: CacheAside
    ) -> None:
        compute = AsyncMock(side_effect=ContentNotFoundError(7))

        with pytest.raises(ContentNotFoundError):
            await cache.get_or_compute("content:item:{\"id\":7}", 600, compute)

        assert fake_redis.setex_calls == []

    @pytest.mark.asyncio
    async def test_disabled_cache_bypasses_redis(self, fake_redis: FakeRedis) -> None:
        cache = CacheAside(fake_redis, enabled=False)
        compute = AsyncMock(return_value=1)

        await cache.get_or_compute("k", 60, compute)
        await cache.get_or_compute("k", 60, compute)

        assert compute.await_count == 2
        assert fake_redis.gets == []
        assert fake_redis.setex_calls == []

    @pytest.mark.asyncio
    async def test_no_client_means_disabled(self) -> None:
        cache = CacheAside(None)
        assert cache.enabled is False
        assert await cache.get_or_compute("k", 60, AsyncMock(return_value="v")) == "v"


# ---------------------------------------------------------------------------
# Raw access
# ---------------------------------------------------------------------------


class TestRawAccess:
    @pytest.mark.asyncio
    async def test_ping_ok(self, cache: CacheAside) -> None:
        await cache.ping()

    @pytest.mark.asyncio
    async def test_ping_raises_cache_error_when_down(
        self, fake_redis: FakeRedis, cache: CacheAside
    ) -> None:
        fake_redis.down = True
        with pytest.raises(CacheError):
            await cache.ping()

    @pytest.mark.asyncio
    async def test_ping_without_client_raises(self) -> None:
        with pytest.raises(CacheError):
            await CacheAside(None).ping()

    @pytest.mark.asyncio
    async def test_write_rejects_unserialisable_value(self, cache: CacheAside) -> None:
        with pytest.raises(CacheError) as exc_info:
            await cache.write("k", {"bad": object()}, 60)
        assert exc_info.value.key == "k"
