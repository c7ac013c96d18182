"""Redis-backed cache-aside accessor for read operations.

Each cached read goes through :meth:`CacheAside.get_or_compute`::

    key -> GET key
        hit  -> json.loads(value)                       (store untouched)
        miss -> compute_fn() -> SETEX key ttl json.dumps(result) -> result

There is no invalidation path: the API never writes to the store, so a
cached response is at most one TTL window stale.  Two requests that miss
concurrently both recompute and both write; the last write wins and either
value is a valid answer.

The cache is an optimisation, never a correctness dependency.  A failed
``GET`` is treated as a miss and a failed ``SETEX`` is logged and ignored,
so Redis being down only costs latency.

Typical usage::

    cache = CacheAside(redis_client)
    key = make_cache_key("search", {"q": "python", "type": None, "page": 1, "limit": 20})
    payload = await cache.get_or_compute(key, 300, compute, operation="search")
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Sequence

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from content_warehouse.api.metrics import cache_requests_total
from content_warehouse.config.settings import Settings
from content_warehouse.core.exceptions import CacheError

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Operation names (the first segment of every cache key)
# ---------------------------------------------------------------------------

OP_LIST = "content:list"
OP_ITEM = "content:item"
OP_SEARCH = "search"
OP_STATS = "stats"

_MISS = object()


def make_cache_key(
    operation: str,
    params: Mapping[str, Any] | Sequence[Any] | None = None,
) -> str:
    """Return the deterministic cache key for *operation* and *params*.

    Mapping params are serialised with sorted keys, so the order in which
    query-string parameters arrived never changes the key.  Sequence params
    keep their order.  Callers pass effective values (defaults applied,
    pagination clamped) so that logically identical requests share a key.

    Args:
        operation: Operation name, e.g. :data:`OP_SEARCH`.
        params: Effective input parameters of the operation.

    Returns:
        ``"<operation>:<canonical JSON>"``.
    """
    canonical = json.dumps(
        {} if params is None else params,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return f"{operation}:{canonical}"


@dataclass(frozen=True)
class CacheTTL:
    """Time-to-live in seconds per cached operation.

    ``recent`` and ``by-author`` reads are not cached and have no entry.
    """

    list: int = 300
    content: int = 600
    search: int = 300
    stats: int = 120

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheTTL:
        return cls(
            list=settings.cache_ttl_list,
            content=settings.cache_ttl_content,
            search=settings.cache_ttl_search,
            stats=settings.cache_ttl_stats,
        )


def build_redis(settings: Settings) -> aioredis.Redis:
    """Create the process-wide async Redis client.

    The client connects lazily on first command, so constructing it never
    fails even when Redis is down.

    Args:
        settings: Application settings supplying host, port, password and
            socket timeouts.
    """
    return aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password or None,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
        encoding="utf-8",
        decode_responses=True,
    )


class CacheAside:
    """Cache-aside wrapper around a shared async Redis client.

    Args:
        redis_client: Shared client, or ``None`` to disable caching.
        enabled: When ``False`` every call goes straight to ``compute_fn``.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis | None,
        *,
        enabled: bool = True,
    ) -> None:
        self._redis = redis_client
        self._enabled = enabled and redis_client is not None

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    async def ping(self) -> None:
        """Send ``PING`` to Redis.

        Raises:
            CacheError: If no client is configured or Redis does not answer.
        """
        if self._redis is None:
            raise CacheError("Cache is not configured")
        try:
            await self._redis.ping()
        except (RedisError, OSError) as exc:
            raise CacheError(f"Cache ping failed: {exc}") from exc

    async def read(self, key: str) -> Any:
        """Return the deserialised value under *key*, or the miss sentinel.

        Raises:
            CacheError: If Redis is unreachable or the entry is not valid JSON.
        """
        if self._redis is None:
            raise CacheError("Cache is not configured", key=key)
        try:
            raw = await self._redis.get(key)
        except (RedisError, OSError) as exc:
            raise CacheError(f"Cache read failed: {exc}", key=key) from exc
        if raw is None:
            return _MISS
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise CacheError("Cached entry is not valid JSON", key=key) from exc

    async def write(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Serialise *value* and store it under *key* for *ttl_seconds*.

        Raises:
            CacheError: If Redis is unreachable or *value* is not JSON-safe.
        """
        if self._redis is None:
            raise CacheError("Cache is not configured", key=key)
        try:
            payload = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise CacheError("Result is not JSON-serialisable", key=key) from exc
        try:
            await self._redis.setex(key, ttl_seconds, payload)
        except (RedisError, OSError) as exc:
            raise CacheError(f"Cache write failed: {exc}", key=key) from exc

    # ------------------------------------------------------------------
    # Cache-aside
    # ------------------------------------------------------------------

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: int,
        compute_fn: Callable[[], Awaitable[Any]],
        *,
        operation: str = "unknown",
    ) -> Any:
        """Return the cached value for *key* or compute, store and return it.

        *compute_fn* must return a JSON-safe value (dicts, lists, strings,
        numbers, booleans, ``None``) so that a later hit is indistinguishable
        from the freshly computed result.  Exceptions raised by *compute_fn*
        propagate unchanged and nothing is cached.

        Args:
            key: Cache key from :func:`make_cache_key`.
            ttl_seconds: Expiry of the stored entry.
            compute_fn: Zero-argument coroutine function that queries the store.
            operation: Operation label used for logs and metrics.

        Returns:
            The cached or freshly computed value.
        """
        if not self._enabled:
            cache_requests_total.labels(operation=operation, result="bypass").inc()
            return await compute_fn()

        try:
            cached = await self.read(key)
        except CacheError as exc:
            cache_requests_total.labels(operation=operation, result="error").inc()
            logger.warning("cache_read_failed", key=key, operation=operation, error=str(exc))
            cached = _MISS

        if cached is not _MISS:
            cache_requests_total.labels(operation=operation, result="hit").inc()
            logger.debug("cache_hit", key=key, operation=operation)
            return cached

        cache_requests_total.labels(operation=operation, result="miss").inc()
        logger.debug("cache_miss", key=key, operation=operation)
        result = await compute_fn()

        try:
            await self.write(key, result, ttl_seconds)
        except CacheError as exc:
            logger.warning("cache_write_failed", key=key, operation=operation, error=str(exc))
        return result
