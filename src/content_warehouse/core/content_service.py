"""Read operations over the ``content`` table.

:class:`ContentService` is the single entry point the route handlers call.
For each operation it validates required parameters, coerces pagination,
derives the cache key from the effective parameters and runs the query
builder's statements on a miss.

Cached operations and their TTLs come from :class:`CacheTTL`::

    list_content       content:list   300 s
    get_content        content:item   600 s
    search_content     search         300 s
    warehouse_stats    stats          120 s

``recent_content`` and ``content_by_author`` always read the store.

Store failures are logged and re-raised as :class:`StoreError`; the API
layer turns that into a generic 500.

Usage::

    service = ContentService(session_factory, CacheAside(redis_client))
    payload = await service.search_content("python", None, page=1, limit=20)
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any

from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import Select

from content_warehouse.api.metrics import store_queries_total
from content_warehouse.core.cache import (
    OP_ITEM,
    OP_LIST,
    OP_SEARCH,
    OP_STATS,
    CacheAside,
    CacheTTL,
    make_cache_key,
)
from content_warehouse.core.exceptions import (
    ContentNotFoundError,
    MissingParameterError,
    StoreError,
)
from content_warehouse.core.query_builder import (
    build_by_author_query,
    build_get_by_id_query,
    build_list_query,
    build_recent_query,
    build_search_query,
    build_stats_queries,
    paginate,
)
from content_warehouse.core.schemas.content import (
    AuthorContentResponse,
    ContentFilters,
    ContentListResponse,
    ContentRow,
    Pagination,
    RecentContentResponse,
    SearchResponse,
    WarehouseStats,
)

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50
DEFAULT_SEARCH_LIMIT = 20
DEFAULT_RECENT_LIMIT = 10

# ``content.id`` is an int4 column.
_ID_MIN = -(2**31)
_ID_MAX = 2**31 - 1

# Stats sub-queries that return grouped rows rather than a scalar.
_GROUPED_STATS = frozenset({"by_source_type", "by_media_type"})

_ROW_ADAPTER: TypeAdapter[ContentRow] = TypeAdapter(ContentRow)


def _optional(value: str | None) -> str | None:
    """Treat blank filter values as absent."""
    if value is None or not value.strip():
        return None
    return value


def _group_key(value: Any) -> str:
    # NULL group keys serialise the way JSON object keys do.
    return "null" if value is None else str(value)


def _round_half_up(value: Any) -> int:
    if value is None:
        return 0
    return math.floor(float(value) + 0.5)


class ContentService:
    """Cache-aside read operations over the content store.

    Args:
        session_factory: Factory producing sessions on the shared engine.
        cache: Cache-aside accessor wrapping the shared Redis client.
        ttl: Per-operation cache TTLs.
        max_page_size: Upper bound applied to every ``limit``.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: CacheAside,
        *,
        ttl: CacheTTL | None = None,
        max_page_size: int = 200,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache
        self._ttl = ttl or CacheTTL()
        self._max_page_size = max_page_size

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    async def _fetch_rows(self, stmt: Select, operation: str) -> list[ContentRow]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = [dict(row) for row in result.mappings().all()]
        except (SQLAlchemyError, OSError) as exc:
            store_queries_total.labels(operation=operation, status="error").inc()
            logger.error(
                "store_query_failed",
                exc_info=exc,
                extra={"operation": operation},
            )
            raise StoreError(f"Store query failed for {operation}", operation=operation) from exc
        store_queries_total.labels(operation=operation, status="ok").inc()
        return [_ROW_ADAPTER.dump_python(row, mode="json") for row in rows]

    async def _fetch_scalar(self, stmt: Select, operation: str) -> Any:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                value = result.scalar()
        except (SQLAlchemyError, OSError) as exc:
            store_queries_total.labels(operation=operation, status="error").inc()
            logger.error(
                "store_query_failed",
                exc_info=exc,
                extra={"operation": operation},
            )
            raise StoreError(f"Store query failed for {operation}", operation=operation) from exc
        store_queries_total.labels(operation=operation, status="ok").inc()
        return value

    # ------------------------------------------------------------------
    # Cached operations
    # ------------------------------------------------------------------

    async def list_content(
        self,
        type_: str | None = None,
        format_: str | None = None,
        author: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Return one page of content matching the optional filters.

        Args:
            type_: Matches ``source_type`` or ``media_type``.
            format_: Matches ``file_format``.
            author: Case-insensitive substring of ``author_name``.
            page: 1-based page number (default 1).
            limit: Page size (default 50, clamped to ``max_page_size``).

        Returns:
            ``{"content": [...], "pagination": {...}, "filters": {...}}``.
        """
        window = paginate(
            page, limit, default_limit=DEFAULT_LIST_LIMIT, max_limit=self._max_page_size
        )
        filters = ContentFilters(
            type=_optional(type_), format=_optional(format_), author=_optional(author)
        )
        key = make_cache_key(
            OP_LIST,
            {**filters.model_dump(), "page": window.page, "limit": window.limit},
        )

        async def compute() -> dict[str, Any]:
            query = build_list_query(filters.type, filters.format, filters.author, window)
            total = int(await self._fetch_scalar(query.count, OP_LIST) or 0)
            rows = await self._fetch_rows(query.data, OP_LIST)
            return ContentListResponse(
                content=rows,
                pagination=Pagination(
                    page=window.page,
                    limit=window.limit,
                    total=total,
                    pages=math.ceil(total / window.limit),
                ),
                filters=filters,
            ).model_dump(mode="json")

        return await self._cache.get_or_compute(key, self._ttl.list, compute, operation=OP_LIST)

    async def get_content(self, content_id: int) -> dict[str, Any]:
        """Return every column of one record.

        Raises:
            ContentNotFoundError: If no record has *content_id*.  Misses are
                not cached.  Ids outside the int4 range never reach the store.
        """
        if not _ID_MIN <= content_id <= _ID_MAX:
            raise ContentNotFoundError(content_id)
        key = make_cache_key(OP_ITEM, {"id": content_id})

        async def compute() -> dict[str, Any]:
            rows = await self._fetch_rows(build_get_by_id_query(content_id), OP_ITEM)
            if not rows:
                raise ContentNotFoundError(content_id)
            return rows[0]

        return await self._cache.get_or_compute(
            key, self._ttl.content, compute, operation=OP_ITEM
        )

    async def search_content(
        self,
        q: str | None,
        type_: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Free-text search over title, body, author and AI topics.

        Raises:
            MissingParameterError: If *q* is absent or blank.
        """
        if q is None or not q.strip():
            raise MissingParameterError("q")
        type_ = _optional(type_)
        window = paginate(
            page, limit, default_limit=DEFAULT_SEARCH_LIMIT, max_limit=self._max_page_size
        )
        key = make_cache_key(
            OP_SEARCH,
            {"q": q, "type": type_, "page": window.page, "limit": window.limit},
        )

        async def compute() -> dict[str, Any]:
            rows = await self._fetch_rows(build_search_query(q, type_, window), OP_SEARCH)
            return SearchResponse(
                query=q,
                type=type_ or "all",
                results=rows,
                count=len(rows),
            ).model_dump(mode="json")

        return await self._cache.get_or_compute(
            key, self._ttl.search, compute, operation=OP_SEARCH
        )

    async def warehouse_stats(self) -> dict[str, Any]:
        """Compute aggregate statistics, running the seven queries concurrently.

        Any failing sub-query fails the whole call with :class:`StoreError`;
        the sub-queries still in flight are cancelled first.
        """
        key = make_cache_key(OP_STATS)

        async def compute() -> dict[str, Any]:
            try:
                async with asyncio.TaskGroup() as group:
                    tasks = {
                        name: group.create_task(
                            self._fetch_rows(stmt, OP_STATS)
                            if name in _GROUPED_STATS
                            else self._fetch_scalar(stmt, OP_STATS)
                        )
                        for name, stmt in build_stats_queries().items()
                    }
            except ExceptionGroup as failures:
                # Siblings of the first failure are cancelled and awaited.
                raise failures.exceptions[0]
            result = {name: task.result() for name, task in tasks.items()}

            return WarehouseStats(
                total_content=int(result["total"] or 0),
                content_by_source_type={
                    _group_key(row["source_type"]): int(row["count"])
                    for row in result["by_source_type"]
                },
                content_by_media_type={
                    _group_key(row["media_type"]): int(row["count"])
                    for row in result["by_media_type"]
                },
                processed_content=int(result["processed"] or 0),
                pending_content=int(result["pending"] or 0),
                average_word_count=_round_half_up(result["average_word_count"]),
                latest_content=result["latest"],
                last_updated=datetime.now(timezone.utc),
            ).model_dump(mode="json")

        return await self._cache.get_or_compute(
            key, self._ttl.stats, compute, operation=OP_STATS
        )

    # ------------------------------------------------------------------
    # Uncached operations
    # ------------------------------------------------------------------

    async def recent_content(
        self,
        limit: int | None = None,
        type_: str | None = None,
    ) -> dict[str, Any]:
        """Return the newest records, optionally restricted to one type."""
        type_ = _optional(type_)
        window = paginate(
            None, limit, default_limit=DEFAULT_RECENT_LIMIT, max_limit=self._max_page_size
        )
        rows = await self._fetch_rows(build_recent_query(window.limit, type_), "recent")
        return RecentContentResponse(
            recent_content=rows,
            count=len(rows),
            type=type_ or "all",
        ).model_dump(mode="json")

    async def content_by_author(self, author: str | None) -> dict[str, Any]:
        """Return every record whose author name contains *author*.

        Raises:
            MissingParameterError: If *author* is absent or blank.
        """
        if author is None or not author.strip():
            raise MissingParameterError("author", "Author parameter is required")
        rows = await self._fetch_rows(build_by_author_query(author), "by_author")
        return AuthorContentResponse(
            author=author,
            content=rows,
            count=len(rows),
        ).model_dump(mode="json")
