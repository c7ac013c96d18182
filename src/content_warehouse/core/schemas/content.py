"""Pydantic response schemas for the content endpoints.

Services build these models and dump them with ``model_dump(mode="json")``
before the payload is cached, so a cache hit returns exactly the JSON a
fresh computation produced.  Records are kept as plain column->value
mappings because each operation projects a different column set.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

ContentRow = dict[str, Any]


class Pagination(BaseModel):
    """Offset pagination metadata for the list endpoint.

    Attributes:
        page: Effective 1-based page number.
        limit: Effective page size after clamping.
        total: Number of records matching the filters.
        pages: ``ceil(total / limit)``.
    """

    page: int
    limit: int
    total: int
    pages: int


class ContentFilters(BaseModel):
    """Filters echoed back by the list endpoint."""

    type: Optional[str] = None
    format: Optional[str] = None
    author: Optional[str] = None


class ContentListResponse(BaseModel):
    content: list[ContentRow]
    pagination: Pagination
    filters: ContentFilters


class SearchResponse(BaseModel):
    """Search results.

    Attributes:
        query: The search text as supplied.
        type: Type filter, or ``"all"`` when none was given.
        results: Matching records, newest first.
        count: Number of records on this page (no total is computed).
    """

    query: str
    type: str
    results: list[ContentRow]
    count: int


class RecentContentResponse(BaseModel):
    recent_content: list[ContentRow]
    count: int
    type: str


class AuthorContentResponse(BaseModel):
    author: str
    content: list[ContentRow]
    count: int


class WarehouseStats(BaseModel):
    """Aggregate statistics over the whole ``content`` table.

    Attributes:
        total_content: Row count.
        content_by_source_type: Row count per ``source_type``; NULL source
            types are reported under the key ``"null"``.
        content_by_media_type: Row count per non-NULL ``media_type``.
        processed_content: Rows with ``ai_processing_status = 'completed'``.
        pending_content: Rows with ``ai_processing_status = 'pending'``.
        average_word_count: Mean ``word_count`` rounded to an integer, 0 when
            no row has a word count.
        latest_content: Newest ``created_date``, or ``None`` for an empty table.
        last_updated: When these statistics were computed (UTC).
    """

    total_content: int
    content_by_source_type: dict[str, int] = Field(default_factory=dict)
    content_by_media_type: dict[str, int] = Field(default_factory=dict)
    processed_content: int
    pending_content: int
    average_word_count: int
    latest_content: Optional[datetime]
    last_updated: datetime


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    database: str
    redis: str
    version: str
    warehouse: str = "content-warehouse-api"


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str
