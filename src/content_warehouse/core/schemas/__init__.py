"""Pydantic request/response schemas for the Content Warehouse API."""

from __future__ import annotations

from content_warehouse.core.schemas.content import (
    AuthorContentResponse,
    ContentFilters,
    ContentListResponse,
    ContentRow,
    ErrorResponse,
    HealthResponse,
    Pagination,
    RecentContentResponse,
    SearchResponse,
    WarehouseStats,
)

__all__ = [
    "AuthorContentResponse",
    "ContentFilters",
    "ContentListResponse",
    "ContentRow",
    "ErrorResponse",
    "HealthResponse",
    "Pagination",
    "RecentContentResponse",
    "SearchResponse",
    "WarehouseStats",
]
