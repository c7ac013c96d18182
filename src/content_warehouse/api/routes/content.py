"""Content route handlers.

Endpoints (all mounted under ``/api``):

``GET /api/content``
    Filtered, paginated listing.  Cached for ``CACHE_TTL_LIST`` seconds.

``GET /api/content/recent``
    Newest records, optionally restricted to one type.  Not cached.

``GET /api/content/by-author``
    Every record whose author name contains ``author``.  Not cached.

``GET /api/content/{content_id}``
    A single full record.  Cached for ``CACHE_TTL_CONTENT`` seconds.

The two fixed sub-paths are registered before ``/content/{content_id}`` so
that ``recent`` and ``by-author`` are never parsed as an id.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from content_warehouse.api.dependencies import get_content_service
from content_warehouse.core.content_service import ContentService
from content_warehouse.core.schemas.content import (
    AuthorContentResponse,
    ContentListResponse,
    ErrorResponse,
    RecentContentResponse,
)

router = APIRouter(tags=["content"])

ServiceDep = Annotated[ContentService, Depends(get_content_service)]


@router.get(
    "/content",
    response_model=ContentListResponse,
    responses={500: {"model": ErrorResponse}},
)
async def list_content(
    service: ServiceDep,
    type_: Annotated[Optional[str], Query(alias="type")] = None,
    format_: Annotated[Optional[str], Query(alias="format")] = None,
    author: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> JSONResponse:
    """List content newest first.

    ``type`` matches either ``source_type`` or ``media_type``; ``format``
    matches ``file_format`` exactly; ``author`` is a case-insensitive
    substring.  ``page`` defaults to 1 and ``limit`` to 50.
    """
    payload = await service.list_content(type_, format_, author, page, limit)
    return JSONResponse(payload)


@router.get(
    "/content/recent",
    response_model=RecentContentResponse,
    responses={500: {"model": ErrorResponse}},
)
async def recent_content(
    service: ServiceDep,
    limit: Optional[int] = None,
    type_: Annotated[Optional[str], Query(alias="type")] = None,
) -> JSONResponse:
    """Return the ``limit`` (default 10) newest records."""
    payload = await service.recent_content(limit, type_)
    return JSONResponse(payload)


@router.get(
    "/content/by-author",
    response_model=AuthorContentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def content_by_author(
    service: ServiceDep,
    author: Optional[str] = None,
) -> JSONResponse:
    """Return all records whose author name contains ``author``."""
    payload = await service.content_by_author(author)
    return JSONResponse(payload)


@router.get(
    "/content/{content_id}",
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_content(content_id: int, service: ServiceDep) -> JSONResponse:
    """Return every column of one content record."""
    payload = await service.get_content(content_id)
    return JSONResponse(payload)
