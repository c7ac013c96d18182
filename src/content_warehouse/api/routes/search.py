"""Search route handler.

``GET /api/search?q=...&type=...&page=...&limit=...``

Case-insensitive substring search across title, content text, author
name and AI topics of every media type.  ``q`` is required; ``limit``
defaults to 20.  Responses are cached for ``CACHE_TTL_SEARCH`` seconds.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from content_warehouse.api.dependencies import get_content_service
from content_warehouse.core.content_service import ContentService
from content_warehouse.core.schemas.content import ErrorResponse, SearchResponse

router = APIRouter(tags=["search"])


@router.get(
    "/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def search_content(
    service: Annotated[ContentService, Depends(get_content_service)],
    q: Optional[str] = None,
    type_: Annotated[Optional[str], Query(alias="type")] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> JSONResponse:
    payload = await service.search_content(q, type_, page, limit)
    return JSONResponse(payload)
