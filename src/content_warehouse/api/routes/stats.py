"""Warehouse statistics route handler.

``GET /api/stats`` returns record counts per source and media type,
processing-status counts, the average word count and the newest
``created_date``.  The underlying queries run concurrently; the response
is cached for ``CACHE_TTL_STATS`` seconds.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from content_warehouse.api.dependencies import get_content_service
from content_warehouse.core.content_service import ContentService
from content_warehouse.core.schemas.content import ErrorResponse, WarehouseStats

router = APIRouter(tags=["stats"])


@router.get(
    "/stats",
    response_model=WarehouseStats,
    responses={500: {"model": ErrorResponse}},
)
async def warehouse_stats(
    service: Annotated[ContentService, Depends(get_content_service)],
) -> JSONResponse:
    payload = await service.warehouse_stats()
    return JSONResponse(payload)
