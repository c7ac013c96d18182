"""Health check route handler.

``GET /api/health``
    Verifies the process can reach the store (``SELECT 1``) and the cache
    (``PING``).  Returns 200 with ``status: "healthy"`` when both answer and
    500 with ``status: "unhealthy"`` naming the failing component otherwise.
    Driver error text is logged, not returned.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from content_warehouse.api.dependencies import (
    get_app_settings,
    get_cache,
    get_session_factory,
)
from content_warehouse.config.settings import Settings
from content_warehouse.core.cache import CacheAside
from content_warehouse.core.database import check_database
from content_warehouse.core.exceptions import CacheError
from content_warehouse.core.schemas.content import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


def _unhealthy(error: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"status": "unhealthy", "error": error})


@router.get("/health", response_model=HealthResponse)
async def system_health(
    settings: Annotated[Settings, Depends(get_app_settings)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    cache: Annotated[CacheAside, Depends(get_cache)],
) -> JSONResponse:
    """Return store and cache connectivity plus the API version."""
    try:
        await check_database(session_factory)
    except (SQLAlchemyError, OSError):
        logger.exception("Health check: database unreachable")
        return _unhealthy("database unreachable")

    try:
        await cache.ping()
    except CacheError:
        logger.exception("Health check: Redis unreachable")
        return _unhealthy("redis unreachable")

    payload = HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        database="connected",
        redis="connected",
        version=settings.app_version,
    )
    return JSONResponse(payload.model_dump(mode="json"))
