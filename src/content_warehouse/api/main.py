"""FastAPI application factory and entry point.

Creates the application instance, registers middleware and exception
handlers, and mounts the route routers under ``/api``.  The store engine
and the Redis client are opened in the lifespan context and closed when it
exits, which uvicorn triggers on SIGTERM/SIGINT.

Usage::

    # Development server (from project root)
    uvicorn content_warehouse.api.main:app --reload

    # Production
    content-warehouse            # console script, see run()
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Callable

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from content_warehouse.api.limiter import build_limiter, rate_limit_exceeded_handler
from content_warehouse.api.metrics import (
    get_metrics_response,
    http_request_duration_seconds,
    http_requests_total,
)
from content_warehouse.config.settings import Settings, get_settings
from content_warehouse.core.cache import CacheAside, CacheTTL, build_redis
from content_warehouse.core.content_service import ContentService
from content_warehouse.core.database import build_engine, build_session_factory
from content_warehouse.core.exceptions import ContentWarehouseError
from content_warehouse.core.logging_config import configure_logging, request_id_var

logger = structlog.get_logger(__name__)

_SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Open the store pool and cache client; close both on shutdown.

    The content service and its collaborators are published on
    ``application.state`` for the dependency providers in
    ``api/dependencies.py``.
    """
    settings: Settings = application.state.settings
    engine = build_engine(settings)
    redis_client = build_redis(settings)
    session_factory = build_session_factory(engine)
    cache = CacheAside(redis_client, enabled=settings.cache_enabled)

    application.state.session_factory = session_factory
    application.state.cache = cache
    application.state.content_service = ContentService(
        session_factory,
        cache,
        ttl=CacheTTL.from_settings(settings),
        max_page_size=settings.max_page_size,
    )
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        db_host=settings.db_host,
        redis_host=settings.redis_host,
        cache_enabled=settings.cache_enabled,
        log_level=settings.log_level,
    )
    try:
        yield
    finally:
        try:
            await redis_client.aclose()
        finally:
            await engine.dispose()
            logger.info("application_shutdown")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Args:
        settings: Settings to build the app with.  Defaults to
            :func:`get_settings`; tests pass their own instance.

    Returns:
        A fully configured ``FastAPI`` instance.  No connection is opened
        until the lifespan starts.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description=(
            "Read-only query API over the content warehouse: filtered listing, "
            "full-text search and statistics across videos, transcripts, "
            "articles, books and courses."
        ),
        version=settings.app_version,
        lifespan=lifespan,
    )
    application.state.settings = settings

    # ---- Middleware --------------------------------------------------------
    # Starlette runs the last-added middleware first.

    limiter = build_limiter(settings)
    application.state.limiter = limiter
    application.add_middleware(SlowAPIMiddleware)
    application.add_middleware(GZipMiddleware, minimum_size=1024)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration.

        Binds a fresh ``request_id`` into the structlog context, echoes it as
        ``X-Request-ID`` and converts any exception that escaped the route
        handlers into the generic 500 body.
        """
        request_id = str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            response = JSONResponse(
                status_code=500, content={"error": "Something went wrong!"}
            )

        elapsed = time.perf_counter() - start
        route = request.scope.get("route")
        path_label = getattr(route, "path", "unmatched")
        http_requests_total.labels(
            method=request.method, path=path_label, status=str(response.status_code)
        ).inc()
        http_request_duration_seconds.labels(method=request.method, path=path_label).observe(
            elapsed
        )
        log_fn = logger.warning if response.status_code >= 400 else logger.info
        log_fn(
            "request_complete",
            status_code=response.status_code,
            elapsed_ms=round(elapsed * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        for header, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    # ---- Exception handlers ------------------------------------------------

    @application.exception_handler(ContentWarehouseError)
    async def content_warehouse_error_handler(
        request: Request, exc: ContentWarehouseError
    ) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request parameters", "details": details},
        )

    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # A known path under an unserved method is still an unknown endpoint.
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    application.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # ---- Routers -----------------------------------------------------------

    from content_warehouse.api.routes import (  # noqa: PLC0415
        content,
        health as health_routes,
        search,
        stats,
    )

    application.include_router(health_routes.router, prefix="/api")
    application.include_router(content.router, prefix="/api")
    application.include_router(search.router, prefix="/api")
    application.include_router(stats.router, prefix="/api")

    if settings.metrics_enabled:

        @application.get("/metrics", include_in_schema=False)
        @limiter.exempt
        async def metrics() -> Response:
            """Expose Prometheus metrics in text format."""
            body, content_type = get_metrics_response()
            return Response(content=body, media_type=content_type)

    return application


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

app = create_app()
"""The FastAPI application instance.

This is the ASGI callable passed to uvicorn.
"""


def run() -> None:
    """Console-script entry point: serve :data:`app` on ``HOST:PORT``."""
    settings = get_settings()
    logger.info("content_warehouse_listening", host=settings.host, port=settings.port)
    uvicorn.run(
        "content_warehouse.api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
        proxy_headers=True,
    )
