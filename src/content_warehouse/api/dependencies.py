"""FastAPI dependency injection providers.

The process-wide resources (engine session factory, Redis-backed cache
accessor, content service) are created once in the application lifespan
and stored on ``app.state``.  These providers hand them to route handlers,
and tests replace them through ``app.dependency_overrides``::

    app.dependency_overrides[get_content_service] = lambda: fake_service
"""

from __future__ import annotations

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from content_warehouse.config.settings import Settings
from content_warehouse.core.cache import CacheAside
from content_warehouse.core.content_service import ContentService


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running application was built with."""
    return request.app.state.settings


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to the shared engine."""
    return request.app.state.session_factory


def get_cache(request: Request) -> CacheAside:
    """Return the shared cache-aside accessor."""
    return request.app.state.cache


def get_content_service(request: Request) -> ContentService:
    """Return the shared :class:`ContentService`."""
    return request.app.state.content_service
