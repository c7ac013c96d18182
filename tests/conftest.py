"""Shared pytest fixtures for Content Warehouse tests.

Fixture summary
---------------
settings        — Settings instance isolated from the developer's .env file.
fake_redis      — In-memory Redis double (see ``tests/fakes.py``).
cache           — CacheAside wrapping ``fake_redis``.
make_app        — Builds a FastAPI app whose ``app.state`` is wired to a
                  FakeStore and ``cache``.  The lifespan is not run, so no
                  connection is ever opened.
client_for      — Opens an httpx.AsyncClient against an app.

Unit tests need neither PostgreSQL nor Redis.  The live-store tests in
``tests/integration/test_store_queries.py`` run only when
``TEST_DATABASE_URL`` is set (see ``tests/integration/conftest.py``).
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Point the settings at hosts that do not resolve so an accidental real
# connection fails fast instead of reaching a developer's services.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "DB_HOST": "store.invalid",
    "REDIS_HOST": "cache.invalid",
    "LOG_LEVEL": "WARNING",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

# ---------------------------------------------------------------------------
# Application imports (after env bootstrap)
# ---------------------------------------------------------------------------

from content_warehouse.api.main import create_app  # noqa: E402
from content_warehouse.config.settings import Settings, get_settings  # noqa: E402
from content_warehouse.core.cache import CacheAside  # noqa: E402
from content_warehouse.core.content_service import ContentService  # noqa: E402
from tests.fakes import FakeRedis, FakeStore  # noqa: E402

# Clear the lru_cache so Settings() re-reads from the patched environment.
get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis: FakeRedis) -> CacheAside:
    return CacheAside(fake_redis)


@pytest.fixture
def make_app(settings: Settings, cache: CacheAside) -> Callable[..., Any]:
    """Return a builder for apps wired to a FakeStore and the shared cache.

    Keyword arguments override individual settings fields.

    Usage::

        app = make_app(FakeStore(list_handler(rows)), max_page_size=50)
    """

    def _make(store: FakeStore | None = None, **overrides: Any) -> Any:
        app_settings = settings.model_copy(update=overrides) if overrides else settings
        application = create_app(app_settings)
        store = store if store is not None else FakeStore()
        application.state.session_factory = store
        application.state.cache = cache
        application.state.content_service = ContentService(
            store, cache, max_page_size=app_settings.max_page_size
        )
        return application

    return _make


@pytest_asyncio.fixture
async def client_for() -> AsyncGenerator[Callable[[Any], AsyncClient], None]:
    """Yield a factory opening an ``httpx.AsyncClient`` for a given app.

    Clients are closed on teardown.  Exceptions escaping the app are turned
    into responses rather than raised into the test.
    """
    opened: list[AsyncClient] = []

    def _open(application: Any) -> AsyncClient:
        transport = ASGITransport(app=application, raise_app_exceptions=False)
        client = AsyncClient(transport=transport, base_url="http://test")
        opened.append(client)
        return client

    yield _open

    for client in opened:
        await client.aclose()
