"""slowapi rate limiter construction.

``create_app()`` builds the ``Limiter`` from settings, attaches it to
``app.state.limiter`` and registers ``SlowAPIMiddleware`` so that the
default limit applies to every ``/api`` route, keyed by client address.
``/metrics`` is exempted with ``limiter.exempt``.  Storage is slowapi's
in-memory backend, so limits are per process.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from content_warehouse.config.settings import Settings

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def build_limiter(settings: Settings) -> Limiter:
    """Return a limiter applying ``settings.rate_limit`` per client address."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render a 429 in the API's ``{"error": ...}`` shape.

    Synchronous because ``SlowAPIMiddleware`` calls it without awaiting.
    """
    return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})
