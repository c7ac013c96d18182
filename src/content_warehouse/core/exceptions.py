"""Application-wide exception hierarchy for the Content Warehouse API.

All custom exceptions subclass ``ContentWarehouseError``, enabling
consistent error handling and structured logging across the application.
The API layer maps each class onto an HTTP status in ``api/main.py``.

Hierarchy::

    ContentWarehouseError
    ├── MissingParameterError    (400)
    ├── ContentNotFoundError     (404)
    ├── StoreError               (500)
    └── CacheError               (never surfaced; reads degrade to the store)
"""

from __future__ import annotations


class ContentWarehouseError(Exception):
    """Base class for all Content Warehouse exceptions.

    Attributes:
        status_code: HTTP status the API layer responds with.
        public_message: Message safe to return to clients.
    """

    status_code: int = 500
    public_message: str = "Internal server error"


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------


class MissingParameterError(ContentWarehouseError):
    """Raised when a required query parameter is absent or blank.

    Args:
        parameter: Name of the missing query parameter (``"q"``, ``"author"``).
        message: Client-facing description of the problem.
    """

    status_code = 400

    def __init__(self, parameter: str, message: str | None = None) -> None:
        msg = message or f'Query parameter "{parameter}" is required'
        super().__init__(msg)
        self.parameter = parameter
        self.public_message = msg


class ContentNotFoundError(ContentWarehouseError):
    """Raised when a get-by-id lookup matches no record.

    Args:
        content_id: The identifier that was looked up.
    """

    status_code = 404
    public_message = "Content not found"

    def __init__(self, content_id: int) -> None:
        super().__init__(f"Content {content_id} not found")
        self.content_id = content_id


# ---------------------------------------------------------------------------
# Upstream failures
# ---------------------------------------------------------------------------


class StoreError(ContentWarehouseError):
    """Raised when the relational store is unreachable or a query fails.

    The original driver exception is chained via ``raise ... from exc`` and
    logged; its text is never returned to clients.

    Args:
        message: Description of the failure (for logs only).
        operation: Name of the read operation that failed.
    """

    status_code = 500

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class CacheError(ContentWarehouseError):
    """Raised when the cache cannot be read or written.

    Callers treat this as a cache miss; it never fails a request.

    Args:
        message: Description of the failure.
        key: Cache key involved, when known.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
