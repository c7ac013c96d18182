"""SQLAlchemy ORM models for the Content Warehouse API.

Application code can do ``from content_warehouse.core.models import Content``
without knowing which sub-module a model lives in.
"""

from __future__ import annotations

from content_warehouse.core.models.base import Base
from content_warehouse.core.models.content import (
    AUTHOR_COLUMNS,
    LIST_COLUMNS,
    RECENT_COLUMNS,
    SEARCH_COLUMNS,
    Content,
)

__all__ = [
    "Base",
    "Content",
    "LIST_COLUMNS",
    "SEARCH_COLUMNS",
    "RECENT_COLUMNS",
    "AUTHOR_COLUMNS",
]
