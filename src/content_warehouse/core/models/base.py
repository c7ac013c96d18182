"""SQLAlchemy declarative base for the Content Warehouse models.

The schema is owned by the external ingestion pipeline; these models only
describe the columns the API reads.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Shared declarative base for all Content Warehouse models."""
