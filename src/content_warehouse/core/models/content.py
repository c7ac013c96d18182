"""Content record ORM model.

``content`` is the single table this service reads.  Every media item
(video, transcript, article, book, course) is stored as one wide,
sparsely-populated row; media-specific columns are NULL for types that do
not use them.

Rows are created and updated by the ingestion pipeline.  The API never
writes to this table, so the model declares no defaults or triggers beyond
what the query layer needs to compile statements.

Column projections used by each read operation are declared at the bottom
of this module so that the query builder and the tests agree on them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from content_warehouse.core.models.base import Base


class Content(Base):
    """A single media item in the warehouse.

    Columns are grouped by concern:

    Identity & timestamps
        id, created_date

    Classification
        source_type, media_type, file_format

    Searchable body
        title, content_text, author_name, ai_topics, ai_sentiment,
        ai_processing_status

    Media-specific metadata
        word_count, file_size, duration_seconds, dimensions, resolution,
        page_count, course_level, tags, thumbnail_url, video_id,
        r2_source_path
    """

    __tablename__ = "content"

    # ------------------------------------------------------------------
    # Identity & timestamps
    # ------------------------------------------------------------------
    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True)
    created_date: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        index=True,
    )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------
    source_type: Mapped[Optional[str]] = mapped_column(sa.String(50), nullable=True, index=True)
    media_type: Mapped[Optional[str]] = mapped_column(sa.String(50), nullable=True, index=True)
    file_format: Mapped[Optional[str]] = mapped_column(sa.String(20), nullable=True)

    # ------------------------------------------------------------------
    # Searchable body
    # ------------------------------------------------------------------
    title: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    content_text: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    author_name: Mapped[Optional[str]] = mapped_column(sa.String(255), nullable=True)
    ai_topics: Mapped[Optional[Any]] = mapped_column(JSONB, nullable=True)
    ai_sentiment: Mapped[Optional[str]] = mapped_column(sa.String(50), nullable=True)
    ai_processing_status: Mapped[Optional[str]] = mapped_column(
        sa.String(20),
        nullable=True,
        comment="pending | processing | completed | failed",
    )

    # ------------------------------------------------------------------
    # Media-specific metadata
    # ------------------------------------------------------------------
    word_count: Mapped[Optional[int]] = mapped_column(sa.Integer, nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(sa.BigInteger, nullable=True)
    duration_seconds: Mapped[Optional[int]] = mapped_column(sa.Integer, nullable=True)
    dimensions: Mapped[Optional[str]] = mapped_column(sa.String(50), nullable=True)
    resolution: Mapped[Optional[str]] = mapped_column(sa.String(50), nullable=True)
    page_count: Mapped[Optional[int]] = mapped_column(sa.Integer, nullable=True)
    course_level: Mapped[Optional[str]] = mapped_column(sa.String(50), nullable=True)
    tags: Mapped[Optional[list[str]]] = mapped_column(ARRAY(sa.Text), nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    video_id: Mapped[Optional[str]] = mapped_column(sa.String(64), nullable=True)
    r2_source_path: Mapped[Optional[str]] = mapped_column(
        sa.Text,
        nullable=True,
        comment="Object-storage locator of the source file",
    )

    def __repr__(self) -> str:
        return f"<Content id={self.id} source_type={self.source_type!r} title={self.title!r}>"


# ---------------------------------------------------------------------------
# Column projections per read operation
# ---------------------------------------------------------------------------

LIST_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "video_id",
    "created_date",
    "ai_processing_status",
    "r2_source_path",
    "word_count",
    "ai_topics",
    "ai_sentiment",
    "source_type",
    "media_type",
    "file_format",
    "file_size",
    "duration_seconds",
    "dimensions",
    "thumbnail_url",
    "page_count",
    "author_name",
    "resolution",
    "course_level",
    "tags",
)

SEARCH_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "video_id",
    "created_date",
    "ai_processing_status",
    "r2_source_path",
    "ai_topics",
    "ai_sentiment",
    "source_type",
    "media_type",
    "file_format",
    "author_name",
    "thumbnail_url",
)

RECENT_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "video_id",
    "created_date",
    "ai_processing_status",
    "r2_source_path",
    "ai_topics",
    "source_type",
    "media_type",
    "file_format",
    "thumbnail_url",
    "author_name",
)

AUTHOR_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "video_id",
    "created_date",
    "ai_topics",
    "ai_sentiment",
    "source_type",
    "media_type",
    "file_format",
    "author_name",
    "thumbnail_url",
)
