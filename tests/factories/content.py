"""Factory Boy factories for ``content`` rows.

Rows are plain dicts shaped like the mappings the store returns, so they
can be handed straight to ``FakeStore`` handlers.

Usage::

    from tests.factories.content import ContentFactory

    row = ContentFactory.build(source_type="youtube", media_type="video")
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import factory

_BASE_DATE = datetime(2024, 6, 15, 10, 0, 0, tzinfo=timezone.utc)


class ContentFactory(factory.Factory):
    """Factory for full ``content`` rows (every column)."""

    class Meta:
        model = dict

    id = factory.Sequence(lambda n: n + 1)
    created_date = factory.Sequence(lambda n: _BASE_DATE - timedelta(hours=n))

    source_type = "youtube"
    media_type = "video"
    file_format = "mp4"

    title = factory.Sequence(lambda n: f"Building async services, part {n}")
    content_text = factory.Sequence(
        lambda n: f"Episode {n} walks through connection pooling and caching."
    )
    author_name = factory.Sequence(lambda n: f"Author {n}")
    ai_topics = factory.LazyFunction(lambda: ["python", "caching"])
    ai_sentiment = "positive"
    ai_processing_status = "completed"

    word_count = 1200
    file_size = 52_428_800
    duration_seconds = 900
    dimensions = None
    resolution = "1920x1080"
    page_count = None
    course_level = None
    tags = factory.LazyFunction(lambda: ["backend", "python"])
    thumbnail_url = factory.Sequence(lambda n: f"https://cdn.example.com/thumbs/{n}.jpg")
    video_id = factory.Sequence(lambda n: f"vid{n:08d}")
    r2_source_path = factory.Sequence(lambda n: f"videos/2024/{n}.mp4")


class ArticleFactory(ContentFactory):
    """A text article with no media-specific columns."""

    source_type = "blog"
    media_type = "article"
    file_format = "html"
    duration_seconds = None
    resolution = None
    video_id = None
    file_size = None
    word_count = 800
