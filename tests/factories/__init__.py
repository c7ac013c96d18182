"""Factory Boy model factories for test data generation.

Available factories
-------------------
ContentFactory      — full ``content`` row dict (video defaults)
ArticleFactory      — ``content`` row dict for a text article
"""

from __future__ import annotations

from tests.factories.content import ArticleFactory, ContentFactory

__all__ = [
    "ArticleFactory",
    "ContentFactory",
]
