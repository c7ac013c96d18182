"""Configuration package for the Content Warehouse API.

Re-exports the settings symbols so that callers can write::

    from content_warehouse.config import get_settings
"""

from __future__ import annotations

from content_warehouse.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
