"""Store backends package.

Public re-exports so callers can write::

    from portable_content.store import get_store, Filter
"""

from __future__ import annotations

from portable_content.config import Settings
from portable_content.store.base import Filter, ObjectsAPI, SchemaAPI, StoreClient
from portable_content.store.local import LocalStore
from portable_content.store.weaviate import WeaviateStore


def get_store(settings: Settings) -> StoreClient:
    """Open the backend selected by ``settings.store_backend``."""
    if settings.store_backend == "weaviate":
        return WeaviateStore(settings)
    settings.ensure_workspace()
    return LocalStore(settings.db_path)


__all__ = [
    "Filter",
    "LocalStore",
    "ObjectsAPI",
    "SchemaAPI",
    "StoreClient",
    "WeaviateStore",
    "get_store",
]
