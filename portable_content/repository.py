"""ContentItem repository over a store client.

The repository is thin glue: it keeps every ContentItem as one object in a
single class (aggregate-root storage with blocks nested as JSON), uses
:class:`~portable_content.schema.SchemaManager` to make sure that class
exists and :class:`~portable_content.mapper.DataMapper` to convert objects
on the way in and out.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, TypeVar

from portable_content.exceptions import (
    QueryFailed,
    SchemaAlreadyExists,
    StoreError,
    UnsupportedOperation,
)
from portable_content.mapper import DataMapper
from portable_content.models import ContentItem, as_utc, format_timestamp
from portable_content.schema import DEFAULT_CLASS_NAME, SchemaManager
from portable_content.store.base import Filter, StoreClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

CAPABILITIES = (
    "save",
    "find_by_id",
    "find_all",
    "delete",
    "count",
    "exists",
    "find_by_type",
    "find_by_date_range",
    "search",
)

_OBJECT_NAMESPACE = uuid.NAMESPACE_URL


def object_id_for(content_id: str) -> str:
    """Deterministic store object id for a ContentItem id, so saves upsert."""
    return str(uuid.uuid5(_OBJECT_NAMESPACE, f"portable-content:{content_id}"))


def _check_page(limit: int, offset: int) -> None:
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    if offset < 0:
        raise ValueError(f"offset must not be negative, got {offset}")


class ContentRepository:
    def __init__(
        self,
        client: StoreClient,
        class_name: str = DEFAULT_CLASS_NAME,
        mapper: Optional[DataMapper] = None,
    ):
        self.client = client
        self.schema_manager = SchemaManager(client, class_name)
        self.class_name = self.schema_manager.class_name
        self.mapper = mapper or DataMapper()

    def ensure_schema(self) -> bool:
        """Create the class if it is missing.  Returns True when it was created.

        Losing a creation race to another process counts as already present.
        """
        if self.schema_manager.schema_exists():
            return False
        try:
            self.schema_manager.create_schema()
        except SchemaAlreadyExists:
            logger.info("class %s was created concurrently", self.class_name)
            return False
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def save(self, item: ContentItem) -> None:
        record = self.mapper.to_store_object(item)
        self._call(
            "save",
            lambda: self.client.objects.put(self.class_name, object_id_for(item.id), record),
        )
        logger.debug("saved content item %s (%d blocks)", item.id, record["blockCount"])

    def delete(self, content_id: str) -> None:
        """Delete an item.  Deleting a missing item is a no-op."""
        self._call(
            "delete",
            lambda: self.client.objects.delete(self.class_name, object_id_for(content_id)),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def find_by_id(self, content_id: str) -> Optional[ContentItem]:
        record = self._call(
            "find_by_id",
            lambda: self.client.objects.get(self.class_name, object_id_for(content_id)),
        )
        return self.mapper.from_store_object(record) if record is not None else None

    def exists(self, content_id: str) -> bool:
        return self.find_by_id(content_id) is not None

    def count(self) -> int:
        return self._call("count", lambda: self.client.objects.count(self.class_name))

    def find_all(self, limit: int = 20, offset: int = 0) -> list[ContentItem]:
        _check_page(limit, offset)
        return self._query("find_all", None, limit, offset)

    def find_by_type(self, type: str, limit: int = 20, offset: int = 0) -> list[ContentItem]:
        _check_page(limit, offset)
        return self._query("find_by_type", [Filter("type", "Equal", type)], limit, offset)

    def find_by_date_range(self, start: datetime, end: datetime) -> list[ContentItem]:
        """Items whose ``created_at`` lies in ``[start, end]``."""
        start, end = as_utc(start), as_utc(end)
        if start > end:
            raise ValueError("start must not be after end")
        where = [
            Filter("createdAt", "GreaterThanEqual", format_timestamp(start)),
            Filter("createdAt", "LessThanEqual", format_timestamp(end)),
        ]
        total = self.count()
        return self._query("find_by_date_range", where, max(total, 1), 0)

    def search(self, query: str, limit: int = 10) -> list[ContentItem]:
        """Case-insensitive substring match over title and summary."""
        if not query or not query.strip():
            raise ValueError("search query must not be blank")
        _check_page(limit, 0)
        pattern = f"*{query.strip()}*"
        found: dict[str, ContentItem] = {}
        for path in ("title", "summary"):
            for item in self._query("search", [Filter(path, "Like", pattern)], limit, 0):
                found.setdefault(item.id, item)
        ordered = sorted(found.values(), key=lambda i: i.created_at, reverse=True)
        return ordered[:limit]

    def find_similar(self, item: ContentItem, limit: int = 10) -> list[ContentItem]:
        raise UnsupportedOperation("find_similar")

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------
    def get_capabilities(self) -> list[str]:
        return list(CAPABILITIES)

    def supports(self, capability: str) -> bool:
        return capability in CAPABILITIES

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _query(
        self, operation: str, where: Optional[list[Filter]], limit: int, offset: int
    ) -> list[ContentItem]:
        records = self._call(
            operation,
            lambda: self.client.objects.query(self.class_name, where=where, limit=limit, offset=offset),
        )
        return self.mapper.from_store_objects(records)

    @staticmethod
    def _call(operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except StoreError:
            raise
        except Exception as exc:
            raise QueryFailed(operation, str(exc)) from exc


__all__ = ["CAPABILITIES", "ContentRepository", "object_id_for"]
