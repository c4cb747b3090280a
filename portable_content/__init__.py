"""Portable content store adapter.

Public re-exports so callers can write::

    from portable_content import ContentItem, ContentRepository, SchemaManager
"""

from portable_content.mapper import DataMapper
from portable_content.models import ContentItem, MarkdownBlock
from portable_content.repository import ContentRepository
from portable_content.schema import SchemaManager, build_content_item_schema, compare_schemas

__all__ = [
    "ContentItem",
    "ContentRepository",
    "DataMapper",
    "MarkdownBlock",
    "SchemaManager",
    "build_content_item_schema",
    "compare_schemas",
]
