"""Mapping between ContentItem aggregates and flat store objects.

A store object carries the eight canonical fields of the ContentItem class.
``blocks`` is a single text value holding a JSON array; each element is a
block record with the keys ``blockId, kind, source, createdAt, wordCount``::

    {
        "contentId": "6f1c…",
        "type": "article",
        "title": "Hello",
        "summary": "",
        "createdAt": "2024-06-15T14:30:45.000000Z",
        "updatedAt": "2024-06-15T14:30:45.000000Z",
        "blockCount": 1,
        "blocks": "[{\\"blockId\\": \\"…\\", \\"kind\\": \\"markdown\\", …}]"
    }

Everything here is pure: no I/O and no store access.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Iterable

from portable_content.exceptions import DataMappingError
from portable_content.models import (
    MARKDOWN_KIND,
    ContentItem,
    MarkdownBlock,
    format_timestamp,
    parse_timestamp,
)
from portable_content.schema import CONTENT_ITEM_PROPERTIES

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("contentId", "type", "title", "summary")
_DATE_FIELDS = ("createdAt", "updatedAt")
_BLOCK_FIELDS = ("blockId", "kind", "source", "createdAt", "wordCount")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class DataMapper:
    """Two-way, loss-free transform between domain objects and store objects."""

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------
    def block_to_store_object(self, block: MarkdownBlock) -> dict[str, Any]:
        return {
            "blockId": block.id,
            "kind": block.kind,
            "source": block.source,
            "createdAt": format_timestamp(block.created_at),
            "wordCount": block.word_count,
        }

    def store_object_to_block(self, record: Any) -> MarkdownBlock:
        if not isinstance(record, dict):
            raise DataMappingError("hydration", f"block record must be an object, got {type(record).__name__}")
        missing = [name for name in _BLOCK_FIELDS if name not in record]
        if missing:
            raise DataMappingError("hydration", f"block record missing fields: {', '.join(missing)}")

        block_id, kind, source = record["blockId"], record["kind"], record["source"]
        if not isinstance(block_id, str) or not block_id:
            raise DataMappingError("hydration", "block field 'blockId' must be a non-empty string")
        if kind != MARKDOWN_KIND:
            raise DataMappingError("hydration", f"unsupported block kind {kind!r}")
        if not isinstance(source, str):
            raise DataMappingError("hydration", "block field 'source' must be a string")
        if not _is_int(record["wordCount"]) or record["wordCount"] < 0:
            raise DataMappingError("hydration", "block field 'wordCount' must be a non-negative integer")

        return MarkdownBlock(
            id=block_id,
            source=source,
            created_at=self._parse_date(record["createdAt"], "block createdAt"),
            kind=kind,
        )

    # ------------------------------------------------------------------
    # Content items
    # ------------------------------------------------------------------
    def to_store_object(self, item: ContentItem) -> dict[str, Any]:
        blocks = [self.block_to_store_object(block) for block in item.blocks]
        return {
            "contentId": item.id,
            "type": item.type,
            "title": item.title,
            "summary": item.summary,
            "createdAt": format_timestamp(item.created_at),
            "updatedAt": format_timestamp(item.updated_at),
            "blockCount": len(blocks),
            "blocks": json.dumps(blocks, ensure_ascii=False),
        }

    def from_store_object(self, record: Any) -> ContentItem:
        """Rebuild a ContentItem from a store object.

        Raises:
            DataMappingError: If a field is missing or ill-typed, a timestamp
                does not parse, or ``blocks`` is not a JSON array of
                well-formed block records.
        """
        if not isinstance(record, dict):
            raise DataMappingError("hydration", f"store object must be a mapping, got {type(record).__name__}")
        missing = [name for name, _, _ in CONTENT_ITEM_PROPERTIES if name not in record]
        if missing:
            raise DataMappingError("hydration", f"store object missing fields: {', '.join(missing)}")

        for name in _TEXT_FIELDS:
            if not isinstance(record[name], str):
                raise DataMappingError("hydration", f"field {name!r} must be a string")
        if not _is_int(record["blockCount"]) or record["blockCount"] < 0:
            raise DataMappingError("hydration", "field 'blockCount' must be a non-negative integer")

        return ContentItem(
            id=record["contentId"],
            type=record["type"],
            title=record["title"],
            summary=record["summary"],
            created_at=self._parse_date(record["createdAt"], "createdAt"),
            updated_at=self._parse_date(record["updatedAt"], "updatedAt"),
            blocks=[self.store_object_to_block(b) for b in self._decode_blocks(record["blocks"])],
        )

    # ------------------------------------------------------------------
    # Batches – the first failing element aborts the whole batch
    # ------------------------------------------------------------------
    def to_store_objects(self, items: Iterable[ContentItem]) -> list[dict[str, Any]]:
        return [self.to_store_object(item) for item in items]

    def from_store_objects(self, records: Iterable[Any]) -> list[ContentItem]:
        return [self.from_store_object(record) for record in records]

    # ------------------------------------------------------------------
    # Structure checks
    # ------------------------------------------------------------------
    def validate_store_object(self, record: Any) -> bool:
        """True iff *record* has all eight canonical fields, each well-typed.  Never raises."""
        try:
            self.from_store_object(record)
        except DataMappingError:
            return False
        except Exception as exc:
            logger.debug("store object failed validation: %s: %s", type(exc).__name__, exc)
            return False
        return True

    def expected_store_structure(self) -> dict[str, str]:
        return {name: data_type[0] for name, data_type, _ in CONTENT_ITEM_PROPERTIES}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _parse_date(value: Any, label: str) -> datetime:
        try:
            return parse_timestamp(value)
        except ValueError as exc:
            raise DataMappingError("hydration", f"invalid {label} timestamp {value!r}: {exc}") from None

    @staticmethod
    def _decode_blocks(payload: Any) -> list[Any]:
        if not isinstance(payload, str):
            raise DataMappingError("hydration", "field 'blocks' must be a JSON string")
        try:
            blocks = json.loads(payload)
        except (ValueError, RecursionError) as exc:
            raise DataMappingError("hydration", f"field 'blocks' is not valid JSON: {exc}") from None
        if not isinstance(blocks, list):
            raise DataMappingError("hydration", "field 'blocks' must decode to a JSON array")
        return blocks
