"""Utilities for rendering content items and schemas in the CLI."""

from __future__ import annotations

import json
from typing import Any

from portable_content.models import ContentItem, format_timestamp


def item_line(item: ContentItem) -> str:
    """One-line listing entry: ``<id>  [type]  'title'  (n blocks)``."""
    noun = "block" if item.block_count == 1 else "blocks"
    return f"  {item.id}  [{item.type}]  {item.title!r}  ({item.block_count} {noun})"


def item_detail(item: ContentItem) -> str:
    """Human-readable multi-line view of an item and its blocks."""
    lines = [
        f"# {item.title}",
        f"id      : {item.id}",
        f"type    : {item.type}",
        f"created : {format_timestamp(item.created_at)}",
        f"updated : {format_timestamp(item.updated_at)}",
    ]
    if item.summary:
        lines.append(f"summary : {item.summary}")
    for index, block in enumerate(item.blocks, start=1):
        lines.append("")
        lines.append(f"--- block {index} [{block.kind}] {block.id} ({block.word_count} words)")
        lines.append(block.source)
    return "\n".join(lines)


def schema_table(schema: dict[str, Any]) -> str:
    """Render a class definition as ``name  dataType`` rows."""
    lines = [f"class: {schema.get('class')}"]
    for prop in schema.get("properties", []):
        data_type = ",".join(prop.get("dataType", []))
        lines.append(f"  {prop.get('name', '?'):<12} {data_type}")
    return "\n".join(lines)


def as_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)
