"""Shared fixtures: item/block factories and an in-memory local store.

The factories build fully-formed aggregates through the all-field dataclass
constructors, so tests can pin ids and timestamps without reflection.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Generator, Optional

import pytest

from portable_content.models import ContentItem, MarkdownBlock
from portable_content.store.local import LocalStore

FIXED_TIME = datetime(2024, 6, 15, 14, 30, 45, 123456, tzinfo=timezone.utc)


def build_block(
    source: str = "# Test Content\n\nThis is test markdown content for testing purposes.",
    id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> MarkdownBlock:
    return MarkdownBlock(
        id=id or str(uuid.uuid4()),
        source=source,
        created_at=created_at or FIXED_TIME,
    )


def build_item(
    type: str = "article",
    title: str = "Test Article",
    summary: str = "This is a test article summary",
    blocks: Optional[list[MarkdownBlock]] = None,
    id: Optional[str] = None,
    created_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
) -> ContentItem:
    created = created_at or FIXED_TIME
    return ContentItem(
        id=id or str(uuid.uuid4()),
        type=type,
        title=title,
        summary=summary,
        created_at=created,
        updated_at=updated_at or created,
        blocks=[build_block()] if blocks is None else blocks,
    )


@pytest.fixture()
def make_block() -> Callable[..., MarkdownBlock]:
    return build_block


@pytest.fixture()
def make_item() -> Callable[..., ContentItem]:
    return build_item


@pytest.fixture()
def store() -> Generator[LocalStore, None, None]:
    """Fresh in-memory local store for each test."""
    s = LocalStore(":memory:")
    yield s
    s.close()
