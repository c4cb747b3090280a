"""Domain models: the ContentItem aggregate and its markdown blocks.

These are plain dataclasses – not ORM models.  The constructors accept every
field (ids and timestamps included) so the mapper and test fixtures can
rebuild a fully-formed aggregate; application code should use the
``create()`` factories instead, which assign ids and timestamps.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

MARKDOWN_KIND = "markdown"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """RFC 3339 with microseconds and a ``Z`` suffix, e.g. ``2024-06-15T14:30:45.000000Z``."""
    return as_utc(value).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 / ISO 8601 string into an aware UTC datetime.

    Raises:
        ValueError: If *value* is not a string or not a valid date-time.
    """
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO 8601 string, got {type(value).__name__}")
    if value != value.strip() or "\x00" in value:
        raise ValueError(f"timestamp {value!r} has surrounding whitespace or a NUL byte")
    text = value
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


@dataclass
class MarkdownBlock:
    id: str
    source: str
    created_at: datetime
    kind: str = MARKDOWN_KIND

    def __post_init__(self) -> None:
        self.created_at = as_utc(self.created_at)

    @classmethod
    def create(cls, source: str) -> MarkdownBlock:
        return cls(id=str(uuid.uuid4()), source=source, created_at=utcnow())

    @property
    def word_count(self) -> int:
        """Number of whitespace-separated tokens in ``source``."""
        return len(self.source.split())

    def is_empty(self) -> bool:
        return not self.source.strip()


@dataclass
class ContentItem:
    id: str
    type: str
    title: str
    summary: str
    created_at: datetime
    updated_at: datetime
    blocks: list[MarkdownBlock] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.created_at = as_utc(self.created_at)
        self.updated_at = as_utc(self.updated_at)
        self.blocks = list(self.blocks)

    @classmethod
    def create(
        cls,
        type: str,
        title: str,
        summary: str = "",
        blocks: list[MarkdownBlock] | None = None,
    ) -> ContentItem:
        """Build a brand-new item with a fresh id and matching timestamps."""
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            type=type,
            title=title,
            summary=summary,
            created_at=now,
            updated_at=now,
            blocks=list(blocks or []),
        )

    # ------------------------------------------------------------------
    # Mutators – each one refreshes ``updated_at``
    # ------------------------------------------------------------------
    def set_title(self, title: str) -> None:
        self.title = title
        self._touch()

    def set_summary(self, summary: str) -> None:
        self.summary = summary
        self._touch()

    def add_block(self, block: MarkdownBlock) -> None:
        self.blocks.append(block)
        self._touch()

    def set_blocks(self, blocks: list[MarkdownBlock]) -> None:
        self.blocks = list(blocks)
        self._touch()

    def _touch(self) -> None:
        self.updated_at = max(utcnow(), self.created_at)

    @property
    def block_count(self) -> int:
        return len(self.blocks)
