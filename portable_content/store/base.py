"""Capability interface every store backend implements.

The schema manager and the repository only ever talk to a store through
these three abstract classes, so a backend is free to be a remote Weaviate
server or a local SQLite file.

Conventions shared by all backends
----------------------------------
* ``SchemaAPI.create`` raises :class:`SchemaAlreadyExists` on conflict.
* ``SchemaAPI.get`` raises :class:`SchemaNotFound` when the class is absent.
* ``ObjectsAPI.query`` combines ``where`` filters with AND and returns
  property dicts ordered by ``createdAt`` descending.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

OPERATORS = ("Equal", "GreaterThanEqual", "LessThanEqual", "Like")


@dataclass(frozen=True)
class Filter:
    """A single ``path <operator> value`` condition on an object property.

    ``Like`` matches case-insensitively with ``*`` as the wildcard.
    """

    path: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        if self.operator not in OPERATORS:
            raise ValueError(f"Unsupported filter operator {self.operator!r}")


class SchemaAPI(ABC):
    @abstractmethod
    def exists(self, class_name: str) -> bool:
        """Return True when a schema for *class_name* is present."""

    @abstractmethod
    def create(self, definition: dict[str, Any]) -> dict[str, Any]:
        """Create a class from *definition* and return the stored definition."""

    @abstractmethod
    def get(self, class_name: str) -> dict[str, Any]:
        """Return the stored definition for *class_name*."""

    @abstractmethod
    def delete(self, class_name: str) -> bool:
        """Drop *class_name* and every object stored under it."""


class ObjectsAPI(ABC):
    @abstractmethod
    def put(self, class_name: str, object_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        """Insert or replace the object *object_id*."""

    @abstractmethod
    def get(self, class_name: str, object_id: str) -> Optional[dict[str, Any]]:
        """Return the properties of *object_id*, or ``None`` if not found."""

    @abstractmethod
    def delete(self, class_name: str, object_id: str) -> bool:
        """Delete *object_id*.  Returns False when there was nothing to delete."""

    @abstractmethod
    def query(
        self,
        class_name: str,
        where: Optional[list[Filter]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Return matching objects' properties, newest ``createdAt`` first."""

    @abstractmethod
    def count(self, class_name: str, where: Optional[list[Filter]] = None) -> int:
        """Return the number of matching objects."""


class StoreClient(ABC):
    """A connected store: a ``schema`` API plus an ``objects`` API."""

    schema: SchemaAPI
    objects: ObjectsAPI

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the store is reachable.  Must not raise."""

    def close(self) -> None:
        """Release any held resources (no-op by default)."""

    def __enter__(self) -> StoreClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
