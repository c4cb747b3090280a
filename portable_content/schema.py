"""Schema lifecycle management for ContentItem storage.

``SchemaManager`` makes the store's class definition for one collection
match the canonical ContentItem definition and answers structural queries
about it.  Nothing is cached: every call re-reads the store.

State per class name::

    Absent --create_schema--> Present --delete_schema--> Absent

Changing the canonical definition needs a delete followed by a create;
there is no in-place migration.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from portable_content.exceptions import (
    InvalidClassName,
    QueryFailed,
    SchemaAlreadyExists,
    SchemaCreationFailed,
    SchemaDeletionFailed,
    SchemaNotFound,
    SchemaValidationFailed,
    StoreError,
)
from portable_content.store.base import StoreClient

logger = logging.getLogger(__name__)

DEFAULT_CLASS_NAME = "ContentItem"

_CLASS_NAME_RE = re.compile(r"^[A-Z][_0-9A-Za-z]*$")

# (name, dataType, description) in canonical order.
CONTENT_ITEM_PROPERTIES: list[tuple[str, list[str], str]] = [
    ("contentId", ["text"], "Unique identifier for the content item"),
    ("type", ["text"], "Type of the content item"),
    ("title", ["text"], "Title of the content item"),
    ("summary", ["text"], "Summary of the content item"),
    ("createdAt", ["date"], "Creation timestamp"),
    ("updatedAt", ["date"], "Last update timestamp"),
    ("blockCount", ["int"], "Number of blocks in the content item"),
    ("blocks", ["text"], "JSON-encoded array of blocks (markdown, etc.)"),
]


def validate_class_name(class_name: str) -> str:
    """Return *class_name* unchanged if the store would accept it.

    Raises:
        InvalidClassName: On an empty name, a lowercase first letter, or any
            character outside ``[_0-9A-Za-z]`` (hyphens included).
    """
    if not isinstance(class_name, str) or not class_name:
        raise InvalidClassName(str(class_name), "class name must be a non-empty string")
    if not _CLASS_NAME_RE.match(class_name):
        if "-" in class_name:
            reason = "hyphens are not allowed"
        elif not class_name[0].isupper():
            reason = "must start with an uppercase letter"
        else:
            reason = "only letters, digits and underscores are allowed"
        raise InvalidClassName(class_name, reason)
    return class_name


def build_content_item_schema(class_name: str = DEFAULT_CLASS_NAME) -> dict[str, Any]:
    """Return the canonical class definition for ContentItem storage."""
    return {
        "class": class_name,
        "description": "ContentItem with nested markdown blocks",
        "properties": [
            {"name": name, "dataType": list(data_type), "description": description}
            for name, data_type, description in CONTENT_ITEM_PROPERTIES
        ],
    }


def compare_schemas(existing: Any, expected: Any) -> bool:
    """Structural equality of two class definitions.

    Equal iff the class names match, both have the same number of
    properties, and every expected property exists in *existing* with an
    identical ``dataType`` list.  Property order and descriptions are
    ignored.  Malformed input compares unequal; this never raises.
    """
    try:
        if not isinstance(existing, dict) or not isinstance(expected, dict):
            return False
        if existing.get("class") != expected.get("class"):
            return False

        existing_props = existing.get("properties") or []
        expected_props = expected.get("properties") or []
        if not isinstance(existing_props, list) or not isinstance(expected_props, list):
            return False
        if len(existing_props) != len(expected_props):
            return False

        existing_by_name = {}
        for prop in existing_props:
            if not isinstance(prop, dict) or "name" not in prop or "dataType" not in prop:
                return False
            existing_by_name[prop["name"]] = prop["dataType"]

        for prop in expected_props:
            if not isinstance(prop, dict) or "name" not in prop or "dataType" not in prop:
                return False
            actual = existing_by_name.get(prop["name"])
            if not isinstance(actual, list) or actual != list(prop["dataType"]):
                return False
        return True
    except TypeError:
        # unhashable property names and the like
        return False


class SchemaManager:
    """Creates, validates and deletes the ContentItem class in a store.

    Args:
        client: Any :class:`~portable_content.store.base.StoreClient`.
        class_name: Target class.  Validated here, before any store call.
    """

    def __init__(self, client: StoreClient, class_name: str = DEFAULT_CLASS_NAME):
        self.client = client
        self.class_name = validate_class_name(class_name)

    def expected_schema(self) -> dict[str, Any]:
        return build_content_item_schema(self.class_name)

    def create_schema(self) -> None:
        """Create the class.

        Raises:
            SchemaAlreadyExists: If the class is present, including when a
                concurrent creator wins the race after our existence check.
            SchemaCreationFailed: For any other store failure.
        """
        if self.schema_exists():
            raise SchemaAlreadyExists(self.class_name)

        try:
            self.client.schema.create(self.expected_schema())
        except StoreError:
            raise
        except Exception as exc:
            logger.warning("schema create for %s failed: %s", self.class_name, exc)
            raise SchemaCreationFailed(self.class_name, str(exc)) from exc
        logger.info("created schema for class %s", self.class_name)

    def delete_schema(self) -> None:
        """Delete the class.  A no-op when it does not exist."""
        if not self.schema_exists():
            return

        try:
            self.client.schema.delete(self.class_name)
        except StoreError:
            raise
        except Exception as exc:
            logger.warning("schema delete for %s failed: %s", self.class_name, exc)
            raise SchemaDeletionFailed(self.class_name, str(exc)) from exc
        logger.info("deleted schema for class %s", self.class_name)

    def schema_exists(self, class_name: Optional[str] = None) -> bool:
        name = self.class_name if class_name is None else validate_class_name(class_name)
        try:
            return bool(self.client.schema.exists(name))
        except StoreError:
            raise
        except Exception as exc:
            raise QueryFailed("schema_exists", str(exc)) from exc

    def validate_schema(self) -> bool:
        """Return True when the stored class matches the canonical definition.

        Raises:
            SchemaNotFound: If the class does not exist.
        """
        if not self.schema_exists():
            raise SchemaNotFound(self.class_name)

        try:
            existing = self.client.schema.get(self.class_name)
        except StoreError:
            raise
        except Exception as exc:
            raise SchemaValidationFailed(self.class_name, str(exc)) from exc

        valid = compare_schemas(existing, self.expected_schema())
        if not valid:
            logger.warning("schema for class %s does not match the expected structure", self.class_name)
        return valid

    def get_schema(self) -> Optional[dict[str, Any]]:
        """Return the stored definition, or ``None`` when the class is absent."""
        if not self.schema_exists():
            return None

        try:
            return self.client.schema.get(self.class_name)
        except StoreError:
            raise
        except Exception as exc:
            raise QueryFailed("get_schema", str(exc)) from exc
