"""SQLite-backed implementation of the store capability interface.

Usage::

    from portable_content.store.local import LocalStore

    with LocalStore(":memory:") as store:
        store.schema.create(definition)

Class definitions are kept as JSON in ``schema_classes``; objects live in
``objects`` keyed by ``(class_name, object_id)`` and are removed with their
class via ``ON DELETE CASCADE``.  Filtering and ordering happen in Python
after loading a class's rows, which is fine for the sizes this backend is
meant for (development, CLI use without a server, tests).
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from time import time
from typing import Any, Optional, Union

from portable_content.exceptions import ClientError, SchemaAlreadyExists, SchemaNotFound
from portable_content.models import as_utc, parse_timestamp
from portable_content.store.base import Filter, ObjectsAPI, SchemaAPI, StoreClient

logger = logging.getLogger(__name__)

_DDL = """
CREATE TABLE IF NOT EXISTS schema_classes (
    class_name  TEXT PRIMARY KEY,
    definition  TEXT NOT NULL,
    created_at  INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS objects (
    class_name  TEXT NOT NULL REFERENCES schema_classes(class_name) ON DELETE CASCADE,
    object_id   TEXT NOT NULL,
    properties  TEXT NOT NULL,
    updated_at  INTEGER NOT NULL,
    PRIMARY KEY (class_name, object_id)
);
"""


# ---------------------------------------------------------------------------
# Connection helpers
# ---------------------------------------------------------------------------

def get_connection(db_path: Union[Path, str]) -> sqlite3.Connection:
    """Open and configure a SQLite connection.

    Steps performed on every new connection:
    1. Enable ``PRAGMA foreign_keys = ON`` (class deletes cascade to objects).
    2. Switch to WAL journal mode for concurrent readers.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create the store tables.  Idempotent: every statement uses ``IF NOT EXISTS``."""
    conn.executescript(_DDL)


def _normalise_definition(definition: dict[str, Any]) -> dict[str, Any]:
    return {
        "class": definition["class"],
        "description": definition.get("description", ""),
        "properties": [
            {
                "name": prop["name"],
                "dataType": list(prop["dataType"]),
                "description": prop.get("description", ""),
            }
            for prop in definition.get("properties", [])
        ],
    }


def _like_to_regex(pattern: str) -> re.Pattern[str]:
    parts = (re.escape(chunk) for chunk in str(pattern).split("*"))
    return re.compile(".*".join(parts), re.IGNORECASE | re.DOTALL)


# ---------------------------------------------------------------------------
# Schema API
# ---------------------------------------------------------------------------

class LocalSchemaAPI(SchemaAPI):
    def __init__(self, store: LocalStore):
        self._store = store

    def exists(self, class_name: str) -> bool:
        with self._store.lock:
            row = self._store.conn.execute(
                "SELECT 1 FROM schema_classes WHERE class_name = ?", (class_name,)
            ).fetchone()
        return row is not None

    def create(self, definition: dict[str, Any]) -> dict[str, Any]:
        try:
            stored = _normalise_definition(definition)
        except (KeyError, TypeError) as exc:
            raise ClientError("create_schema", f"malformed class definition: {exc}") from exc

        conn = self._store.conn
        try:
            with self._store.lock, conn:
                conn.execute(
                    "INSERT INTO schema_classes (class_name, definition, created_at) "
                    "VALUES (?, ?, ?)",
                    (stored["class"], json.dumps(stored), int(time())),
                )
        except sqlite3.IntegrityError:
            raise SchemaAlreadyExists(stored["class"]) from None

        logger.debug("local store: created class %s", stored["class"])
        return stored

    def get(self, class_name: str) -> dict[str, Any]:
        definition = self._store.definition(class_name)
        if definition is None:
            raise SchemaNotFound(class_name)
        return definition

    def delete(self, class_name: str) -> bool:
        conn = self._store.conn
        with self._store.lock, conn:
            cur = conn.execute("DELETE FROM schema_classes WHERE class_name = ?", (class_name,))
        logger.debug("local store: deleted class %s (rows=%d)", class_name, cur.rowcount)
        return cur.rowcount > 0


# ---------------------------------------------------------------------------
# Objects API
# ---------------------------------------------------------------------------

class LocalObjectsAPI(ObjectsAPI):
    def __init__(self, store: LocalStore):
        self._store = store

    def put(self, class_name: str, object_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        types = self._property_types(class_name)
        for name, value in properties.items():
            if name not in types:
                raise ClientError(
                    "put_object", f'property "{name}" is not defined on class "{class_name}"'
                )
            self._check_value(name, types[name], value)

        conn = self._store.conn
        with self._store.lock, conn:
            conn.execute(
                """
                INSERT INTO objects (class_name, object_id, properties, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (class_name, object_id)
                DO UPDATE SET properties = excluded.properties, updated_at = excluded.updated_at
                """,
                (class_name, object_id, json.dumps(properties, ensure_ascii=False), int(time())),
            )
        return dict(properties)

    def get(self, class_name: str, object_id: str) -> Optional[dict[str, Any]]:
        with self._store.lock:
            row = self._store.conn.execute(
                "SELECT properties FROM objects WHERE class_name = ? AND object_id = ?",
                (class_name, object_id),
            ).fetchone()
        return json.loads(row["properties"]) if row else None

    def delete(self, class_name: str, object_id: str) -> bool:
        conn = self._store.conn
        with self._store.lock, conn:
            cur = conn.execute(
                "DELETE FROM objects WHERE class_name = ? AND object_id = ?",
                (class_name, object_id),
            )
        return cur.rowcount > 0

    def query(
        self,
        class_name: str,
        where: Optional[list[Filter]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        matches = self._matching(class_name, where)
        matches.sort(key=lambda props: str(props.get("createdAt", "")), reverse=True)
        return matches[offset:offset + limit]

    def count(self, class_name: str, where: Optional[list[Filter]] = None) -> int:
        return len(self._matching(class_name, where))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _property_types(self, class_name: str) -> dict[str, str]:
        definition = self._store.definition(class_name)
        if definition is None:
            raise SchemaNotFound(class_name)
        return {prop["name"]: prop["dataType"][0] for prop in definition["properties"]}

    @staticmethod
    def _check_value(name: str, data_type: str, value: Any) -> None:
        if data_type == "int":
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif data_type == "date":
            try:
                parse_timestamp(value)
                ok = True
            except ValueError:
                ok = False
        else:
            ok = isinstance(value, str)
        if not ok:
            raise ClientError(
                "put_object", f'property "{name}" expects {data_type}, got {value!r:.60}'
            )

    def _matching(self, class_name: str, where: Optional[list[Filter]]) -> list[dict[str, Any]]:
        types = self._property_types(class_name)
        with self._store.lock:
            rows = self._store.conn.execute(
                "SELECT properties FROM objects WHERE class_name = ?", (class_name,)
            ).fetchall()
        objects = [json.loads(r["properties"]) for r in rows]
        for condition in where or []:
            if condition.path not in types:
                raise ClientError(
                    "query", f'no such property "{condition.path}" on class "{class_name}"'
                )
            objects = [
                o for o in objects if self._test(o.get(condition.path), condition, types)
            ]
        return objects

    @staticmethod
    def _test(actual: Any, condition: Filter, types: dict[str, str]) -> bool:
        if actual is None:
            return False
        expected = condition.value
        if types[condition.path] == "date":
            actual = parse_timestamp(actual)
            if isinstance(expected, str):
                expected = parse_timestamp(expected)
            elif isinstance(expected, datetime):
                expected = as_utc(expected)

        if condition.operator == "Like":
            return bool(_like_to_regex(expected).fullmatch(str(actual)))
        if condition.operator == "Equal":
            return actual == expected
        if condition.operator == "GreaterThanEqual":
            return actual >= expected
        return actual <= expected


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class LocalStore(StoreClient):
    """A store backed by a single SQLite connection.

    One instance can be shared across threads; every statement runs under
    ``self.lock``.
    """

    def __init__(self, db_path: Union[Path, str] = ":memory:"):
        self.db_path = db_path
        self.lock = threading.RLock()
        self.conn = get_connection(db_path)
        init_db(self.conn)
        self.schema = LocalSchemaAPI(self)
        self.objects = LocalObjectsAPI(self)

    def definition(self, class_name: str) -> Optional[dict[str, Any]]:
        with self.lock:
            row = self.conn.execute(
                "SELECT definition FROM schema_classes WHERE class_name = ?", (class_name,)
            ).fetchone()
        return json.loads(row["definition"]) if row else None

    def ping(self) -> bool:
        try:
            with self.lock:
                self.conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error:
            return False

    def close(self) -> None:
        self.conn.close()
