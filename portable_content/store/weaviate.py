"""Weaviate REST implementation of the store capability interface.

Endpoints used
--------------
``GET    /v1/schema/{class}``            fetch a class (404 → absent)
``POST   /v1/schema``                    create a class (422 "already exists" → conflict)
``DELETE /v1/schema/{class}``            drop a class and its objects
``HEAD   /v1/objects/{class}/{id}``      object existence
``POST   /v1/objects``                   insert an object
``PUT    /v1/objects/{class}/{id}``      replace an object
``GET    /v1/objects/{class}/{id}``      fetch an object
``DELETE /v1/objects/{class}/{id}``      delete an object
``POST   /v1/graphql``                   filtered ``Get`` / ``Aggregate`` queries
``GET    /v1/.well-known/ready``         readiness probe

Transport-level problems are translated into the adapter's exception family
here, so nothing above this module ever sees an ``httpx`` exception.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from portable_content.config import Settings
from portable_content.exceptions import (
    AuthenticationFailed,
    ClientError,
    ConnectionFailed,
    InvalidResponse,
    QueryFailed,
    SchemaAlreadyExists,
    SchemaNotFound,
    ServerError,
    StoreTimeout,
)
from portable_content.models import format_timestamp
from portable_content.store.base import Filter, ObjectsAPI, SchemaAPI, StoreClient

logger = logging.getLogger(__name__)

_VALUE_KEYS = {"text": "valueText", "int": "valueInt", "date": "valueDate"}


def _error_text(response: httpx.Response) -> str:
    """Pull the human-readable message out of a Weaviate error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict):
        errors = body.get("error") or body.get("errors")
        if isinstance(errors, list):
            return "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
        if errors:
            return str(errors)
        if body.get("message"):
            return str(body["message"])
    return json.dumps(body)


def _graphql_literal(value: Any) -> str:
    if isinstance(value, datetime):
        value = format_timestamp(value)
    return json.dumps(value, ensure_ascii=False)


def _graphql_where(filters: list[Filter], types: dict[str, str]) -> str:
    operands = []
    for f in filters:
        if f.path not in types:
            raise ClientError("query", f'no such property "{f.path}"')
        key = _VALUE_KEYS.get(types[f.path], "valueText")
        operands.append(
            f'{{path: ["{f.path}"], operator: {f.operator}, {key}: {_graphql_literal(f.value)}}}'
        )
    if len(operands) == 1:
        return operands[0]
    return f"{{operator: And, operands: [{', '.join(operands)}]}}"


# ---------------------------------------------------------------------------
# Schema API
# ---------------------------------------------------------------------------

class WeaviateSchemaAPI(SchemaAPI):
    def __init__(self, store: WeaviateStore):
        self._store = store

    def exists(self, class_name: str) -> bool:
        response = self._store.request(
            "schema_exists", "GET", f"/v1/schema/{class_name}", allow=(404,)
        )
        return response.status_code != 404

    def create(self, definition: dict[str, Any]) -> dict[str, Any]:
        class_name = definition.get("class", "")
        response = self._store.request(
            "create_schema", "POST", "/v1/schema", json=definition, allow=(422,)
        )
        if response.status_code == 422:
            reason = _error_text(response)
            if "already exists" in reason.lower():
                raise SchemaAlreadyExists(class_name)
            raise ClientError("create_schema", reason)
        return self._store.json(response, "create_schema")

    def get(self, class_name: str) -> dict[str, Any]:
        response = self._store.request(
            "get_schema", "GET", f"/v1/schema/{class_name}", allow=(404,)
        )
        if response.status_code == 404:
            raise SchemaNotFound(class_name)
        return self._store.json(response, "get_schema")

    def delete(self, class_name: str) -> bool:
        self._store.request("delete_schema", "DELETE", f"/v1/schema/{class_name}")
        return True


# ---------------------------------------------------------------------------
# Objects API
# ---------------------------------------------------------------------------

class WeaviateObjectsAPI(ObjectsAPI):
    def __init__(self, store: WeaviateStore):
        self._store = store

    def put(self, class_name: str, object_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        body = {"class": class_name, "id": object_id, "properties": properties}
        path = f"/v1/objects/{class_name}/{object_id}"
        exists = self._store.request("put_object", "HEAD", path, allow=(404,))
        if exists.status_code == 404:
            response = self._store.request("put_object", "POST", "/v1/objects", json=body)
        else:
            response = self._store.request("put_object", "PUT", path, json=body)
        return self._store.json(response, "put_object").get("properties", properties)

    def get(self, class_name: str, object_id: str) -> Optional[dict[str, Any]]:
        response = self._store.request(
            "get_object", "GET", f"/v1/objects/{class_name}/{object_id}", allow=(404,)
        )
        if response.status_code == 404:
            return None
        properties = self._store.json(response, "get_object").get("properties")
        if not isinstance(properties, dict):
            raise InvalidResponse("get_object", "object has no properties mapping")
        return properties

    def delete(self, class_name: str, object_id: str) -> bool:
        response = self._store.request(
            "delete_object", "DELETE", f"/v1/objects/{class_name}/{object_id}", allow=(404,)
        )
        return response.status_code != 404

    def query(
        self,
        class_name: str,
        where: Optional[list[Filter]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        types = self._store.property_types(class_name)
        args = [f"limit: {int(limit)}", f"offset: {int(offset)}"]
        if "createdAt" in types:
            args.append('sort: [{path: ["createdAt"], order: desc}]')
        if where:
            args.append(f"where: {_graphql_where(where, types)}")
        fields = " ".join(types)
        data = self._store.graphql(
            "query", f"{{ Get {{ {class_name}({', '.join(args)}) {{ {fields} }} }} }}"
        )
        try:
            rows = data["Get"][class_name]
        except (KeyError, TypeError):
            raise InvalidResponse("query", f"missing Get.{class_name} in response") from None
        if not isinstance(rows, list):
            raise InvalidResponse("query", f"Get.{class_name} is not a list")
        return rows

    def count(self, class_name: str, where: Optional[list[Filter]] = None) -> int:
        clause = ""
        if where:
            types = self._store.property_types(class_name)
            clause = f"(where: {_graphql_where(where, types)})"
        data = self._store.graphql(
            "count", f"{{ Aggregate {{ {class_name}{clause} {{ meta {{ count }} }} }} }}"
        )
        try:
            return int(data["Aggregate"][class_name][0]["meta"]["count"])
        except (KeyError, IndexError, TypeError, ValueError):
            raise InvalidResponse("count", "malformed Aggregate response") from None


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class WeaviateStore(StoreClient):
    """A connection to a Weaviate server.

    Args:
        settings: Connection settings (host, port, scheme, API key, timeout).
        transport: Optional httpx transport override, used by tests to
            plug in an :class:`httpx.MockTransport`.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.host = settings.weaviate_host
        self.port = settings.weaviate_port
        self.timeout = settings.request_timeout
        headers = {"Accept": "application/json"}
        if settings.weaviate_api_key:
            headers["Authorization"] = f"Bearer {settings.weaviate_api_key}"
        self._client = httpx.Client(
            base_url=settings.weaviate_base_url,
            timeout=self.timeout,
            headers=headers,
            transport=transport,
        )
        self.schema = WeaviateSchemaAPI(self)
        self.objects = WeaviateObjectsAPI(self)

    # ------------------------------------------------------------------
    # Low-level request helpers
    # ------------------------------------------------------------------
    def request(
        self,
        operation: str,
        method: str,
        path: str,
        allow: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, translating transport and HTTP failures.

        Status codes listed in *allow* are returned to the caller untouched.
        """
        logger.debug("weaviate %s %s (%s)", method, path, operation)
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            raise StoreTimeout(operation, self.timeout) from None
        except httpx.TransportError as exc:
            raise ConnectionFailed(self.host, self.port, str(exc) or type(exc).__name__) from exc

        status = response.status_code
        if status < 400 or status in allow:
            return response
        reason = _error_text(response)
        if status in (401, 403):
            raise AuthenticationFailed(reason)
        if status >= 500:
            raise ServerError(operation, status, reason)
        raise ClientError(operation, f"HTTP {status}: {reason}")

    @staticmethod
    def json(response: httpx.Response, operation: str) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise InvalidResponse(operation, f"body is not valid JSON: {exc}") from None
        if not isinstance(body, dict):
            raise InvalidResponse(operation, "expected a JSON object")
        return body

    def graphql(self, operation: str, query: str) -> dict[str, Any]:
        response = self.request(operation, "POST", "/v1/graphql", json={"query": query})
        body = self.json(response, operation)
        if body.get("errors"):
            raise QueryFailed(operation, _error_text(response))
        data = body.get("data")
        if not isinstance(data, dict):
            raise InvalidResponse(operation, "GraphQL response has no data")
        return data

    def property_types(self, class_name: str) -> dict[str, str]:
        """Map each property of *class_name* to its first dataType token."""
        definition = self.schema.get(class_name)
        try:
            return {p["name"]: p["dataType"][0] for p in definition["properties"]}
        except (KeyError, IndexError, TypeError):
            raise InvalidResponse("get_schema", "class definition has malformed properties") from None

    # ------------------------------------------------------------------
    # StoreClient
    # ------------------------------------------------------------------
    def ping(self) -> bool:
        try:
            response = self._client.get("/v1/.well-known/ready")
        except httpx.HTTPError as exc:
            logger.warning("weaviate at %s:%s unreachable: %s", self.host, self.port, exc)
            return False
        return response.status_code == 200

    def close(self) -> None:
        self._client.close()
