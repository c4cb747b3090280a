"""Tests for the Weaviate REST store.

No real server is involved.  Stateful tests plug an ``httpx.MockTransport``
into the store.  ``FakeWeaviate`` keeps just enough state (classes and
objects) to answer the REST endpoints the store uses and records every
GraphQL query it receives.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
import respx

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
from portable_content.schema import SchemaManager, build_content_item_schema
from portable_content.store.base import Filter
from portable_content.store.weaviate import WeaviateStore

CLASS = "ContentItem"


def _settings(**overrides: Any) -> Settings:
    values = dict(
        store_backend="weaviate",
        weaviate_host="weaviate.test",
        weaviate_port=8080,
        weaviate_scheme="http",
        weaviate_api_key="",
        request_timeout=5.0,
    )
    values.update(overrides)
    return Settings(**values)


def _store(handler: Callable[[httpx.Request], httpx.Response], **overrides: Any) -> WeaviateStore:
    return WeaviateStore(_settings(**overrides), transport=httpx.MockTransport(handler))


class FakeWeaviate:
    def __init__(self) -> None:
        self.classes: dict[str, dict] = {}
        self.objects: dict[tuple[str, str], dict] = {}
        self.graphql: list[str] = []
        self.graphql_data: dict = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        method = request.method

        if parts[:2] == ["v1", "schema"]:
            if method == "POST":
                body = json.loads(request.content)
                if body["class"] in self.classes:
                    return httpx.Response(
                        422,
                        json={"error": [{"message": f"class name {body['class']!r} already exists"}]},
                    )
                self.classes[body["class"]] = body
                return httpx.Response(200, json=body)
            name = parts[2]
            if name not in self.classes:
                return httpx.Response(404)
            if method == "DELETE":
                del self.classes[name]
                return httpx.Response(200)
            return httpx.Response(200, json=self.classes[name])

        if parts[:2] == ["v1", "objects"]:
            if method == "POST":
                body = json.loads(request.content)
                self.objects[(body["class"], body["id"])] = body["properties"]
                return httpx.Response(200, json=body)
            key = (parts[2], parts[3])
            if method == "PUT":
                body = json.loads(request.content)
                self.objects[key] = body["properties"]
                return httpx.Response(200, json=body)
            if key not in self.objects:
                return httpx.Response(404)
            if method == "HEAD":
                return httpx.Response(204)
            if method == "DELETE":
                del self.objects[key]
                return httpx.Response(204)
            return httpx.Response(200, json={"class": key[0], "id": key[1], "properties": self.objects[key]})

        if parts == ["v1", "graphql"]:
            self.graphql.append(json.loads(request.content)["query"])
            return httpx.Response(200, json={"data": self.graphql_data})

        if parts == ["v1", ".well-known", "ready"]:
            return httpx.Response(200)

        return httpx.Response(404)


@pytest.fixture()
def fake() -> FakeWeaviate:
    return FakeWeaviate()


@pytest.fixture()
def weaviate(fake: FakeWeaviate) -> WeaviateStore:
    store = _store(fake)
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Schema endpoints
# ---------------------------------------------------------------------------

class TestWeaviateSchema:
    def test_exists_maps_404_to_false(self, weaviate: WeaviateStore) -> None:
        assert weaviate.schema.exists(CLASS) is False

    def test_create_get_delete(self, weaviate: WeaviateStore, fake: FakeWeaviate) -> None:
        definition = build_content_item_schema(CLASS)
        weaviate.schema.create(definition)
        assert weaviate.schema.exists(CLASS) is True
        assert weaviate.schema.get(CLASS) == definition
        assert weaviate.schema.delete(CLASS) is True
        assert CLASS not in fake.classes

    def test_create_conflict_becomes_already_exists(self, weaviate: WeaviateStore) -> None:
        weaviate.schema.create(build_content_item_schema(CLASS))
        with pytest.raises(SchemaAlreadyExists):
            weaviate.schema.create(build_content_item_schema(CLASS))

    def test_other_422_is_client_error(self) -> None:
        store = _store(lambda r: httpx.Response(422, json={"error": [{"message": "invalid dataType"}]}))
        with pytest.raises(ClientError, match="invalid dataType"):
            store.schema.create(build_content_item_schema(CLASS))

    def test_get_missing_raises_not_found(self, weaviate: WeaviateStore) -> None:
        with pytest.raises(SchemaNotFound):
            weaviate.schema.get(CLASS)

    def test_schema_manager_lifecycle(self, weaviate: WeaviateStore) -> None:
        manager = SchemaManager(weaviate, CLASS)
        manager.create_schema()
        assert manager.validate_schema() is True
        manager.delete_schema()
        assert manager.schema_exists() is False


# ---------------------------------------------------------------------------
# Object endpoints
# ---------------------------------------------------------------------------

class TestWeaviateObjects:
    def test_put_inserts_then_replaces(self, weaviate: WeaviateStore, fake: FakeWeaviate) -> None:
        weaviate.objects.put(CLASS, "id-1", {"title": "v1"})
        weaviate.objects.put(CLASS, "id-1", {"title": "v2"})
        methods = [r.method for r in fake.requests]
        assert methods == ["HEAD", "POST", "HEAD", "PUT"]
        assert fake.objects[(CLASS, "id-1")] == {"title": "v2"}

    def test_get(self, weaviate: WeaviateStore) -> None:
        weaviate.objects.put(CLASS, "id-1", {"title": "héllo"})
        assert weaviate.objects.get(CLASS, "id-1") == {"title": "héllo"}

    def test_get_missing(self, weaviate: WeaviateStore) -> None:
        assert weaviate.objects.get(CLASS, "nope") is None

    def test_get_without_properties_is_invalid(self) -> None:
        store = _store(lambda r: httpx.Response(200, json={"id": "x"}))
        with pytest.raises(InvalidResponse):
            store.objects.get(CLASS, "x")

    def test_delete(self, weaviate: WeaviateStore) -> None:
        weaviate.objects.put(CLASS, "id-1", {"title": "x"})
        assert weaviate.objects.delete(CLASS, "id-1") is True
        assert weaviate.objects.delete(CLASS, "id-1") is False

    def test_query_builds_graphql(self, weaviate: WeaviateStore, fake: FakeWeaviate) -> None:
        weaviate.schema.create(build_content_item_schema(CLASS))
        fake.graphql_data = {"Get": {CLASS: [{"contentId": "c1"}]}}

        rows = weaviate.objects.query(
            CLASS,
            where=[Filter("type", "Equal", "note"), Filter("blockCount", "GreaterThanEqual", 2)],
            limit=5,
            offset=10,
        )

        assert rows == [{"contentId": "c1"}]
        query = fake.graphql[-1]
        assert f"Get {{ {CLASS}(" in query
        assert "limit: 5" in query and "offset: 10" in query
        assert 'sort: [{path: ["createdAt"], order: desc}]' in query
        assert '{path: ["type"], operator: Equal, valueText: "note"}' in query
        assert '{path: ["blockCount"], operator: GreaterThanEqual, valueInt: 2}' in query
        assert "operator: And" in query
        assert "contentId type title summary createdAt updatedAt blockCount blocks" in query

    def test_query_date_filter_uses_value_date(self, weaviate: WeaviateStore, fake: FakeWeaviate) -> None:
        weaviate.schema.create(build_content_item_schema(CLASS))
        fake.graphql_data = {"Get": {CLASS: []}}
        weaviate.objects.query(CLASS, where=[Filter("createdAt", "LessThanEqual", "2024-01-01T00:00:00Z")])
        assert 'valueDate: "2024-01-01T00:00:00Z"' in fake.graphql[-1]
        assert "operator: And" not in fake.graphql[-1]

    def test_query_malformed_response(self, weaviate: WeaviateStore, fake: FakeWeaviate) -> None:
        weaviate.schema.create(build_content_item_schema(CLASS))
        fake.graphql_data = {"Get": {}}
        with pytest.raises(InvalidResponse):
            weaviate.objects.query(CLASS)

    def test_count(self, weaviate: WeaviateStore, fake: FakeWeaviate) -> None:
        fake.graphql_data = {"Aggregate": {CLASS: [{"meta": {"count": 7}}]}}
        assert weaviate.objects.count(CLASS) == 7
        assert f"Aggregate {{ {CLASS} {{ meta {{ count }} }} }}" in fake.graphql[-1]

    def test_graphql_errors_become_query_failed(self) -> None:
        store = _store(lambda r: httpx.Response(200, json={"errors": [{"message": "Cannot query field"}]}))
        with pytest.raises(QueryFailed, match="Cannot query field"):
            store.objects.count(CLASS)


# ---------------------------------------------------------------------------
# Transport / HTTP error translation
# ---------------------------------------------------------------------------

BASE = "http://weaviate.test:8080"


class TestErrorTranslation:
    """``respx`` patches the default httpx transport, so these stores are built without one."""

    def test_connection_error(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/v1/schema/{CLASS}").mock(
                side_effect=httpx.ConnectError("connection refused")
            )
            with pytest.raises(ConnectionFailed) as exc_info:
                WeaviateStore(_settings()).schema.exists(CLASS)
        assert exc_info.value.host == "weaviate.test"
        assert exc_info.value.port == 8080
        assert "connection refused" in str(exc_info.value)

    def test_timeout(self) -> None:
        with respx.mock:
            respx.post(f"{BASE}/v1/graphql").mock(side_effect=httpx.ReadTimeout("timed out"))
            with pytest.raises(StoreTimeout) as exc_info:
                WeaviateStore(_settings()).objects.count(CLASS)
        assert exc_info.value.seconds == 5.0
        assert exc_info.value.operation == "count"

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, status: int) -> None:
        with respx.mock:
            respx.get(f"{BASE}/v1/schema/{CLASS}").mock(
                return_value=httpx.Response(status, json={"message": "anonymous access not enabled"})
            )
            with pytest.raises(AuthenticationFailed, match="anonymous access"):
                WeaviateStore(_settings()).schema.exists(CLASS)

    def test_server_error(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/v1/schema/{CLASS}").mock(
                return_value=httpx.Response(503, text="unavailable")
            )
            with pytest.raises(ServerError) as exc_info:
                WeaviateStore(_settings()).schema.exists(CLASS)
        assert exc_info.value.status_code == 503

    def test_unexpected_4xx_is_client_error(self) -> None:
        with respx.mock:
            respx.delete(f"{BASE}/v1/schema/{CLASS}").mock(
                return_value=httpx.Response(400, json={"error": [{"message": "bad request"}]})
            )
            with pytest.raises(ClientError, match="HTTP 400: bad request"):
                WeaviateStore(_settings()).schema.delete(CLASS)

    def test_non_json_body_is_invalid_response(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/v1/schema/{CLASS}").mock(
                return_value=httpx.Response(200, text="<html>")
            )
            with pytest.raises(InvalidResponse):
                WeaviateStore(_settings()).schema.get(CLASS)

    def test_schema_manager_passes_store_errors_through(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/v1/schema/{CLASS}").mock(side_effect=httpx.ConnectError("down"))
            manager = SchemaManager(WeaviateStore(_settings()), CLASS)
            with pytest.raises(ConnectionFailed):
                manager.create_schema()


class TestClientSetup:
    def test_api_key_is_sent_as_bearer(self, fake: FakeWeaviate) -> None:
        store = _store(fake, weaviate_api_key="secret")
        store.schema.exists(CLASS)
        assert fake.requests[-1].headers["Authorization"] == "Bearer secret"

    def test_no_auth_header_without_key(self, weaviate: WeaviateStore, fake: FakeWeaviate) -> None:
        weaviate.schema.exists(CLASS)
        assert "Authorization" not in fake.requests[-1].headers

    def test_base_url(self, weaviate: WeaviateStore, fake: FakeWeaviate) -> None:
        weaviate.schema.exists(CLASS)
        assert str(fake.requests[-1].url) == f"http://weaviate.test:8080/v1/schema/{CLASS}"

    def test_ping(self, weaviate: WeaviateStore) -> None:
        assert weaviate.ping() is True

    def test_ping_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert _store(handler).ping() is False
