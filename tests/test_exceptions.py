"""Tests for the exception hierarchy: messages, codes and HTTP statuses."""

import pytest

from portable_content.exceptions import (
    AuthenticationFailed,
    ClientError,
    ConfigurationError,
    ConnectionFailed,
    ContentNotFound,
    DataMappingError,
    InvalidClassName,
    InvalidResponse,
    QueryFailed,
    RepositoryError,
    SchemaAlreadyExists,
    SchemaCreationFailed,
    SchemaDeletionFailed,
    SchemaNotFound,
    SchemaValidationFailed,
    ServerError,
    StoreError,
    StoreTimeout,
    UnsupportedOperation,
)


@pytest.mark.parametrize(
    "exc, message",
    [
        (ConnectionFailed("localhost", 8080, "refused"), "Failed to connect to store at localhost:8080: refused"),
        (AuthenticationFailed("bad key"), "Store authentication failed: bad key"),
        (SchemaCreationFailed("Doc", "boom"), 'Failed to create schema for class "Doc": boom'),
        (SchemaValidationFailed("Doc", "boom"), 'Schema validation failed for class "Doc": boom'),
        (SchemaDeletionFailed("Doc", "boom"), 'Failed to delete schema for class "Doc": boom'),
        (SchemaAlreadyExists("Doc"), 'Schema for class "Doc" already exists'),
        (SchemaNotFound("Doc"), 'Schema for class "Doc" not found'),
        (QueryFailed("count", "boom"), 'Store query failed for operation "count": boom'),
        (DataMappingError("hydration", "bad"), 'Data mapping error during "hydration": bad'),
        (InvalidClassName("x-y", "hyphens are not allowed"), 'Invalid class name "x-y": hyphens are not allowed'),
        (StoreTimeout("query", 2.5), 'Store operation "query" timed out after 2.5 seconds'),
        (UnsupportedOperation("find_similar"), "Unsupported operation: find_similar"),
        (ContentNotFound("c1"), 'Content item "c1" not found'),
    ],
)
def test_messages(exc, message):
    assert str(exc) == message
    assert exc.message == message


@pytest.mark.parametrize(
    "exc_type, args",
    [
        (ConnectionFailed, ("h", 1, "r")),
        (AuthenticationFailed, ("r",)),
        (ConfigurationError, ("r",)),
        (SchemaAlreadyExists, ("C",)),
        (QueryFailed, ("op", "r")),
        (InvalidResponse, ("op", "r")),
        (ClientError, ("op", "r")),
        (ServerError, ("op", 500, "r")),
        (DataMappingError, ("op", "r")),
    ],
)
def test_adapter_errors_share_a_base(exc_type, args):
    exc = exc_type(*args)
    assert isinstance(exc, StoreError)
    assert isinstance(exc, RepositoryError)


def test_content_not_found_is_not_an_adapter_error():
    assert not isinstance(ContentNotFound("x"), StoreError)


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (ContentNotFound("x"), 404, "CONTENT_NOT_FOUND"),
        (SchemaNotFound("C"), 404, "SCHEMA_NOT_FOUND"),
        (SchemaAlreadyExists("C"), 409, "SCHEMA_ALREADY_EXISTS"),
        (ConnectionFailed("h", 1, "r"), 503, "CONNECTION_FAILED"),
        (StoreTimeout("op", 1), 504, "TIMEOUT"),
        (UnsupportedOperation("op"), 501, "UNSUPPORTED_OPERATION"),
        (QueryFailed("op", "r"), 500, "QUERY_FAILED"),
    ],
)
def test_http_mapping(exc, status, code):
    assert exc.http_status == status
    assert exc.code == code


def test_server_error_keeps_status_code():
    exc = ServerError("count", 502, "bad gateway")
    assert exc.status_code == 502
    assert "HTTP 502" in str(exc)
