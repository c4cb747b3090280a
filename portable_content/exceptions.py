"""Exception hierarchy for the content repository and its store adapters.

Every exception carries a stable ``code`` and a suggested ``http_status``
(used by the API layer) together with the structured fields that produced
its message.  Anything deriving from :class:`StoreError` belongs to the
adapter family and must never be re-wrapped by a catch-all.
"""

from __future__ import annotations


class RepositoryError(Exception):
    http_status = 500
    code = "REPOSITORY_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ContentNotFound(RepositoryError):
    http_status = 404
    code = "CONTENT_NOT_FOUND"

    def __init__(self, content_id: str):
        super().__init__(f'Content item "{content_id}" not found')
        self.content_id = content_id


class StoreError(RepositoryError):
    """Base class for failures raised by the store adapter."""

    code = "STORE_ERROR"


class ConnectionFailed(StoreError):
    http_status = 503
    code = "CONNECTION_FAILED"

    def __init__(self, host: str, port: int, reason: str):
        super().__init__(f"Failed to connect to store at {host}:{port}: {reason}")
        self.host = host
        self.port = port
        self.reason = reason


class AuthenticationFailed(StoreError):
    http_status = 502
    code = "AUTHENTICATION_FAILED"

    def __init__(self, reason: str):
        super().__init__(f"Store authentication failed: {reason}")
        self.reason = reason


class ConfigurationError(StoreError):
    code = "CONFIGURATION_ERROR"

    def __init__(self, reason: str):
        super().__init__(f"Store configuration error: {reason}")
        self.reason = reason


class _SchemaFailure(StoreError):
    template = ""

    def __init__(self, class_name: str, reason: str):
        super().__init__(self.template.format(class_name=class_name, reason=reason))
        self.class_name = class_name
        self.reason = reason


class SchemaCreationFailed(_SchemaFailure):
    code = "SCHEMA_CREATION_FAILED"
    template = 'Failed to create schema for class "{class_name}": {reason}'


class SchemaValidationFailed(_SchemaFailure):
    code = "SCHEMA_VALIDATION_FAILED"
    template = 'Schema validation failed for class "{class_name}": {reason}'


class SchemaDeletionFailed(_SchemaFailure):
    code = "SCHEMA_DELETION_FAILED"
    template = 'Failed to delete schema for class "{class_name}": {reason}'


class SchemaAlreadyExists(StoreError):
    http_status = 409
    code = "SCHEMA_ALREADY_EXISTS"

    def __init__(self, class_name: str):
        super().__init__(f'Schema for class "{class_name}" already exists')
        self.class_name = class_name


class SchemaNotFound(StoreError):
    http_status = 404
    code = "SCHEMA_NOT_FOUND"

    def __init__(self, class_name: str):
        super().__init__(f'Schema for class "{class_name}" not found')
        self.class_name = class_name


class QueryFailed(StoreError):
    code = "QUERY_FAILED"

    def __init__(self, operation: str, reason: str):
        super().__init__(f'Store query failed for operation "{operation}": {reason}')
        self.operation = operation
        self.reason = reason


class InvalidResponse(StoreError):
    http_status = 502
    code = "INVALID_RESPONSE"

    def __init__(self, operation: str, reason: str):
        super().__init__(f'Invalid response from store for operation "{operation}": {reason}')
        self.operation = operation
        self.reason = reason


class ClientError(StoreError):
    http_status = 400
    code = "CLIENT_ERROR"

    def __init__(self, operation: str, reason: str):
        super().__init__(f'Store client error during "{operation}": {reason}')
        self.operation = operation
        self.reason = reason


class ServerError(StoreError):
    http_status = 502
    code = "SERVER_ERROR"

    def __init__(self, operation: str, status_code: int, reason: str):
        super().__init__(
            f'Store server error during "{operation}" (HTTP {status_code}): {reason}'
        )
        self.operation = operation
        self.status_code = status_code
        self.reason = reason


class StoreTimeout(StoreError):
    http_status = 504
    code = "TIMEOUT"

    def __init__(self, operation: str, seconds: float):
        super().__init__(f'Store operation "{operation}" timed out after {seconds:g} seconds')
        self.operation = operation
        self.seconds = seconds


class DataMappingError(StoreError):
    http_status = 422
    code = "DATA_MAPPING"

    def __init__(self, operation: str, reason: str):
        super().__init__(f'Data mapping error during "{operation}": {reason}')
        self.operation = operation
        self.reason = reason


class InvalidClassName(StoreError):
    http_status = 400
    code = "INVALID_CLASS_NAME"

    def __init__(self, class_name: str, reason: str):
        super().__init__(f'Invalid class name "{class_name}": {reason}')
        self.class_name = class_name
        self.reason = reason


class UnsupportedOperation(StoreError):
    http_status = 501
    code = "UNSUPPORTED_OPERATION"

    def __init__(self, operation: str):
        super().__init__(f"Unsupported operation: {operation}")
        self.operation = operation
