"""Schema endpoints.

Routes
------
GET    /schema            Current class definition (404 when absent)
POST   /schema            Create the class (409 when present)
DELETE /schema            Delete the class (idempotent)
GET    /schema/validate   Compare the stored class with the expected one
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response

from portable_content.schema import SchemaManager

router = APIRouter()


def _manager(request: Request) -> SchemaManager:
    return request.app.state.repository.schema_manager


@router.get("", response_model=dict[str, Any])
def get_schema_endpoint(request: Request) -> dict[str, Any]:
    manager = _manager(request)
    schema = manager.get_schema()
    if schema is None:
        raise HTTPException(status_code=404, detail=f"Schema for class '{manager.class_name}' not found.")
    return schema


@router.post("", status_code=201, response_model=dict[str, Any])
def create_schema_endpoint(request: Request) -> dict[str, Any]:
    manager = _manager(request)
    manager.create_schema()
    return manager.get_schema() or manager.expected_schema()


@router.delete("", status_code=204)
def delete_schema_endpoint(request: Request) -> Response:
    _manager(request).delete_schema()
    return Response(status_code=204)


@router.get("/validate", response_model=dict[str, Any])
def validate_schema_endpoint(request: Request) -> dict[str, Any]:
    manager = _manager(request)
    return {"class": manager.class_name, "valid": manager.validate_schema()}
