"""ContentItem endpoints.

Routes
------
POST   /content                Create an item from plain markdown blocks
GET    /content                List items (optional ?type= filter, paging)
GET    /content/search?q=      Keyword search over title and summary
GET    /content/{content_id}   Fetch a single item
PUT    /content/{content_id}   Update title / summary / blocks
DELETE /content/{content_id}   Delete an item (no-op when missing)
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import BaseModel

from portable_content.exceptions import ContentNotFound
from portable_content.models import ContentItem, MarkdownBlock, format_timestamp
from portable_content.repository import ContentRepository

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class ContentCreate(BaseModel):
    type: str
    title: str
    summary: str = ""
    blocks: list[str] = []


class ContentUpdate(BaseModel):
    title: Optional[str] = None
    summary: Optional[str] = None
    blocks: Optional[list[str]] = None


class BlockResponse(BaseModel):
    id: str
    kind: str
    source: str
    created_at: str
    word_count: int


class ContentResponse(BaseModel):
    id: str
    type: str
    title: str
    summary: str
    created_at: str
    updated_at: str
    block_count: int
    blocks: list[BlockResponse]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _repo(request: Request) -> ContentRepository:
    return request.app.state.repository


def _content_response(item: ContentItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "type": item.type,
        "title": item.title,
        "summary": item.summary,
        "created_at": format_timestamp(item.created_at),
        "updated_at": format_timestamp(item.updated_at),
        "block_count": item.block_count,
        "blocks": [
            {
                "id": b.id,
                "kind": b.kind,
                "source": b.source,
                "created_at": format_timestamp(b.created_at),
                "word_count": b.word_count,
            }
            for b in item.blocks
        ],
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", status_code=201, response_model=ContentResponse)
def create_content_endpoint(body: ContentCreate, request: Request) -> dict[str, Any]:
    item = ContentItem.create(
        type=body.type,
        title=body.title,
        summary=body.summary,
        blocks=[MarkdownBlock.create(source) for source in body.blocks],
    )
    _repo(request).save(item)
    return _content_response(item)


@router.get("", response_model=list[ContentResponse])
def list_content_endpoint(
    request: Request,
    type: Optional[str] = None,
    limit: int = Query(20, gt=0, le=1000),
    offset: int = Query(0, ge=0),
) -> list[dict[str, Any]]:
    repo = _repo(request)
    if type:
        items = repo.find_by_type(type, limit=limit, offset=offset)
    else:
        items = repo.find_all(limit=limit, offset=offset)
    return [_content_response(i) for i in items]


@router.get("/search", response_model=list[ContentResponse])
def search_content_endpoint(
    request: Request,
    q: str = Query(..., min_length=1),
    limit: int = Query(10, gt=0, le=100),
) -> list[dict[str, Any]]:
    if not q.strip():
        raise HTTPException(status_code=422, detail="Search query must not be blank.")
    return [_content_response(i) for i in _repo(request).search(q, limit=limit)]


@router.get("/{content_id}", response_model=ContentResponse)
def get_content_endpoint(content_id: str, request: Request) -> dict[str, Any]:
    item = _repo(request).find_by_id(content_id)
    if item is None:
        raise ContentNotFound(content_id)
    return _content_response(item)


@router.put("/{content_id}", response_model=ContentResponse)
def update_content_endpoint(content_id: str, body: ContentUpdate, request: Request) -> dict[str, Any]:
    repo = _repo(request)
    item = repo.find_by_id(content_id)
    if item is None:
        raise ContentNotFound(content_id)

    if body.title is not None:
        item.set_title(body.title)
    if body.summary is not None:
        item.set_summary(body.summary)
    if body.blocks is not None:
        item.set_blocks([MarkdownBlock.create(source) for source in body.blocks])

    repo.save(item)
    return _content_response(item)


@router.delete("/{content_id}", status_code=204)
def delete_content_endpoint(content_id: str, request: Request) -> Response:
    _repo(request).delete(content_id)
    return Response(status_code=204)
