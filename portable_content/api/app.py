"""FastAPI application factory.

Lifespan
--------
On startup the app opens the configured store (shared across all requests
via ``request.app.state.repository``) and makes sure the ContentItem class
exists.  On shutdown it closes the store if the app opened it.

Routers
-------
    /schema    : create / inspect / validate / delete the store class
    /content   : ContentItem CRUD and keyword search

Errors
------
Every :class:`~portable_content.exceptions.RepositoryError` is rendered as
``{"code": ..., "detail": ...}`` with the exception's ``http_status``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from portable_content.api.routers import content as content_router
from portable_content.api.routers import schema as schema_router
from portable_content.config import Settings, configure_logging, load_settings
from portable_content.exceptions import RepositoryError
from portable_content.repository import ContentRepository
from portable_content.store import StoreClient, get_store


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[StoreClient] = None,
) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        settings: Explicit settings; built from the environment when omitted.
        store: An already-open store to use instead of opening one from
            *settings*.  The caller keeps ownership and closes it.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings)
        client = store or get_store(settings)
        try:
            repository = ContentRepository(client, settings.class_name)
            repository.ensure_schema()
            app.state.settings = settings
            app.state.repository = repository
            yield
        finally:
            if store is None:
                client.close()

    app = FastAPI(
        title="Portable Content API",
        description="REST interface for storing ContentItems in a schema-managed store.",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(RepositoryError)
    async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.http_status,
            content={"code": exc.code, "detail": exc.message},
        )

    app.include_router(schema_router.router, prefix="/schema", tags=["schema"])
    app.include_router(content_router.router, prefix="/content", tags=["content"])

    return app
