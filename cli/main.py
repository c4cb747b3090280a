"""Portable content CLI: entry-point for store operations.

Usage:
    portable-content --help
    python cli/main.py --help

Sub-command groups:
    schema    → create / delete / validate / show the ContentItem class
    content   → add / get / list / search / delete items
    ping      → check the configured store is reachable
    serve     → run the HTTP API (uvicorn)
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from portable_content.xxx
# import ...` works when the CLI is invoked as `python cli/main.py`.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from cli.commands.content import content_app
from cli.commands.schema import schema_app
from cli.context import get_settings
from portable_content.config import configure_logging, load_settings
from portable_content.exceptions import RepositoryError
from portable_content.store import get_store

app = typer.Typer(
    name="portable-content",
    help="Store ContentItems in a schema-managed document store.",
    no_args_is_help=True,
)
app.add_typer(schema_app, name="schema")
app.add_typer(content_app, name="content")


@app.callback()
def main(
    ctx: typer.Context,
    backend: Optional[str] = typer.Option(
        None, "--backend", help="Store backend: local | weaviate (overrides CONTENT_STORE_BACKEND)."
    ),
    class_name: Optional[str] = typer.Option(
        None, "--class", help="Target class name (overrides CONTENT_CLASS_NAME)."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Resolve settings once and hand them to every sub-command."""
    try:
        settings = load_settings(
            store_backend=backend, class_name=class_name, log_level=log_level
        )
    except RepositoryError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=2)
    configure_logging(settings)
    ctx.obj = settings


@app.command("ping")
def ping(ctx: typer.Context) -> None:
    """Check that the configured store is reachable."""
    settings = get_settings(ctx)
    try:
        store = get_store(settings)
    except RepositoryError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1)
    with store:
        ok = store.ping()
    if not ok:
        typer.echo(f"❌ {settings.store_backend} store is not reachable.")
        raise typer.Exit(code=1)
    typer.echo(f"✅ {settings.store_backend} store is reachable.")


@app.command("serve")
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from portable_content.api.app import create_app

    uvicorn.run(create_app(get_settings(ctx)), host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
