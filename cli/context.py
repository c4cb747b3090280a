"""Shared plumbing for CLI commands.

Settings travel on the Typer context (``ctx.obj``) when the commands run
under the top-level app; a command group invoked on its own falls back to
settings built from the environment.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import wraps
from typing import Callable, Iterator, Optional

import typer

from portable_content.config import Settings, load_settings
from portable_content.exceptions import RepositoryError
from portable_content.repository import ContentRepository
from portable_content.store import get_store


def get_settings(ctx: Optional[typer.Context]) -> Settings:
    """Return the settings attached to *ctx*, or fresh ones from the environment."""
    if ctx is not None and isinstance(ctx.obj, Settings):
        return ctx.obj
    return load_settings()


@contextmanager
def open_repository(settings: Settings) -> Iterator[ContentRepository]:
    """Open the configured store and yield a repository over it."""
    store = get_store(settings)
    try:
        yield ContentRepository(store, settings.class_name)
    finally:
        store.close()


def handle_errors(func: Callable) -> Callable:
    """Decorator: report repository errors as ``❌ <message>`` and exit 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RepositoryError as exc:
            typer.echo(f"❌ {exc}")
            raise typer.Exit(code=1)
        except ValueError as exc:
            typer.echo(f"❌ Invalid input: {exc}")
            raise typer.Exit(code=1)

    return wrapper
