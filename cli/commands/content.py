"""Content commands: add, show, list, search and delete ContentItems."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from cli.context import get_settings, handle_errors, open_repository
from cli.rendering import as_json, item_detail, item_line
from portable_content.mapper import DataMapper
from portable_content.models import ContentItem, MarkdownBlock

content_app = typer.Typer(help="Store and retrieve content items.", no_args_is_help=True)


@content_app.command("add")
@handle_errors
def content_add(
    ctx: typer.Context,
    title: str = typer.Option(..., help="Item title."),
    type: str = typer.Option("article", "--type", help="Item type (e.g. article, note)."),
    summary: str = typer.Option("", help="Short summary."),
    block: Optional[List[str]] = typer.Option(None, "--block", help="Markdown block (repeatable)."),
    file: Optional[Path] = typer.Option(
        None, "--file", exists=True, dir_okay=False, help="Markdown file added as one block."
    ),
) -> None:
    """Create a content item and save it."""
    sources = list(block or [])
    if file is not None:
        sources.append(file.read_text(encoding="utf-8"))

    item = ContentItem.create(
        type=type,
        title=title,
        summary=summary,
        blocks=[MarkdownBlock.create(source) for source in sources],
    )
    with open_repository(get_settings(ctx)) as repo:
        repo.ensure_schema()
        repo.save(item)
    typer.echo(f"✅ Saved content item: {item.id}  title={item.title!r}  blocks={item.block_count}")


@content_app.command("get")
@handle_errors
def content_get(
    ctx: typer.Context,
    content_id: str = typer.Argument(..., help="ContentItem id."),
    json_output: bool = typer.Option(False, "--json", help="Print the stored object instead."),
) -> None:
    """Show a single content item."""
    with open_repository(get_settings(ctx)) as repo:
        item = repo.find_by_id(content_id)
    if item is None:
        typer.echo(f"❌ Content item {content_id!r} not found.")
        raise typer.Exit(code=1)
    if json_output:
        typer.echo(as_json(DataMapper().to_store_object(item)))
    else:
        typer.echo(item_detail(item))


@content_app.command("list")
@handle_errors
def content_list(
    ctx: typer.Context,
    type: Optional[str] = typer.Option(None, "--type", help="Filter by item type."),
    limit: int = typer.Option(20, help="Maximum number of items."),
    offset: int = typer.Option(0, help="Number of items to skip."),
) -> None:
    """List stored content items, newest first."""
    with open_repository(get_settings(ctx)) as repo:
        if type:
            items = repo.find_by_type(type, limit=limit, offset=offset)
        else:
            items = repo.find_all(limit=limit, offset=offset)
        total = repo.count()

    if not items:
        typer.echo("No content items found.")
        return
    for item in items:
        typer.echo(item_line(item))
    typer.echo(f"({len(items)} shown, {total} total)")


@content_app.command("search")
@handle_errors
def content_search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to look for in titles and summaries."),
    limit: int = typer.Option(10, help="Maximum number of results."),
) -> None:
    """Keyword search over titles and summaries."""
    with open_repository(get_settings(ctx)) as repo:
        items = repo.search(query, limit=limit)
    if not items:
        typer.echo(f"No results for {query!r}.")
        return
    for item in items:
        typer.echo(item_line(item))


@content_app.command("delete")
@handle_errors
def content_delete(
    ctx: typer.Context,
    content_id: str = typer.Argument(..., help="ContentItem id."),
) -> None:
    """Delete a content item (no-op when it does not exist)."""
    with open_repository(get_settings(ctx)) as repo:
        existed = repo.exists(content_id)
        repo.delete(content_id)
    if existed:
        typer.echo(f"🗑️  Deleted content item {content_id}")
    else:
        typer.echo(f"Content item {content_id!r} does not exist; nothing to delete.")
