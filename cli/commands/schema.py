"""Schema commands: create, inspect, validate and drop the store class."""

from __future__ import annotations

import typer

from cli.context import get_settings, handle_errors, open_repository
from cli.rendering import as_json, schema_table

schema_app = typer.Typer(help="Manage the ContentItem class in the store.", no_args_is_help=True)


@schema_app.command("create")
@handle_errors
def schema_create(ctx: typer.Context) -> None:
    """Create the ContentItem class (fails if it already exists)."""
    settings = get_settings(ctx)
    with open_repository(settings) as repo:
        repo.schema_manager.create_schema()
    typer.echo(f"✅ Schema created for class {settings.class_name!r}")


@schema_app.command("delete")
@handle_errors
def schema_delete(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete the class and every object stored in it."""
    settings = get_settings(ctx)
    if not yes:
        typer.confirm(
            f"Delete class {settings.class_name!r} and all of its objects?", abort=True
        )
    with open_repository(settings) as repo:
        existed = repo.schema_manager.schema_exists()
        repo.schema_manager.delete_schema()
    if existed:
        typer.echo(f"🗑️  Schema deleted for class {settings.class_name!r}")
    else:
        typer.echo(f"Schema for class {settings.class_name!r} does not exist; nothing to delete.")


@schema_app.command("validate")
@handle_errors
def schema_validate(ctx: typer.Context) -> None:
    """Check that the stored class matches the expected structure."""
    settings = get_settings(ctx)
    with open_repository(settings) as repo:
        valid = repo.schema_manager.validate_schema()
    if not valid:
        typer.echo(f"❌ Schema for class {settings.class_name!r} does not match the expected structure")
        raise typer.Exit(code=1)
    typer.echo(f"✅ Schema for class {settings.class_name!r} is valid")


@schema_app.command("show")
@handle_errors
def schema_show(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print the raw definition."),
) -> None:
    """Print the stored class definition."""
    settings = get_settings(ctx)
    with open_repository(settings) as repo:
        schema = repo.schema_manager.get_schema()
    if schema is None:
        typer.echo(f"Schema for class {settings.class_name!r} does not exist.")
        raise typer.Exit(code=1)
    typer.echo(as_json(schema) if json_output else schema_table(schema))
