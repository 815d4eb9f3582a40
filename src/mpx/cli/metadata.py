from __future__ import annotations

import typer
from rich import print

from .common import handle_cli_errors, run_with_helper

app = typer.Typer(help="Schema metadata")


@app.command("tables")
@handle_cli_errors
def metadata_tables(
    ctx: typer.Context,
    search: str | None = typer.Option(None, help="Only tables whose name matches ($search)"),
):
    """List tables visible to the current user."""

    tables = run_with_helper(ctx, lambda mp: mp.get_tables(search))
    for table in tables:
        access = f" ({table.AccessLevel})" if table.AccessLevel else ""
        print(f"{table.Name}{access}")


@app.command("refresh")
@handle_cli_errors
def metadata_refresh(ctx: typer.Context):
    """Ask the platform to rebuild its metadata cache after schema changes."""

    run_with_helper(ctx, lambda mp: mp.refresh_metadata())
    print("[green]Metadata refresh requested.[/green]")


__all__ = ["app", "metadata_refresh", "metadata_tables"]
