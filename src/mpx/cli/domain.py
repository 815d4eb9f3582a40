from __future__ import annotations

import typer
from rich import print

from .common import handle_cli_errors, print_json, run_with_helper

app = typer.Typer(help="Domain information")


@app.command("info")
@handle_cli_errors
def domain_info(ctx: typer.Context):
    """Show domain settings such as display name and time zone."""

    print_json(run_with_helper(ctx, lambda mp: mp.get_domain_info()))


@app.command("filters")
@handle_cli_errors
def domain_filters(
    ctx: typer.Context,
    ignore_permissions: bool = typer.Option(
        False, help="List every filter regardless of the user's permissions"
    ),
    user_id: int | None = typer.Option(None, help="Evaluate permissions for this user ($userId)"),
):
    """List global filters (key 0 marks unassigned records)."""

    filters = run_with_helper(
        ctx,
        lambda mp: mp.get_global_filters(
            ignore_permissions=ignore_permissions or None, user_id=user_id
        ),
    )
    for item in filters:
        print(f"{item.Key}\t{item.Value}")


__all__ = ["app", "domain_filters", "domain_info"]
