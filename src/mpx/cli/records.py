from __future__ import annotations

from typing import Any

import typer
from rich import print

from .common import handle_cli_errors, parse_json_option, print_json, run_with_helper

app = typer.Typer(help="Table record operations")


def _records_payload(raw: str) -> list[dict[str, Any]]:
    data = parse_json_option(raw)
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        return data
    raise typer.BadParameter("--data must be a JSON object or an array of objects")


@app.command("list")
@handle_cli_errors
def records_list(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name, e.g. Contacts"),
    select: str | None = typer.Option(None, help="Comma-separated columns ($select)"),
    filter: str | None = typer.Option(None, help="Filter expression ($filter), e.g. Contact_Status_ID=1"),
    orderby: str | None = typer.Option(None, help="Sort expression ($orderby)"),
    groupby: str | None = typer.Option(None, help="Grouping expression ($groupby)"),
    having: str | None = typer.Option(None, help="Group filter expression ($having)"),
    top: int | None = typer.Option(None, help="Maximum rows to return ($top)"),
    skip: int | None = typer.Option(None, help="Rows to skip ($skip)"),
    distinct: bool = typer.Option(False, help="Return distinct rows only ($distinct)"),
    user_id: int | None = typer.Option(None, help="Acting user id ($userId)"),
    global_filter_id: int | None = typer.Option(None, help="Global filter id ($globalFilterId)"),
):
    """Query rows from a table."""

    rows = run_with_helper(
        ctx,
        lambda mp: mp.get_table_records(
            table=table,
            select=select,
            filter=filter,
            order_by=orderby,
            group_by=groupby,
            having=having,
            top=top,
            skip=skip,
            distinct=distinct or None,
            user_id=user_id,
            global_filter_id=global_filter_id,
        ),
    )
    print_json(rows)


@app.command("get")
@handle_cli_errors
def records_get(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    record_id: int = typer.Argument(..., help="Primary key value"),
    select: str | None = typer.Option(None, help="Comma-separated columns ($select)"),
):
    """Fetch a single record by primary key."""

    record = run_with_helper(ctx, lambda mp: mp.get_table_record(table, record_id, select=select))
    if record is None:
        print(f"[yellow]No {table} record with id {record_id}.[/yellow]")
        raise typer.Exit(1)
    print_json(record)


@app.command("create")
@handle_cli_errors
def records_create(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    data: str = typer.Option(..., help="JSON object or array of objects to insert"),
    select: str | None = typer.Option(None, help="Columns to return for created rows"),
    user_id: int | None = typer.Option(None, help="Acting user id ($userId)"),
):
    """Insert records and print them as stored."""

    records = _records_payload(data)
    created = run_with_helper(
        ctx, lambda mp: mp.create_table_records(table, records, select=select, user_id=user_id)
    )
    print_json(created)


@app.command("update")
@handle_cli_errors
def records_update(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    data: str = typer.Option(..., help="JSON object or array; each must carry its primary key"),
    allow_create: bool = typer.Option(
        False, help="Insert rows whose primary key does not exist ($allowCreate)"
    ),
    select: str | None = typer.Option(None, help="Columns to return for updated rows"),
    user_id: int | None = typer.Option(None, help="Acting user id ($userId)"),
):
    """Update records, optionally creating missing ones."""

    records = _records_payload(data)
    updated = run_with_helper(
        ctx,
        lambda mp: mp.update_table_records(
            table, records, select=select, user_id=user_id, allow_create=allow_create or None
        ),
    )
    print_json(updated)


@app.command("delete")
@handle_cli_errors
def records_delete(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name"),
    ids: list[int] = typer.Argument(..., help="Primary key values to delete"),
    user_id: int | None = typer.Option(None, help="Acting user id ($userId)"),
):
    """Delete records by primary key."""

    deleted = run_with_helper(ctx, lambda mp: mp.delete_table_records(table, ids, user_id=user_id))
    print(f"Deleted {len(ids)} {table} record(s)")
    if deleted:
        print_json(deleted)


__all__ = ["app", "records_create", "records_delete", "records_get", "records_list", "records_update"]
