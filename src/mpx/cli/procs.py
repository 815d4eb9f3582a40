from __future__ import annotations

from typing import Any

import typer
from rich import print

from .common import handle_cli_errors, parse_json_option, print_json, run_with_helper

app = typer.Typer(help="Stored procedures")


def _parse_params(values: list[str] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected NAME=VALUE, got '{item}'")
        params[key if key.startswith("@") else f"@{key}"] = value
    return params


@app.command("list")
@handle_cli_errors
def procs_list(
    ctx: typer.Context,
    search: str | None = typer.Option(None, help="Only procedures whose name matches ($search)"),
):
    """List procedures the current user may execute."""

    procedures = run_with_helper(ctx, lambda mp: mp.get_procedures(search))
    for proc in procedures:
        params = ", ".join(
            f"{p.Name} {p.DataType}" + (" OUT" if p.Direction and p.Direction != "Input" else "")
            for p in proc.Parameters
        )
        print(f"{proc.Name}({params})")


@app.command("exec")
@handle_cli_errors
def procs_exec(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Procedure name, e.g. api_Custom_GetEvents"),
    param: list[str] | None = typer.Option(
        None, "--param", "-p", help="Parameter as NAME=VALUE; the @ prefix is added if missing"
    ),
    body: str | None = typer.Option(
        None, help="JSON object of parameters sent as the request body instead of the query"
    ),
    json_result: bool = typer.Option(
        False, help="Decode the JsonResult column of the first row (FOR JSON procedures)"
    ),
):
    """Execute a procedure and print its result sets."""

    params = _parse_params(param)
    payload: dict[str, Any] | None = None
    if body is not None:
        parsed = parse_json_option(body, "--body")
        if not isinstance(parsed, dict):
            raise typer.BadParameter("--body must be a JSON object")
        payload = {**parsed, **params}

    if json_result:
        result = run_with_helper(
            ctx, lambda mp: mp.execute_json_procedure(name, payload if payload is not None else params)
        )
    elif payload is not None:
        result = run_with_helper(ctx, lambda mp: mp.execute_procedure_with_body(name, payload))
    else:
        result = run_with_helper(ctx, lambda mp: mp.execute_procedure(name, params or None))
    print_json(result)


__all__ = ["app", "procs_exec", "procs_list"]
