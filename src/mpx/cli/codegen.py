"""``mpx generate-models``: write pydantic models for platform tables."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich import print

from ..codegen import GeneratedModel, build_model, write_models
from ..errors import HttpError
from ..provider import MPHelper
from .common import handle_cli_errors, run_with_helper

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    app.command("generate-models")(generate_models)


async def _collect(
    mp: MPHelper, search: str | None, detailed: bool, sample_size: int
) -> list[GeneratedModel]:
    tables = await mp.get_tables(search)
    models: list[GeneratedModel] = []
    for table in tables:
        if not table.Name:
            continue
        samples = None
        if detailed and not table.Columns:
            try:
                samples = await mp.get_table_records(
                    table=table.Name, top=sample_size, order_by=f"{table.Name}_ID DESC"
                )
            except HttpError as exc:
                # Some tables cannot be sampled with the current permissions.
                logger.warning("Could not sample %s: %s", table.Name, exc)
        models.append(build_model(table, samples))
    return models


@handle_cli_errors
def generate_models(
    ctx: typer.Context,
    output: Path = typer.Option(Path("mp_models"), "--output", "-o", help="Directory to write"),
    search: str | None = typer.Option(None, help="Only tables whose name matches ($search)"),
    detailed: bool = typer.Option(
        False, help="Sample records to infer fields for tables without column metadata"
    ),
    sample_size: int = typer.Option(5, min=1, help="Records sampled per table with --detailed"),
) -> None:
    """Generate one pydantic model module per table plus an ``__init__.py`` index."""

    models = run_with_helper(ctx, lambda mp: _collect(mp, search, detailed, sample_size))
    if not models:
        print("[yellow]No tables matched; nothing written.[/yellow]")
        raise typer.Exit(1)
    written = write_models(models, output)
    print(f"[green]Generated {len(models)} model(s) in {output}[/green]")
    for path in written:
        logger.debug("wrote %s", path)


__all__ = ["generate_models", "register"]
