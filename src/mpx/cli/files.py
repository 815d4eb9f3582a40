from __future__ import annotations

from pathlib import Path

import typer
from rich import print

from ..services.files import FileUploadParams, UploadFile
from .common import handle_cli_errors, print_json, run_with_helper

app = typer.Typer(help="Files attached to records")


@app.command("list")
@handle_cli_errors
def files_list(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table the record belongs to"),
    record_id: int = typer.Argument(..., help="Record primary key"),
    default_only: bool = typer.Option(False, help="Only return the default image ($default)"),
):
    """List files attached to a record."""

    files = run_with_helper(
        ctx, lambda mp: mp.get_files_by_record(table, record_id, default_only or None)
    )
    print_json(files)


@app.command("upload")
@handle_cli_errors
def files_upload(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table the record belongs to"),
    record_id: int = typer.Argument(..., help="Record primary key"),
    paths: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Files to attach"),
    description: str | None = typer.Option(None, help="Description stored with every file"),
    default_image: bool = typer.Option(False, help="Mark the upload as the record's default image"),
    longest_dimension: int | None = typer.Option(
        None, help="Resize images so the longest side fits this many pixels"
    ),
    user_id: int | None = typer.Option(None, help="Acting user id ($userId)"),
):
    """Upload one or more files to a record in a single request."""

    uploads = [UploadFile.from_path(path) for path in paths]
    params = FileUploadParams(
        description=description,
        is_default_image=default_image or None,
        longest_dimension=longest_dimension,
        user_id=user_id,
    )
    stored = run_with_helper(ctx, lambda mp: mp.upload_files(table, record_id, uploads, params))
    print_json(stored)


@app.command("delete")
@handle_cli_errors
def files_delete(
    ctx: typer.Context,
    file_id: int = typer.Argument(..., help="File id"),
    user_id: int | None = typer.Option(None, help="Acting user id ($userId)"),
):
    """Delete a file."""

    run_with_helper(ctx, lambda mp: mp.delete_file(file_id, user_id))
    print(f"Deleted file {file_id}")


@app.command("download")
@handle_cli_errors
def files_download(
    ctx: typer.Context,
    unique_id: str = typer.Argument(..., help="Unique file id (GUID)"),
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the content"),
    thumbnail: bool = typer.Option(False, help="Download the thumbnail instead ($thumbnail)"),
):
    """Download file content by unique id. No credentials are needed."""

    content = run_with_helper(
        ctx,
        lambda mp: mp.get_file_content_by_unique_id(unique_id, thumbnail or None),
        require_credentials=False,
    )
    output.write_bytes(content)
    print(f"Wrote {len(content)} bytes to {output}")


@app.command("metadata")
@handle_cli_errors
def files_metadata(
    ctx: typer.Context,
    file_ref: str = typer.Argument(..., help="Numeric file id or unique file id"),
):
    """Show stored metadata for a file."""

    if file_ref.isdigit():
        file_id = int(file_ref)
        info = run_with_helper(ctx, lambda mp: mp.get_file_metadata(file_id))
    else:
        info = run_with_helper(ctx, lambda mp: mp.get_file_metadata_by_unique_id(file_ref))
    print_json(info)


__all__ = [
    "app",
    "files_delete",
    "files_download",
    "files_list",
    "files_metadata",
    "files_upload",
]
