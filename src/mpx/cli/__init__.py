from __future__ import annotations

import logging
import os

import typer

from . import codegen, doctor, domain, files, metadata, procs, profile, records

app = typer.Typer(help="MinistryPlatform CLI")


def _register_sub_app(name: str, sub_app: typer.Typer) -> None:
    app.add_typer(sub_app, name=name)


_register_sub_app("records", records.app)
_register_sub_app("procs", procs.app)
_register_sub_app("files", files.app)
_register_sub_app("domain", domain.app)
_register_sub_app("metadata", metadata.app)
_register_sub_app("profile", profile.app)

doctor.register(app)
codegen.register(app)


@app.callback()
def common(
    ctx: typer.Context,
    profile_name: str | None = typer.Option(
        None, "--profile", help="Stored profile to use instead of the default"
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        envvar="MPX_ACCESS_TOKEN",
        help="Delegated user access token; skips the client-credentials exchange",
    ),
) -> None:
    """Initialize shared Typer context state."""

    level = logging.getLevelName(os.getenv("MPX_LOG_LEVEL", "WARNING").upper())
    logging.basicConfig(
        level=level if isinstance(level, int) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile_name
    ctx.obj["access_token"] = token


__all__ = [
    "app",
    "codegen",
    "doctor",
    "domain",
    "files",
    "metadata",
    "procs",
    "profile",
    "records",
]
