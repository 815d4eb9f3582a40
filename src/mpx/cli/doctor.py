"""Diagnostic command for verifying mpx configuration."""

from __future__ import annotations

import asyncio

import typer
from rich import print

from ..cli_utils import (
    get_config_from_context,
    resolve_access_token,
    resolve_settings_from_context,
)
from ..client import MinistryPlatformClient
from ..services.domain import DomainService
from .common import handle_cli_errors


def register(app: typer.Typer) -> None:
    app.command("doctor")(doctor)


async def _probe(client: MinistryPlatformClient) -> str | None:
    async with client:
        await client.ensure_valid_token()
        info = await DomainService(client).get_domain_info()
    return info.DisplayName


@handle_cli_errors
def doctor(
    ctx: typer.Context,
    check_platform: bool = typer.Option(
        True,
        help="Attempt a token exchange and a /domain call (disable with --no-check-platform)",
    ),
) -> None:
    """Validate mpx configuration and, optionally, platform connectivity.

    Args:
        ctx: Active Typer context containing user configuration state.
        check_platform: When ``True`` obtains a token and reads domain info.
    """

    cfg = get_config_from_context(ctx)
    ok = True
    if cfg.default_profile:
        print(f"[green]Default profile:[/green] {cfg.default_profile}")
    else:
        print("[yellow]No default profile configured.[/yellow]")

    settings = resolve_settings_from_context(ctx)
    token = resolve_access_token(ctx)
    if token:
        print("[green]Delegated access token detected; client credentials not required.[/green]")
        missing = settings.missing(("base_url",))
    else:
        missing = settings.missing()
    if missing:
        print("[red]Missing required environment variables:[/red]")
        for name in missing:
            print(f"  - {name}")
        raise typer.Exit(code=1)
    print(f"[green]Base URL:[/green] {settings.base_url}")

    if check_platform:
        try:
            client = MinistryPlatformClient.from_settings(settings, access_token=token)
            display_name = asyncio.run(_probe(client))
        except Exception as exc:
            print(f"[red]Platform probe failed:[/red] {exc}")
            ok = False
        else:
            print(f"[green]Platform reachable:[/green] {display_name or 'unknown domain'}")

    raise typer.Exit(code=0 if ok else 1)


__all__ = ["register", "doctor"]
