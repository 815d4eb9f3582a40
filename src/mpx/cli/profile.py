"""Commands for inspecting and mutating stored mpx profiles."""

from __future__ import annotations

from typing import Any

import typer
from rich import print

from ..config import ConfigStore, Profile
from ..secrets import build_client_secret_keyring_ref, store_keyring_secret
from .common import handle_cli_errors

app = typer.Typer(help="Profiles & configuration")


MASK_PLACEHOLDER = "<hidden>"
SENSITIVE_KEYS = frozenset({"access_token"})
KEYRING_BACKEND = "keyring"


@app.command("list")
@handle_cli_errors
def profile_list() -> None:
    """Show all saved profiles, highlighting the default profile."""

    store = ConfigStore()
    cfg = store.load()
    names = sorted(cfg.profiles) if cfg.profiles else []
    if not names:
        print("[yellow]No profiles saved.[/yellow]")
        return
    for name in names:
        star = "*" if cfg.default_profile == name else " "
        print(f"{star} {name}")


@app.command("show")
@handle_cli_errors
def profile_show(name: str = typer.Argument(..., help="Profile name")) -> None:
    """Display the stored configuration for a profile."""

    store = ConfigStore()
    cfg = store.load()
    profile = cfg.profiles.get(name) if cfg.profiles else None
    if not profile:
        raise typer.BadParameter(f"Profile '{name}' not found")

    print(_mask_sensitive_fields(dict(vars(profile))))


@app.command("save")
@handle_cli_errors
def profile_save(
    name: str = typer.Argument(..., help="Profile name"),
    base_url: str | None = typer.Option(None, help="Platform API root, e.g. https://mp.example.org/ministryplatformapi"),
    client_id: str | None = typer.Option(None, help="OAuth2 client id"),
    scope: str | None = typer.Option(None, help="OAuth2 scope (defaults to the platform scope)"),
    client_secret_env: str | None = typer.Option(
        None, help="Environment variable holding the client secret"
    ),
    secret_backend: str | None = typer.Option(None, help="Secret backend: env or keyring"),
    secret_ref: str | None = typer.Option(None, help="Secret reference for the backend"),
    prompt_secret: bool = typer.Option(
        False, help="Prompt for the client secret and store it in the system keyring"
    ),
    access_token: str | None = typer.Option(
        None, help="Delegated user token to store (encrypted when MPX_CONFIG_ENCRYPTION_KEY is set)"
    ),
    set_default: bool = typer.Option(False, "--set-default", help="Make this the default profile"),
) -> None:
    """Create or update a profile."""

    if prompt_secret:
        secret = typer.prompt("Client secret", hide_input=True)
        ref = build_client_secret_keyring_ref(name)
        stored, reason = store_keyring_secret(ref, secret)
        if not stored:
            raise typer.BadParameter(f"Could not store secret in keyring: {reason}")
        secret_backend, secret_ref = KEYRING_BACKEND, ref

    store = ConfigStore()
    existing = store.load().profiles.get(name)
    profile = existing or Profile(name=name)
    updates: dict[str, Any] = {
        "base_url": base_url,
        "client_id": client_id,
        "scope": scope,
        "client_secret_env": client_secret_env,
        "secret_backend": secret_backend,
        "secret_ref": secret_ref,
        "access_token": access_token,
    }
    for key, value in updates.items():
        if value is not None:
            setattr(profile, key, value)
    cfg = store.add_or_update_profile(profile, set_default=set_default)
    suffix = " (default)" if cfg.default_profile == name else ""
    print(f"Saved profile {name}{suffix}")


@app.command("use")
@handle_cli_errors
def profile_use(name: str = typer.Argument(..., help="Profile name")) -> None:
    """Set the default profile."""

    store = ConfigStore()
    try:
        store.set_default_profile(name)
    except KeyError:
        raise typer.BadParameter(f"Profile '{name}' not found") from None
    print(f"Default profile set to {name}")


@app.command("delete")
@handle_cli_errors
def profile_delete(name: str = typer.Argument(..., help="Profile name")) -> None:
    """Remove a stored profile."""

    store = ConfigStore()
    if name not in store.load().profiles:
        raise typer.BadParameter(f"Profile '{name}' not found")
    store.delete_profile(name)
    print(f"Deleted profile {name}")


def _mask_sensitive_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with sensitive keys masked."""

    masked = dict(data)
    for key in masked:
        if key in SENSITIVE_KEYS and masked[key] not in (None, ""):
            masked[key] = MASK_PLACEHOLDER
    return masked


__all__ = [
    "app",
    "profile_delete",
    "profile_list",
    "profile_save",
    "profile_show",
    "profile_use",
]
