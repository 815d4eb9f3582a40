from __future__ import annotations

import os

import typer

from .config import ConfigData, ConfigStore, MinistryPlatformSettings, Profile, resolve_settings


def get_config_from_context(ctx: typer.Context, *, store: ConfigStore | None = None) -> ConfigData:
    """Return a cached :class:`ConfigData` instance stored on ``ctx``."""

    ctx.ensure_object(dict)
    existing = ctx.obj.get("config") if ctx.obj else None
    if isinstance(existing, ConfigData):
        return existing

    cfg_store = store or ConfigStore()
    cfg = cfg_store.load()
    ctx.obj["config"] = cfg
    return cfg


def resolve_profile(ctx: typer.Context, *, store: ConfigStore | None = None) -> Profile | None:
    """Return the profile selected with ``--profile`` or the stored default."""

    cfg = get_config_from_context(ctx, store=store)
    name = ctx.obj.get("profile") or cfg.default_profile
    if not name:
        return None
    profile = cfg.profiles.get(name)
    if profile is None and ctx.obj.get("profile"):
        raise typer.BadParameter(f"Profile '{name}' not found. Run `mpx profile list`.")
    return profile


def resolve_settings_from_context(ctx: typer.Context) -> MinistryPlatformSettings:
    """Environment settings, with gaps filled from the active profile."""

    return resolve_settings(resolve_profile(ctx))


def resolve_access_token(ctx: typer.Context) -> str | None:
    """Delegated token from ``--token``, ``MPX_ACCESS_TOKEN`` or the active profile."""

    ctx.ensure_object(dict)
    token = ctx.obj.get("access_token") or os.getenv("MPX_ACCESS_TOKEN")
    if token and token.strip():
        return token.strip()
    profile = resolve_profile(ctx)
    return profile.access_token if profile and profile.access_token else None
