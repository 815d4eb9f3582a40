from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape

from ..cli_utils import resolve_access_token, resolve_settings_from_context
from ..client import MinistryPlatformClient
from ..config import EncryptedConfigError
from ..errors import AuthError, ConfigError, HttpError, MpxError
from ..provider import MinistryPlatformProvider, MPHelper

console = Console()


def _render_error(message: object) -> None:
    console.print(f"[red]Error:[/red] {escape(str(message))}")


CommandParams = ParamSpec("CommandParams")
CommandReturn = TypeVar("CommandReturn")
T = TypeVar("T")


def handle_cli_errors(
    func: Callable[CommandParams, CommandReturn],
) -> Callable[CommandParams, CommandReturn]:
    @wraps(func)
    def wrapper(*args: CommandParams.args, **kwargs: CommandParams.kwargs) -> CommandReturn:
        try:
            return func(*args, **kwargs)
        except typer.BadParameter:
            raise
        except typer.Exit:
            raise
        except HttpError as exc:
            _render_error(exc)
            raise typer.Exit(1) from None
        except ConfigError as exc:
            _render_error(exc)
            console.print(
                "Set them in the environment or in .env.local, .env.development or .env,"
                " or save a profile with `mpx profile save NAME`."
            )
            raise typer.Exit(1) from None
        except EncryptedConfigError as exc:
            _render_error(exc)
            console.print(
                "Restore the original key by exporting MPX_CONFIG_ENCRYPTION_KEY before rerunning the command."
            )
            console.print(
                "If the key is lost, back up and remove the encrypted config (default ~/.mpx/config.json) then save your profiles again."
            )
            raise typer.Exit(1) from None
        except AuthError as exc:
            console.print(f"[red]Error:[/red] Authentication failed: {escape(str(exc))}")
            console.print(
                "Check MINISTRY_PLATFORM_CLIENT_ID and MINISTRY_PLATFORM_CLIENT_SECRET, or pass --token."
            )
            raise typer.Exit(1) from None
        except MpxError as exc:
            _render_error(exc)
            raise typer.Exit(1) from None
        except Exception as exc:
            if os.getenv("MPX_DEBUG"):
                raise
            console.print(f"[red]Error:[/red] Unexpected failure: {escape(str(exc))}")
            console.print("Set MPX_DEBUG=1 for a stack trace.")
            raise typer.Exit(1) from exc

    return wrapper


def build_helper(ctx: typer.Context, *, require_credentials: bool = True) -> MPHelper:
    """Create an :class:`MPHelper` from the environment, profile and ``--token``.

    With ``require_credentials=False`` only the base URL is needed; the
    resulting helper can only reach unauthenticated endpoints.
    """

    settings = resolve_settings_from_context(ctx)
    if not require_credentials:
        settings.validate_required(("base_url",))
        client = MinistryPlatformClient(str(settings.base_url), timeout=settings.timeout)
        return MPHelper(MinistryPlatformProvider(client))
    return MPHelper.from_settings(settings, access_token=resolve_access_token(ctx))


def run_with_helper(
    ctx: typer.Context,
    operation: Callable[[MPHelper], Awaitable[T]],
    *,
    require_credentials: bool = True,
) -> T:
    """Run ``operation`` against a fresh helper in its own event loop."""

    helper = build_helper(ctx, require_credentials=require_credentials)

    async def runner() -> T:
        async with helper:
            return await operation(helper)

    return asyncio.run(runner())


def _jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(data, (list, tuple)):
        return [_jsonable(item) for item in data]
    return data


def print_json(data: Any) -> None:
    """Write ``data`` (records, models or lists of them) as JSON."""

    console.print_json(json.dumps(_jsonable(data), default=str))


def parse_json_option(raw: str, option: str = "--data") -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{option} must be valid JSON: {exc.msg}") from exc


__all__ = [
    "build_helper",
    "console",
    "handle_cli_errors",
    "parse_json_option",
    "print_json",
    "run_with_helper",
]
