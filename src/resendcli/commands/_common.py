"""Helpers shared by the command groups.

Every command follows the same shape: read its collaborators from the Typer
context, validate input locally, open one :class:`ResendClient`, make one
(or, for imports, one per row) engine call, and hand the result to the
:class:`~resendcli.output.OutputManager`. Errors
are not caught here; they propagate to :func:`resendcli.app.main`.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Optional

import typer

from resendcli.client import ResendClient
from resendcli.config import require_api_key, resolve_settings
from resendcli.exceptions import InvalidUsageError
from resendcli.models import CliConfig
from resendcli.output import OutputManager


def get_output(ctx: typer.Context) -> OutputManager:
    """Return the :class:`OutputManager` created by the root callback."""
    obj = ctx.obj or {}
    output = obj.get("output")
    if output is None:
        output = OutputManager()
        ctx.ensure_object(dict)["output"] = output
    return output


def get_settings(ctx: typer.Context) -> CliConfig:
    """Resolve settings once per invocation and cache them on the context."""
    obj = ctx.ensure_object(dict)
    settings = obj.get("settings")
    if settings is None:
        settings = resolve_settings(obj.get("api_key"))
        obj["settings"] = settings
    return settings


def build_client(ctx: typer.Context, api_key: Optional[str] = None) -> ResendClient:
    """Create the engine for this invocation from the resolved settings.

    *api_key* replaces the configured key, e.g. to check a key before it
    is stored.

    Raises:
        ConfigError: If no API key is given or configured.
    """
    settings = get_settings(ctx)
    if api_key is None:
        api_key = require_api_key(settings)
    get_output(ctx).debug(f"Using API at {settings.base_url or 'default base URL'}")
    return ResendClient(
        api_key,
        base_url=settings.base_url,
        timeout_ms=settings.timeout_ms,
        max_retries=settings.max_retries,
    )


def is_forced(ctx: typer.Context, force: bool = False) -> bool:
    return force or bool((ctx.obj or {}).get("force", False))


def confirm_or_exit(ctx: typer.Context, prompt: str, force: bool = False) -> None:
    """Ask before a destructive action; exit cleanly (code 0) if declined.

    Skipped when ``--force`` was given on the command or the root.
    """
    if is_forced(ctx, force):
        return
    if not typer.confirm(prompt):
        get_output(ctx).info("Cancelled.")
        raise typer.Exit()


def raise_for_errors(errors: Sequence[str]) -> None:
    """Raise one :class:`InvalidUsageError` listing every validation error."""
    if not errors:
        return
    if len(errors) == 1:
        raise InvalidUsageError(errors[0])
    raise InvalidUsageError("Validation errors:\n" + "\n".join(f"  {e}" for e in errors))


def read_text_file(path: Path, label: str) -> str:
    """Read a user-supplied file, turning I/O failures into usage errors."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise InvalidUsageError(f"{label} not found: {path}") from None
    except OSError as exc:
        raise InvalidUsageError(f"Cannot read {label.lower()} {path}: {exc}") from exc
