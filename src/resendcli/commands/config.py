"""Config commands -- view and modify the global configuration.

Provides the ``resend config`` sub-command group for creating, reading,
updating, and removing keys of the user's global configuration file
(:class:`~resendcli.models.CliConfig`). The API key is always masked when
displayed.
"""

from __future__ import annotations

from typing import Any, Optional

import typer
from pydantic import ValidationError

from resendcli.commands._common import build_client, get_output
from resendcli.config import (
    API_KEY_PREFIX,
    config_file_path,
    load_config,
    looks_like_api_key,
    mask_api_key,
    save_config,
)
from resendcli.exceptions import ConfigError, InvalidUsageError
from resendcli.models import CliConfig
from resendcli.validators import validate_email


config_app = typer.Typer(no_args_is_help=True)

CONFIG_KEYS = tuple(CliConfig.model_fields)


def _check_key(key: str) -> None:
    if key not in CONFIG_KEYS:
        raise InvalidUsageError(
            f"Unknown config key: {key}. Valid keys: {', '.join(CONFIG_KEYS)}"
        )


def _display(data: dict[str, Any]) -> dict[str, Any]:
    if data.get("api_key"):
        data = {**data, "api_key": mask_api_key(data["api_key"])}
    return data


def _validated(data: dict[str, Any]) -> CliConfig:
    try:
        return CliConfig.model_validate(data)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise InvalidUsageError(f"Invalid config value: {errors}") from exc


@config_app.command("init")
def config_init(
    ctx: typer.Context,
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="API key to store (prompted for when omitted)."
    ),
    default_from: Optional[str] = typer.Option(
        None, "--default-from", help="Default sender address."
    ),
    verify: bool = typer.Option(
        False, "--verify", help="Check the key against the API before saving."
    ),
) -> None:
    """Create the configuration file interactively.

    Prompts for the API key (hidden input) and an optional default sender
    address, then writes them to the global config file.

    With ``--verify`` the key must first be accepted by the API; nothing is
    written otherwise.

    Example::

        resend config init
        resend config init --api-key re_123 --default-from me@example.com
        resend config init --verify
    """
    output = get_output(ctx)
    if api_key is None:
        api_key = typer.prompt("Enter your Resend API key", hide_input=True)
    api_key = api_key.strip()
    if not api_key:
        raise InvalidUsageError("API key is required")
    if not looks_like_api_key(api_key):
        raise InvalidUsageError(
            f'Invalid API key format. Resend API keys start with "{API_KEY_PREFIX}"'
        )

    if default_from is None:
        default_from = typer.prompt(
            "Default FROM email address (optional)", default="", show_default=False
        ).strip()
    if default_from and not validate_email(default_from):
        raise InvalidUsageError(f"Invalid sender email: {default_from}")

    if verify:
        output.progress("Checking the API key...")
        with build_client(ctx, api_key=api_key) as client:
            accepted = client.test_connection()
        if not accepted:
            raise ConfigError(
                "The API key could not be verified; nothing was saved. "
                "Run with --verbose for details."
            )
        output.success("API key verified.")

    data = load_config().model_dump(exclude_unset=True, exclude_none=True)
    data["api_key"] = api_key
    if default_from:
        data["default_from"] = default_from

    path = save_config(_validated(data))
    output.success("Configuration saved.")
    output.info(f"Config file: {path}")


@config_app.command("get")
def config_get(
    ctx: typer.Context,
    key: Optional[str] = typer.Argument(None, help="Show only this key."),
) -> None:
    """Show the stored configuration (API key masked)."""
    output = get_output(ctx)
    data = load_config().model_dump(mode="json", exclude_unset=True, exclude_none=True)

    if key is None:
        if not data:
            output.info("No configuration found. Run 'resend config init' to get started.")
            return
        output.record(_display(data))
        return

    _check_key(key)
    if key not in data:
        raise InvalidUsageError(f"Configuration key '{key}' is not set")
    output.record(_display({key: data[key]}))


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(help="Config key, e.g. default_from."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is validated against :class:`~resendcli.models.CliConfig`
    (integers for ``timeout_ms`` and ``max_retries``, one of
    auto/json/plain/rich for ``output_format``) before saving.

    Example::

        resend config set default_from me@example.com
        resend config set max_retries 5
    """
    _check_key(key)
    if key == "api_key" and not looks_like_api_key(value):
        raise InvalidUsageError(
            f'Invalid API key format. Resend API keys start with "{API_KEY_PREFIX}"'
        )
    if key == "default_from" and not validate_email(value):
        raise InvalidUsageError(f"Invalid sender email: {value}")

    data = load_config().model_dump(exclude_unset=True, exclude_none=True)
    data[key] = value
    save_config(_validated(data))

    shown = mask_api_key(value) if key == "api_key" else value
    get_output(ctx).success(f"Set {key} = {shown}")


@config_app.command("delete")
def config_delete(
    ctx: typer.Context,
    key: str = typer.Argument(help="Config key to remove."),
) -> None:
    """Remove a key from the configuration file."""
    _check_key(key)
    data = load_config().model_dump(exclude_unset=True, exclude_none=True)
    if key not in data:
        raise InvalidUsageError(f"Configuration key '{key}' is not set")
    del data[key]
    save_config(_validated(data))
    get_output(ctx).success(f"Removed {key}")


@config_app.command("path")
def config_path(ctx: typer.Context) -> None:
    """Print the path of the global configuration file."""
    get_output(ctx).line(str(config_file_path()))
