"""API key commands -- create, list and revoke API keys."""

from __future__ import annotations

from typing import Optional

import typer

from resendcli.commands._common import (
    build_client,
    confirm_or_exit,
    get_output,
)
from resendcli.exceptions import InvalidUsageError
from resendcli.models import ApiKeyPermission, CreateApiKeyRequest


api_keys_app = typer.Typer(no_args_is_help=True)


@api_keys_app.command("create")
def create_api_key(
    ctx: typer.Context,
    name: str = typer.Argument(help="Key name."),
    permission: Optional[ApiKeyPermission] = typer.Option(
        None, "--permission", "-p", help="Access level of the key."
    ),
    domain_id: Optional[str] = typer.Option(
        None, "--domain-id", help="Restrict a sending_access key to one domain."
    ),
) -> None:
    """Create an API key. The token is shown only once."""
    if domain_id and permission != ApiKeyPermission.SENDING_ACCESS:
        raise InvalidUsageError("--domain-id requires --permission sending_access")

    with build_client(ctx) as client:
        result = client.create_api_key(
            CreateApiKeyRequest(name=name, permission=permission, domain_id=domain_id)
        )

    output = get_output(ctx)
    output.success(f"API key {name} created.")
    output.record(result)
    output.warning("Store the token now; it cannot be retrieved again.")


@api_keys_app.command("list")
def list_api_keys(ctx: typer.Context) -> None:
    """List API keys."""
    with build_client(ctx) as client:
        result = client.list_api_keys()
    get_output(ctx).page(
        result,
        ["ID", "Name", "Created"],
        lambda k: [k.id, k.name, k.created_at],
        title="API keys",
        empty_message="No API keys found.",
    )


@api_keys_app.command("delete")
def delete_api_key(
    ctx: typer.Context,
    api_key_id: str = typer.Argument(help="API key ID."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Revoke an API key."""
    confirm_or_exit(ctx, f"Revoke API key {api_key_id}?", force)

    with build_client(ctx) as client:
        result = client.delete_api_key(api_key_id)

    output = get_output(ctx)
    output.success(f"API key {api_key_id} revoked.")
    output.record(result)
