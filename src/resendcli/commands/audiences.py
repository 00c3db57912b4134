"""Audience commands -- manage contact lists used by broadcasts."""

from __future__ import annotations

import typer

from resendcli.commands._common import (
    build_client,
    confirm_or_exit,
    get_output,
)
from resendcli.models import CreateAudienceRequest


audiences_app = typer.Typer(no_args_is_help=True)


@audiences_app.command("create")
def create_audience(
    ctx: typer.Context,
    name: str = typer.Argument(help="Audience name."),
) -> None:
    """Create an audience."""
    with build_client(ctx) as client:
        result = client.create_audience(CreateAudienceRequest(name=name))
    output = get_output(ctx)
    output.success(f"Audience {name} created.")
    output.record(result)


@audiences_app.command("list")
def list_audiences(ctx: typer.Context) -> None:
    """List audiences."""
    with build_client(ctx) as client:
        result = client.list_audiences()
    get_output(ctx).page(
        result,
        ["ID", "Name", "Created"],
        lambda a: [a.id, a.name, a.created_at],
        title="Audiences",
        empty_message="No audiences found.",
    )


@audiences_app.command("get")
def get_audience(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience ID."),
) -> None:
    """Show one audience."""
    with build_client(ctx) as client:
        result = client.get_audience(audience_id)
    get_output(ctx).record(result)


@audiences_app.command("delete")
def delete_audience(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience ID."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete an audience and all of its contacts."""
    confirm_or_exit(ctx, f"Delete audience {audience_id} and all of its contacts?", force)

    with build_client(ctx) as client:
        result = client.delete_audience(audience_id)

    output = get_output(ctx)
    output.success(f"Audience {audience_id} deleted.")
    output.record(result)
