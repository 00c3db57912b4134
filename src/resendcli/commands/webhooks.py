"""Webhook commands -- subscribe an endpoint to email events."""

from __future__ import annotations

from typing import Optional

import typer

from resendcli.commands._common import (
    build_client,
    confirm_or_exit,
    get_output,
    raise_for_errors,
)
from resendcli.models import CreateWebhookRequest, UpdateWebhookRequest, WebhookEvent


webhooks_app = typer.Typer(no_args_is_help=True)

_EVENTS_HELP = "Event to subscribe to (repeatable): " + ", ".join(e.value for e in WebhookEvent)


def _validate_endpoint(url: str) -> list[str]:
    if not url.startswith(("https://", "http://")):
        return [f"Invalid endpoint URL: {url} (must start with https:// or http://)"]
    return []


@webhooks_app.command("create")
def create_webhook(
    ctx: typer.Context,
    endpoint_url: str = typer.Argument(help="URL that receives the events."),
    events: list[WebhookEvent] = typer.Option(..., "--events", "-e", help=_EVENTS_HELP),
) -> None:
    """Create a webhook.

    Example::

        resend webhooks create https://example.com/hooks \\
            --events email.delivered --events email.bounced
    """
    raise_for_errors(_validate_endpoint(endpoint_url))

    with build_client(ctx) as client:
        result = client.create_webhook(
            CreateWebhookRequest(endpoint_url=endpoint_url, events=events)
        )

    output = get_output(ctx)
    output.success("Webhook created.")
    output.record(result)


@webhooks_app.command("list")
def list_webhooks(ctx: typer.Context) -> None:
    """List webhooks."""
    with build_client(ctx) as client:
        result = client.list_webhooks()
    get_output(ctx).page(
        result,
        ["ID", "Endpoint", "Events", "Created"],
        lambda w: [w.id, w.endpoint_url, w.events, w.created_at],
        title="Webhooks",
        empty_message="No webhooks found.",
    )


@webhooks_app.command("get")
def get_webhook(
    ctx: typer.Context,
    webhook_id: str = typer.Argument(help="Webhook ID."),
) -> None:
    """Show one webhook."""
    with build_client(ctx) as client:
        result = client.get_webhook(webhook_id)
    get_output(ctx).record(result)


@webhooks_app.command("update")
def update_webhook(
    ctx: typer.Context,
    webhook_id: str = typer.Argument(help="Webhook ID."),
    endpoint_url: Optional[str] = typer.Option(None, "--endpoint-url", help="New endpoint URL."),
    events: Optional[list[WebhookEvent]] = typer.Option(
        None, "--events", "-e", help=_EVENTS_HELP
    ),
) -> None:
    """Change a webhook's endpoint or replace its event list."""
    errors: list[str] = []
    if endpoint_url is not None:
        errors.extend(_validate_endpoint(endpoint_url))
    if endpoint_url is None and not events:
        errors.append("No update options provided. Use --endpoint-url or --events")
    raise_for_errors(errors)

    request = UpdateWebhookRequest(endpoint_url=endpoint_url, events=events or None)
    with build_client(ctx) as client:
        result = client.update_webhook(webhook_id, request)

    output = get_output(ctx)
    output.success(f"Webhook {webhook_id} updated.")
    output.record(result)


@webhooks_app.command("delete")
def delete_webhook(
    ctx: typer.Context,
    webhook_id: str = typer.Argument(help="Webhook ID."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a webhook."""
    confirm_or_exit(ctx, f"Delete webhook {webhook_id}?", force)

    with build_client(ctx) as client:
        result = client.delete_webhook(webhook_id)

    output = get_output(ctx)
    output.success(f"Webhook {webhook_id} deleted.")
    output.record(result)
