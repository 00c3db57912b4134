"""Broadcast commands -- create, schedule and send emails to an audience."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from resendcli.commands._common import (
    build_client,
    confirm_or_exit,
    get_output,
    get_settings,
    raise_for_errors,
    read_text_file,
)
from resendcli.models import CreateBroadcastRequest, UpdateBroadcastRequest
from resendcli.validators import (
    validate_email,
    validate_email_body,
    validate_optional_fields,
    validate_scheduled_at,
)


broadcasts_app = typer.Typer(no_args_is_help=True)


@broadcasts_app.command("create")
def create_broadcast(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience to send to."),
    from_: Optional[str] = typer.Option(
        None, "--from", help="Sender address. Defaults to the configured default_from."
    ),
    subject: str = typer.Option(..., "--subject", "-s", help="Email subject."),
    text: Optional[str] = typer.Option(None, "--text", help="Plain-text body."),
    html: Optional[str] = typer.Option(None, "--html", help="HTML body."),
    html_file: Optional[Path] = typer.Option(
        None, "--html-file", help="Read the HTML body from a file."
    ),
    reply_to: Optional[list[str]] = typer.Option(
        None, "--reply-to", help="Reply-to address (repeatable)."
    ),
    preview_text: Optional[str] = typer.Option(
        None, "--preview-text", help="Preview text shown by mail clients."
    ),
    name: Optional[str] = typer.Option(None, "--name", help="Internal broadcast name."),
) -> None:
    """Create a draft broadcast.

    Example::

        resend broadcasts create aud_123 --from news@example.com \\
            --subject "March update" --html-file march.html
    """
    sender = from_ or get_settings(ctx).default_from
    if html_file is not None:
        html = read_text_file(html_file, "HTML file")

    errors: list[str] = []
    if not sender:
        errors.append("Sender email (--from) is required")
    elif not validate_email(sender):
        errors.append(f"Invalid sender email: {sender}")
    if not subject.strip():
        errors.append("Subject (--subject) is required")
    if not validate_email_body(text, html):
        errors.append("Either --text or --html/--html-file is required")
    errors.extend(validate_optional_fields(reply_to=reply_to))
    raise_for_errors(errors)

    request = CreateBroadcastRequest(
        audience_id=audience_id,
        from_=sender,
        subject=subject,
        name=name,
        reply_to=reply_to or None,
        text=text,
        html=html,
        preview_text=preview_text,
    )
    with build_client(ctx) as client:
        result = client.create_broadcast(request)

    output = get_output(ctx)
    output.success("Broadcast created.")
    output.record(result)
    if result.data.id:
        output.suggest(f"Send it with: resend broadcasts send {result.data.id}")


@broadcasts_app.command("list")
def list_broadcasts(ctx: typer.Context) -> None:
    """List broadcasts."""
    with build_client(ctx) as client:
        result = client.list_broadcasts()
    get_output(ctx).page(
        result,
        ["ID", "Name", "Audience", "Status", "Created", "Scheduled"],
        lambda b: [b.id, b.name, b.audience_id, b.status, b.created_at, b.scheduled_at],
        title="Broadcasts",
        empty_message="No broadcasts found.",
    )


@broadcasts_app.command("get")
def get_broadcast(
    ctx: typer.Context,
    broadcast_id: str = typer.Argument(help="Broadcast ID."),
) -> None:
    """Show one broadcast."""
    with build_client(ctx) as client:
        result = client.get_broadcast(broadcast_id)
    get_output(ctx).record(result)


@broadcasts_app.command("update")
def update_broadcast(
    ctx: typer.Context,
    broadcast_id: str = typer.Argument(help="Broadcast ID."),
    audience_id: Optional[str] = typer.Option(None, "--audience-id", help="New audience."),
    from_: Optional[str] = typer.Option(None, "--from", help="New sender address."),
    subject: Optional[str] = typer.Option(None, "--subject", "-s", help="New subject."),
    text: Optional[str] = typer.Option(None, "--text", help="New plain-text body."),
    html: Optional[str] = typer.Option(None, "--html", help="New HTML body."),
    html_file: Optional[Path] = typer.Option(
        None, "--html-file", help="Read the new HTML body from a file."
    ),
    reply_to: Optional[list[str]] = typer.Option(
        None, "--reply-to", help="New reply-to address (repeatable)."
    ),
    preview_text: Optional[str] = typer.Option(None, "--preview-text", help="New preview text."),
    name: Optional[str] = typer.Option(None, "--name", help="New internal name."),
) -> None:
    """Update a draft broadcast. At least one field is required."""
    if html_file is not None:
        html = read_text_file(html_file, "HTML file")

    request = UpdateBroadcastRequest(
        audience_id=audience_id,
        from_=from_,
        subject=subject,
        name=name,
        reply_to=reply_to or None,
        text=text,
        html=html,
        preview_text=preview_text,
    )
    errors: list[str] = []
    if from_ is not None and not validate_email(from_):
        errors.append(f"Invalid sender email: {from_}")
    errors.extend(validate_optional_fields(reply_to=reply_to))
    if not request.model_dump(exclude_none=True):
        errors.append("No update options provided")
    raise_for_errors(errors)

    with build_client(ctx) as client:
        result = client.update_broadcast(broadcast_id, request)

    output = get_output(ctx)
    output.success(f"Broadcast {broadcast_id} updated.")
    output.record(result)


@broadcasts_app.command("send")
def send_broadcast(
    ctx: typer.Context,
    broadcast_id: str = typer.Argument(help="Broadcast ID."),
    scheduled_at: Optional[str] = typer.Option(
        None, "--scheduled-at", help="Send later, at an ISO 8601 time in the future."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Send a broadcast to its audience, now or at a scheduled time."""
    if scheduled_at:
        raise_for_errors(validate_scheduled_at(scheduled_at))
    when = f"at {scheduled_at}" if scheduled_at else "now"
    confirm_or_exit(ctx, f"Send broadcast {broadcast_id} {when}?", force)

    with build_client(ctx) as client:
        result = client.send_broadcast(broadcast_id, scheduled_at=scheduled_at)

    output = get_output(ctx)
    if scheduled_at:
        output.success(f"Broadcast {broadcast_id} scheduled for {scheduled_at}.")
    else:
        output.success(f"Broadcast {broadcast_id} sent.")
    output.record(result)


@broadcasts_app.command("delete")
def delete_broadcast(
    ctx: typer.Context,
    broadcast_id: str = typer.Argument(help="Broadcast ID."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a draft broadcast."""
    confirm_or_exit(ctx, f"Delete broadcast {broadcast_id}?", force)

    with build_client(ctx) as client:
        result = client.delete_broadcast(broadcast_id)

    output = get_output(ctx)
    output.success(f"Broadcast {broadcast_id} deleted.")
    output.record(result)
