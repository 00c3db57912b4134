"""Email commands -- send, batch-send, inspect and reschedule emails.

Provides the ``resend emails`` sub-command group. ``send`` builds a
:class:`~resendcli.models.SendEmailRequest` from flags and files,
``send-batch`` reads up to 100 requests from a JSON array file. Both
validate every field locally first and report all problems together.
"""

from __future__ import annotations

import base64
import json
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
from resendcli.exceptions import InvalidUsageError
from resendcli.models import Attachment, SendEmailRequest, UpdateEmailRequest
from resendcli.validators import (
    parse_tags,
    validate_batch_entries,
    validate_email_body,
    validate_limit,
    validate_optional_fields,
    validate_required_fields,
    validate_scheduled_at,
)


emails_app = typer.Typer(no_args_is_help=True)


def _read_attachment(path: Path) -> Attachment:
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        raise InvalidUsageError(f"Attachment file not found: {path}") from None
    except OSError as exc:
        raise InvalidUsageError(f"Cannot read attachment {path}: {exc}") from exc
    return Attachment(filename=path.name, content=base64.b64encode(content).decode("ascii"))


@emails_app.command("send")
def send_email(
    ctx: typer.Context,
    from_: Optional[str] = typer.Option(
        None, "--from", help="Sender address. Defaults to the configured default_from."
    ),
    to: Optional[list[str]] = typer.Option(
        None, "--to", help="Recipient address (repeatable)."
    ),
    subject: Optional[str] = typer.Option(None, "--subject", "-s", help="Email subject."),
    text: Optional[str] = typer.Option(None, "--text", help="Plain-text body."),
    html: Optional[str] = typer.Option(None, "--html", help="HTML body."),
    html_file: Optional[Path] = typer.Option(
        None, "--html-file", help="Read the HTML body from a file."
    ),
    cc: Optional[list[str]] = typer.Option(None, "--cc", help="CC address (repeatable)."),
    bcc: Optional[list[str]] = typer.Option(None, "--bcc", help="BCC address (repeatable)."),
    reply_to: Optional[list[str]] = typer.Option(
        None, "--reply-to", help="Reply-to address (repeatable)."
    ),
    tag: Optional[list[str]] = typer.Option(
        None, "--tag", help="Tag as name:value (repeatable)."
    ),
    attachment: Optional[list[Path]] = typer.Option(
        None, "--attachment", help="File to attach (repeatable)."
    ),
    scheduled_at: Optional[str] = typer.Option(
        None, "--scheduled-at", help="Send later, at an ISO 8601 time in the future."
    ),
) -> None:
    """Send a single email.

    Every field is validated before anything is sent; all problems are
    reported at once and the command exits with code 2.

    Example::

        resend emails send --from me@example.com --to you@example.com \\
            --subject "Hello" --text "Hi there"
        resend emails send --to you@example.com -s Report \\
            --html-file report.html --attachment report.pdf
    """
    output = get_output(ctx)
    sender = from_ or get_settings(ctx).default_from

    if html_file is not None:
        html = read_text_file(html_file, "HTML file")

    errors = validate_required_fields(sender, to, subject)
    if not validate_email_body(text, html):
        errors.append("Either --text or --html/--html-file is required")
    errors.extend(validate_optional_fields(cc, bcc, reply_to))
    tags, tag_errors = parse_tags(tag or [])
    errors.extend(tag_errors)
    if scheduled_at:
        errors.extend(validate_scheduled_at(scheduled_at))
    raise_for_errors(errors)

    request = SendEmailRequest(
        from_=sender,
        to=to,
        subject=subject,
        text=text,
        html=html,
        cc=cc or None,
        bcc=bcc or None,
        reply_to=reply_to or None,
        tags=tags or None,
        attachments=[_read_attachment(p) for p in attachment] if attachment else None,
        scheduled_at=scheduled_at,
    )

    with build_client(ctx) as client:
        result = client.send_email(request)

    if scheduled_at:
        output.success(f"Email scheduled for {scheduled_at}.")
    else:
        output.success("Email sent.")
    output.record(result)


@emails_app.command("send-batch")
def send_batch(
    ctx: typer.Context,
    json_file: Path = typer.Argument(help="JSON file containing an array of email objects."),
) -> None:
    """Send up to 100 emails in one request.

    The file must hold a JSON array whose entries use the same fields as
    the API (``from``, ``to``, ``subject``, ``text``/``html``, ...).

    Example::

        resend emails send-batch emails.json
    """
    output = get_output(ctx)
    content = read_text_file(json_file, "JSON file")
    try:
        entries = json.loads(content)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Invalid JSON format in {json_file}: {exc}") from exc

    requests, errors = validate_batch_entries(entries)
    raise_for_errors(errors)

    with build_client(ctx) as client:
        result = client.send_batch_emails(requests)

    output.success(f"Batch of {len(result.data.data)} emails sent.")
    output.record(result)


@emails_app.command("get")
def get_email(
    ctx: typer.Context,
    email_id: str = typer.Argument(help="Email ID."),
) -> None:
    """Show one sent email."""
    with build_client(ctx) as client:
        result = client.get_email(email_id)
    get_output(ctx).record(result)


@emails_app.command("list")
def list_emails(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-l", help="Number of emails to show (1-100)."),
    cursor: Optional[str] = typer.Option(None, "--cursor", help="Pagination cursor."),
) -> None:
    """List sent emails, newest first.

    Example::

        resend emails list --limit 50
        resend --json emails list | jq '.data[].id'
    """
    raise_for_errors(validate_limit(limit))

    with build_client(ctx) as client:
        result = client.list_emails(limit=limit, cursor=cursor)

    output = get_output(ctx)
    output.page(
        result,
        ["ID", "To", "Subject", "Status", "Created"],
        lambda e: [e.id, e.to, e.subject, e.last_event, e.created_at],
        title="Emails",
        empty_message="No emails found.",
    )
    if result.data.next_cursor and not output.is_json:
        output.suggest(f"Next page: resend emails list --cursor {result.data.next_cursor}")


@emails_app.command("update")
def update_email(
    ctx: typer.Context,
    email_id: str = typer.Argument(help="Email ID."),
    scheduled_at: str = typer.Option(
        ..., "--scheduled-at", help="New ISO 8601 send time in the future."
    ),
) -> None:
    """Reschedule a scheduled email."""
    raise_for_errors(validate_scheduled_at(scheduled_at))

    with build_client(ctx) as client:
        result = client.update_email(email_id, UpdateEmailRequest(scheduled_at=scheduled_at))

    output = get_output(ctx)
    output.success(f"Email {email_id} rescheduled for {scheduled_at}.")
    output.record(result)


@emails_app.command("cancel")
def cancel_email(
    ctx: typer.Context,
    email_id: str = typer.Argument(help="Email ID."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Cancel a scheduled email."""
    confirm_or_exit(ctx, f"Cancel scheduled email {email_id}?", force)

    with build_client(ctx) as client:
        result = client.cancel_email(email_id)

    output = get_output(ctx)
    output.success(f"Email {email_id} cancelled.")
    output.record(result)
