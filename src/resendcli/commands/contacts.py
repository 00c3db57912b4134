"""Contact commands -- manage the contacts of an audience.

Provides the ``resend contacts`` sub-command group, including ``import``,
which reads a CSV file and creates one contact per row. Rows are sent
sequentially; a failing row is recorded and the import continues, and the
command exits non-zero if any row failed.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import typer

from resendcli.commands._common import (
    build_client,
    confirm_or_exit,
    get_output,
    raise_for_errors,
    read_text_file,
)
from resendcli.exceptions import APIError, InvalidUsageError, ResendCliError
from resendcli.models import CreateContactRequest, UpdateContactRequest
from resendcli.validators import validate_email


contacts_app = typer.Typer(no_args_is_help=True)

_FIRST_NAME_COLUMNS = ("first_name", "firstname")
_LAST_NAME_COLUMNS = ("last_name", "lastname")


# --- CSV parsing ---


@dataclass
class ContactRow:
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass
class ParsedContacts:
    """Result of :func:`parse_contacts_csv`.

    Attributes:
        contacts: Rows with a valid email address, in file order.
        skipped: Number of data rows dropped for a missing or invalid email.
    """

    contacts: list[ContactRow] = field(default_factory=list)
    skipped: int = 0


def _find_column(headers: list[str], names: tuple[str, ...]) -> Optional[int]:
    for index, header in enumerate(headers):
        if header in names:
            return index
    return None


def _cell(row: list[str], index: Optional[int]) -> Optional[str]:
    if index is None or index >= len(row):
        return None
    return row[index].strip() or None


def parse_contacts_csv(content: str) -> ParsedContacts:
    """Parse CSV text into contact rows.

    The first row is the header. Column names are matched case-insensitively:
    ``email`` (required), ``first_name`` or ``firstname``, and ``last_name``
    or ``lastname``. Other columns are ignored, as are blank lines.

    Raises:
        InvalidUsageError: If the header has no ``email`` column.
    """
    reader = csv.reader(io.StringIO(content.strip()))
    header = next(reader, None)
    if not header:
        return ParsedContacts()

    headers = [h.strip().lower() for h in header]
    email_index = _find_column(headers, ("email",))
    if email_index is None:
        raise InvalidUsageError('CSV file must have an "email" column')
    first_index = _find_column(headers, _FIRST_NAME_COLUMNS)
    last_index = _find_column(headers, _LAST_NAME_COLUMNS)

    parsed = ParsedContacts()
    for row in reader:
        if not any(value.strip() for value in row):
            continue
        email = _cell(row, email_index)
        if not email or not validate_email(email):
            parsed.skipped += 1
            continue
        parsed.contacts.append(
            ContactRow(
                email=email,
                first_name=_cell(row, first_index),
                last_name=_cell(row, last_index),
            )
        )
    return parsed


# --- Commands ---


@contacts_app.command("create")
def create_contact(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience ID."),
    email: str = typer.Option(..., "--email", "-e", help="Contact email address."),
    first_name: Optional[str] = typer.Option(None, "--first-name", help="First name."),
    last_name: Optional[str] = typer.Option(None, "--last-name", help="Last name."),
    unsubscribed: bool = typer.Option(
        False, "--unsubscribed", help="Create the contact as unsubscribed."
    ),
) -> None:
    """Add a contact to an audience."""
    if not validate_email(email):
        raise InvalidUsageError(f"Invalid email: {email}")

    request = CreateContactRequest(
        audience_id=audience_id,
        email=email.strip(),
        first_name=first_name,
        last_name=last_name,
        unsubscribed=True if unsubscribed else None,
    )
    with build_client(ctx) as client:
        result = client.create_contact(request)

    output = get_output(ctx)
    output.success(f"Contact {email} added.")
    output.record(result)


@contacts_app.command("list")
def list_contacts(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience ID."),
) -> None:
    """List the contacts of an audience."""
    with build_client(ctx) as client:
        result = client.list_contacts(audience_id)
    get_output(ctx).page(
        result,
        ["ID", "Email", "First name", "Last name", "Unsubscribed"],
        lambda c: [c.id, c.email, c.first_name, c.last_name, c.unsubscribed],
        title="Contacts",
        empty_message="No contacts found.",
    )


@contacts_app.command("get")
def get_contact(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience ID."),
    contact_id: str = typer.Argument(help="Contact ID."),
) -> None:
    """Show one contact."""
    with build_client(ctx) as client:
        result = client.get_contact(audience_id, contact_id)
    get_output(ctx).record(result)


@contacts_app.command("update")
def update_contact(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience ID."),
    contact_id: str = typer.Argument(help="Contact ID."),
    first_name: Optional[str] = typer.Option(None, "--first-name", help="New first name."),
    last_name: Optional[str] = typer.Option(None, "--last-name", help="New last name."),
    unsubscribe: Optional[bool] = typer.Option(
        None,
        "--unsubscribe/--subscribe",
        help="Unsubscribe the contact, or subscribe it again.",
    ),
) -> None:
    """Update a contact's name or subscription status."""
    request = UpdateContactRequest(
        first_name=first_name, last_name=last_name, unsubscribed=unsubscribe
    )
    if first_name is None and last_name is None and unsubscribe is None:
        raise_for_errors(
            ["No update options provided. Use --first-name, --last-name or --unsubscribe"]
        )

    with build_client(ctx) as client:
        result = client.update_contact(audience_id, contact_id, request)

    output = get_output(ctx)
    output.success(f"Contact {contact_id} updated.")
    output.record(result)


@contacts_app.command("delete")
def delete_contact(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience ID."),
    contact_id: str = typer.Argument(help="Contact ID or email address."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Remove a contact from an audience."""
    confirm_or_exit(ctx, f"Delete contact {contact_id}?", force)

    with build_client(ctx) as client:
        result = client.delete_contact(audience_id, contact_id)

    output = get_output(ctx)
    output.success(f"Contact {contact_id} deleted.")
    output.record(result)


@contacts_app.command("import")
def import_contacts(
    ctx: typer.Context,
    audience_id: str = typer.Argument(help="Audience ID."),
    csv_file: Path = typer.Argument(help="CSV file with an email column."),
) -> None:
    """Import contacts from a CSV file.

    Each row becomes one API call, made in file order. Rows without a
    valid email are skipped. Failed rows are listed in the summary and
    make the command exit non-zero.

    Example::

        resend contacts import aud_123 contacts.csv
    """
    output = get_output(ctx)
    parsed = parse_contacts_csv(read_text_file(csv_file, "CSV file"))
    if parsed.skipped:
        output.warning(f"Skipped {parsed.skipped} row(s) without a valid email.")
    if not parsed.contacts:
        raise InvalidUsageError("No valid contacts found in CSV file")

    total = len(parsed.contacts)
    output.info(f"Found {total} contact(s) in {csv_file}")

    imported = 0
    failures: list[dict[str, object]] = []
    with build_client(ctx) as client:
        for number, row in enumerate(parsed.contacts, start=1):
            output.progress(f"Importing contact {number}/{total}: {row.email}")
            request = CreateContactRequest(
                audience_id=audience_id,
                email=row.email,
                first_name=row.first_name,
                last_name=row.last_name,
            )
            try:
                client.create_contact(request)
            except APIError as exc:
                output.debug(f"{row.email}: {exc.message}")
                failures.append(
                    {"email": row.email, "error": exc.message, "status": exc.status_code}
                )
                continue
            imported += 1

    summary = {
        "imported": imported,
        "failed": len(failures),
        "skipped": parsed.skipped,
        "errors": failures,
    }
    if output.is_json:
        output.record(summary)
    else:
        output.success(f"Imported {imported} of {total} contact(s).")
        for failure in failures:
            output.warning(f"{failure['email']}: {failure['error']}")

    if failures:
        raise ResendCliError(f"{len(failures)} of {total} contact(s) failed to import")
