"""Domain commands -- manage sending domains.

Provides the ``resend domains`` sub-command group: add a domain, list,
inspect, verify its DNS records, toggle open/click tracking, and delete.
"""

from __future__ import annotations

from typing import Optional

import typer

from resendcli.commands._common import (
    build_client,
    confirm_or_exit,
    get_output,
    raise_for_errors,
)
from resendcli.models import CreateDomainRequest, DomainRegion, UpdateDomainRequest
from resendcli.validators import parse_bool


domains_app = typer.Typer(no_args_is_help=True)


@domains_app.command("add")
def add_domain(
    ctx: typer.Context,
    name: str = typer.Argument(help="Domain name, e.g. mail.example.com."),
    region: Optional[DomainRegion] = typer.Option(
        None, "--region", "-r", help="Region that sends for this domain."
    ),
) -> None:
    """Add a sending domain.

    The response lists the DNS records to create before running
    ``resend domains verify``.
    """
    output = get_output(ctx)
    with build_client(ctx) as client:
        result = client.create_domain(CreateDomainRequest(name=name, region=region))

    output.success(f"Domain {name} added.")
    output.record(result)
    if result.data.records:
        output.suggest(f"Add the DNS records above, then run: resend domains verify {result.data.id}")


@domains_app.command("list")
def list_domains(ctx: typer.Context) -> None:
    """List sending domains."""
    with build_client(ctx) as client:
        result = client.list_domains()
    get_output(ctx).page(
        result,
        ["ID", "Name", "Status", "Region", "Created"],
        lambda d: [d.id, d.name, d.status, d.region, d.created_at],
        title="Domains",
        empty_message="No domains found.",
    )


@domains_app.command("get")
def get_domain(
    ctx: typer.Context,
    domain_id: str = typer.Argument(help="Domain ID."),
) -> None:
    """Show a domain and its DNS records."""
    with build_client(ctx) as client:
        result = client.get_domain(domain_id)
    get_output(ctx).record(result)


@domains_app.command("verify")
def verify_domain(
    ctx: typer.Context,
    domain_id: str = typer.Argument(help="Domain ID."),
) -> None:
    """Start DNS verification for a domain."""
    with build_client(ctx) as client:
        result = client.verify_domain(domain_id)
    output = get_output(ctx)
    output.success(f"Verification started for domain {domain_id}.")
    output.record(result)


@domains_app.command("update")
def update_domain(
    ctx: typer.Context,
    domain_id: str = typer.Argument(help="Domain ID."),
    open_tracking: Optional[str] = typer.Option(
        None, "--open-tracking", help="Track opens: true or false."
    ),
    click_tracking: Optional[str] = typer.Option(
        None, "--click-tracking", help="Track clicks: true or false."
    ),
) -> None:
    """Toggle open and click tracking for a domain.

    Example::

        resend domains update d_123 --open-tracking true --click-tracking false
    """
    errors: list[str] = []
    request = UpdateDomainRequest()
    if open_tracking is not None:
        request.open_tracking = parse_bool(open_tracking)
        if request.open_tracking is None:
            errors.append('--open-tracking must be "true" or "false"')
    if click_tracking is not None:
        request.click_tracking = parse_bool(click_tracking)
        if request.click_tracking is None:
            errors.append('--click-tracking must be "true" or "false"')
    if open_tracking is None and click_tracking is None:
        errors.append("No update options provided. Use --open-tracking or --click-tracking")
    raise_for_errors(errors)

    with build_client(ctx) as client:
        result = client.update_domain(domain_id, request)

    output = get_output(ctx)
    output.success(f"Domain {domain_id} updated.")
    output.record(result)


@domains_app.command("delete")
def delete_domain(
    ctx: typer.Context,
    domain_id: str = typer.Argument(help="Domain ID."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a domain."""
    confirm_or_exit(ctx, f"Delete domain {domain_id}?", force)

    with build_client(ctx) as client:
        result = client.delete_domain(domain_id)

    output = get_output(ctx)
    output.success(f"Domain {domain_id} deleted.")
    output.record(result)
