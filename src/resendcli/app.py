"""Typer application and CLI entry point for resendcli.

This module wires together the top-level Typer application and registers
the command groups (``emails``, ``domains``, ``audiences``, ``contacts``,
``broadcasts``, ``webhooks``, ``api-keys``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, invokes the Typer app, and
turns :class:`~resendcli.exceptions.ResendCliError` into an ``Error:`` line
on stderr plus the error's exit code. Unhandled exceptions are written to a
crash log under the data directory.

See Also:
    :mod:`resendcli.config`: Settings resolution used by every command.
    :mod:`resendcli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import json
import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from resendcli import __version__
from resendcli.commands.api_keys import api_keys_app
from resendcli.commands.audiences import audiences_app
from resendcli.commands.broadcasts import broadcasts_app
from resendcli.commands.config import config_app
from resendcli.commands.contacts import contacts_app
from resendcli.commands.domains import domains_app
from resendcli.commands.emails import emails_app
from resendcli.commands.webhooks import webhooks_app
from resendcli.config import get_data_dir, resolve_settings
from resendcli.exceptions import APIError, ConfigError, ResendCliError
from resendcli.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from resendcli.output import OutputFormat, OutputManager


app = typer.Typer(
    name="resend",
    help="Command-line client for the Resend email API.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.add_typer(emails_app, name="emails", help="Send and manage emails.")
app.add_typer(domains_app, name="domains", help="Manage sending domains.")
app.add_typer(audiences_app, name="audiences", help="Manage audiences.")
app.add_typer(contacts_app, name="contacts", help="Manage audience contacts.")
app.add_typer(broadcasts_app, name="broadcasts", help="Create and send broadcasts.")
app.add_typer(webhooks_app, name="webhooks", help="Manage webhooks.")
app.add_typer(api_keys_app, name="api-keys", help="Manage API keys.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"resend {__version__}")
        raise typer.Exit()


class _OutputLogHandler(logging.Handler):
    """Forward log records to :meth:`OutputManager.debug`."""

    def __init__(self, output: OutputManager) -> None:
        super().__init__(logging.DEBUG)
        self._output = output

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._output.debug(self.format(record))
        except Exception:
            self.handleError(record)


def _configure_logging(output: OutputManager, verbose: bool) -> None:
    """Route the package's log records to stderr when ``--verbose`` is set."""
    logger = logging.getLogger("resendcli")
    for handler in list(logger.handlers):
        if isinstance(handler, _OutputLogHandler):
            logger.removeHandler(handler)
    if verbose:
        logger.addHandler(_OutputLogHandler(output))
        logger.setLevel(logging.DEBUG)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="API key (overrides RESEND_API_KEY and config files)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Creates the :class:`~resendcli.output.OutputManager` from CLI flags and
    stores it, together with the shared options (``api_key``, ``force``,
    ``verbose``), in the Typer context so that sub-commands can read them
    via ``ctx.obj``.

    Without ``--json`` or ``--plain``, the format comes from the
    ``output_format`` setting (``RESEND_OUTPUT_FORMAT`` or the config files).
    """
    ctx.ensure_object(dict)

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            settings = resolve_settings(api_key)
        except ConfigError:
            # Surfaced again by the first command that needs settings.
            settings = None
        if settings is not None:
            ctx.obj["settings"] = settings
            fmt = OutputFormat(settings.output_format)

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    _configure_logging(output, verbose)

    ctx.obj["output"] = output
    ctx.obj["api_key"] = api_key
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def report_error(exc: ResendCliError, output: OutputManager) -> None:
    """Print *exc* to stderr: the message, then the HTTP status if there is one."""
    output.error(exc.message)
    if isinstance(exc, APIError):
        if exc.status_code is not None:
            output.detail("Status", exc.status_code)
        if exc.status_code == 429 and exc.rate_limit is not None:
            output.detail("Rate limit resets at", exc.rate_limit.reset)
        if exc.details is not None and output.is_verbose:
            output.detail("Details", json.dumps(exc.details, default=str))


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        encoding="utf-8",
    )
    return str(log_path)


def _error_output(argv: list[str]) -> OutputManager:
    """Output manager for the error boundary, honouring the flags on *argv*."""
    return OutputManager(
        format=OutputFormat.PLAIN,
        no_color="--no-color" in argv,
        verbose="--verbose" in argv or "-v" in argv,
    )


def main() -> None:
    """CLI entry point invoked by the ``resend`` console script.

    Unhandled :class:`~resendcli.exceptions.ResendCliError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except ResendCliError as exc:
        report_error(exc, _error_output(sys.argv[1:]))
        sys.exit(exc.exit_code)
    except Exception as exc:
        output = _error_output(sys.argv[1:])
        log_path = _write_crash_log(exc)
        output.error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
