"""Exception hierarchy for resendcli.

All exceptions inherit from :class:`ResendCliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`resendcli.exit_codes`.
The top-level error handler in :func:`resendcli.app.main` catches
``ResendCliError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ResendCliError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- APIError            (exit derived from status_code)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from resendcli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    from resendcli.models import RateLimitInfo


class ResendCliError(Exception):
    """Base exception for all resendcli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`resendcli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ResendCliError):
    """Raised for invalid CLI arguments or input that fails local validation."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ResendCliError):
    """Raised for configuration problems (missing API key, invalid config file)."""

    exit_code = EXIT_GENERIC_FAILURE


class APIError(ResendCliError):
    """The single error shape for every failed API call.

    Raised by :class:`~resendcli.client.ResendClient` for timeouts, network
    failures, 4xx responses, and 5xx responses that outlived the retry
    budget.

    Args:
        message: Error message, taken from the response body's ``message``
            field when present.
        status_code: The literal HTTP status of the failing response, or
            ``None`` when no response was received (timeout, network error).
        details: The parsed error body, verbatim. ``None`` when the body was
            not valid JSON.
        rate_limit: Rate-limit snapshot from the failing response's headers,
            when all three headers were present.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Any = None,
        rate_limit: Optional[RateLimitInfo] = None,
    ) -> None:
        super().__init__(message, exit_code=_exit_code_for_status(status_code))
        self.status_code = status_code
        self.details = details
        self.rate_limit = rate_limit

    def __repr__(self) -> str:
        return f"APIError({self.message!r}, status_code={self.status_code!r})"


def _exit_code_for_status(status_code: Optional[int]) -> int:
    if status_code is None:
        return EXIT_CONNECTION_ERROR
    if status_code in (401, 403):
        return EXIT_AUTH_FAILURE
    if status_code == 404:
        return EXIT_NOT_FOUND
    if status_code == 429:
        return EXIT_RATE_LIMITED
    if status_code >= 500:
        return EXIT_SERVER_ERROR
    return EXIT_GENERIC_FAILURE
