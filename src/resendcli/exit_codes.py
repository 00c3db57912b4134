"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~resendcli.exceptions.ResendCliError` subclass.
Shell scripts can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ resend domains get d_123
    $ echo $?
    4   # EXIT_NOT_FOUND -- the domain does not exist
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (also used for 4xx responses without a dedicated code)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or failed local validation."""

EXIT_AUTH_FAILURE = 3
"""The API rejected the credential (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The API returned an HTTP 5xx server error after all retries."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_RATE_LIMITED = 8
"""The API rejected the request because the rate limit was exceeded (HTTP 429)."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
