"""resendcli -- a command-line client for the Resend email API.

Every sub-command (``emails``, ``domains``, ``audiences``, ``contacts``,
``broadcasts``, ``webhooks``, ``api-keys``) funnels through a single
:class:`~resendcli.client.ResendClient`, which owns authentication, retry
with exponential backoff, timeouts, and rate-limit header parsing.

Typical workflow::

    resend config init                       # store an API key
    resend emails send --from a@example.com --to b@example.com \\
        --subject Hello --text "Hi there"

Modules:
    app: Typer application and CLI entry point.
    client: The API request/retry engine.
    models: Pydantic record types for every request and response.
    config: XDG-aware config file and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    validators: Local input validation helpers.
"""

__version__ = "0.1.0"
