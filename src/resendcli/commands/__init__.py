"""Built-in CLI sub-commands for resendcli.

This package groups the Typer sub-applications that form the CLI's
top-level command tree:

* :mod:`~resendcli.commands.emails` -- send, batch-send, list and reschedule emails.
* :mod:`~resendcli.commands.domains` -- add, verify and configure sending domains.
* :mod:`~resendcli.commands.audiences` -- manage audiences.
* :mod:`~resendcli.commands.contacts` -- manage contacts, including CSV import.
* :mod:`~resendcli.commands.broadcasts` -- create and send broadcasts.
* :mod:`~resendcli.commands.webhooks` -- subscribe endpoints to email events.
* :mod:`~resendcli.commands.api_keys` -- create and revoke API keys.
* :mod:`~resendcli.commands.config` -- view and modify the config file.

Shared plumbing (client construction, confirmation prompts, file input)
lives in :mod:`~resendcli.commands._common`.
"""
