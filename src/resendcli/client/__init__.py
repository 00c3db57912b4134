"""HTTP client module for resendcli.

Provides the blocking API engine that wraps :mod:`httpx` with bearer-token
auth, per-attempt timeouts, retry with exponential backoff, rate-limit
header parsing and typed error mapping.

Classes:
    :class:`ResendClient` -- blocking client backed by :class:`httpx.Client`.

The client is designed to be used as a context manager.

Example::

    from resendcli.client import ResendClient

    with ResendClient(api_key) as client:
        domains = client.list_domains().data
"""

from resendcli.client.sync_client import DEFAULT_BASE_URL, ResendClient

__all__ = ["DEFAULT_BASE_URL", "ResendClient"]
