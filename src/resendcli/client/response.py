"""Response parsing helpers -- rate-limit headers, bodies, and error mapping.

These functions turn an :class:`httpx.Response` into the pieces the engine
returns: the decoded body, the optional :class:`~resendcli.models.RateLimitInfo`
snapshot, and for failures a fully populated
:class:`~resendcli.exceptions.APIError`.

See Also:
    :mod:`resendcli.client.sync_client` -- the engine that calls these.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from resendcli.exceptions import APIError
from resendcli.models import RateLimitInfo

RATE_LIMIT_HEADER = "x-ratelimit-limit"
RATE_LIMIT_REMAINING_HEADER = "x-ratelimit-remaining"
RATE_LIMIT_RESET_HEADER = "x-ratelimit-reset"

_NO_BODY = object()


def parse_rate_limit(headers: httpx.Headers) -> Optional[RateLimitInfo]:
    """Build a rate-limit snapshot from response headers.

    The three ``x-ratelimit-*`` headers are read as a unit: if any of them is
    missing or is not an integer, no snapshot is produced.

    Args:
        headers: The response headers (case-insensitive mapping).

    Returns:
        A :class:`RateLimitInfo`, or ``None``.
    """
    raw = (
        headers.get(RATE_LIMIT_HEADER),
        headers.get(RATE_LIMIT_REMAINING_HEADER),
        headers.get(RATE_LIMIT_RESET_HEADER),
    )
    if any(value is None for value in raw):
        return None
    try:
        limit, remaining, reset = (int(value.strip()) for value in raw)
    except ValueError:
        return None
    return RateLimitInfo(limit=limit, remaining=remaining, reset=reset)


def decode_json_body(response: httpx.Response) -> Any:
    """Decode the response body as JSON.

    An empty body decodes to an empty dict so that endpoints answering with
    ``204 No Content`` still produce a record.

    Raises:
        ValueError: If the body is present but not valid JSON.
    """
    if not response.content:
        return {}
    return json.loads(response.content)


def _try_decode(response: httpx.Response) -> Any:
    """Decode the body as JSON, returning ``_NO_BODY`` instead of raising."""
    if not response.content:
        return _NO_BODY
    try:
        return json.loads(response.content)
    except ValueError:
        return _NO_BODY


def error_from_response(
    response: httpx.Response,
    rate_limit: Optional[RateLimitInfo] = None,
) -> APIError:
    """Build the :class:`APIError` for a non-2xx response.

    The message is the body's ``message`` field when it is a string, and a
    generic ``API request failed with status <code>`` otherwise. A body that
    is not valid JSON leaves ``details`` unset; it never replaces the HTTP
    failure with a parse error.

    Args:
        response: The failing response.
        rate_limit: Snapshot parsed from the same response, if any.

    Returns:
        The error, carrying the response's literal status code.
    """
    body = _try_decode(response)
    details = None if body is _NO_BODY else body

    message = None
    if isinstance(details, dict) and isinstance(details.get("message"), str):
        message = details["message"]
    if not message:
        message = f"API request failed with status {response.status_code}"

    return APIError(
        message,
        status_code=response.status_code,
        details=details,
        rate_limit=rate_limit,
    )
