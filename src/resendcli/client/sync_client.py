"""The API request/retry engine -- one chokepoint for every remote call.

This module provides :class:`ResendClient`, the blocking HTTP client used by
every resendcli command. It wraps :class:`httpx.Client` and layers on:

- **Auth injection** -- ``Authorization: Bearer <api key>`` plus a JSON
  content type and a client ``User-Agent`` on every attempt.
- **Timeouts** -- each attempt has a ``timeout_ms`` wall-clock deadline
  that runs until the last body byte is read. An expired attempt becomes
  an :class:`~resendcli.exceptions.APIError` with no status and
  ``details={"timeout": timeout_ms}``.
- **Retry with backoff** -- 5xx responses, timeouts and network errors are
  retried up to ``max_retries`` total attempts, sleeping 1 s, 2 s, 4 s, 4 s,
  ... between them (see :mod:`resendcli.client.retry`). 4xx responses,
  including 429, are never retried.
- **Rate-limit parsing** -- the ``x-ratelimit-*`` headers are attached to
  results (and to errors) as a :class:`~resendcli.models.RateLimitInfo`.
- **Typed records** -- each endpoint method validates the body into its
  Pydantic record type from :mod:`resendcli.models`.

There is no overall deadline per logical call. The worst case is
``timeout_ms * max_retries`` plus the backoff sleeps between attempts; see
:func:`~resendcli.client.retry.worst_case_latency_ms`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from resendcli import __version__
from resendcli.client.response import decode_json_body, error_from_response, parse_rate_limit
from resendcli.client.retry import AttemptOutcome, backoff_delay, classify_attempt
from resendcli.exceptions import APIError, ConfigError, InvalidUsageError
from resendcli.models import (
    APIResponse,
    ApiKey,
    Audience,
    BatchEmailResponse,
    Broadcast,
    Contact,
    CreateApiKeyRequest,
    CreateAudienceRequest,
    CreateBroadcastRequest,
    CreateContactRequest,
    CreateDomainRequest,
    CreatedApiKey,
    CreateWebhookRequest,
    DeletedResponse,
    Domain,
    Email,
    ListResponse,
    ObjectRef,
    RateLimitInfo,
    SendBroadcastRequest,
    SendEmailRequest,
    SendEmailResponse,
    UpdateBroadcastRequest,
    UpdateContactRequest,
    UpdateDomainRequest,
    UpdateEmailRequest,
    UpdateWebhookRequest,
    Webhook,
    to_payload,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.resend.com"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_RETRIES = 3
MAX_BATCH_SIZE = 100
_MIN_WAIT_S = 0.001
USER_AGENT = f"resend-cli/{__version__}"

M = TypeVar("M", bound=BaseModel)


class ResendClient:
    """Synchronous client for the Resend API.

    Holds an immutable configuration and opens one :class:`httpx.Client`
    for its lifetime. Must be used as a context manager so that the
    underlying transport is properly opened and closed. The client keeps no
    state between calls, so it is safe to construct one per command.

    Args:
        api_key: The API key sent as a bearer token. Must be non-empty.
        base_url: API root; defaults to :data:`DEFAULT_BASE_URL`.
        timeout_ms: Per-attempt timeout in milliseconds.
        max_retries: Total number of attempts for retryable failures
            (at least 1).
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Raises:
        ConfigError: If the key is empty or the numeric settings are not
            positive.

    Example::

        with ResendClient("re_123") as client:
            result = client.send_email(request)
            print(result.data.id, result.rate_limit)
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ConfigError("An API key is required")
        if timeout_ms <= 0:
            raise ConfigError(f"timeout_ms must be positive, got {timeout_ms}")
        if max_retries < 1:
            raise ConfigError(f"max_retries must be at least 1, got {max_retries}")

        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout_ms = timeout_ms
        self._max_retries = max_retries
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def max_retries(self) -> int:
        return self._max_retries

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ResendClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout_ms / 1000),
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Generic request
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
        response_model: Optional[type[BaseModel]] = None,
    ) -> APIResponse[Any]:
        """Perform one logical API call with timeout, retry and error mapping.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE).
            path: Path relative to the base URL, e.g. ``/emails``.
            params: Query parameters. Entries whose value is ``None`` are
                omitted rather than sent empty.
            json_body: JSON-serialisable request body.
            headers: Extra headers, merged on top of the fixed ones.
            response_model: Record type the 2xx body is validated into.
                When ``None`` the decoded JSON is returned as-is.

        Returns:
            The decoded (and validated) body plus the rate-limit snapshot.

        Raises:
            APIError: For every failure -- timeout, network error, 4xx, or
                5xx once the retry budget is spent.
        """
        merged_headers: dict[str, str] = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        merged_headers.update(headers or {})
        query = {key: value for key, value in (params or {}).items() if value is not None}

        return self._execute_with_retry(
            method.upper(), path, merged_headers, query, json_body, response_model,
        )

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        params: dict[str, Any],
        json_body: Any,
        response_model: Optional[type[BaseModel]],
    ) -> APIResponse[Any]:
        """Run attempts until one succeeds, fails terminally, or the budget runs out."""
        assert self._client is not None, "Client not initialised -- use as context manager"

        last_error: Optional[APIError] = None

        for attempt in range(self._max_retries):
            response, error = self._attempt(method, path, headers, params, json_body)
            status = response.status_code if response is not None else None
            outcome = classify_attempt(status, attempt, self._max_retries)

            if outcome is AttemptOutcome.SUCCEED:
                assert response is not None
                return self._parse_success(response, response_model)

            assert error is not None
            if outcome is AttemptOutcome.FAIL:
                raise error

            last_error = error
            delay_ms = backoff_delay(attempt)
            logger.debug(
                "%s %s failed (%s), retrying in %dms (attempt %d/%d)",
                method, path, error.message, delay_ms, attempt + 1, self._max_retries,
            )
            time.sleep(delay_ms / 1000)

        # Only reachable if the final attempt was classified as RETRY.
        if last_error is not None:  # pragma: no cover
            raise last_error
        raise APIError("Request failed after maximum retries")  # pragma: no cover

    def _attempt(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        params: dict[str, Any],
        json_body: Any,
    ) -> tuple[Optional[httpx.Response], Optional[APIError]]:
        """Make a single HTTP attempt under a ``timeout_ms`` wall-clock deadline.

        The deadline covers everything from connecting to the last body
        byte, so a server that trickles its answer out cannot stretch one
        attempt past ``timeout_ms``.

        Returns ``(response, None)`` for a 2xx response, ``(response, error)``
        for any other status, and ``(None, error)`` when no complete response
        arrived in time.
        """
        assert self._client is not None
        deadline = _AttemptDeadline(time.monotonic() + self._timeout_ms / 1000)
        try:
            request = self._client.build_request(
                method,
                path,
                headers=headers,
                params=params or None,
                json=json_body,
            )
            request.extensions["timeout"] = deadline
            streamed = self._client.send(request, stream=True)
            try:
                body = _read_until(streamed, deadline)
            finally:
                streamed.close()
        except httpx.TimeoutException as exc:
            logger.debug("%s %s timed out after %dms: %s", method, path, self._timeout_ms, exc)
            return None, self._timeout_error()
        except httpx.TransportError as exc:
            if deadline.expired:
                logger.debug(
                    "%s %s cut off at the %dms deadline: %s", method, path, self._timeout_ms, exc
                )
                return None, self._timeout_error()
            logger.debug("%s %s network error: %s", method, path, exc)
            return None, APIError(f"Network error: {exc}")

        if body is None:
            logger.debug("%s %s still reading at the %dms deadline", method, path, self._timeout_ms)
            return None, self._timeout_error()

        response = _buffered(streamed, body)
        if 200 <= response.status_code < 300:
            return response, None
        return response, error_from_response(response, parse_rate_limit(response.headers))

    def _timeout_error(self) -> APIError:
        return APIError(
            f"Request timeout after {self._timeout_ms}ms",
            details={"timeout": self._timeout_ms},
        )

    def _parse_success(
        self,
        response: httpx.Response,
        response_model: Optional[type[BaseModel]],
    ) -> APIResponse[Any]:
        rate_limit: Optional[RateLimitInfo] = parse_rate_limit(response.headers)
        try:
            body = decode_json_body(response)
        except ValueError as exc:
            raise APIError(
                f"Invalid JSON in response body: {exc}",
                status_code=response.status_code,
                rate_limit=rate_limit,
            ) from exc

        if response_model is None:
            return APIResponse(data=body, rate_limit=rate_limit)
        try:
            data = response_model.model_validate(body)
        except ValidationError as exc:
            raise APIError(
                f"Unexpected response from {response.request.url.path}: {exc}",
                status_code=response.status_code,
                details=body,
                rate_limit=rate_limit,
            ) from exc
        return APIResponse(data=data, rate_limit=rate_limit)

    def _call(
        self,
        method: str,
        path: str,
        model: type[M],
        body: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> APIResponse[M]:
        return self.request(method, path, params=params, json_body=body, response_model=model)

    @staticmethod
    def _path(*segments: str) -> str:
        """Join path segments, percent-encoding identifiers."""
        return "/" + "/".join(quote(str(segment), safe="") for segment in segments)

    # ------------------------------------------------------------------ #
    # Emails
    # ------------------------------------------------------------------ #

    def send_email(self, request: SendEmailRequest) -> APIResponse[SendEmailResponse]:
        """Send a single email (``POST /emails``)."""
        return self._call("POST", "/emails", SendEmailResponse, to_payload(request))

    def send_batch_emails(
        self, emails: Sequence[SendEmailRequest]
    ) -> APIResponse[BatchEmailResponse]:
        """Send up to :data:`MAX_BATCH_SIZE` emails in one request (``POST /emails/batch``).

        Raises:
            InvalidUsageError: If *emails* is empty or larger than the limit.
        """
        if not emails:
            raise InvalidUsageError("A batch must contain at least one email")
        if len(emails) > MAX_BATCH_SIZE:
            raise InvalidUsageError(
                f"A batch can contain at most {MAX_BATCH_SIZE} emails, got {len(emails)}"
            )
        payload = [to_payload(email) for email in emails]
        return self._call("POST", "/emails/batch", BatchEmailResponse, payload)

    def get_email(self, email_id: str) -> APIResponse[Email]:
        return self._call("GET", self._path("emails", email_id), Email)

    def list_emails(
        self,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> APIResponse[ListResponse[Email]]:
        """List sent emails. Only the pagination parameters supplied are sent."""
        return self._call(
            "GET", "/emails", ListResponse[Email], params={"limit": limit, "cursor": cursor},
        )

    def update_email(
        self, email_id: str, request: UpdateEmailRequest
    ) -> APIResponse[ObjectRef]:
        """Reschedule a scheduled email."""
        return self._call("PATCH", self._path("emails", email_id), ObjectRef, to_payload(request))

    def cancel_email(self, email_id: str) -> APIResponse[ObjectRef]:
        return self._call("POST", self._path("emails", email_id, "cancel"), ObjectRef)

    # ------------------------------------------------------------------ #
    # Domains
    # ------------------------------------------------------------------ #

    def list_domains(self) -> APIResponse[ListResponse[Domain]]:
        return self._call("GET", "/domains", ListResponse[Domain])

    def create_domain(self, request: CreateDomainRequest) -> APIResponse[Domain]:
        return self._call("POST", "/domains", Domain, to_payload(request))

    def get_domain(self, domain_id: str) -> APIResponse[Domain]:
        return self._call("GET", self._path("domains", domain_id), Domain)

    def update_domain(
        self, domain_id: str, request: UpdateDomainRequest
    ) -> APIResponse[ObjectRef]:
        return self._call(
            "PATCH", self._path("domains", domain_id), ObjectRef, to_payload(request)
        )

    def delete_domain(self, domain_id: str) -> APIResponse[DeletedResponse]:
        return self._call("DELETE", self._path("domains", domain_id), DeletedResponse)

    def verify_domain(self, domain_id: str) -> APIResponse[ObjectRef]:
        """Trigger DNS verification for a domain."""
        return self._call("POST", self._path("domains", domain_id, "verify"), ObjectRef)

    # ------------------------------------------------------------------ #
    # Audiences
    # ------------------------------------------------------------------ #

    def list_audiences(self) -> APIResponse[ListResponse[Audience]]:
        return self._call("GET", "/audiences", ListResponse[Audience])

    def create_audience(self, request: CreateAudienceRequest) -> APIResponse[Audience]:
        return self._call("POST", "/audiences", Audience, to_payload(request))

    def get_audience(self, audience_id: str) -> APIResponse[Audience]:
        return self._call("GET", self._path("audiences", audience_id), Audience)

    def delete_audience(self, audience_id: str) -> APIResponse[DeletedResponse]:
        return self._call("DELETE", self._path("audiences", audience_id), DeletedResponse)

    # ------------------------------------------------------------------ #
    # Contacts
    # ------------------------------------------------------------------ #

    def list_contacts(self, audience_id: str) -> APIResponse[ListResponse[Contact]]:
        return self._call(
            "GET", self._path("audiences", audience_id, "contacts"), ListResponse[Contact]
        )

    def create_contact(self, request: CreateContactRequest) -> APIResponse[ObjectRef]:
        """Add a contact to ``request.audience_id``."""
        return self._call(
            "POST",
            self._path("audiences", request.audience_id, "contacts"),
            ObjectRef,
            to_payload(request),
        )

    def get_contact(self, audience_id: str, contact_id: str) -> APIResponse[Contact]:
        return self._call(
            "GET", self._path("audiences", audience_id, "contacts", contact_id), Contact
        )

    def update_contact(
        self, audience_id: str, contact_id: str, request: UpdateContactRequest
    ) -> APIResponse[ObjectRef]:
        return self._call(
            "PATCH",
            self._path("audiences", audience_id, "contacts", contact_id),
            ObjectRef,
            to_payload(request),
        )

    def delete_contact(
        self, audience_id: str, contact_id: str
    ) -> APIResponse[DeletedResponse]:
        return self._call(
            "DELETE",
            self._path("audiences", audience_id, "contacts", contact_id),
            DeletedResponse,
        )

    # ------------------------------------------------------------------ #
    # Broadcasts
    # ------------------------------------------------------------------ #

    def list_broadcasts(self) -> APIResponse[ListResponse[Broadcast]]:
        return self._call("GET", "/broadcasts", ListResponse[Broadcast])

    def create_broadcast(self, request: CreateBroadcastRequest) -> APIResponse[ObjectRef]:
        return self._call("POST", "/broadcasts", ObjectRef, to_payload(request))

    def get_broadcast(self, broadcast_id: str) -> APIResponse[Broadcast]:
        return self._call("GET", self._path("broadcasts", broadcast_id), Broadcast)

    def update_broadcast(
        self, broadcast_id: str, request: UpdateBroadcastRequest
    ) -> APIResponse[ObjectRef]:
        return self._call(
            "PATCH", self._path("broadcasts", broadcast_id), ObjectRef, to_payload(request)
        )

    def send_broadcast(
        self, broadcast_id: str, scheduled_at: Optional[str] = None
    ) -> APIResponse[ObjectRef]:
        """Send a broadcast now, or at *scheduled_at* (ISO 8601)."""
        body = to_payload(SendBroadcastRequest(scheduled_at=scheduled_at))
        return self._call(
            "POST", self._path("broadcasts", broadcast_id, "send"), ObjectRef, body
        )

    def delete_broadcast(self, broadcast_id: str) -> APIResponse[DeletedResponse]:
        return self._call("DELETE", self._path("broadcasts", broadcast_id), DeletedResponse)

    # ------------------------------------------------------------------ #
    # Webhooks
    # ------------------------------------------------------------------ #

    def list_webhooks(self) -> APIResponse[ListResponse[Webhook]]:
        return self._call("GET", "/webhooks", ListResponse[Webhook])

    def create_webhook(self, request: CreateWebhookRequest) -> APIResponse[Webhook]:
        return self._call("POST", "/webhooks", Webhook, to_payload(request))

    def get_webhook(self, webhook_id: str) -> APIResponse[Webhook]:
        return self._call("GET", self._path("webhooks", webhook_id), Webhook)

    def update_webhook(
        self, webhook_id: str, request: UpdateWebhookRequest
    ) -> APIResponse[Webhook]:
        return self._call(
            "PATCH", self._path("webhooks", webhook_id), Webhook, to_payload(request)
        )

    def delete_webhook(self, webhook_id: str) -> APIResponse[DeletedResponse]:
        return self._call("DELETE", self._path("webhooks", webhook_id), DeletedResponse)

    # ------------------------------------------------------------------ #
    # API keys
    # ------------------------------------------------------------------ #

    def list_api_keys(self) -> APIResponse[ListResponse[ApiKey]]:
        return self._call("GET", "/api-keys", ListResponse[ApiKey])

    def create_api_key(self, request: CreateApiKeyRequest) -> APIResponse[CreatedApiKey]:
        """Create an API key. The token in the result is only ever shown once."""
        return self._call("POST", "/api-keys", CreatedApiKey, to_payload(request))

    def delete_api_key(self, api_key_id: str) -> APIResponse[DeletedResponse]:
        return self._call("DELETE", self._path("api-keys", api_key_id), DeletedResponse)

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def test_connection(self) -> bool:
        """Return ``True`` if the API accepts the configured key."""
        try:
            self.list_emails(limit=1)
        except APIError as exc:
            logger.debug("Connection test failed: %s", exc.message)
            return False
        return True


# ---------------------------------------------------------------------- #
# Attempt deadline
# ---------------------------------------------------------------------- #


class _AttemptDeadline(dict):
    """httpx per-phase timeouts that all count down to one wall-clock deadline.

    Installed as a request's ``timeout`` extension. The transport looks a
    phase's timeout up right before it blocks (pool wait, connect, each
    write, each socket read), so every lookup answers with the seconds left.
    """

    def __init__(self, deadline: float) -> None:
        super().__init__(connect=None, read=None, write=None, pool=None)
        self.deadline = deadline

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.deadline

    def remaining(self) -> float:
        return max(self.deadline - time.monotonic(), _MIN_WAIT_S)

    def get(self, key: str, default: Any = None) -> Any:
        return self.remaining() if key in self else default

    def __getitem__(self, key: str) -> float:
        super().__getitem__(key)
        return self.remaining()


def _read_until(response: httpx.Response, deadline: _AttemptDeadline) -> Optional[bytes]:
    """Read the decoded body of a streamed *response*; ``None`` once *deadline* passes."""
    body: list[bytes] = []
    for chunk in response.iter_bytes():
        if deadline.expired:
            return None
        body.append(chunk)
    return None if deadline.expired else b"".join(body)


def _buffered(response: httpx.Response, body: bytes) -> httpx.Response:
    """A fully-read copy of *response* holding the decoded *body*."""
    headers = [
        (name, value)
        for name, value in response.headers.multi_items()
        if name.lower() != "content-encoding"
    ]
    return httpx.Response(
        response.status_code, headers=headers, content=body, request=response.request
    )
