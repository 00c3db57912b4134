"""Canonical Pydantic models shared across all resendcli modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration** -- serialised as JSON in the user's config directory:
    :class:`CliConfig`.

**Engine results** -- attached to every successful API call:
    :class:`RateLimitInfo` and :class:`APIResponse`.

**API records** -- one request and/or response model per endpoint of the
Resend REST API (emails, domains, audiences, contacts, broadcasts, webhooks,
API keys). Request models serialise with :func:`to_payload`; response models
use ``extra="allow"`` so fields added by the API are preserved in
``model_extra`` instead of failing validation.

Fields named ``from`` on the wire are exposed as ``from_`` in Python and
accept either spelling on input.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# --- Configuration ---


class CliConfig(BaseModel):
    """User configuration persisted at ``~/.config/resend/config.json``.

    Loaded and saved by :func:`~resendcli.config.load_config` and
    :func:`~resendcli.config.save_config`. A project-local ``.resend.json``
    and ``RESEND_*`` environment variables are layered on top; see
    :func:`~resendcli.config.resolve_settings`.
    """

    api_key: Optional[str] = Field(default=None, description="Resend API key (re_...)")
    default_from: Optional[str] = Field(
        default=None, description="Sender used when --from is omitted"
    )
    output_format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )
    base_url: Optional[str] = Field(default=None, description="API base URL override")
    timeout_ms: int = Field(default=30000, description="Per-attempt timeout in milliseconds")
    max_retries: int = Field(default=3, description="Total attempts for retryable failures")


# --- Engine results ---


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate-limit snapshot parsed from the ``x-ratelimit-*`` response headers."""

    limit: int
    remaining: int
    reset: int


@dataclass(frozen=True)
class APIResponse(Generic[T]):
    """Result of one successful API call.

    Attributes:
        data: The response body, validated into the endpoint's record type.
        rate_limit: Snapshot of the rate-limit headers, or ``None`` when the
            response did not carry all three of them.
    """

    data: T
    rate_limit: Optional[RateLimitInfo] = None


# --- Shared record bases ---


class _Request(BaseModel):
    """Base for request bodies: accepts ``from`` or ``from_`` on input."""

    model_config = ConfigDict(populate_by_name=True)


class _Record(BaseModel):
    """Base for response records: tolerant of fields the API adds later."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


def to_payload(model: BaseModel) -> dict[str, Any]:
    """Serialise a model to its JSON wire form, dropping unset fields."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class ObjectRef(_Record):
    """Minimal acknowledgement returned by update / action endpoints."""

    object: Optional[str] = None
    id: Optional[str] = None


class DeletedResponse(ObjectRef):
    """Response body of every ``DELETE`` endpoint."""

    deleted: Optional[bool] = None


class ListResponse(_Record, Generic[T]):
    """Envelope returned by list endpoints."""

    object: Optional[str] = None
    data: list[T] = Field(default_factory=list)
    has_more: Optional[bool] = None
    next_cursor: Optional[str] = None


# --- Emails ---


class EmailTag(BaseModel):
    """A ``name``/``value`` pair attached to an email for tracking."""

    name: str
    value: str


class Attachment(BaseModel):
    """A file attachment; ``content`` is base64-encoded."""

    filename: str
    content: str
    content_type: Optional[str] = None


class SendEmailRequest(_Request):
    """Body of ``POST /emails`` and one entry of ``POST /emails/batch``."""

    from_: str = Field(alias="from")
    to: Union[str, list[str]]
    subject: str
    text: Optional[str] = None
    html: Optional[str] = None
    cc: Optional[Union[str, list[str]]] = None
    bcc: Optional[Union[str, list[str]]] = None
    reply_to: Optional[Union[str, list[str]]] = None
    headers: Optional[dict[str, str]] = None
    tags: Optional[list[EmailTag]] = None
    attachments: Optional[list[Attachment]] = None
    scheduled_at: Optional[str] = Field(default=None, description="ISO 8601 send time")


class SendEmailResponse(_Record):
    id: str


class BatchEmailResponse(_Record):
    data: list[SendEmailResponse] = Field(default_factory=list)


class UpdateEmailRequest(_Request):
    """Body of ``PATCH /emails/:id`` -- reschedules a scheduled email."""

    scheduled_at: str


class Email(_Record):
    id: str
    object: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: list[str] = Field(default_factory=list)
    subject: Optional[str] = None
    created_at: Optional[str] = None
    last_event: Optional[str] = None
    scheduled_at: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None
    cc: Optional[list[str]] = None
    bcc: Optional[list[str]] = None
    reply_to: Optional[list[str]] = None


# --- Domains ---


class DomainRegion(str, enum.Enum):
    """Regions a sending domain can be hosted in."""

    US_EAST_1 = "us-east-1"
    EU_WEST_1 = "eu-west-1"
    SA_EAST_1 = "sa-east-1"


class DnsRecord(_Record):
    record: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    ttl: Optional[str] = None
    status: Optional[str] = None
    value: Optional[str] = None
    priority: Optional[int] = None


class Domain(_Record):
    id: str
    object: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    region: Optional[str] = None
    records: list[DnsRecord] = Field(default_factory=list)


class CreateDomainRequest(_Request):
    name: str
    region: Optional[DomainRegion] = None


class UpdateDomainRequest(_Request):
    open_tracking: Optional[bool] = None
    click_tracking: Optional[bool] = None


# --- Audiences & contacts ---


class Audience(_Record):
    id: str
    object: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[str] = None


class CreateAudienceRequest(_Request):
    name: str


class Contact(_Record):
    id: str
    object: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[str] = None
    unsubscribed: Optional[bool] = None


class CreateContactRequest(_Request):
    """Body of ``POST /audiences/:id/contacts``.

    ``audience_id`` selects the URL path and is not sent in the body.
    """

    audience_id: str = Field(exclude=True)
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    unsubscribed: Optional[bool] = None


class UpdateContactRequest(_Request):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    unsubscribed: Optional[bool] = None


# --- Broadcasts ---


class Broadcast(_Record):
    id: str
    object: Optional[str] = None
    name: Optional[str] = None
    audience_id: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    subject: Optional[str] = None
    reply_to: Optional[list[str]] = None
    preview_text: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    scheduled_at: Optional[str] = None
    sent_at: Optional[str] = None


class CreateBroadcastRequest(_Request):
    audience_id: str
    from_: str = Field(alias="from")
    subject: str
    name: Optional[str] = None
    reply_to: Optional[list[str]] = None
    text: Optional[str] = None
    html: Optional[str] = None
    preview_text: Optional[str] = None


class UpdateBroadcastRequest(_Request):
    audience_id: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    subject: Optional[str] = None
    name: Optional[str] = None
    reply_to: Optional[list[str]] = None
    text: Optional[str] = None
    html: Optional[str] = None
    preview_text: Optional[str] = None
    scheduled_at: Optional[str] = None


class SendBroadcastRequest(_Request):
    scheduled_at: Optional[str] = None


# --- Webhooks ---


class WebhookEvent(str, enum.Enum):
    """Event types a webhook can subscribe to."""

    SENT = "email.sent"
    DELIVERED = "email.delivered"
    DELIVERY_DELAYED = "email.delivery_delayed"
    COMPLAINED = "email.complained"
    BOUNCED = "email.bounced"
    OPENED = "email.opened"
    CLICKED = "email.clicked"


class Webhook(_Record):
    id: str
    object: Optional[str] = None
    endpoint_url: Optional[str] = None
    events: list[str] = Field(default_factory=list)
    created_at: Optional[str] = None


class CreateWebhookRequest(_Request):
    endpoint_url: str
    events: list[WebhookEvent]


class UpdateWebhookRequest(_Request):
    endpoint_url: Optional[str] = None
    events: Optional[list[WebhookEvent]] = None


# --- API keys ---


class ApiKeyPermission(str, enum.Enum):
    FULL_ACCESS = "full_access"
    SENDING_ACCESS = "sending_access"


class ApiKey(_Record):
    id: str
    name: Optional[str] = None
    created_at: Optional[str] = None


class CreateApiKeyRequest(_Request):
    name: str
    permission: Optional[ApiKeyPermission] = None
    domain_id: Optional[str] = Field(
        default=None, description="Restrict a sending_access key to one domain"
    )


class CreatedApiKey(_Record):
    id: str
    token: str
