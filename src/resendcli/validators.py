"""Local input validation.

Validators never raise. Each returns either a value (a parsed result, or
``None`` when the input is unusable) or a list of human-readable error
strings. Commands collect these lists and raise a single
:class:`~resendcli.exceptions.InvalidUsageError` carrying all of them, so the
user sees every problem with an invocation at once.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import ValidationError

from resendcli.models import EmailTag, SendEmailRequest

# Simplified RFC 5322: dot-atom local part, hostname labels of up to 63 chars.
_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

MAX_EMAIL_LENGTH = 254
MAX_LOCAL_PART_LENGTH = 64
MAX_DOMAIN_LENGTH = 253

MIN_LIST_LIMIT = 1
MAX_LIST_LIMIT = 100

AddressInput = Union[str, Sequence[str], None]


@dataclass
class EmailValidation:
    """Addresses split into those that pass :func:`validate_email` and those that don't."""

    valid: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.invalid


def validate_email(email: Any) -> bool:
    """Return ``True`` if *email* looks like a deliverable address.

    Surrounding whitespace is ignored. Besides the pattern match, the
    address must be at most 254 characters with a local part of at most 64
    and a domain of at most 253.
    """
    if not isinstance(email, str):
        return False
    trimmed = email.strip()
    if not trimmed or len(trimmed) > MAX_EMAIL_LENGTH:
        return False

    parts = trimmed.split("@")
    if len(parts) != 2:
        return False
    local, domain = parts
    if not local or len(local) > MAX_LOCAL_PART_LENGTH:
        return False
    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        return False

    return _EMAIL_RE.match(trimmed) is not None


def validate_emails(emails: Iterable[Any]) -> EmailValidation:
    """Partition *emails*. Valid addresses are returned trimmed, invalid ones verbatim."""
    result = EmailValidation()
    for email in emails:
        if validate_email(email):
            result.valid.append(email.strip())
        else:
            result.invalid.append(str(email))
    return result


def _as_list(value: AddressInput) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def validate_email_body(text: Optional[str], html: Optional[str]) -> bool:
    """Whether at least one non-blank body (text or HTML) is present."""
    return any(isinstance(body, str) and body.strip() for body in (text, html))


def validate_required_fields(
    from_: Optional[str],
    to: AddressInput,
    subject: Optional[str],
) -> list[str]:
    """Check the sender, recipients and subject of an email.

    Returns:
        Error messages; empty when all three fields are usable.
    """
    errors: list[str] = []

    if not isinstance(from_, str) or not from_.strip():
        errors.append("Sender email (--from) is required")
    elif not validate_email(from_):
        errors.append(f"Invalid sender email: {from_}")

    recipients = _as_list(to)
    if not recipients:
        errors.append("At least one recipient email (--to) is required")
    else:
        validation = validate_emails(recipients)
        if not validation.is_valid:
            errors.append(f"Invalid recipient email(s): {', '.join(validation.invalid)}")

    if not isinstance(subject, str) or not subject.strip():
        errors.append("Subject (--subject) is required")

    return errors


def validate_optional_fields(
    cc: AddressInput = None,
    bcc: AddressInput = None,
    reply_to: AddressInput = None,
) -> list[str]:
    """Check the optional address lists of an email. Absent lists are fine."""
    errors: list[str] = []
    for label, value in (("CC", cc), ("BCC", bcc), ("reply-to", reply_to)):
        validation = validate_emails(_as_list(value))
        if not validation.is_valid:
            errors.append(f"Invalid {label} email(s): {', '.join(validation.invalid)}")
    return errors


def parse_tags(raw_tags: Iterable[str]) -> tuple[list[EmailTag], list[str]]:
    """Parse ``name:value`` tag strings.

    Everything after the first colon is the value, so values may contain
    colons themselves.

    Returns:
        A ``(tags, errors)`` pair.
    """
    tags: list[EmailTag] = []
    errors: list[str] = []
    for raw in raw_tags:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            errors.append(f"Invalid tag '{raw}': expected name:value")
            continue
        tags.append(EmailTag(name=name.strip(), value=value))
    return tags, errors


def parse_datetime(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp into an aware datetime.

    A trailing ``Z`` is accepted for UTC. Timestamps without an offset are
    interpreted in the local time zone. Returns ``None`` if *value* cannot
    be parsed.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def validate_scheduled_at(value: str, now: Optional[datetime] = None) -> list[str]:
    """Check that *value* is an ISO 8601 timestamp in the future."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ["Invalid date format. Use ISO 8601 format (e.g., 2024-12-31T23:59:59Z)"]
    current = now or datetime.now(timezone.utc)
    if parsed <= current:
        return ["Scheduled time must be in the future"]
    return []


def parse_bool(value: str) -> Optional[bool]:
    """Parse ``true`` / ``false`` (any case). Anything else yields ``None``."""
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def validate_limit(limit: int) -> list[str]:
    if not MIN_LIST_LIMIT <= limit <= MAX_LIST_LIMIT:
        return [f"Limit must be between {MIN_LIST_LIMIT} and {MAX_LIST_LIMIT}"]
    return []


def validate_batch_entries(entries: Any) -> tuple[list[SendEmailRequest], list[str]]:
    """Validate the contents of a batch file.

    Every entry is checked and all problems are reported, each prefixed
    with its one-based position (``Email 3: ...``).

    Args:
        entries: The decoded JSON document; must be a non-empty array.

    Returns:
        A ``(requests, errors)`` pair. ``requests`` is only meaningful when
        ``errors`` is empty.
    """
    if not isinstance(entries, list):
        return [], ["JSON file must contain an array of email objects"]
    if not entries:
        return [], ["No emails found in JSON file"]

    requests: list[SendEmailRequest] = []
    errors: list[str] = []
    for index, entry in enumerate(entries, start=1):
        prefix = f"Email {index}"
        if not isinstance(entry, dict):
            errors.append(f"{prefix}: Expected an object")
            continue

        entry_errors = validate_required_fields(
            entry.get("from"), entry.get("to"), entry.get("subject")
        )
        if not validate_email_body(entry.get("text"), entry.get("html")):
            entry_errors.append("Must have either text or html content")
        entry_errors.extend(
            validate_optional_fields(entry.get("cc"), entry.get("bcc"), entry.get("reply_to"))
        )
        if entry_errors:
            errors.extend(f"{prefix}: {message}" for message in entry_errors)
            continue

        try:
            requests.append(SendEmailRequest.model_validate(entry))
        except ValidationError as exc:
            errors.extend(
                f"{prefix}: {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
    return requests, errors
