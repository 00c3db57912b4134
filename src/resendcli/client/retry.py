"""Retry policy for the API request engine.

Two pure functions, both testable without a network:

- :func:`backoff_delay` maps a zero-based attempt index to the delay (in
  milliseconds) slept before the next attempt.
- :func:`classify_attempt` maps the outcome of one attempt to
  :class:`AttemptOutcome` -- succeed, retry, or fail.

Only server errors (5xx) and failures that never produced a response
(timeouts, connection errors) are retried. Every 4xx, including 429, is
terminal: rate limiting is left to the caller, who can read the
``x-ratelimit-*`` snapshot attached to the error.
"""

from __future__ import annotations

import enum
from typing import Optional

BASE_DELAY_MS = 1000
"""Delay before the first retry."""

MAX_DELAY_MS = 4000
"""Ceiling applied to every retry delay."""


class AttemptOutcome(str, enum.Enum):
    """What the engine does after one HTTP attempt."""

    SUCCEED = "succeed"
    RETRY = "retry"
    FAIL = "fail"


def backoff_delay(attempt: int) -> int:
    """Return the delay in milliseconds after the attempt with index *attempt*.

    The delay doubles from :data:`BASE_DELAY_MS` and is capped at
    :data:`MAX_DELAY_MS`: 1000, 2000, 4000, 4000, ...

    Args:
        attempt: Zero-based index of the attempt that just failed.

    Returns:
        Milliseconds to sleep before the next attempt.
    """
    if attempt < 0:
        raise ValueError(f"attempt must be >= 0, got {attempt}")
    # The cap is reached at index 2.
    return min(BASE_DELAY_MS * 2 ** min(attempt, 3), MAX_DELAY_MS)


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def is_retryable(status_code: Optional[int]) -> bool:
    """Whether a failure is transient. ``None`` means no response was received."""
    return status_code is None or status_code >= 500


def classify_attempt(
    status_code: Optional[int],
    attempt: int,
    max_attempts: int,
) -> AttemptOutcome:
    """Decide what follows attempt number *attempt* (zero-based).

    Args:
        status_code: HTTP status of the response, or ``None`` when the
            attempt failed before a response arrived (timeout, network error).
        attempt: Zero-based index of the attempt just made.
        max_attempts: Total attempts the engine is allowed.

    Returns:
        :attr:`AttemptOutcome.SUCCEED` for 2xx,
        :attr:`AttemptOutcome.RETRY` for a transient failure with budget left,
        :attr:`AttemptOutcome.FAIL` otherwise.
    """
    if status_code is not None and is_success(status_code):
        return AttemptOutcome.SUCCEED
    if is_retryable(status_code) and attempt < max_attempts - 1:
        return AttemptOutcome.RETRY
    return AttemptOutcome.FAIL


def worst_case_latency_ms(timeout_ms: int, max_attempts: int) -> int:
    """Upper bound on the wall-clock time of one logical call.

    Every attempt may run into the timeout, and a backoff sleep separates
    consecutive attempts.
    """
    sleeps = sum(backoff_delay(n) for n in range(max(max_attempts - 1, 0)))
    return timeout_ms * max_attempts + sleeps
