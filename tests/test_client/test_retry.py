"""Tests for the pure retry-policy functions."""

from __future__ import annotations

import pytest

from resendcli.client.retry import (
    AttemptOutcome,
    backoff_delay,
    classify_attempt,
    worst_case_latency_ms,
)


class TestBackoffDelay:
    @pytest.mark.parametrize(
        "attempt, expected",
        [(0, 1000), (1, 2000), (2, 4000), (3, 4000), (10, 4000), (1000, 4000)],
    )
    def test_doubles_then_caps(self, attempt: int, expected: int) -> None:
        assert backoff_delay(attempt) == expected

    def test_negative_attempt_rejected(self) -> None:
        with pytest.raises(ValueError):
            backoff_delay(-1)


class TestClassifyAttempt:
    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    def test_success(self, status: int) -> None:
        assert classify_attempt(status, 0, 3) is AttemptOutcome.SUCCEED

    def test_success_on_last_attempt(self) -> None:
        assert classify_attempt(200, 2, 3) is AttemptOutcome.SUCCEED

    @pytest.mark.parametrize("status", [500, 502, 503, 504, None])
    def test_transient_failure_retried_while_budget_left(self, status) -> None:
        assert classify_attempt(status, 0, 3) is AttemptOutcome.RETRY
        assert classify_attempt(status, 1, 3) is AttemptOutcome.RETRY

    @pytest.mark.parametrize("status", [500, None])
    def test_transient_failure_on_last_attempt_fails(self, status) -> None:
        assert classify_attempt(status, 2, 3) is AttemptOutcome.FAIL

    def test_single_attempt_budget_never_retries(self) -> None:
        assert classify_attempt(500, 0, 1) is AttemptOutcome.FAIL

    @pytest.mark.parametrize("status", [300, 400, 401, 403, 404, 422, 429])
    def test_other_statuses_fail_immediately(self, status: int) -> None:
        assert classify_attempt(status, 0, 3) is AttemptOutcome.FAIL


class TestWorstCaseLatency:
    def test_three_attempts(self) -> None:
        # Three timeouts plus sleeps of 1 s and 2 s.
        assert worst_case_latency_ms(30000, 3) == 93000

    def test_single_attempt(self) -> None:
        assert worst_case_latency_ms(5000, 1) == 5000
