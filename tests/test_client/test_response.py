"""Tests for rate-limit parsing, body decoding and error mapping."""

from __future__ import annotations

import httpx
import pytest

from resendcli.client.response import decode_json_body, error_from_response, parse_rate_limit
from resendcli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
    EXIT_SERVER_ERROR,
)
from resendcli.models import RateLimitInfo


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_response(
    status_code: int = 200,
    content: bytes | None = None,
    json_data: object | None = None,
) -> httpx.Response:
    """Build an httpx.Response with a JSON or raw body."""
    request = httpx.Request("GET", "https://api.example.com/test")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, request=request)
    return httpx.Response(status_code, content=content or b"", request=request)


_ALL_HEADERS = {
    "x-ratelimit-limit": "10",
    "x-ratelimit-remaining": "7",
    "x-ratelimit-reset": "1700000000",
}


# ---------------------------------------------------------------------------
# parse_rate_limit
# ---------------------------------------------------------------------------


class TestParseRateLimit:
    def test_all_headers_present(self) -> None:
        info = parse_rate_limit(httpx.Headers(_ALL_HEADERS))
        assert info == RateLimitInfo(limit=10, remaining=7, reset=1700000000)

    @pytest.mark.parametrize("missing", sorted(_ALL_HEADERS))
    def test_any_header_missing(self, missing: str) -> None:
        headers = {k: v for k, v in _ALL_HEADERS.items() if k != missing}
        assert parse_rate_limit(httpx.Headers(headers)) is None

    def test_non_integer_value(self) -> None:
        headers = {**_ALL_HEADERS, "x-ratelimit-remaining": "lots"}
        assert parse_rate_limit(httpx.Headers(headers)) is None

    def test_header_names_case_insensitive(self) -> None:
        headers = {k.upper(): v for k, v in _ALL_HEADERS.items()}
        assert parse_rate_limit(httpx.Headers(headers)) is not None

    def test_no_headers(self) -> None:
        assert parse_rate_limit(httpx.Headers()) is None


# ---------------------------------------------------------------------------
# decode_json_body
# ---------------------------------------------------------------------------


class TestDecodeJsonBody:
    def test_object(self) -> None:
        assert decode_json_body(_make_response(json_data={"id": "abc"})) == {"id": "abc"}

    def test_empty_body(self) -> None:
        assert decode_json_body(_make_response(204)) == {}

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(ValueError):
            decode_json_body(_make_response(content=b"not json"))


# ---------------------------------------------------------------------------
# error_from_response
# ---------------------------------------------------------------------------


class TestErrorFromResponse:
    def test_message_from_body(self) -> None:
        err = error_from_response(_make_response(422, json_data={"message": "Invalid `to`"}))
        assert err.message == "Invalid `to`"
        assert err.status_code == 422
        assert err.details == {"message": "Invalid `to`"}

    def test_non_json_body_leaves_details_unset(self) -> None:
        err = error_from_response(_make_response(500, content=b"<h1>oops</h1>"))
        assert err.message == "API request failed with status 500"
        assert err.details is None

    def test_empty_body(self) -> None:
        err = error_from_response(_make_response(503))
        assert err.message == "API request failed with status 503"
        assert err.details is None

    def test_non_object_json_kept_as_details(self) -> None:
        err = error_from_response(_make_response(400, json_data=["bad", "request"]))
        assert err.message == "API request failed with status 400"
        assert err.details == ["bad", "request"]

    def test_non_string_message_ignored(self) -> None:
        err = error_from_response(_make_response(400, json_data={"message": 42}))
        assert err.message == "API request failed with status 400"

    def test_rate_limit_passed_through(self) -> None:
        info = RateLimitInfo(limit=1, remaining=0, reset=5)
        err = error_from_response(_make_response(429, json_data={}), rate_limit=info)
        assert err.rate_limit is info

    @pytest.mark.parametrize(
        "status, exit_code",
        [
            (400, EXIT_GENERIC_FAILURE),
            (401, EXIT_AUTH_FAILURE),
            (403, EXIT_AUTH_FAILURE),
            (404, EXIT_NOT_FOUND),
            (429, EXIT_RATE_LIMITED),
            (500, EXIT_SERVER_ERROR),
            (503, EXIT_SERVER_ERROR),
        ],
    )
    def test_exit_code_follows_status(self, status: int, exit_code: int) -> None:
        assert error_from_response(_make_response(status)).exit_code == exit_code
